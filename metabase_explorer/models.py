from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ViewState(Enum):
    MAIN_MENU = "main-menu"
    DATABASES = "databases"
    SCHEMAS = "schemas"
    TABLES = "tables"
    FIELDS = "fields"
    COLLECTIONS = "collections"
    COLLECTION_ITEMS = "collection-items"
    ITEM_DETAIL = "item-detail"
    GLOBAL_SEARCH = "global-search"


class InputMode(Enum):
    NORMAL = "normal"
    SEARCH = "search"
    NUMERIC_ENTRY = "numeric-entry"
    HELP = "help"


class LevelKind(Enum):
    """What a single metadata fetch returns."""

    CONNECTION = "connection"
    DATABASES = "databases"
    SCHEMAS = "schemas"
    TABLES = "tables"
    FIELDS = "fields"
    COLLECTIONS = "collections"
    COLLECTION_ITEMS = "collection-items"
    ITEM_DETAIL = "item-detail"
    SEARCH = "search"


@dataclass(frozen=True)
class Database:
    id: int
    name: str
    engine: str = ""

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True)
class Schema:
    name: str
    table_count: int = 0

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True)
class Table:
    id: int
    name: str
    display_name: str = ""
    schema: str = ""
    description: str = ""

    @property
    def label(self) -> str:
        return self.display_name or self.name


@dataclass(frozen=True)
class Field:
    id: int
    name: str
    display_name: str = ""
    description: str = ""
    base_type: str = ""
    semantic_type: str = ""
    database_type: str = ""
    position: int = 0

    @property
    def label(self) -> str:
        return self.display_name or self.name


@dataclass(frozen=True)
class Collection:
    id: int | str
    name: str
    description: str = ""
    location: str = "/"

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True)
class CollectionItem:
    """An entry inside a collection, also used for server-side search hits."""

    id: int | str
    name: str
    model: str
    description: str = ""
    archived: bool = False
    collection_name: str = ""

    @property
    def label(self) -> str:
        return self.name

    @property
    def is_collection(self) -> bool:
        return self.model == "collection"

    def as_collection(self) -> Collection:
        return Collection(id=self.id, name=self.name, description=self.description)


@dataclass(frozen=True)
class Person:
    first_name: str = ""
    last_name: str = ""
    email: str = ""

    @property
    def display_name(self) -> str:
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.email


@dataclass(frozen=True)
class ItemDetail:
    name: str
    model: str
    description: str = ""
    creator: Person | None = None
    last_editor: Person | None = None
    created_at: str = ""
    updated_at: str = ""
    archived: bool = False


def display_name(item: Any) -> str:
    """Name shown for a list entry and matched by the quick filter."""
    label = getattr(item, "label", None)
    if label is None:
        return str(item)
    if label:
        return label
    identifier = getattr(item, "id", None)
    return "" if identifier is None else f"#{identifier}"


@dataclass(frozen=True)
class KeyEvent:
    key: str
    character: str | None = None


@dataclass(frozen=True)
class OpenUrl:
    url: str


@dataclass(frozen=True)
class ScheduleTick:
    pass


@dataclass(frozen=True)
class Quit:
    pass
