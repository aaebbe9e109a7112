from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from typing import Any

import httpx

from metabase_explorer.config import ClientConfig
from metabase_explorer.errors import MetabaseError
from metabase_explorer.models import (
    Collection,
    CollectionItem,
    Database,
    Field,
    ItemDetail,
    LevelKind,
    Person,
    Schema,
    Table,
)

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_NAME = "default"
ROOT_COLLECTION = Collection(id="root", name="Our analytics")
CARD_MODELS = frozenset({"card", "dataset", "metric"})


def _data(payload: Any) -> list[Any]:
    # Newer Metabase versions wrap list responses in {"data": [...]}.
    if isinstance(payload, dict):
        payload = payload.get("data") or []
    if not isinstance(payload, list):
        raise MetabaseError("failed to parse response: expected a list")
    return payload


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def parse_database(raw: dict[str, Any]) -> Database:
    return Database(
        id=raw["id"],
        name=_text(raw.get("name")),
        engine=_text(raw.get("engine")),
    )


def parse_table(raw: dict[str, Any]) -> Table:
    return Table(
        id=raw["id"],
        name=_text(raw.get("name")),
        display_name=_text(raw.get("display_name")),
        schema=_text(raw.get("schema")),
        description=_text(raw.get("description")),
    )


def parse_field(raw: dict[str, Any]) -> Field:
    return Field(
        id=raw["id"],
        name=_text(raw.get("name")),
        display_name=_text(raw.get("display_name")),
        description=_text(raw.get("description")),
        base_type=_text(raw.get("base_type")),
        semantic_type=_text(raw.get("semantic_type")),
        database_type=_text(raw.get("database_type")),
        position=raw.get("position") or 0,
    )


def parse_collection(raw: dict[str, Any]) -> Collection:
    return Collection(
        id=raw["id"],
        name=_text(raw.get("name")),
        description=_text(raw.get("description")),
        location=_text(raw.get("location")) or "/",
    )


def parse_collection_item(raw: dict[str, Any]) -> CollectionItem:
    collection = raw.get("collection") or {}
    return CollectionItem(
        id=raw["id"],
        name=_text(raw.get("name")),
        model=_text(raw.get("model")),
        description=_text(raw.get("description")),
        archived=bool(raw.get("archived")),
        collection_name=_text(collection.get("name")),
    )


def _parse_person(raw: Any) -> Person | None:
    if not isinstance(raw, dict):
        return None
    return Person(
        first_name=_text(raw.get("first_name")),
        last_name=_text(raw.get("last_name")),
        email=_text(raw.get("email")),
    )


def parse_item_detail(item: CollectionItem, raw: dict[str, Any]) -> ItemDetail:
    return ItemDetail(
        name=_text(raw.get("name")) or item.name,
        model=item.model,
        description=_text(raw.get("description")) or item.description,
        creator=_parse_person(raw.get("creator")),
        last_editor=_parse_person(raw.get("last-edit-info")),
        created_at=_text(raw.get("created_at")),
        updated_at=_text(raw.get("updated_at")),
        archived=bool(raw.get("archived", item.archived)),
    )


def schema_name(table: Table) -> str:
    return table.schema or DEFAULT_SCHEMA_NAME


def extract_schemas(tables: Iterable[Table]) -> list[Schema]:
    """Group tables by schema name, sorted by name."""
    counts = Counter(schema_name(table) for table in tables)
    return [Schema(name=name, table_count=counts[name]) for name in sorted(counts)]


class MetabaseClient:
    """Read-only access to the Metabase metadata REST API."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            headers={"X-API-Key": config.api_token},
            timeout=config.timeout_seconds,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._config.base_url

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get_json(
        self,
        path: str,
        *,
        purpose: str,
        params: dict[str, str] | None = None,
    ) -> Any:
        logger.debug("GET %s params=%s", path, params)
        try:
            response = await self._http.get(path, params=params)
        except httpx.HTTPError as exc:
            raise MetabaseError(f"failed to {purpose}: {exc}") from exc

        if response.status_code != 200:
            raise MetabaseError(
                f"failed to {purpose}: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise MetabaseError(f"failed to parse response: {exc}") from exc

    async def test_connection(self) -> None:
        try:
            await self._get_json("/api/user/current", purpose="authenticate")
        except MetabaseError as exc:
            if exc.status_code is None:
                raise
            raise MetabaseError(
                f"API token authentication failed with status: {exc.status_code}",
                status_code=exc.status_code,
            ) from exc

    async def get_databases(self) -> list[Database]:
        payload = await self._get_json("/api/database", purpose="get databases")
        return [parse_database(raw) for raw in _data(payload)]

    async def get_tables(self, database_id: int) -> list[Table]:
        payload = await self._get_json(
            f"/api/database/{database_id}/metadata", purpose="get tables"
        )
        if not isinstance(payload, dict):
            raise MetabaseError("failed to parse response: expected an object")
        return [parse_table(raw) for raw in payload.get("tables") or []]

    async def get_schemas(self, database_id: int) -> list[Schema]:
        return extract_schemas(await self.get_tables(database_id))

    async def get_tables_for_schema(
        self, database_id: int, schema: str
    ) -> list[Table]:
        return [
            table
            for table in await self.get_tables(database_id)
            if schema_name(table) == schema
        ]

    async def get_table_fields(self, table_id: int) -> list[Field]:
        payload = await self._get_json(
            f"/api/table/{table_id}/query_metadata", purpose="get table fields"
        )
        if not isinstance(payload, dict):
            raise MetabaseError("failed to parse response: expected an object")
        return [parse_field(raw) for raw in payload.get("fields") or []]

    async def get_collections(self) -> list[Collection]:
        """Top-level collections, preceded by the root collection."""
        payload = await self._get_json("/api/collection", purpose="get collections")
        collections = [
            parse_collection(raw)
            for raw in _data(payload)
            if raw.get("id") != "root" and not raw.get("archived")
        ]
        top_level = [c for c in collections if c.location == "/"]
        return [ROOT_COLLECTION, *top_level]

    async def get_collection_items(
        self, collection_id: int | str
    ) -> list[CollectionItem]:
        payload = await self._get_json(
            f"/api/collection/{collection_id}/items",
            purpose="get collection items",
        )
        return [parse_collection_item(raw) for raw in _data(payload)]

    async def get_item_detail(self, item: CollectionItem) -> ItemDetail:
        if item.model in CARD_MODELS:
            path = f"/api/card/{item.id}"
        elif item.model == "dashboard":
            path = f"/api/dashboard/{item.id}"
        elif item.model == "collection":
            path = f"/api/collection/{item.id}"
        else:
            return ItemDetail(
                name=item.name,
                model=item.model,
                description=item.description,
                archived=item.archived,
            )

        payload = await self._get_json(path, purpose=f"get {item.model} details")
        if not isinstance(payload, dict):
            raise MetabaseError("failed to parse response: expected an object")
        return parse_item_detail(item, payload)

    async def search(self, query: str) -> list[CollectionItem]:
        payload = await self._get_json(
            "/api/search", purpose="search", params={"q": query}
        )
        return [parse_collection_item(raw) for raw in _data(payload)]

    async def fetch_children(self, kind: LevelKind, parent: Any = None) -> Any:
        """Fetch whatever a view of the given kind displays."""
        try:
            return await self._fetch_children(kind, parent)
        except (KeyError, TypeError, AttributeError) as exc:
            raise MetabaseError(f"failed to parse response: {exc!r}") from exc

    async def _fetch_children(self, kind: LevelKind, parent: Any) -> Any:
        if kind is LevelKind.CONNECTION:
            await self.test_connection()
            return None
        if kind is LevelKind.DATABASES:
            return await self.get_databases()
        if kind is LevelKind.SCHEMAS:
            return await self.get_schemas(parent)
        if kind is LevelKind.TABLES:
            database_id, schema = parent
            return await self.get_tables_for_schema(database_id, schema)
        if kind is LevelKind.FIELDS:
            return await self.get_table_fields(parent)
        if kind is LevelKind.COLLECTIONS:
            return await self.get_collections()
        if kind is LevelKind.COLLECTION_ITEMS:
            return await self.get_collection_items(parent)
        if kind is LevelKind.ITEM_DETAIL:
            return await self.get_item_detail(parent)
        if kind is LevelKind.SEARCH:
            return await self.search(parent)
        raise ValueError(f"unsupported level kind: {kind!r}")
