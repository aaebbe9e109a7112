from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Union

from metabase_explorer.browser import HELP_LINKS, web_url
from metabase_explorer.collection_stack import CollectionStack
from metabase_explorer.loaders import LoadCompleted, LoadRequest, RequestTracker
from metabase_explorer.models import (
    Collection,
    CollectionItem,
    Database,
    InputMode,
    ItemDetail,
    KeyEvent,
    LevelKind,
    OpenUrl,
    Quit,
    Schema,
    ScheduleTick,
    Table,
    ViewState,
    display_name,
)
from metabase_explorer.quick_select import NumericQuickSelect
from metabase_explorer.search import filter_indices
from metabase_explorer.viewport import DEFAULT_VIEWPORT_HEIGHT, Viewport

logger = logging.getLogger(__name__)

Command = Union[LoadRequest, OpenUrl, ScheduleTick, Quit]

MENU_COLLECTIONS = "Collections"
MENU_DATABASES = "Databases"
MENU_SEARCH = "Search"
MAIN_MENU_ENTRIES = (MENU_COLLECTIONS, MENU_DATABASES, MENU_SEARCH)

SPINNER_FRAME_COUNT = 10
DIGITS = "0123456789"

UP_KEYS = frozenset({"up", "k"})
DOWN_KEYS = frozenset({"down", "j"})
FORWARD_KEYS = frozenset({"enter", "right", "l"})
BACK_KEYS = frozenset({"left", "h", "backspace", "escape"})
QUIT_KEYS = frozenset({"q", "ctrl+c"})
HELP_CLOSE_KEYS = frozenset({"escape", "left", "h"})

# Lists without a size cap are windowed; everything else renders in full.
VIEWPORT_VIEWS = frozenset({ViewState.COLLECTION_ITEMS, ViewState.GLOBAL_SEARCH})

DESCENDANT_VIEWS: dict[ViewState, tuple[ViewState, ...]] = {
    ViewState.DATABASES: (ViewState.SCHEMAS, ViewState.TABLES, ViewState.FIELDS),
    ViewState.SCHEMAS: (ViewState.TABLES, ViewState.FIELDS),
    ViewState.TABLES: (ViewState.FIELDS,),
    ViewState.COLLECTIONS: (ViewState.COLLECTION_ITEMS,),
}

VIEW_FOR_KIND: dict[LevelKind, ViewState] = {
    LevelKind.DATABASES: ViewState.DATABASES,
    LevelKind.SCHEMAS: ViewState.SCHEMAS,
    LevelKind.TABLES: ViewState.TABLES,
    LevelKind.FIELDS: ViewState.FIELDS,
    LevelKind.COLLECTIONS: ViewState.COLLECTIONS,
    LevelKind.COLLECTION_ITEMS: ViewState.COLLECTION_ITEMS,
    LevelKind.SEARCH: ViewState.GLOBAL_SEARCH,
}


@dataclass(frozen=True)
class ListSnapshot:
    """Items of one view as loaded, plus the current filter ranking."""

    items: tuple[Any, ...] = ()
    filtered_indices: tuple[int, ...] = ()


EMPTY_SNAPSHOT = ListSnapshot()


class NavigationState:
    """Keyboard-driven state machine behind the explorer UI.

    Every input is handled synchronously and yields at most one command for
    the caller to execute: a metadata fetch, a URL to open, a spinner tick or
    a request to quit. Fetch results come back through ``handle_loaded``.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        viewport_height: int = DEFAULT_VIEWPORT_HEIGHT,
    ) -> None:
        self.base_url = base_url
        self.view = ViewState.MAIN_MENU
        self.mode = InputMode.NORMAL
        self.cursor = 0
        self.lists: dict[ViewState, ListSnapshot] = {
            ViewState.MAIN_MENU: ListSnapshot(items=MAIN_MENU_ENTRIES)
        }
        self.search_query = ""
        self.global_query = ""
        self.quick_select = NumericQuickSelect()
        self.viewport = Viewport(height=viewport_height)
        self.collection_stack = CollectionStack()
        self.selected_database: Database | None = None
        self.selected_schema: Schema | None = None
        self.selected_table: Table | None = None
        self.selected_collection: Collection | None = None
        self.selected_item: CollectionItem | None = None
        self.item_detail: ItemDetail | None = None
        self.detail_origin: ViewState | None = None
        self.loading = False
        self.error_message: str | None = None
        self.help_cursor = 0
        self.spinner_index = 0
        self._requests = RequestTracker()

    # -- derived state -----------------------------------------------------

    @property
    def snapshot(self) -> ListSnapshot:
        return self.lists.get(self.view, EMPTY_SNAPSHOT)

    @property
    def items(self) -> tuple[Any, ...]:
        return self.snapshot.items

    @property
    def filter_active(self) -> bool:
        return (
            self.mode is InputMode.SEARCH
            and self.view is not ViewState.GLOBAL_SEARCH
            and bool(self.search_query.strip())
        )

    @property
    def displayed_indices(self) -> list[int]:
        if self.filter_active:
            return list(self.snapshot.filtered_indices)
        return list(range(len(self.snapshot.items)))

    @property
    def displayed_length(self) -> int:
        if self.filter_active:
            return len(self.snapshot.filtered_indices)
        return len(self.snapshot.items)

    @property
    def highlighted_index(self) -> int | None:
        indices = self.displayed_indices
        if not indices or self.cursor >= len(indices):
            return None
        return indices[self.cursor]

    @property
    def highlighted_item(self) -> Any | None:
        index = self.highlighted_index
        return None if index is None else self.snapshot.items[index]

    @property
    def viewport_managed(self) -> bool:
        return self.view in VIEWPORT_VIEWS

    @property
    def has_pending_request(self) -> bool:
        return self._requests.pending

    # -- entry points ------------------------------------------------------

    def start(self) -> LoadRequest:
        """Verify the connection before the user picks anything."""
        return self._schedule(LevelKind.CONNECTION)

    def handle_key(self, event: KeyEvent) -> Command | None:
        if self.mode is InputMode.HELP:
            return self._handle_help_key(event)
        if self.mode is InputMode.SEARCH:
            return self._handle_search_key(event)
        return self._handle_normal_key(event)

    def handle_loaded(self, result: LoadCompleted) -> Command | None:
        if not self._requests.accept(result):
            return None

        self.loading = False
        if result.failed:
            self.error_message = result.error
            return None

        self.error_message = None
        if result.kind is LevelKind.CONNECTION:
            return None
        if result.kind is LevelKind.ITEM_DETAIL:
            self.item_detail = result.payload
            return None

        target = VIEW_FOR_KIND[result.kind]
        self.lists[target] = ListSnapshot(items=tuple(result.payload or ()))
        if target is self.view:
            self.cursor = 0
            self.viewport.reset()

        if result.kind is LevelKind.SCHEMAS and len(self.lists[target].items) == 1:
            logger.debug("Single schema found, opening its tables")
            return self._forward(0)
        return None

    def handle_tick(self) -> ScheduleTick | None:
        if not self.loading:
            return None
        self.spinner_index = (self.spinner_index + 1) % SPINNER_FRAME_COUNT
        return ScheduleTick()

    def report_error(self, message: str) -> None:
        self.error_message = message

    # -- help mode ---------------------------------------------------------

    def _handle_help_key(self, event: KeyEvent) -> Command | None:
        if event.key in QUIT_KEYS:
            return Quit()
        if event.character == "?" or event.key in HELP_CLOSE_KEYS:
            self.mode = InputMode.NORMAL
            return None
        if event.key in UP_KEYS:
            self.help_cursor = max(0, self.help_cursor - 1)
        elif event.key in DOWN_KEYS:
            self.help_cursor = min(len(HELP_LINKS) - 1, self.help_cursor + 1)
        elif event.key in FORWARD_KEYS:
            return OpenUrl(HELP_LINKS[self.help_cursor][1])
        return None

    # -- search mode -------------------------------------------------------

    def _handle_search_key(self, event: KeyEvent) -> Command | None:
        key = event.key
        if key == "ctrl+c":
            return Quit()

        if key == "escape":
            self._leave_search()
            self.cursor = 0
            self.viewport.reset()
            return None

        if key == "enter":
            if self.view is ViewState.GLOBAL_SEARCH:
                return self._submit_global_search()
            index = self.highlighted_index
            if index is None or self.loading:
                return None
            self._leave_search()
            return self._forward(index)

        if key == "backspace":
            self.search_query = self.search_query[:-1]
            self._refilter()
            return None

        if key == "up":
            self._move(-1)
            return None
        if key == "down":
            self._move(1)
            return None

        character = event.character
        if character and len(character) == 1 and character.isprintable():
            self.search_query += character
            self._refilter()
        return None

    def _enter_search(self) -> None:
        self.mode = InputMode.SEARCH
        self.search_query = ""
        self.cursor = 0
        self.viewport.reset()
        self.lists[self.view] = replace(self.snapshot, filtered_indices=())

    def _leave_search(self) -> None:
        self.mode = InputMode.NORMAL
        self.search_query = ""
        if self.view in self.lists:
            self.lists[self.view] = replace(self.snapshot, filtered_indices=())

    def _refilter(self) -> None:
        if self.view is ViewState.GLOBAL_SEARCH:
            return
        names = [display_name(item) for item in self.snapshot.items]
        self.lists[self.view] = replace(
            self.snapshot,
            filtered_indices=tuple(filter_indices(self.search_query, names)),
        )
        self.cursor = 0
        self.viewport.reset()

    def _submit_global_search(self) -> Command | None:
        # The prompt stays open until the running search finishes.
        if self.loading:
            return None
        query = self.search_query.strip()
        self._leave_search()
        if not query:
            return None
        self.global_query = query
        self.lists[ViewState.GLOBAL_SEARCH] = EMPTY_SNAPSHOT
        self.cursor = 0
        self.viewport.reset()
        self.error_message = None
        return self._schedule(LevelKind.SEARCH, query)

    # -- normal mode -------------------------------------------------------

    def _handle_normal_key(self, event: KeyEvent) -> Command | None:
        key = event.key
        character = event.character

        if key in QUIT_KEYS:
            return Quit()

        if character == "?":
            self._clear_numeric()
            self.mode = InputMode.HELP
            self.help_cursor = 0
            return None

        if character is not None and len(character) == 1 and character in DIGITS:
            self._push_digit(character)
            return None

        if character == "/":
            self._clear_numeric()
            if self.loading or self.view in {
                ViewState.MAIN_MENU,
                ViewState.ITEM_DETAIL,
            }:
                return None
            self._enter_search()
            return None

        if key in UP_KEYS:
            self._clear_numeric()
            self._move(-1)
            return None

        if key in DOWN_KEYS:
            self._clear_numeric()
            self._move(1)
            return None

        if key in BACK_KEYS:
            if self.quick_select.active:
                self._clear_numeric()
                return None
            return self._backward()

        if key in FORWARD_KEYS:
            self._clear_numeric()
            if self.loading:
                return None
            index = self.highlighted_index
            if index is None:
                return None
            return self._forward(index)

        if key == "w":
            self._clear_numeric()
            return OpenUrl(web_url(self, self.base_url))

        return None

    def _push_digit(self, digit: str) -> None:
        if self.loading:
            return
        hover = self.quick_select.push(digit, self.displayed_length)
        self.mode = (
            InputMode.NUMERIC_ENTRY if self.quick_select.active else InputMode.NORMAL
        )
        if hover is not None:
            self.cursor = hover
            self._follow()

    def _clear_numeric(self) -> None:
        self.quick_select.clear()
        if self.mode is InputMode.NUMERIC_ENTRY:
            self.mode = InputMode.NORMAL

    def _move(self, delta: int) -> None:
        length = self.displayed_length
        if length == 0:
            self.cursor = 0
        else:
            self.cursor = max(0, min(length - 1, self.cursor + delta))
        self._follow()

    def _follow(self) -> None:
        if self.viewport_managed:
            self.viewport.follow(self.cursor, self.displayed_length)

    # -- transitions -------------------------------------------------------

    def _schedule(self, kind: LevelKind, parent: Any = None) -> LoadRequest:
        self.loading = True
        return self._requests.issue(kind, parent)

    def _switch_view(self, view: ViewState) -> None:
        self.view = view
        self.cursor = 0
        self.viewport.reset()
        self._clear_numeric()

    def _descend(
        self, view: ViewState, kind: LevelKind, parent: Any = None
    ) -> LoadRequest:
        self._switch_view(view)
        self.lists[view] = EMPTY_SNAPSHOT
        for descendant in DESCENDANT_VIEWS.get(view, ()):
            self.lists.pop(descendant, None)
        self.error_message = None
        return self._schedule(kind, parent)

    def _forward(self, index: int) -> Command | None:
        item = self.snapshot.items[index]
        view = self.view

        if view is ViewState.MAIN_MENU:
            if item == MENU_DATABASES:
                return self._descend(ViewState.DATABASES, LevelKind.DATABASES)
            if item == MENU_COLLECTIONS:
                self.collection_stack.clear()
                return self._descend(ViewState.COLLECTIONS, LevelKind.COLLECTIONS)
            self._switch_view(ViewState.GLOBAL_SEARCH)
            self.lists[ViewState.GLOBAL_SEARCH] = EMPTY_SNAPSHOT
            self.global_query = ""
            self.error_message = None
            self._enter_search()
            return None

        if view is ViewState.DATABASES:
            self.selected_database = item
            return self._descend(ViewState.SCHEMAS, LevelKind.SCHEMAS, item.id)

        if view is ViewState.SCHEMAS:
            self.selected_schema = item
            database = self.selected_database
            assert database is not None
            return self._descend(
                ViewState.TABLES, LevelKind.TABLES, (database.id, item.name)
            )

        if view is ViewState.TABLES:
            self.selected_table = item
            return self._descend(ViewState.FIELDS, LevelKind.FIELDS, item.id)

        if view is ViewState.COLLECTIONS:
            self.selected_collection = item
            self.collection_stack.clear()
            return self._descend(
                ViewState.COLLECTION_ITEMS, LevelKind.COLLECTION_ITEMS, item.id
            )

        if view is ViewState.COLLECTION_ITEMS:
            if item.is_collection:
                if self.selected_collection is not None:
                    self.collection_stack.push(self.selected_collection)
                self.selected_collection = item.as_collection()
                return self._descend(
                    ViewState.COLLECTION_ITEMS, LevelKind.COLLECTION_ITEMS, item.id
                )
            return self._open_detail(item)

        if view is ViewState.GLOBAL_SEARCH:
            return self._open_detail(item)

        # Fields and item details have nothing below them.
        return None

    def _open_detail(self, item: CollectionItem) -> LoadRequest:
        self.detail_origin = self.view
        self.selected_item = item
        self.item_detail = None
        return self._descend(ViewState.ITEM_DETAIL, LevelKind.ITEM_DETAIL, item)

    def _backward(self) -> Command | None:
        view = self.view
        if view is ViewState.MAIN_MENU:
            return None

        self._requests.abandon()
        self.loading = False
        self.error_message = None

        if view is ViewState.DATABASES:
            self.lists.pop(ViewState.DATABASES, None)
            self._switch_view(ViewState.MAIN_MENU)
        elif view is ViewState.SCHEMAS:
            self.lists.pop(ViewState.SCHEMAS, None)
            self.selected_database = None
            self._switch_view(ViewState.DATABASES)
        elif view is ViewState.TABLES:
            self.lists.pop(ViewState.TABLES, None)
            self.selected_schema = None
            self._switch_view(ViewState.SCHEMAS)
        elif view is ViewState.FIELDS:
            self.lists.pop(ViewState.FIELDS, None)
            self.selected_table = None
            self._switch_view(ViewState.TABLES)
        elif view is ViewState.COLLECTIONS:
            self.lists.pop(ViewState.COLLECTIONS, None)
            self.selected_collection = None
            self.collection_stack.clear()
            self._switch_view(ViewState.MAIN_MENU)
        elif view is ViewState.COLLECTION_ITEMS:
            parent = self.collection_stack.pop()
            if parent is not None:
                self.selected_collection = parent
                return self._descend(
                    ViewState.COLLECTION_ITEMS, LevelKind.COLLECTION_ITEMS, parent.id
                )
            self.lists.pop(ViewState.COLLECTION_ITEMS, None)
            self.selected_collection = None
            self._switch_view(ViewState.COLLECTIONS)
        elif view is ViewState.ITEM_DETAIL:
            origin = self.detail_origin or ViewState.COLLECTION_ITEMS
            self.selected_item = None
            self.item_detail = None
            self.detail_origin = None
            self._switch_view(origin)
        elif view is ViewState.GLOBAL_SEARCH:
            self.lists.pop(ViewState.GLOBAL_SEARCH, None)
            self.global_query = ""
            self._switch_view(ViewState.MAIN_MENU)
        return None
