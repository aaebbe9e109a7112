from __future__ import annotations

import logging
import webbrowser
from typing import TYPE_CHECKING

from metabase_explorer.errors import BrowserError
from metabase_explorer.models import CollectionItem, ViewState

if TYPE_CHECKING:
    from metabase_explorer.navigation import NavigationState

logger = logging.getLogger(__name__)

PROJECT_URL = "https://github.com/amureki/metabase-explorer"
HELP_LINKS: tuple[tuple[str, str], ...] = (
    ("Repository", PROJECT_URL),
    ("Issues", f"{PROJECT_URL}/issues"),
    ("Sponsor", "https://github.com/sponsors/amureki"),
)


def open_in_browser(url: str) -> None:
    try:
        opened = webbrowser.open(url)
    except (webbrowser.Error, OSError) as exc:
        logger.warning("Failed to open browser for %s: %s", url, exc)
        raise BrowserError(str(exc)) from exc
    if not opened:
        logger.warning("No browser available for %s", url)
        raise BrowserError("no runnable browser found")


def item_url(base_url: str, item: CollectionItem) -> str | None:
    if item.model in {"card", "dataset", "metric"}:
        return f"{base_url}/question/{item.id}"
    if item.model == "dashboard":
        return f"{base_url}/dashboard/{item.id}"
    if item.model == "collection":
        return f"{base_url}/collection/{item.id}"
    return None


def web_url(state: NavigationState, base_url: str) -> str:
    """Metabase web page for whatever is highlighted in the current view."""
    base = base_url.rstrip("/")
    view = state.view
    item = state.highlighted_item
    database = state.selected_database
    table = state.selected_table
    collection = state.selected_collection
    collection_url = f"{base}/collection/{collection.id}" if collection else base

    if view is ViewState.DATABASES and item is not None:
        return f"{base}/browse/databases/{item.id}"
    if view is ViewState.SCHEMAS and database is not None:
        if item is not None:
            return f"{base}/browse/databases/{database.id}/schema/{item.name}"
        return f"{base}/browse/databases/{database.id}"
    if view is ViewState.TABLES and database is not None:
        if item is not None:
            return f"{base}/reference/databases/{database.id}/tables/{item.id}"
        return f"{base}/admin/databases/{database.id}"
    if view is ViewState.FIELDS and database is not None and table is not None:
        table_url = f"{base}/reference/databases/{database.id}/tables/{table.id}"
        if item is not None:
            return f"{table_url}/fields/{item.id}"
        return table_url
    if view is ViewState.COLLECTIONS and item is not None:
        return f"{base}/collection/{item.id}"
    if view is ViewState.COLLECTION_ITEMS:
        if item is not None:
            return item_url(base, item) or collection_url
        return collection_url
    if view is ViewState.ITEM_DETAIL and state.selected_item is not None:
        return item_url(base, state.selected_item) or collection_url
    if view is ViewState.GLOBAL_SEARCH and item is not None:
        return item_url(base, item) or base
    return base
