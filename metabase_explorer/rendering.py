from __future__ import annotations

import textwrap
from datetime import datetime
from typing import Any

from rich.markup import escape

from metabase_explorer.browser import HELP_LINKS
from metabase_explorer.models import (
    CollectionItem,
    Field,
    InputMode,
    ItemDetail,
    ViewState,
    display_name,
)
from metabase_explorer.navigation import NavigationState

SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")

VIEW_SUBTITLES = {
    ViewState.MAIN_MENU: "",
    ViewState.DATABASES: "",
    ViewState.SCHEMAS: "Database schemas",
    ViewState.TABLES: "Schema tables",
    ViewState.FIELDS: "Table fields",
    ViewState.COLLECTIONS: "Collections",
    ViewState.COLLECTION_ITEMS: "Collection items",
    ViewState.ITEM_DETAIL: "Item details",
    ViewState.GLOBAL_SEARCH: "Search",
}

EMPTY_LIST_MESSAGES = {
    ViewState.DATABASES: "No databases found",
    ViewState.SCHEMAS: "No schemas found",
    ViewState.TABLES: "No tables found",
    ViewState.FIELDS: "No fields found",
    ViewState.COLLECTIONS: "No collections found",
    ViewState.COLLECTION_ITEMS: "No items found in this collection",
}


def render_kv_box(rows: list[tuple[str, str]], width: int) -> list[str]:
    if not rows:
        return []
    label_width = max(len(label) for label, _ in rows)
    inner_width = max(30, width - 2)
    value_width = max(10, inner_width - label_width - 3)

    lines = ["╭" + ("─" * inner_width) + "╮"]
    for label, value in rows:
        wrapped = textwrap.wrap(value, width=value_width) or [""]
        lines.append(f"│ {label:<{label_width}} {wrapped[0]:<{value_width}} │")
        for continuation in wrapped[1:]:
            lines.append(f"│ {'':<{label_width}} {continuation:<{value_width}} │")
    lines.append("╰" + ("─" * inner_width) + "╯")
    return lines


def format_timestamp(value: str) -> str:
    """Render an ISO 8601 timestamp as e.g. ``Jan 2, 2006 at 3:04 PM``."""
    if not value:
        return ""
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    hour = moment.hour % 12 or 12
    return f"{moment:%b} {moment.day}, {moment.year} at {hour}:{moment:%M %p}"


def number_prefix(position: int, total: int) -> str:
    """1-based label; lists of ten or more entries are zero padded."""
    if total < 10:
        return f"{position + 1} "
    return f"{position + 1:02d} "


def spinner_frame(state: NavigationState) -> str:
    return SPINNER_FRAMES[state.spinner_index % len(SPINNER_FRAMES)]


def render_title(state: NavigationState, version: str) -> str:
    title = f"Metabase Explorer {version}"
    subtitle = VIEW_SUBTITLES.get(state.view, "")
    if subtitle:
        title = f"{title} | {subtitle}"
    return f"[bold blue]{escape(title)}[/]"


def _count_suffix(state: NavigationState) -> str:
    count = len(state.items)
    return f" ({count})" if count else ""


def _collection_path(state: NavigationState) -> list[str]:
    parts = ["Collections"]
    parts.extend(collection.name for collection in state.collection_stack.path())
    if state.selected_collection is not None:
        parts.append(state.selected_collection.name)
    return parts


def breadcrumb(state: NavigationState) -> str:
    view = state.view
    if view is ViewState.MAIN_MENU:
        return "Home"
    if view is ViewState.GLOBAL_SEARCH:
        if state.global_query:
            return f"Search > {state.global_query}{_count_suffix(state)}"
        return "Search"

    if view is ViewState.ITEM_DETAIL:
        if state.detail_origin is ViewState.GLOBAL_SEARCH:
            parts = ["Search"]
        else:
            parts = _collection_path(state)
        if state.selected_item is not None:
            parts.append(state.selected_item.name)
        return " > ".join(parts)

    if view is ViewState.COLLECTIONS:
        return "Collections" + _count_suffix(state)
    if view is ViewState.COLLECTION_ITEMS:
        return " > ".join(_collection_path(state)) + _count_suffix(state)

    parts = ["Databases"]
    if view is not ViewState.DATABASES and state.selected_database is not None:
        parts.append(state.selected_database.name)
    if view in {ViewState.TABLES, ViewState.FIELDS} and state.selected_schema:
        parts.append(state.selected_schema.name)
    if view is ViewState.FIELDS and state.selected_table is not None:
        parts.append(state.selected_table.label)
    return " > ".join(parts) + _count_suffix(state)


def render_prompt(state: NavigationState) -> str:
    if state.mode is InputMode.SEARCH:
        if state.view is ViewState.GLOBAL_SEARCH:
            return f"[blue]Search Metabase: {escape(state.search_query)}_[/]"
        prompt = f"[blue]Search: /{escape(state.search_query)}_[/]"
        if state.filter_active:
            prompt += f" [dim]({len(state.snapshot.filtered_indices)} matches)[/]"
        return prompt
    if state.mode is InputMode.NUMERIC_ENTRY:
        return f"[blue]Select: {escape(state.quick_select.buffer)}_[/]"
    return ""


def _entry_suffix(item: Any) -> str:
    if isinstance(item, Field) and item.base_type:
        return f" [dim]{escape(item.base_type)}[/]"
    if isinstance(item, CollectionItem) and item.model:
        suffix = f" [magenta]\\[{escape(item.model)}][/]"
        if item.collection_name:
            suffix += f" [dim]in {escape(item.collection_name)}[/]"
        return suffix
    description = getattr(item, "description", "")
    if description and not isinstance(item, Field):
        return f" [dim]({escape(description)})[/]"
    return ""


def render_list(state: NavigationState) -> list[str]:
    items = state.items
    if not items:
        if state.view is ViewState.GLOBAL_SEARCH:
            if state.global_query:
                return ["[dim]No results found[/]"]
            return ["[dim]Type a query and press Enter to search[/]"]
        return [f"[dim]{EMPTY_LIST_MESSAGES.get(state.view, 'Nothing here')}[/]"]

    indices = state.displayed_indices
    if state.filter_active and not indices:
        return ["[dim]No matches found[/]"]

    total = len(items)
    positions = (
        state.viewport.window(len(indices))
        if state.viewport_managed
        else range(len(indices))
    )
    lines: list[str] = []
    paging = state.viewport_managed and state.viewport.needs_paging(len(indices))
    if paging:
        marker = "↑" if positions.start > 0 else " "
        lines.append(
            f"[dim]{marker} ... {positions.start + 1}-{positions.stop} "
            f"of {len(indices)} items[/]"
        )

    for position in positions:
        item = items[indices[position]]
        prefix = f"[dim]{number_prefix(position, total)}[/]"
        name = escape(display_name(item))
        if position == state.cursor:
            lines.append(f"{prefix}[bold green]▶ {name}[/]{_entry_suffix(item)}")
        else:
            lines.append(f"{prefix}  {name}{_entry_suffix(item)}")

    if paging:
        marker = "↓" if positions.stop < len(indices) else " "
        lines.append(
            f"[dim]{marker} ... {positions.start + 1}-{positions.stop} "
            f"of {len(indices)} items[/]"
        )
    return lines


def render_item_detail(
    item: CollectionItem | None, detail: ItemDetail | None, *, width: int = 80
) -> list[str]:
    if item is None:
        return ["[dim]No item selected[/]"]

    name = detail.name if detail is not None else item.name
    description = (detail.description if detail is not None else "") or item.description
    lines = [f"[bold blue]{escape(name)}[/]", ""]
    if description:
        lines.append("[bold]Description:[/]")
        lines.extend(escape(line) for line in textwrap.wrap(description, width=width))
    else:
        lines.append("[dim]No description available[/]")
    lines.append("")

    rows: list[tuple[str, str]] = [("Type", item.model)]
    if detail is not None:
        if detail.creator is not None:
            rows.append(("Created by", detail.creator.display_name))
        if detail.last_editor is not None:
            rows.append(("Last edited by", detail.last_editor.display_name))
        if detail.created_at:
            rows.append(("Created", format_timestamp(detail.created_at)))
        if detail.updated_at:
            rows.append(("Updated", format_timestamp(detail.updated_at)))
    lines.extend(escape(line) for line in render_kv_box(rows, width))

    archived = detail.archived if detail is not None else item.archived
    if archived:
        lines.extend(["", "[bold yellow]⚠ This item is archived[/]"])
    return lines


def render_help(state: NavigationState) -> list[str]:
    lines = ["[bold blue]Metabase Explorer[/]", ""]
    for index, (label, url) in enumerate(HELP_LINKS):
        if index == state.help_cursor:
            lines.append(f"[bold green]▶ {label}: {url}[/]")
        else:
            lines.append(f"  {label}: [cyan]{url}[/]")
    lines.extend(
        ["", "[dim]Use ↑↓ to navigate, Enter to open link, ? or esc to close[/]"]
    )
    return lines


def render_body(state: NavigationState, *, width: int = 80) -> str:
    if state.mode is InputMode.HELP:
        return "\n".join(render_help(state))
    if state.loading:
        return f"[blue]{spinner_frame(state)} Loading...[/]"
    if state.error_message:
        return f"[red]Error: {escape(state.error_message)}[/]"
    if state.view is ViewState.ITEM_DETAIL:
        return "\n".join(
            render_item_detail(state.selected_item, state.item_detail, width=width)
        )
    return "\n".join(render_list(state))


def render_footer(state: NavigationState, *, latest_version: str | None = None) -> str:
    if state.mode is InputMode.SEARCH:
        return "[cyan]esc[/][dim] cancel  [/][cyan]enter[/][dim] select  [/][cyan]↑↓[/][dim] navigate[/]"

    arrows = "↑↓→" if state.view is ViewState.MAIN_MENU else "↑↓←→"
    navigation = f"[cyan]{arrows}[/][dim] navigate  [/]"
    item_count = len(state.items)
    if state.view is not ViewState.FIELDS and item_count > 0:
        numbers = "1-9" if item_count < 10 else "01-99"
        navigation += f"[cyan]{numbers}[/][dim] select[/]"

    actions = (
        "[cyan]w[/][dim] web  [/][cyan]/[/][dim] search  [/]"
        "[cyan]?[/][dim] help  [/][cyan]q[/][dim] quit[/]"
    )
    footer = f"{navigation}\n{actions}"
    if latest_version:
        footer += (
            f"\n[yellow]⚠ Update available: {escape(latest_version)}[/]"
            "[dim] - see the project releases page[/]"
        )
    return footer
