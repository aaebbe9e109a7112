from __future__ import annotations

from metabase_explorer.models import (
    Collection,
    CollectionItem,
    Database,
    InputMode,
    ItemDetail,
    Person,
    Schema,
    Table,
    ViewState,
)
from metabase_explorer.navigation import ListSnapshot, NavigationState
from metabase_explorer.rendering import (
    SPINNER_FRAMES,
    breadcrumb,
    format_timestamp,
    number_prefix,
    render_body,
    render_footer,
    render_item_detail,
    render_kv_box,
    render_list,
    render_prompt,
    render_title,
)


def _state_with(view: ViewState, items: list[object]) -> NavigationState:
    state = NavigationState(base_url="https://mb.example.com")
    state.view = view
    state.lists[view] = ListSnapshot(items=tuple(items))
    return state


def _cards(count: int) -> list[CollectionItem]:
    return [
        CollectionItem(id=index + 1, name=f"question {index + 1}", model="card")
        for index in range(count)
    ]


def test_format_timestamp() -> None:
    assert format_timestamp("2006-01-02T15:04:05Z") == "Jan 2, 2006 at 3:04 PM"
    assert format_timestamp("2024-11-30T00:30:00+00:00") == "Nov 30, 2024 at 12:30 AM"


def test_format_timestamp_passes_through_unparseable_values() -> None:
    assert format_timestamp("") == ""
    assert format_timestamp("yesterday") == "yesterday"


def test_number_prefix_pads_long_lists() -> None:
    assert number_prefix(0, 9) == "1 "
    assert number_prefix(0, 10) == "01 "
    assert number_prefix(11, 15) == "12 "


def test_render_kv_box_wraps_long_values() -> None:
    lines = render_kv_box([("Type", "card"), ("Created", "x " * 40)], width=40)

    assert lines[0].startswith("╭")
    assert lines[-1].startswith("╰")
    assert len(lines) > 4
    assert all(len(line) == len(lines[0]) for line in lines)


def test_title_includes_version_and_view() -> None:
    state = _state_with(ViewState.SCHEMAS, [])

    assert render_title(state, "1.2.3") == (
        "[bold blue]Metabase Explorer 1.2.3 | Database schemas[/]"
    )


def test_breadcrumb_for_database_drill_down() -> None:
    state = _state_with(ViewState.FIELDS, ["a", "b"])
    state.selected_database = Database(id=1, name="Warehouse")
    state.selected_schema = Schema(name="public")
    state.selected_table = Table(id=2, name="orders", display_name="Orders")

    assert breadcrumb(state) == "Databases > Warehouse > public > Orders (2)"


def test_breadcrumb_for_nested_collection() -> None:
    state = _state_with(ViewState.COLLECTION_ITEMS, _cards(3))
    state.collection_stack.push(Collection(id=5, name="Marketing"))
    state.selected_collection = Collection(id=7, name="Campaigns")

    assert breadcrumb(state) == "Collections > Marketing > Campaigns (3)"


def test_breadcrumb_for_search_and_home() -> None:
    state = _state_with(ViewState.GLOBAL_SEARCH, _cards(2))
    state.global_query = "revenue"

    assert breadcrumb(state) == "Search > revenue (2)"
    assert breadcrumb(NavigationState()) == "Home"


def test_render_list_marks_cursor_and_numbers_entries() -> None:
    state = _state_with(ViewState.DATABASES, [Database(1, "one"), Database(2, "two")])
    state.cursor = 1

    lines = render_list(state)

    assert lines == [
        "[dim]1 [/]  one",
        "[dim]2 [/][bold green]▶ two[/]",
    ]


def test_render_list_escapes_markup_in_names() -> None:
    state = _state_with(ViewState.DATABASES, [Database(1, "[red]oops")])

    assert "\\[red]oops" in render_list(state)[0]


def test_render_list_pages_long_collections() -> None:
    state = _state_with(ViewState.COLLECTION_ITEMS, _cards(20))

    lines = render_list(state)

    assert len(lines) == 17
    assert lines[0] == "[dim]  ... 1-15 of 20 items[/]"
    assert lines[-1] == "[dim]↓ ... 1-15 of 20 items[/]"
    assert lines[1].startswith("[dim]01 [/][bold green]▶ question 1[/]")


def test_render_list_scrolled_window() -> None:
    state = _state_with(ViewState.COLLECTION_ITEMS, _cards(20))
    state.cursor = 19
    state.viewport.follow(19, 20)

    lines = render_list(state)

    assert lines[0] == "[dim]↑ ... 6-20 of 20 items[/]"
    assert lines[-1] == "[dim]  ... 6-20 of 20 items[/]"


def test_render_list_empty_states() -> None:
    assert render_list(_state_with(ViewState.TABLES, [])) == ["[dim]No tables found[/]"]

    search = _state_with(ViewState.GLOBAL_SEARCH, [])
    assert render_list(search) == ["[dim]Type a query and press Enter to search[/]"]
    search.global_query = "nothing"
    assert render_list(search) == ["[dim]No results found[/]"]


def test_render_list_no_matches_while_filtering() -> None:
    state = _state_with(ViewState.DATABASES, [Database(1, "one")])
    state.mode = InputMode.SEARCH
    state.search_query = "zzz"

    assert render_list(state) == ["[dim]No matches found[/]"]


def test_prompt_reflects_input_mode() -> None:
    state = _state_with(ViewState.DATABASES, [Database(1, "one"), Database(2, "two")])
    assert render_prompt(state) == ""

    state.mode = InputMode.SEARCH
    state.search_query = "on"
    state.lists[ViewState.DATABASES] = ListSnapshot(
        items=state.items, filtered_indices=(0,)
    )
    assert render_prompt(state) == "[blue]Search: /on_[/] [dim](1 matches)[/]"

    state.mode = InputMode.NUMERIC_ENTRY
    state.quick_select.buffer = "1"
    assert render_prompt(state) == "[blue]Select: 1_[/]"


def test_render_body_priorities() -> None:
    state = _state_with(ViewState.DATABASES, [Database(1, "one")])

    state.error_message = "failed to get databases: 500 - boom"
    assert render_body(state) == "[red]Error: failed to get databases: 500 - boom[/]"

    state.loading = True
    state.spinner_index = 3
    assert render_body(state) == f"[blue]{SPINNER_FRAMES[3]} Loading...[/]"

    state.mode = InputMode.HELP
    assert "Repository" in render_body(state)


def test_render_item_detail() -> None:
    item = CollectionItem(id=1, name="Revenue", model="card")
    detail = ItemDetail(
        name="Revenue",
        model="card",
        description="Monthly revenue",
        creator=Person(first_name="Ada", last_name="Lovelace"),
        created_at="2006-01-02T15:04:05Z",
        archived=True,
    )

    text = "\n".join(render_item_detail(item, detail, width=60))

    assert "Monthly revenue" in text
    assert "Ada Lovelace" in text
    assert "Jan 2, 2006 at 3:04 PM" in text
    assert "This item is archived" in text


def test_render_item_detail_without_description() -> None:
    item = CollectionItem(id=1, name="Revenue", model="dashboard")

    text = "\n".join(render_item_detail(item, None))

    assert "No description available" in text
    assert "dashboard" in text


def test_footer_shows_quick_select_range_and_update_notice() -> None:
    state = _state_with(ViewState.DATABASES, [Database(i, str(i)) for i in range(12)])

    footer = render_footer(state, latest_version="v9.9.9")

    assert "01-99" in footer
    assert "Update available: v9.9.9" in footer


def test_footer_hides_quick_select_on_fields() -> None:
    state = _state_with(ViewState.FIELDS, ["id"])

    assert "select" not in render_footer(state)


def test_render_list_labels_unnamed_entries_by_id() -> None:
    state = _state_with(ViewState.DATABASES, [Database(id=4, name="")])

    assert render_list(state) == ["[dim]1 [/][bold green]▶ #4[/]"]
