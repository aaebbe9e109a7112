from __future__ import annotations

import logging

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.events import Key, Resize
from textual.message import Message
from textual.widgets import Static

from metabase_explorer import __version__
from metabase_explorer.browser import open_in_browser
from metabase_explorer.client import MetabaseClient
from metabase_explorer.config import ClientConfig
from metabase_explorer.errors import BrowserError
from metabase_explorer.loaders import LoadCompleted, LoadRequest, run_load
from metabase_explorer.models import KeyEvent, OpenUrl, Quit, ScheduleTick
from metabase_explorer.navigation import Command, NavigationState
from metabase_explorer.release import fetch_latest_release_tag, is_update_available
from metabase_explorer.rendering import (
    breadcrumb,
    render_body,
    render_footer,
    render_prompt,
    render_title,
)

logger = logging.getLogger(__name__)


class MetadataLoaded(Message):
    """A fetch finished, successfully or not."""

    def __init__(self, result: LoadCompleted) -> None:
        super().__init__()
        self.result = result


class MetabaseExplorerTui(App[None]):
    CSS_PATH = "explorer.tcss"
    ENABLE_COMMAND_PALETTE = False
    SPINNER_INTERVAL_SECONDS = 0.1
    MIN_CONTENT_WIDTH = 40
    BINDINGS = [
        Binding("ctrl+c", "quit", show=False),
    ]

    def __init__(
        self,
        *,
        config: ClientConfig,
        version: str = __version__,
        client: MetabaseClient | None = None,
    ) -> None:
        super().__init__()
        self.theme = "rose-pine"
        self._client = client or MetabaseClient(config)
        self._version = version
        self._navigation = NavigationState(base_url=config.base_url)
        self._latest_version: str | None = None
        self._spinner_scheduled = False
        self._content_width = 80

    def compose(self) -> ComposeResult:
        with Vertical(id="body"):
            yield Static("", id="title")
            yield Static("", id="path")
            yield Static("", id="prompt")
            yield Static("", id="content")
            yield Static("", id="footer")

    def on_mount(self) -> None:
        self._dispatch(self._navigation.start())
        self.run_worker(
            self._check_latest_release(),
            group="version-check",
            exclusive=True,
            exit_on_error=False,
        )
        self._refresh_view()

    async def on_unmount(self) -> None:
        await self._client.aclose()

    def on_key(self, event: Key) -> None:
        command = self._navigation.handle_key(KeyEvent(event.key, event.character))
        event.stop()
        self._dispatch(command)
        self._refresh_view()

    def on_resize(self, event: Resize) -> None:
        self._content_width = max(self.MIN_CONTENT_WIDTH, event.size.width - 4)
        self._refresh_view()

    def on_metadata_loaded(self, message: MetadataLoaded) -> None:
        self._dispatch(self._navigation.handle_loaded(message.result))
        self._refresh_view()

    def _dispatch(self, command: Command | None) -> None:
        if command is None:
            return

        if isinstance(command, LoadRequest):
            self.run_worker(
                self._load(command),
                group="metadata-load",
                exclusive=False,
                exit_on_error=False,
            )
            self._schedule_spinner()
            return

        if isinstance(command, OpenUrl):
            try:
                open_in_browser(command.url)
            except BrowserError as exc:
                self._navigation.report_error(f"Failed to open browser: {exc}")
            return

        if isinstance(command, ScheduleTick):
            self._schedule_spinner()
            return

        if isinstance(command, Quit):
            self.exit()

    async def _load(self, request: LoadRequest) -> None:
        result = await run_load(self._client, request)
        self.post_message(MetadataLoaded(result))

    async def _check_latest_release(self) -> None:
        latest = await fetch_latest_release_tag()
        if not is_update_available(self._version, latest):
            return
        logger.info("Update available: %s (running %s)", latest, self._version)
        self._latest_version = latest
        self._refresh_view()

    def _schedule_spinner(self) -> None:
        if self._spinner_scheduled:
            return
        self._spinner_scheduled = True
        self.set_timer(self.SPINNER_INTERVAL_SECONDS, self._on_spinner_tick)

    def _on_spinner_tick(self) -> None:
        self._spinner_scheduled = False
        self._dispatch(self._navigation.handle_tick())
        self._refresh_view()

    def _refresh_view(self) -> None:
        state = self._navigation
        self.query_one("#title", Static).update(render_title(state, self._version))
        self.query_one("#path", Static).update(f"[dim]{escape(breadcrumb(state))}[/]")
        self.query_one("#prompt", Static).update(render_prompt(state))
        self.query_one("#content", Static).update(
            render_body(state, width=self._content_width)
        )
        self.query_one("#footer", Static).update(
            render_footer(state, latest_version=self._latest_version)
        )
