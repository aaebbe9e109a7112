from __future__ import annotations


class MetabaseExplorerError(Exception):
    """Base class for errors raised by metabase-explorer."""


class ConfigError(MetabaseExplorerError):
    """The connection settings could not be loaded or are incomplete."""


class MetabaseError(MetabaseExplorerError):
    """A request to the Metabase API failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BrowserError(MetabaseExplorerError):
    """No web browser could be launched for a URL."""
