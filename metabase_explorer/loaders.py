from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from metabase_explorer.errors import MetabaseError
from metabase_explorer.models import LevelKind

logger = logging.getLogger(__name__)


class MetadataSource(Protocol):
    async def fetch_children(self, kind: LevelKind, parent: Any = None) -> Any: ...


@dataclass(frozen=True)
class LoadRequest:
    request_id: int
    kind: LevelKind
    parent: Any = None


@dataclass(frozen=True)
class LoadCompleted:
    request_id: int
    kind: LevelKind
    payload: Any = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class RequestTracker:
    """Hands out request ids and remembers the one whose answer is wanted."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.expected: int | None = None

    @property
    def pending(self) -> bool:
        return self.expected is not None

    def issue(self, kind: LevelKind, parent: Any = None) -> LoadRequest:
        request = LoadRequest(request_id=next(self._ids), kind=kind, parent=parent)
        self.expected = request.request_id
        return request

    def accept(self, result: LoadCompleted) -> bool:
        """Consume the expected completion; anything else is stale."""
        if result.request_id != self.expected:
            logger.debug(
                "Discarding stale %s result for request %d (expecting %s)",
                result.kind.value,
                result.request_id,
                self.expected,
            )
            return False
        self.expected = None
        return True

    def abandon(self) -> None:
        self.expected = None


async def run_load(source: MetadataSource, request: LoadRequest) -> LoadCompleted:
    """Execute one fetch and turn its outcome into a completion message."""
    logger.info(
        "Loading %s (request %d, parent=%r)",
        request.kind.value,
        request.request_id,
        request.parent,
    )
    try:
        payload = await source.fetch_children(request.kind, request.parent)
    except MetabaseError as exc:
        logger.warning("Failed to load %s: %s", request.kind.value, exc)
        return LoadCompleted(
            request_id=request.request_id,
            kind=request.kind,
            error=str(exc),
        )

    if isinstance(payload, list):
        payload = tuple(payload)
    return LoadCompleted(
        request_id=request.request_id,
        kind=request.kind,
        payload=payload,
    )
