from __future__ import annotations

from metabase_explorer.models import Collection


class CollectionStack:
    """Ancestors of the collection currently shown, innermost last."""

    def __init__(self) -> None:
        self._frames: list[Collection] = []

    def __len__(self) -> int:
        return len(self._frames)

    def __bool__(self) -> bool:
        return bool(self._frames)

    @property
    def depth(self) -> int:
        return len(self._frames)

    def push(self, collection: Collection) -> None:
        self._frames.append(collection)

    def pop(self) -> Collection | None:
        """Return the parent collection, or None when already at the root."""
        if not self._frames:
            return None
        return self._frames.pop()

    def peek(self) -> Collection | None:
        return self._frames[-1] if self._frames else None

    def clear(self) -> None:
        self._frames.clear()

    def path(self) -> list[Collection]:
        return list(self._frames)
