from __future__ import annotations

from dataclasses import dataclass

DEFAULT_VIEWPORT_HEIGHT = 15


@dataclass
class Viewport:
    """Visible window over a list that may be longer than one screen."""

    height: int = DEFAULT_VIEWPORT_HEIGHT
    start: int = 0

    def __post_init__(self) -> None:
        if self.height < 1:
            raise ValueError(f"viewport height must be positive, got {self.height}")

    def reset(self) -> None:
        self.start = 0

    def follow(self, cursor: int, length: int) -> None:
        """Scroll the least amount needed to keep the cursor visible."""
        if length <= 0:
            self.start = 0
            return

        if cursor < self.start:
            self.start = cursor
        elif cursor >= self.start + self.height:
            self.start = cursor - self.height + 1

        self.start = max(0, min(self.start, max(0, length - self.height)))

    def window(self, length: int) -> range:
        return range(self.start, min(self.start + self.height, max(0, length)))

    def needs_paging(self, length: int) -> bool:
        return length > self.height
