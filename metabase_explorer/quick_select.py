from __future__ import annotations


class NumericQuickSelect:
    """Collects typed digits into a 1-based list position."""

    MAX_BUFFER_LENGTH = 3
    DIGITS = "0123456789"

    def __init__(self) -> None:
        self.buffer = ""

    @property
    def active(self) -> bool:
        return bool(self.buffer)

    def clear(self) -> None:
        self.buffer = ""

    def push(self, digit: str, item_count: int) -> int | None:
        """Append a digit and return the 0-based index to hover, if any."""
        if len(digit) != 1 or digit not in self.DIGITS:
            raise ValueError(f"expected a single digit, got {digit!r}")

        self.buffer += digit
        value = int(self.buffer)
        if 1 <= value <= item_count:
            return value - 1

        # Leading zeros keep a two digit buffer alive ("01", "02", ...).
        if len(self.buffer) >= self.MAX_BUFFER_LENGTH or (
            len(self.buffer) == 2 and self.buffer[0] != "0"
        ):
            self.buffer = ""
        return None
