"""Enumerations that describe the alternate detail column and sort key."""

from __future__ import annotations

from enum import Enum


class DetailMode(Enum):
    """Extra per-entry column, which also picks the secondary sort key."""

    NONE = "none"
    SIZE = "size"
    TIME = "time"

    @property
    def label(self) -> str:
        """Name shown on the page line."""
        if self is DetailMode.NONE:
            return "Name"
        elif self is DetailMode.SIZE:
            return "Size"
        else:
            return "Time"

    @property
    def width(self) -> int:
        """Extra grid cell width needed for the detail column."""
        if self is DetailMode.SIZE:
            return 7
        if self is DetailMode.TIME:
            return len("Sep 30 23:59") + 1
        return 0

    def next(self) -> "DetailMode":
        """Return the mode after this one, wrapping around."""
        index = ALL_DETAIL_MODES.index(self)
        return ALL_DETAIL_MODES[(index + 1) % len(ALL_DETAIL_MODES)]


ALL_DETAIL_MODES = [DetailMode.NONE, DetailMode.SIZE, DetailMode.TIME]


__all__ = ["DetailMode", "ALL_DETAIL_MODES"]
