"""Small helpers that turn raw entry metadata into the detail column text."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from spy.modes import DetailMode

if TYPE_CHECKING:
    from spy.state import Entry


def format_size(size: int) -> str:
    """Convert a byte count into a short string such as ``12.4K``."""
    units = ["B", "K", "M", "G", "T", "P", "E"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    unit = units[index]
    if unit == "B":
        return f"{int(value)}{unit}"
    formatted = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{formatted}{unit}"


def format_timestamp(timestamp: datetime) -> str:
    """Render a modification time the way ``ls -l`` does for recent files."""
    return timestamp.strftime("%b %d %H:%M")


def format_detail(entry: "Entry", mode: DetailMode) -> str:
    """Return the right-aligned detail column for ``entry`` in ``mode``."""
    if mode is DetailMode.NONE:
        return ""
    if mode is DetailMode.SIZE:
        text = format_size(entry.size) if entry.attrs() is not None else "-"
    else:
        modified = entry.modified
        text = format_timestamp(modified) if modified is not None else "-"
    return text.rjust(mode.width - 1)


__all__ = ["format_size", "format_timestamp", "format_detail"]
