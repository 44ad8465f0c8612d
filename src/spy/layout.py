"""Grid geometry for the paginated, column-major listing view.

Entries fill a column top to bottom, then the next column, then the next
page.  The mapping between a listing index and its ``(page, col, row)``
position is a mixed-radix encoding and is its own inverse:

    i = row + rows * (col + columns * page)

The final page may be partially filled.  :meth:`GridLayout.rows_in` and
:meth:`GridLayout.columns_in` report how many cells of a column (or row)
actually hold entries so that wrapping cursor movement stays inside the
populated part of a short last page.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

# Blank cells between grid columns
XPADDING = 1

# Marker column plus gap drawn in front of every name
NAME_DECORATION = 2


class Position(NamedTuple):
    """Cell of an entry in the paginated grid."""

    page: int
    col: int
    row: int


@dataclass(frozen=True)
class GridLayout:
    """Rows and columns per page for ``count`` entries."""

    count: int
    rows: int
    columns: int

    @classmethod
    def compute(
        cls,
        count: int,
        viewport_rows: int,
        viewport_cols: int,
        cell_width: int,
        padding: int = XPADDING,
    ) -> "GridLayout":
        """Fit ``count`` cells of ``cell_width`` characters into the viewport."""
        columns = max(1, viewport_cols // max(1, cell_width + padding))
        rows = max(1, viewport_rows)
        return cls(count=max(0, count), rows=rows, columns=columns)

    @property
    def page_size(self) -> int:
        """Cells per page."""
        return self.rows * self.columns

    @property
    def pages(self) -> int:
        """Number of pages; zero for an empty listing."""
        return -(-self.count // self.page_size)

    def index_to_position(self, index: int) -> Position:
        """Split a listing index into page, column and row."""
        page, offset = divmod(index, self.page_size)
        col, row = divmod(offset, self.rows)
        return Position(page, col, row)

    def position_to_index(self, position: Position) -> int:
        """Inverse of :meth:`index_to_position`."""
        page, col, row = position
        return row + self.rows * (col + self.columns * page)

    def _remaining(self, page: int) -> int:
        return self.count - page * self.page_size

    def rows_in(self, page: int, col: int) -> int:
        """Number of populated rows in ``col`` of ``page``."""
        if page < self.pages - 1:
            return self.rows
        remaining = self._remaining(page) - col * self.rows
        return max(0, min(self.rows, remaining))

    def columns_in(self, page: int, row: int) -> int:
        """Number of populated columns along ``row`` of ``page``."""
        if page < self.pages - 1:
            return self.columns
        remaining = self._remaining(page)
        if remaining <= row:
            return 0
        return min(self.columns, (remaining - row + self.rows - 1) // self.rows)

    def page_bounds(self, page: int) -> range:
        """Listing indices shown on ``page``."""
        start = page * self.page_size
        return range(start, min(start + self.page_size, self.count))


__all__ = ["GridLayout", "Position", "XPADDING", "NAME_DECORATION"]
