"""Current directory, cursor and selection memory for the browser."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Set

from spy.layout import NAME_DECORATION, XPADDING, GridLayout, Position
from spy.modes import DetailMode
from spy.state import DirectoryListing, Entry, IgnoreRules, ListingError


def expand_target(target: str) -> str:
    """Turn a typed jump target into a path.

    Shell quoting and backslash escapes are removed first, so ``"~/My Dir"``
    and ``~/My\\ Dir`` both name the same directory.  Then ``$VARS`` and a
    leading ``~`` are expanded.  Text with unbalanced quotes is used as typed.
    """
    try:
        word = " ".join(shlex.split(target))
    except ValueError:
        word = target.strip()
    return os.path.expanduser(os.path.expandvars(word))


@dataclass
class NavigationState:
    """Where the browser is and what is selected.

    Holds the working directory, its listing, the cursor index and the
    per-directory selection memory.  All cursor movement happens on the grid
    computed from :attr:`layout`, so it always lands on an existing entry.
    """

    cwd: Path
    listing: DirectoryListing = None  # type: ignore[assignment]
    index: int = 0
    ignore: IgnoreRules = field(default_factory=IgnoreRules)
    detail: DetailMode = DetailMode.NONE
    remembered: Dict[str, str] = field(default_factory=dict)
    tagged: Set[str] = field(default_factory=set)
    status_message: Optional[str] = None
    padding: int = XPADDING
    viewport_rows: int = 1
    viewport_cols: int = 80

    def __post_init__(self) -> None:
        if self.listing is None:
            self.listing = DirectoryListing(self.cwd)

    # -- geometry -----------------------------------------------------------

    @property
    def cell_width(self) -> int:
        """Width of one grid cell: marker, longest name and detail column."""
        return self.listing.max_name_width() + NAME_DECORATION + self.detail.width

    @property
    def layout(self) -> GridLayout:
        """Grid layout for the current listing and viewport."""
        return GridLayout.compute(
            len(self.listing),
            self.viewport_rows,
            self.viewport_cols,
            self.cell_width,
            self.padding,
        )

    @property
    def position(self) -> Position:
        """Page, column and row of the cursor."""
        return self.layout.index_to_position(self.index)

    def set_viewport(self, rows: int, cols: int) -> None:
        """Record the drawable area; the layout follows on next access."""
        self.viewport_rows = rows
        self.viewport_cols = cols

    def current_entry(self) -> Optional[Entry]:
        """Return the entry under the cursor, or None for an empty listing."""
        if not self.listing.entries:
            return None
        return self.listing[self.index]

    def select(self, index: int) -> None:
        """Move the cursor to ``index``, clamped to the listing."""
        if not self.listing.entries:
            self.index = 0
            return
        self.index = max(0, min(index, len(self.listing) - 1))

    def select_name(self, name: Optional[str]) -> bool:
        """Move the cursor to the entry called ``name``.

        Returns False, leaving the cursor alone, when no such entry exists.
        """
        if name is None:
            return False
        found = self.listing.index_of(name)
        if found is None:
            return False
        self.index = found
        return True

    # -- listing ------------------------------------------------------------

    def rebuild(self) -> bool:
        """Re-read the current directory, keeping the selected name if possible."""
        entry = self.current_entry()
        previous = entry.name if entry else None
        try:
            listing = DirectoryListing.build(self.cwd, self.ignore, self.detail)
        except ListingError as err:
            self.status_message = str(err)
            return False
        self.listing = listing
        if not self.select_name(previous):
            self.select(self.index)
        return True

    def set_detail(self, detail: DetailMode) -> bool:
        """Switch the detail column and resort; the old mode stays on failure."""
        previous = self.detail
        self.detail = detail
        if not self.rebuild():
            self.detail = previous
            return False
        return True

    # -- cursor movement ----------------------------------------------------

    def _move_to(self, position: Position) -> None:
        self.index = self.layout.position_to_index(position)

    def move_up(self) -> None:
        """Move up one row, wrapping to the bottom of the column."""
        if not self.listing.entries:
            return
        layout = self.layout
        page, col, row = layout.index_to_position(self.index)
        row = row - 1 if row > 0 else layout.rows_in(page, col) - 1
        self._move_to(Position(page, col, row))

    def move_down(self) -> None:
        """Move down one row, wrapping to the top of the column."""
        if not self.listing.entries:
            return
        layout = self.layout
        page, col, row = layout.index_to_position(self.index)
        row = row + 1 if row + 1 < layout.rows_in(page, col) else 0
        self._move_to(Position(page, col, row))

    def move_left(self) -> None:
        """Move left one column, wrapping within the current row."""
        if not self.listing.entries:
            return
        layout = self.layout
        page, col, row = layout.index_to_position(self.index)
        col = col - 1 if col > 0 else layout.columns_in(page, row) - 1
        self._move_to(Position(page, col, row))

    def move_right(self) -> None:
        """Move right one column, wrapping within the current row."""
        if not self.listing.entries:
            return
        layout = self.layout
        page, col, row = layout.index_to_position(self.index)
        col = col + 1 if col + 1 < layout.columns_in(page, row) else 0
        self._move_to(Position(page, col, row))

    def page_up(self) -> None:
        """Move to the same cell on the previous page."""
        layout = self.layout
        if layout.index_to_position(self.index).page > 0:
            self.index -= layout.page_size

    def page_down(self) -> None:
        """Move to the same cell on the next page, or the last entry if shorter."""
        layout = self.layout
        if layout.index_to_position(self.index).page < layout.pages - 1:
            self.select(self.index + layout.page_size)

    def first(self) -> None:
        self.select(0)

    def last(self) -> None:
        self.select(len(self.listing) - 1)

    # -- tags ---------------------------------------------------------------

    def toggle_tag(self) -> Optional[bool]:
        """Flip the tag on the selected entry.

        Returns the new tag state, or None when nothing is selected.
        """
        entry = self.current_entry()
        if entry is None:
            return None
        if entry.name in self.tagged:
            self.tagged.discard(entry.name)
            return False
        self.tagged.add(entry.name)
        return True

    # -- directory changes --------------------------------------------------

    def change_directory(self, target: str, expand: bool = True) -> bool:
        """Change the process working directory and reload the listing.

        ``target`` is typed text passed through :func:`expand_target` unless
        ``expand`` is False, in which case it is used as a literal path.

        Returns True when the directory actually changed.  Failures leave the
        state untouched and are reported through :attr:`status_message`.
        """
        expanded = expand_target(target) if expand else target
        if not expanded:
            return False
        old_cwd = self.cwd
        try:
            os.chdir(expanded)
            new_cwd = Path(os.getcwd())
        except OSError as err:
            self.status_message = f"{target}: {err.strerror or err}"
            return False
        if new_cwd == old_cwd:
            return False

        try:
            listing = DirectoryListing.build(new_cwd, self.ignore, self.detail)
        except ListingError as err:
            self.status_message = str(err)
            try:
                os.chdir(old_cwd)
            except OSError as back_err:
                self.status_message += f"; cannot return to {old_cwd}: {back_err.strerror}"
            return False

        entry = self.current_entry()
        if entry is not None:
            self.remembered[str(old_cwd)] = entry.name

        self.cwd = new_cwd
        self.listing = listing
        self.tagged.clear()
        self.index = 0
        if new_cwd == old_cwd.parent:
            self.select_name(old_cwd.name)
        else:
            self.select_name(self.remembered.get(str(new_cwd)))
        return True


__all__ = ["NavigationState", "expand_target"]
