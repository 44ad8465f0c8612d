"""Convert the session state into characters on the screen.

:class:`CursesTerminal` is the terminal surface the :class:`spy.browser.Session`
runs on.  It draws the grid, collects prompt lines through
:class:`spy.prompt.LineEditor`, and hands the terminal to child processes.
Drawing never changes browser state.

Screen layout::

    user@host /current/directory        <- header
    Page 2/3  [Size]                    <- page line
    *dir      file1     file3           <- grid rows
    *other    file2     file4
    status message or prompt            <- footer
"""

from __future__ import annotations

import curses
import getpass
import os
import shutil
import socket
import sys
import termios
import tty
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Tuple

from spy.colors import ColorRule, get_entry_color, init_colors
from spy.formatting import format_detail
from spy.layout import NAME_DECORATION
from spy.modes import DetailMode
from spy.prompt import EditEvent, LineEditor

if TYPE_CHECKING:
    from spy.browser import Session
    from spy.state import Entry

HEADER_ROWS = 2
FOOTER_ROWS = 1


def _identity() -> str:
    """Return ``user@host`` for the header line."""
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "?"
    return f"{user}@{socket.gethostname()}"


def entry_marker(entry: "Entry", tagged: bool) -> str:
    """Return the one-character marker drawn before an entry name.

    ``+`` marks a tagged entry, ``*`` a directory and ``@`` a symlink.
    """
    if tagged:
        return "+"
    if entry.is_dir:
        return "*"
    if entry.is_symlink:
        return "@"
    return " "


class CursesTerminal:
    """Terminal surface backed by a curses window."""

    def __init__(self, stdscr: "curses._CursesWindow", color_rules: List[ColorRule]) -> None:  # type: ignore[name-defined]
        self.stdscr = stdscr
        self.color_rules = color_rules
        self.identity = _identity()
        self._session: Optional["Session"] = None
        stdscr.keypad(True)
        self._set_cursor(0)
        self.palette: Dict[str, int] = init_colors(color_rules)

    @staticmethod
    def _set_cursor(visibility: int) -> None:
        try:
            curses.curs_set(visibility)
        except curses.error:
            # Terminal cannot change cursor visibility
            pass

    # -- geometry -----------------------------------------------------------

    def viewport(self) -> Tuple[int, int]:
        """Rows and columns available to the grid."""
        height, width = self.stdscr.getmaxyx()
        return max(1, height - HEADER_ROWS - FOOTER_ROWS), max(1, width)

    def resize(self) -> None:
        """Pick up the new terminal size after SIGWINCH or KEY_RESIZE."""
        size = shutil.get_terminal_size()
        curses.resizeterm(size.lines, size.columns)
        self.stdscr.clear()

    # -- drawing ------------------------------------------------------------

    def _put(self, y: int, x: int, text: str, attr: int = curses.A_NORMAL) -> None:
        """Write clipped text; anything outside the window is dropped."""
        height, width = self.stdscr.getmaxyx()
        if y < 0 or y >= height or x >= width:
            return
        text = text[: max(0, width - x - (1 if y == height - 1 else 0))]
        if not text:
            return
        try:
            self.stdscr.addstr(y, x, text, attr)
        except curses.error:
            # Writing the bottom-right cell always reports an error
            pass

    def draw(self, session: "Session", prompt: Optional[Tuple[str, LineEditor]] = None) -> None:
        """Paint the whole screen for ``session``.

        With ``prompt`` given as ``(label, editor)``, the footer shows the line
        being edited instead of the status message and the cursor sits in it.
        """
        self._session = session
        nav = session.nav
        height, width = self.stdscr.getmaxyx()
        self.stdscr.erase()

        self._put(0, 0, f"{self.identity} {nav.cwd}")

        layout = nav.layout
        position = nav.position
        page_info: List[str] = []
        if layout.pages > 1:
            page_info.append(f"Page {position.page + 1}/{layout.pages}")
        if nav.detail is not DetailMode.NONE:
            page_info.append(f"[{nav.detail.label}]")
        if page_info:
            self._put(1, 0, "  ".join(page_info))

        name_width = nav.listing.max_name_width()
        cursor_xy: Optional[Tuple[int, int]] = None
        for index in layout.page_bounds(position.page):
            entry = nav.listing[index]
            _, col, row = layout.index_to_position(index)
            y = HEADER_ROWS + row
            x = (col * width) // layout.columns
            tagged = entry.name in nav.tagged
            color = get_entry_color(self.color_rules, self.palette, entry, tagged)
            self._put(y, x, entry_marker(entry, tagged), color)

            attr = color
            if index == nav.index:
                attr = curses.A_REVERSE
                cursor_xy = (y, x + NAME_DECORATION)
            self._put(y, x + NAME_DECORATION, entry.name, attr)
            if index == nav.index:
                span = session.search.span(entry.name)
                if span is not None and span[1] > span[0]:
                    start, end = span
                    self._put(
                        y,
                        x + NAME_DECORATION + start,
                        entry.name[start:end],
                        curses.A_REVERSE | curses.A_UNDERLINE,
                    )
            detail = format_detail(entry, nav.detail)
            if detail:
                self._put(y, x + NAME_DECORATION + name_width + 1, detail, color)

        footer_y = height - 1
        if prompt is not None:
            label, editor = prompt
            self._put(footer_y, 0, label + editor.text)
            try:
                self.stdscr.move(footer_y, min(width - 1, len(label) + editor.cursor))
            except curses.error:
                pass
        else:
            if nav.status_message:
                self._put(footer_y, 0, nav.status_message)
            if cursor_xy is not None:
                try:
                    self.stdscr.move(*cursor_xy)
                except curses.error:
                    pass
        self.stdscr.refresh()

    def redraw(self) -> None:
        """Force a full repaint on the next refresh."""
        self.stdscr.clear()

    # -- input --------------------------------------------------------------

    def read_key(self, timeout_ms: int) -> Optional[int]:
        """Wait up to ``timeout_ms`` for a key; None on timeout."""
        self.stdscr.timeout(timeout_ms)
        key = self.stdscr.getch()
        return None if key == -1 else key

    def read_line(
        self,
        prompt: str,
        history: Iterable[str],
        on_change: Optional[Callable[[str], None]] = None,
    ) -> Optional[str]:
        """Read one line in the footer.

        Returns the confirmed text, or None when the prompt is cancelled or the
        session is shutting down.  ``on_change`` is called with the text after
        every edit.
        """
        editor = LineEditor(list(history))
        self.stdscr.timeout(-1)
        self._set_cursor(1)
        try:
            while True:
                if self._session is not None:
                    if self._session.should_quit:
                        return None
                    self.draw(self._session, (prompt, editor))
                try:
                    key = self.stdscr.get_wch()
                except curses.error:
                    # Interrupted by a signal
                    continue
                if key == curses.KEY_RESIZE:
                    self.resize()
                    if self._session is not None:
                        self._session.relayout()
                    continue
                event = editor.feed(key)
                if event is EditEvent.CONFIRMED:
                    return editor.text
                if event is EditEvent.CANCELLED:
                    return None
                if event is EditEvent.CHANGED and on_change is not None:
                    on_change(editor.text)
        finally:
            self._set_cursor(0)

    # -- child processes ----------------------------------------------------

    def release(self, echo: Optional[str]) -> None:
        """Suspend curses for a child process, echoing ``$ echo`` unless None."""
        curses.endwin()
        if echo is not None:
            print(f"$ {echo}", flush=True)

    def reacquire(self) -> None:
        """Resume curses after a child process and repaint."""
        self.stdscr.clear()
        self.stdscr.refresh()

    def wait_for_key(self, prompt: str) -> None:
        """Block for one raw keystroke while curses is suspended."""
        print(f"\n{prompt} ", end="", flush=True)
        fd = sys.stdin.fileno()
        try:
            old_settings = termios.tcgetattr(fd)
        except termios.error:
            # stdin is not a terminal, so there is no key to wait for
            print(flush=True)
            return
        try:
            tty.setraw(fd)
            os.read(fd, 1)
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


__all__ = ["CursesTerminal", "entry_marker", "HEADER_ROWS", "FOOTER_ROWS"]
