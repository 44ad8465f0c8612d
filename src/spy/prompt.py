"""Line editing state for the jump, search and shell prompts.

:class:`LineEditor` owns the text being edited and the cursor position.  The
terminal feeds it key codes and redraws from ``(text, cursor)``; nothing is
kept in module globals.
"""

from __future__ import annotations

import curses
from enum import Enum
from typing import Sequence, Union

KEY_ESCAPE = 27
KEY_CTRL_A = 1
KEY_CTRL_E = 5
KEY_CTRL_G = 7
KEY_CTRL_K = 11
KEY_CTRL_U = 21
KEY_CTRL_W = 23
ENTER_KEYS = (curses.KEY_ENTER, ord("\n"), ord("\r"))
BACKSPACE_KEYS = (curses.KEY_BACKSPACE, 127, 8)


class EditEvent(Enum):
    """What a key did to the line being edited."""

    CHANGED = "changed"
    MOVED = "moved"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    IGNORED = "ignored"


class LineEditor:
    """Single line editor with history browsing."""

    def __init__(self, history: Sequence[str] = (), initial: str = "") -> None:
        self.text = initial
        self.cursor = len(initial)
        self._history = list(history)
        self._history_index = len(self._history)
        self._draft = initial

    def _set_text(self, text: str) -> None:
        self.text = text
        self.cursor = len(text)

    def _insert(self, chars: str) -> None:
        self.text = self.text[:self.cursor] + chars + self.text[self.cursor:]
        self.cursor += len(chars)

    def feed(self, key: Union[int, str]) -> EditEvent:
        """Apply one key (a curses key code or a typed character)."""
        if isinstance(key, str):
            if len(key) == 1 and (ord(key) < 32 or ord(key) == 127):
                key = ord(key)
            elif key.isprintable():
                self._insert(key)
                return EditEvent.CHANGED
            else:
                return EditEvent.IGNORED
        if key in ENTER_KEYS:
            return EditEvent.CONFIRMED
        if key in (KEY_ESCAPE, KEY_CTRL_G):
            return EditEvent.CANCELLED
        if key in BACKSPACE_KEYS:
            if not self.text:
                # Backspace on an empty line leaves the prompt
                return EditEvent.CANCELLED
            if self.cursor == 0:
                return EditEvent.IGNORED
            self.text = self.text[:self.cursor - 1] + self.text[self.cursor:]
            self.cursor -= 1
            return EditEvent.CHANGED
        if key == curses.KEY_DC:
            if self.cursor >= len(self.text):
                return EditEvent.IGNORED
            self.text = self.text[:self.cursor] + self.text[self.cursor + 1:]
            return EditEvent.CHANGED
        if key == curses.KEY_LEFT:
            self.cursor = max(0, self.cursor - 1)
            return EditEvent.MOVED
        if key == curses.KEY_RIGHT:
            self.cursor = min(len(self.text), self.cursor + 1)
            return EditEvent.MOVED
        if key in (curses.KEY_HOME, KEY_CTRL_A):
            self.cursor = 0
            return EditEvent.MOVED
        if key in (curses.KEY_END, KEY_CTRL_E):
            self.cursor = len(self.text)
            return EditEvent.MOVED
        if key == KEY_CTRL_U:
            self.text = self.text[self.cursor:]
            self.cursor = 0
            return EditEvent.CHANGED
        if key == KEY_CTRL_K:
            self.text = self.text[:self.cursor]
            return EditEvent.CHANGED
        if key == KEY_CTRL_W:
            head = self.text[:self.cursor].rstrip()
            cut = head.rfind(" ") + 1
            self.text = head[:cut] + self.text[self.cursor:]
            self.cursor = cut
            return EditEvent.CHANGED
        if key == curses.KEY_UP:
            return self._browse(-1)
        if key == curses.KEY_DOWN:
            return self._browse(1)
        if 32 <= key < 127:
            self._insert(chr(key))
            return EditEvent.CHANGED
        return EditEvent.IGNORED

    def _browse(self, step: int) -> EditEvent:
        """Step through history by ``step``, keeping the unfinished line as a draft."""
        target = self._history_index + step
        if target < 0 or target > len(self._history):
            return EditEvent.IGNORED
        if self._history_index == len(self._history):
            self._draft = self.text
        self._history_index = target
        if target == len(self._history):
            self._set_text(self._draft)
        else:
            self._set_text(self._history[target])
        return EditEvent.CHANGED


__all__ = ["EditEvent", "LineEditor"]
