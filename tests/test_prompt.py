"""Tests for the prompt line editor."""

import curses

from spy.prompt import EditEvent, LineEditor


def _type(editor, text):
    for char in text:
        editor.feed(ord(char))


def test_typing_and_confirm():
    """Test typing text and confirming it."""
    editor = LineEditor()
    _type(editor, "abc")
    assert editor.text == "abc"
    assert editor.feed(ord("\n")) is EditEvent.CONFIRMED
    assert editor.feed(curses.KEY_ENTER) is EditEvent.CONFIRMED


def test_wide_characters_from_get_wch():
    """Test that wide characters are inserted whole."""
    editor = LineEditor()
    assert editor.feed("é") is EditEvent.CHANGED
    assert editor.feed("\x1b") is EditEvent.CANCELLED
    assert editor.text == "é"


def test_cancel_keys():
    """Test the keys that cancel a prompt."""
    editor = LineEditor(initial="x")
    assert editor.feed(27) is EditEvent.CANCELLED
    assert editor.feed(7) is EditEvent.CANCELLED


def test_backspace_on_empty_line_cancels():
    """Test that backspace on an empty line cancels."""
    editor = LineEditor(initial="a")
    assert editor.feed(127) is EditEvent.CHANGED
    assert editor.text == ""
    assert editor.feed(curses.KEY_BACKSPACE) is EditEvent.CANCELLED


def test_cursor_movement_and_insert():
    """Test cursor movement and inserting in the middle."""
    editor = LineEditor(initial="ac")
    assert editor.feed(curses.KEY_LEFT) is EditEvent.MOVED
    editor.feed(ord("b"))
    assert editor.text == "abc"
    editor.feed(1)
    assert editor.cursor == 0
    editor.feed(curses.KEY_DC)
    assert editor.text == "bc"
    editor.feed(5)
    assert editor.cursor == 2
    assert editor.feed(curses.KEY_DC) is EditEvent.IGNORED


def test_kill_commands():
    """Test the Emacs-style kill keys."""
    editor = LineEditor(initial="make all install")
    editor.feed(23)
    assert editor.text == "make all "
    editor.feed(curses.KEY_HOME)
    editor.feed(curses.KEY_RIGHT)
    editor.feed(11)
    assert editor.text == "m"
    editor.feed(21)
    assert editor.text == ""
    assert editor.cursor == 0


def test_history_browsing_keeps_draft():
    """Test that browsing history keeps the unfinished line."""
    editor = LineEditor(history=["first", "second"])
    _type(editor, "dr")
    editor.feed(curses.KEY_UP)
    assert editor.text == "second"
    editor.feed(curses.KEY_UP)
    assert editor.text == "first"
    assert editor.feed(curses.KEY_UP) is EditEvent.IGNORED
    editor.feed(curses.KEY_DOWN)
    editor.feed(curses.KEY_DOWN)
    assert editor.text == "dr"
    assert editor.cursor == 2
    assert editor.feed(curses.KEY_DOWN) is EditEvent.IGNORED


def test_unknown_keys_ignored():
    """Test that unknown keys leave the line unchanged."""
    editor = LineEditor()
    assert editor.feed(curses.KEY_F5) is EditEvent.IGNORED
    assert editor.text == ""
