"""Shared fixtures: a scripted terminal and a session rooted in ``tmp_path``."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import pytest

from spy.browser import Session
from spy.config import Settings
from spy.history import HistoryManager
from spy.keymap import DEFAULT_RC, RcParser


class FakeTerminal:
    """Terminal surface that replays scripted keys and prompt answers.

    Each entry in ``lines`` is either the string to return from a prompt,
    ``None`` for a cancelled prompt, or ``(edits, result)`` where every edit is
    passed to the live preview callback before ``result`` is returned.
    """

    def __init__(self, rows: int = 10, cols: int = 80, keys=(), lines=()) -> None:
        self.rows = rows
        self.cols = cols
        self.keys: List[int] = list(keys)
        self.lines = list(lines)
        self.prompts: List[str] = []
        self.events: List[str] = []
        self.previews: List[int] = []
        self.session: Optional[Session] = None

    def viewport(self):
        return self.rows, self.cols

    def resize(self) -> None:
        self.events.append("resize")

    def draw(self, session) -> None:
        self.session = session
        self.events.append("draw")

    def read_key(self, timeout_ms: int):
        return self.keys.pop(0) if self.keys else None

    def read_line(self, prompt: str, history: Iterable[str], on_change: Optional[Callable[[str], None]] = None):
        self.prompts.append(prompt)
        response = self.lines.pop(0)
        if isinstance(response, tuple):
            edits, result = response
            for text in edits:
                if on_change is not None:
                    on_change(text)
                if self.session is not None:
                    self.previews.append(self.session.nav.index)
            return result
        return response

    def release(self, echo) -> None:
        self.events.append(f"release:{echo}")

    def reacquire(self) -> None:
        self.events.append("reacquire")

    def wait_for_key(self, prompt: str) -> None:
        self.events.append(f"wait:{prompt}")

    def redraw(self) -> None:
        self.events.append("redraw")


def make_settings(**overrides) -> Settings:
    values = dict(
        shell="/bin/sh",
        recover_cwd=("bash",),
        editor="true",
        pager="true",
        persist_search=False,
        padding=1,
        poll_ms=1000,
    )
    values.update(overrides)
    return Settings(**values)


def default_configuration():
    return RcParser(stream=io.StringIO()).parse(DEFAULT_RC)


def populate(directory: Path, files=(), dirs=()) -> None:
    for name in dirs:
        (directory / name).mkdir()
    for name in files:
        (directory / name).write_text(name, encoding="utf-8")


@pytest.fixture
def fake_terminal() -> FakeTerminal:
    return FakeTerminal()


@pytest.fixture
def make_session(monkeypatch, tmp_path):
    """Build a started session in ``tmp_path`` (process cwd restored afterwards)."""
    monkeypatch.chdir(tmp_path)

    def factory(directory: Optional[Path] = None, terminal: Optional[FakeTerminal] = None, **settings):
        if terminal is None:
            terminal = FakeTerminal()
        session = Session(
            directory if directory is not None else tmp_path,
            settings=make_settings(**settings),
            configuration=default_configuration(),
            history=HistoryManager(),
            terminal=terminal,
        )
        terminal.session = session
        session.start()
        return session

    return factory
