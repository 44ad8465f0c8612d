"""Core browser session and event loop."""

from __future__ import annotations

import curses
import os
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol, Tuple

from .commands import Command
from .config import Settings, get_settings
from .history import HistoryManager
from .keymap import Configuration, load_configuration
from .navigation import NavigationState
from .process import ProcessRunner, RunMode, TemplateError, expand_template
from .render import CursesTerminal
from .search import SearchEngine
from .signals import SignalState


class SessionError(Exception):
    """Raised when the browser cannot start."""


class Terminal(Protocol):
    """Drawing and input surface the session runs on."""

    def viewport(self) -> Tuple[int, int]:
        """Rows and columns available to the listing grid."""

    def resize(self) -> None:
        ...

    def draw(self, session: "Session") -> None:
        ...

    def read_key(self, timeout_ms: int) -> Optional[int]:
        """Return a key code, or None when ``timeout_ms`` passes without input."""

    def read_line(
        self,
        prompt: str,
        history: Iterable[str],
        on_change: Optional[Callable[[str], None]] = None,
    ) -> Optional[str]:
        """Collect one line; None means the prompt was cancelled."""

    def release(self, echo: Optional[str]) -> None:
        """Give the terminal to a child process, echoing ``echo`` if given."""

    def reacquire(self) -> None:
        ...

    def wait_for_key(self, prompt: str) -> None:
        ...

    def redraw(self) -> None:
        ...


class Session:
    """Own all browser state and run the read-key, dispatch, redraw loop.

    Command handlers (see :mod:`spy.commands`) receive this object and use its
    navigation state, search engine, histories and process runner.
    """

    def __init__(
        self,
        start_dir: Optional[Path] = None,
        *,
        settings: Optional[Settings] = None,
        configuration: Optional[Configuration] = None,
        history: Optional[HistoryManager] = None,
        terminal: Optional[Terminal] = None,
        signals: Optional[SignalState] = None,
    ) -> None:
        try:
            if start_dir is not None:
                os.chdir(start_dir)
            cwd = Path(os.getcwd())
        except OSError as err:
            raise SessionError(f"Cannot determine working directory: {err.strerror or err}") from err

        self.settings = settings if settings is not None else get_settings()
        self.configuration = configuration if configuration is not None else load_configuration()
        self.history = history if history is not None else HistoryManager.default(self.settings.persist_search)
        self.signals = signals if signals is not None else SignalState()
        self.nav = NavigationState(
            cwd=cwd,
            ignore=self.configuration.ignore,
            padding=self.settings.padding,
        )
        self.search = SearchEngine()
        self.terminal: Optional[Terminal] = None
        self.runner: Optional[ProcessRunner] = None
        self._quit_requested = False
        if terminal is not None:
            self.attach(terminal)

    def attach(self, terminal: Terminal) -> None:
        """Bind the session to ``terminal`` and create the process runner for it."""
        self.terminal = terminal
        self.runner = ProcessRunner(
            self.settings.shell,
            terminal,
            self.signals,
            self.settings.recover_cwd,
        )
        self.relayout()

    def start(self) -> None:
        """Load histories and read the starting directory."""
        self.history.load_all()
        self.nav.rebuild()

    def shutdown(self) -> None:
        """Persist the histories."""
        self.history.save_all()

    @property
    def should_quit(self) -> bool:
        """True once quit was requested or SIGINT arrived with no child running."""
        return self._quit_requested or self.signals.shutdown_requested

    def request_quit(self) -> None:
        self._quit_requested = True

    def relayout(self) -> None:
        """Size the grid to the terminal's current viewport."""
        if self.terminal is None:
            return
        rows, cols = self.terminal.viewport()
        self.nav.set_viewport(rows, cols)

    # -- dispatch -----------------------------------------------------------

    def dispatch(self, command: Command) -> None:
        """Run one command; failures end up in the status line."""
        try:
            command.invoke(self)
        except (OSError, ValueError) as err:
            self.nav.status_message = f"{command.name}: {err}"

    def handle_key(self, key: int) -> bool:
        """Dispatch the command bound to ``key``; False when the key is unbound."""
        command = self.configuration.lookup(key)
        if command is None:
            return False
        self.dispatch(command)
        return True

    def step(self) -> None:
        """Process at most one input event."""
        if self.signals.consume_resize():
            self.terminal.resize()
        self.relayout()
        self.terminal.draw(self)
        key = self.terminal.read_key(self.settings.poll_ms)
        if key is None:
            return
        if key == curses.KEY_RESIZE:
            self.terminal.resize()
            return
        self.nav.status_message = None
        if not self.handle_key(key):
            self.nav.status_message = "Unbound key."

    # -- services used by command handlers -----------------------------------

    def prompt(
        self,
        label: str,
        history: Iterable[str],
        on_change: Optional[Callable[[str], None]] = None,
    ) -> Optional[str]:
        """Read a line in the footer; None when cancelled or without a terminal."""
        if self.terminal is None:
            return None
        return self.terminal.read_line(label, list(history), on_change)

    def change_directory(self, target: str, expand: bool = True) -> bool:
        """Change directory through the navigation state.

        Pass ``expand=False`` for names that must not be shell-expanded, such as
        listing entries or a directory reported by a child shell.
        """
        return self.nav.change_directory(target, expand)

    def execute_template(self, template: str, mode: RunMode) -> None:
        """Expand ``template`` against the current entry and run it."""
        if self.runner is None:
            self.nav.status_message = "Cannot run external command."
            return
        entry = self.nav.current_entry()
        try:
            command = expand_template(template, entry.name if entry else None, str(Path.home()))
        except TemplateError as err:
            self.nav.status_message = str(err)
            return
        if not command.strip():
            return

        result = self.runner.run(command, mode)
        self.nav.status_message = result.report.message
        if result.new_cwd and self.change_directory(result.new_cwd, expand=False):
            return
        # The command may have changed the directory contents
        self.nav.rebuild()

    # -- curses entry point ---------------------------------------------------

    def browse(self) -> Path:
        """Launch the UI and return the final directory."""
        try:
            return curses.wrapper(self._loop)
        except curses.error as err:
            raise SessionError("Failed to initialise curses UI.") from err

    def _loop(self, stdscr: "curses._CursesWindow") -> Path:  # type: ignore[name-defined]
        """Main curses event loop."""
        self.attach(CursesTerminal(stdscr, self.configuration.colors))
        self.signals.install()
        try:
            self.start()
            while not self.should_quit:
                self.step()
        finally:
            self.signals.restore()
            self.shutdown()
        return self.nav.cwd


__all__ = ["Session", "SessionError", "Terminal"]
