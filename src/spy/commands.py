"""Named browser commands and the handlers behind them.

Every command in :data:`COMMANDS` has a handler taking no argument, a handler
taking a string argument, or both.  Key bindings hold a ready-to-run
:class:`NoArg` or :class:`WithArg` instance so dispatch never has to inspect
what kind of command it is.

Handlers never raise for expected failures; they leave a message in
``session.nav.status_message`` instead.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Optional, Union

from spy.modes import DetailMode
from spy.process import RunMode

if TYPE_CHECKING:
    from spy.browser import Session
    from spy.state import Entry


@dataclass(frozen=True)
class NoArg:
    name: str
    handler: Callable[["Session"], None]

    def invoke(self, session: "Session") -> None:
        """Run the handler against ``session``."""
        self.handler(session)


@dataclass(frozen=True)
class WithArg:
    name: str
    handler: Callable[["Session", str], None]
    argument: str

    def invoke(self, session: "Session") -> None:
        """Run the handler against ``session``."""
        self.handler(session, self.argument)


Command = Union[NoArg, WithArg]


# -- movement ---------------------------------------------------------------

def _up(session: "Session") -> None:
    session.nav.move_up()


def _down(session: "Session") -> None:
    session.nav.move_down()


def _left(session: "Session") -> None:
    session.nav.move_left()


def _right(session: "Session") -> None:
    session.nav.move_right()


def _page_up(session: "Session") -> None:
    session.nav.page_up()


def _page_down(session: "Session") -> None:
    session.nav.page_down()


def _first(session: "Session") -> None:
    session.nav.first()


def _last(session: "Session") -> None:
    session.nav.last()


# -- directories ------------------------------------------------------------

def _is_enterable(entry: "Entry") -> bool:
    """True for directories and for symlinks that resolve to one."""
    if entry.is_dir:
        return True
    return entry.is_symlink and os.path.isdir(entry.path)


def _dir_up(session: "Session") -> None:
    """Go to the parent directory, selecting the directory just left."""
    session.change_directory("..", expand=False)


def _dir_down(session: "Session") -> None:
    """Enter the selected directory."""
    entry = session.nav.current_entry()
    if entry is None:
        return
    if not _is_enterable(entry):
        session.nav.status_message = f"{entry.name}: Not a directory"
        return
    session.change_directory(entry.name, expand=False)


def _open_with(session: "Session", program: str) -> None:
    """Run ``program`` on the selected file, or enter it if it is a directory.

    The program runs in silent mode: curses is suspended but nothing is echoed.
    """
    entry = session.nav.current_entry()
    if entry is None:
        return
    if _is_enterable(entry):
        session.change_directory(entry.name, expand=False)
        return
    session.execute_template(f"{program} %", RunMode.SILENT)


def _edit(session: "Session") -> None:
    """Open the selected file in the configured editor."""
    _open_with(session, session.settings.editor)


def _display(session: "Session") -> None:
    """Open the selected file in the configured pager."""
    _open_with(session, session.settings.pager)


def _jump_to(session: "Session", target: str) -> None:
    """Record ``target`` in the jump history and change to it.

    The target is recorded even if the change fails.
    """
    target = target.strip()
    if not target:
        return
    session.history.jumps.add(target)
    session.change_directory(target)


def _jump_prompt(session: "Session") -> None:
    """Ask for a jump target; an empty answer reuses the last one."""
    default = session.history.jumps.last
    label = f"Jump: ({default}) " if default else "Jump: "
    line = session.prompt(label, session.history.jumps)
    if line is None:
        return
    _jump_to(session, line.strip() or default or "")


# -- search -----------------------------------------------------------------

def _search_step(session: "Session", forward: bool) -> None:
    """Move to the next or previous match of the current pattern.

    When nothing else matches, the cursor stays put.  A miss is reported
    unless the current entry itself matches.
    """
    nav = session.nav
    if not session.search.text:
        nav.status_message = "No search pattern."
        return
    find = session.search.find_next if forward else session.search.find_prev
    found = find(nav.listing.names, nav.index)
    if found is not None:
        nav.index = found
        return
    current = nav.current_entry()
    if current is None or not session.search.matches(current.name):
        nav.status_message = f"Pattern not found: {session.search.text}"


def _search_next(session: "Session") -> None:
    _search_step(session, forward=True)


def _search_prev(session: "Session") -> None:
    _search_step(session, forward=False)


def _search_for(session: "Session", pattern: str) -> None:
    """Make ``pattern`` the current search and move to its first match."""
    session.history.searches.add(pattern)
    session.search.compile(pattern)
    _search_next(session)


def _search_prompt(session: "Session") -> None:
    """Read a search pattern, previewing the match as it is typed.

    Each edit moves the cursor to the first match after the position the
    search started from.  Cancelling restores both the cursor and the previous
    pattern; confirming an empty line clears the search.
    """
    committed_index = session.nav.index
    committed_text = session.search.text

    def preview(text: str) -> None:
        session.search.compile(text)
        found = session.search.find_next(session.nav.listing.names, committed_index)
        session.nav.index = committed_index if found is None else found

    line = session.prompt("/", session.history.searches, on_change=preview)
    session.nav.index = committed_index
    if line is None:
        session.search.compile(committed_text)
        return
    if not line:
        session.search.clear()
        return
    _search_for(session, line)


# -- shell commands ---------------------------------------------------------

def _shell_prompt(session: "Session") -> None:
    """Ask for a shell command and run it, waiting for a key afterwards."""
    line = session.prompt("!", session.history.commands)
    if not line or not line.strip():
        return
    session.history.commands.add(line)
    session.execute_template(line, RunMode.CONTINUE)


def _shell(session: "Session", template: str) -> None:
    session.execute_template(template, RunMode.CONTINUE)


def _run(session: "Session", template: str) -> None:
    session.execute_template(template, RunMode.INTERACTIVE)


def _silent(session: "Session", template: str) -> None:
    session.execute_template(template, RunMode.SILENT)


# -- listing options --------------------------------------------------------

def _detail_cycle(session: "Session") -> None:
    session.nav.set_detail(session.nav.detail.next())


def _detail_set(session: "Session", name: str) -> None:
    """Switch the detail column to the mode called ``name``."""
    try:
        mode = DetailMode(name.strip().lower())
    except ValueError:
        session.nav.status_message = f"Unknown detail mode: {name}"
        return
    session.nav.set_detail(mode)


def _toggle_ignore_all(session: "Session") -> None:
    """Turn every ignore group on or off together."""
    if not session.nav.ignore.toggle():
        session.nav.status_message = "No ignore masks configured."
        return
    session.nav.rebuild()


def _toggle_ignore(session: "Session", label: str) -> None:
    """Flip one ignore group and report its new state."""
    label = label.strip()
    if not session.nav.ignore.toggle(label):
        session.nav.status_message = f"No ignore mask group: {label}"
        return
    enabled = session.nav.ignore.groups[label].enabled
    session.nav.status_message = f"Ignore group {label} {'on' if enabled else 'off'}."
    session.nav.rebuild()


def _tag(session: "Session") -> None:
    """Toggle the tag on the selected entry and step down."""
    if session.nav.toggle_tag() is not None:
        session.nav.move_down()


def _refresh(session: "Session") -> None:
    session.nav.rebuild()


def _redraw(session: "Session") -> None:
    """Repaint the whole screen from scratch."""
    session.terminal.redraw()


def _quit(session: "Session") -> None:
    session.request_quit()


@dataclass(frozen=True)
class CommandSpec:
    name: str
    no_arg: Optional[Callable[["Session"], None]] = None
    with_arg: Optional[Callable[["Session", str], None]] = None


COMMANDS: Dict[str, CommandSpec] = {
    spec.name: spec
    for spec in (
        CommandSpec("up", _up),
        CommandSpec("down", _down),
        CommandSpec("left", _left),
        CommandSpec("right", _right),
        CommandSpec("pageup", _page_up),
        CommandSpec("pagedown", _page_down),
        CommandSpec("first", _first),
        CommandSpec("last", _last),
        CommandSpec("dirup", _dir_up),
        CommandSpec("dirdown", _dir_down),
        CommandSpec("edit", _edit),
        CommandSpec("display", _display),
        CommandSpec("jump", _jump_prompt, _jump_to),
        CommandSpec("search", _search_prompt, _search_for),
        CommandSpec("searchnext", _search_next),
        CommandSpec("searchprev", _search_prev),
        CommandSpec("shell", _shell_prompt, _shell),
        CommandSpec("run", with_arg=_run),
        CommandSpec("silent", with_arg=_silent),
        CommandSpec("detail", _detail_cycle, _detail_set),
        CommandSpec("toggleignore", _toggle_ignore_all, _toggle_ignore),
        CommandSpec("tag", _tag),
        CommandSpec("refresh", _refresh),
        CommandSpec("redraw", _redraw),
        CommandSpec("quit", _quit),
    )
}


class CommandError(ValueError):
    """Raised for a command name that is not in the registry."""


def build_command(
    name: str,
    argument: Optional[str] = None,
    warn: Optional[Callable[[str], None]] = None,
) -> Command:
    """Create the command variant for ``name`` and an optional bound argument.

    When the argument does not fit the command, ``warn`` is told about it and
    the variant the command does support is returned anyway.

    Raises:
        CommandError: if ``name`` is not a known command.
    """
    spec = COMMANDS.get(name)
    if spec is None:
        raise CommandError(f"unknown command '{name}'")

    if argument:
        if spec.with_arg is not None:
            return WithArg(name, spec.with_arg, argument)
        if warn is not None:
            warn(f"command '{name}' takes no argument; ignoring '{argument}'")
        return NoArg(name, spec.no_arg)

    if spec.no_arg is not None:
        return NoArg(name, spec.no_arg)
    if warn is not None:
        warn(f"command '{name}' requires an argument")
    return WithArg(name, spec.with_arg, "")


__all__ = [
    "COMMANDS",
    "Command",
    "CommandError",
    "CommandSpec",
    "NoArg",
    "WithArg",
    "build_command",
]
