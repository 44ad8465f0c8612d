"""Parser for the ``.spyrc`` language and the resulting key binding table.

The language is line oriented::

    # comment
    map <key-name> <command> [<argument to end of line>]
    color <glob|-dir|-x|-ro|-link|-tagged> <color-name>
    ignoremask <glob> [<group-label>]
    ignoredefault <group-label> <0|1>

Problems never stop parsing: each bad line produces an :class:`RcWarning`
(printed to stderr) and is skipped.  The built-in :data:`DEFAULT_RC` is parsed
first, then the user file, so user bindings replace default ones.
"""

from __future__ import annotations

import curses
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from spy.colors import PREDICATES, ColorRule, parse_color_name
from spy.commands import Command, CommandError, build_command
from spy.state import IgnoreRules

RC_FILE_NAME = ".spyrc"

DEFAULT_RC = """\
# Built-in spy configuration.  ./.spyrc or ~/.spyrc is read after this.

map j down
map Down down
map k up
map Up up
map h left
map Left left
map l right
map Right right

map r pagedown
map PageDown pagedown
map t pageup
map PageUp pageup
map Home first
map End last
map G last

map d dirdown
map u dirup
map Backspace dirup
map Enter edit
map e edit
map v display
map g jump

map / search
map n searchnext
map N searchprev

map ! shell
map : shell

map s detail
map . toggleignore hidden
map Space tag
map R refresh
map ^L redraw
map q quit

color -dir yellow
color -link cyan
color -x green_bold
color -ro red
color -tagged magenta_bold

ignoremask .* hidden
ignoremask *~ backup
ignoremask *.swp backup
"""


def _build_key_names() -> Dict[str, int]:
    """Map rc key names to curses key codes.

    Printable characters name themselves, ``^A`` to ``^Z`` are control keys,
    and every ``curses.KEY_*`` constant is available under its own name
    alongside the friendlier aliases below.
    """
    names: Dict[str, int] = {}
    for code in range(33, 127):
        names[chr(code)] = code
    for code in range(1, 27):
        names[f"^{chr(64 + code)}"] = code
    for attr in dir(curses):
        if attr.startswith("KEY_"):
            value = getattr(curses, attr)
            if isinstance(value, int):
                names[attr] = value
    names.update(
        {
            "Enter": ord("\n"),
            "Space": ord(" "),
            "Tab": ord("\t"),
            "Esc": 27,
            "Backspace": curses.KEY_BACKSPACE,
            "Up": curses.KEY_UP,
            "Down": curses.KEY_DOWN,
            "Left": curses.KEY_LEFT,
            "Right": curses.KEY_RIGHT,
            "PageUp": curses.KEY_PPAGE,
            "PageDown": curses.KEY_NPAGE,
            "Home": curses.KEY_HOME,
            "End": curses.KEY_END,
        }
    )
    return names


KEY_NAMES: Dict[str, int] = _build_key_names()


def normalize_key(key: int) -> int:
    """Fold the different codes terminals send for Enter and Backspace."""
    if key in (curses.KEY_ENTER, ord("\r")):
        return ord("\n")
    if key in (127, 8):
        return curses.KEY_BACKSPACE
    return key


@dataclass
class RcWarning:
    """One problem found while parsing an rc file."""

    source: str
    line: int
    message: str

    def __str__(self) -> str:
        return f"{self.source}:{self.line}: warning: {self.message}"


@dataclass
class Configuration:
    """Everything the rc files define: bindings, colors and ignore masks."""

    bindings: Dict[int, Command] = field(default_factory=dict)
    colors: List[ColorRule] = field(default_factory=list)
    ignore: IgnoreRules = field(default_factory=IgnoreRules)
    warnings: List[RcWarning] = field(default_factory=list)

    def lookup(self, key: int) -> Optional[Command]:
        """Return the command bound to ``key``, or None."""
        return self.bindings.get(normalize_key(key))


class RcParser:
    """Feed rc text into a :class:`Configuration`.

    Several sources can be parsed in turn; later ones override earlier
    bindings.  Warnings go to ``stream`` (stderr by default).
    """

    def __init__(self, config: Optional[Configuration] = None, stream: Optional[TextIO] = None) -> None:
        self.config = config if config is not None else Configuration()
        self.stream = stream

    def _warn(self, source: str, line: int, message: str) -> None:
        warning = RcWarning(source, line, message)
        self.config.warnings.append(warning)
        stream = self.stream if self.stream is not None else sys.stderr
        print(str(warning), file=stream)

    def parse_file(self, path: Path) -> Configuration:
        """Parse the rc file at ``path``; an unreadable file only warns."""
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as err:
            self._warn(str(path), 0, f"cannot read file: {err.strerror or err}")
            return self.config
        return self.parse(text, str(path))

    def parse(self, text: str, source: str = "<default>") -> Configuration:
        """Parse rc ``text``, warning about and skipping each bad line.

        ``source`` is the name used in warnings.
        """
        for number, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split(None, 1)
            directive = parts[0]
            rest = parts[1] if len(parts) > 1 else ""
            handler = getattr(self, f"_directive_{directive}", None)
            if handler is None:
                self._warn(source, number, f"unknown directive '{directive}'")
                continue
            handler(rest, source, number)
        return self.config

    def _directive_map(self, rest: str, source: str, number: int) -> None:
        """Handle ``map <key> <command> [argument]``."""
        parts = rest.split(None, 2)
        if len(parts) < 2:
            self._warn(source, number, "usage: map <key> <command> [argument]")
            return
        key_name, command_name = parts[0], parts[1]
        argument = parts[2] if len(parts) > 2 else None
        key = KEY_NAMES.get(key_name)
        if key is None:
            self._warn(source, number, f"unknown key '{key_name}'")
            return

        def warn(message: str) -> None:
            self._warn(source, number, message)

        try:
            command = build_command(command_name, argument, warn)
        except CommandError as err:
            warn(str(err))
            return
        self.config.bindings[key] = command

    def _directive_color(self, rest: str, source: str, number: int) -> None:
        """Handle ``color <pattern> <color>``."""
        parts = rest.split()
        if len(parts) != 2:
            self._warn(source, number, "usage: color <pattern|-dir|-x|-ro|-link|-tagged> <color>")
            return
        predicate, color = parts
        if predicate.startswith("-") and predicate not in PREDICATES:
            self._warn(source, number, f"unknown color predicate '{predicate}'")
            return
        if parse_color_name(color) is None:
            self._warn(source, number, f"unknown color '{color}'")
            return
        self.config.colors.append(ColorRule(predicate, color))

    def _directive_ignoremask(self, rest: str, source: str, number: int) -> None:
        """Handle ``ignoremask <glob> [group]``."""
        parts = rest.split()
        if len(parts) not in (1, 2):
            self._warn(source, number, "usage: ignoremask <glob> [group]")
            return
        label = parts[1] if len(parts) == 2 else IgnoreRules.DEFAULT_LABEL
        self.config.ignore.add(parts[0], label)

    def _directive_ignoredefault(self, rest: str, source: str, number: int) -> None:
        """Handle ``ignoredefault <group> <0|1>``."""
        parts = rest.split()
        if len(parts) != 2 or parts[1] not in ("0", "1"):
            self._warn(source, number, "usage: ignoredefault <group> <0|1>")
            return
        self.config.ignore.set_enabled(parts[0], parts[1] == "1")


def find_user_rc(cwd: Optional[Path] = None, home: Optional[Path] = None) -> Optional[Path]:
    """Return the project-local rc file if present, else the one in the home directory."""
    candidates = [
        (cwd if cwd is not None else Path.cwd()) / RC_FILE_NAME,
        (home if home is not None else Path.home()) / RC_FILE_NAME,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def load_configuration(rc_path: Optional[Path] = None, stream: Optional[TextIO] = None) -> Configuration:
    """Parse the built-in configuration, then ``rc_path`` or the first user rc found."""
    parser = RcParser(stream=stream)
    parser.parse(DEFAULT_RC, "<default>")
    user_rc = rc_path if rc_path is not None else find_user_rc()
    if user_rc is not None:
        parser.parse_file(user_rc)
    return parser.config


__all__ = [
    "Configuration",
    "DEFAULT_RC",
    "KEY_NAMES",
    "RcParser",
    "RcWarning",
    "find_user_rc",
    "load_configuration",
    "normalize_key",
]
