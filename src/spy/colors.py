"""Color rules from the rc file and their curses color pairs."""

from __future__ import annotations

import curses
import fnmatch
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from spy.state import Entry

COLOR_NAME_TO_CURSES = {
    "black": curses.COLOR_BLACK,
    "red": curses.COLOR_RED,
    "green": curses.COLOR_GREEN,
    "yellow": curses.COLOR_YELLOW,
    "blue": curses.COLOR_BLUE,
    "magenta": curses.COLOR_MAGENTA,
    "cyan": curses.COLOR_CYAN,
    "white": curses.COLOR_WHITE,
    "default": -1,
}

PREDICATES = ("-dir", "-x", "-ro", "-link", "-tagged")

# Pair 0 is reserved by curses
FIRST_PAIR = 1


def parse_color_name(name: str) -> Optional[Tuple[str, bool]]:
    """Split ``"blue_bold"`` into ``("blue", True)``; None when unknown."""
    base = name.lower()
    bold = False
    if base.endswith("_bold"):
        base = base[: -len("_bold")]
        bold = True
    if base not in COLOR_NAME_TO_CURSES:
        return None
    return base, bold


@dataclass(frozen=True)
class ColorRule:
    """A ``color`` rc line: which entries get which colour."""

    predicate: str
    color: str

    def matches(self, entry: "Entry", tagged: bool = False) -> bool:
        """True when this rule applies to ``entry``.

        Predicates starting with ``-`` test an entry property; anything else is a
        glob matched against the name.
        """
        if self.predicate == "-dir":
            return entry.is_dir
        if self.predicate == "-x":
            return entry.is_executable
        if self.predicate == "-ro":
            return entry.is_readonly
        if self.predicate == "-link":
            return entry.is_symlink
        if self.predicate == "-tagged":
            return tagged
        return fnmatch.fnmatchcase(entry.name, self.predicate)


def resolve_color(rules: Iterable[ColorRule], entry: "Entry", tagged: bool = False) -> Optional[str]:
    """Return the color of the last rule matching ``entry``."""
    color = None
    for rule in rules:
        if rule.matches(entry, tagged):
            color = rule.color
    return color


def init_colors(rules: List[ColorRule]) -> Dict[str, int]:
    """Allocate one curses pair per foreground color used by ``rules``.

    Call this after curses initialization and before rendering.  Returns a
    mapping from rule color names to ready-to-use attributes.
    """
    palette: Dict[str, int] = {}
    if not curses.has_colors():
        return palette

    curses.start_color()
    curses.use_default_colors()

    pairs: Dict[str, int] = {}
    for rule in rules:
        parsed = parse_color_name(rule.color)
        if parsed is None or rule.color in palette:
            continue
        base, bold = parsed
        if base not in pairs:
            pair = FIRST_PAIR + len(pairs)
            curses.init_pair(pair, COLOR_NAME_TO_CURSES[base], -1)
            pairs[base] = pair
        attr = curses.color_pair(pairs[base])
        if bold:
            attr |= curses.A_BOLD
        palette[rule.color] = attr
    return palette


def get_entry_color(
    rules: Iterable[ColorRule],
    palette: Dict[str, int],
    entry: "Entry",
    tagged: bool = False,
) -> int:
    """Get the curses attribute for ``entry``.

    Returns:
        curses color pair number and attributes
    """
    color = resolve_color(rules, entry, tagged)
    if color is None:
        return curses.A_NORMAL
    return palette.get(color, curses.A_NORMAL)


__all__ = [
    "COLOR_NAME_TO_CURSES",
    "PREDICATES",
    "ColorRule",
    "get_entry_color",
    "init_colors",
    "parse_color_name",
    "resolve_color",
]
