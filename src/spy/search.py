"""Case-insensitive regular expression search over listing names."""

from __future__ import annotations

import re
from typing import Optional, Pattern, Sequence, Tuple


class SearchEngine:
    """Hold at most one compiled pattern and find matches cyclically.

    A pattern that fails to compile (or is empty) simply matches nothing.
    """

    def __init__(self) -> None:
        self.text: str = ""
        self._regex: Optional[Pattern[str]] = None

    @property
    def active(self) -> bool:
        return self._regex is not None

    def compile(self, text: str) -> bool:
        """Make ``text`` the current pattern; return False if it cannot match."""
        self.text = text
        if not text:
            self._regex = None
            return False
        try:
            self._regex = re.compile(text, re.IGNORECASE)
        except re.error:
            self._regex = None
        return self._regex is not None

    def clear(self) -> None:
        self.text = ""
        self._regex = None

    def matches(self, name: str) -> bool:
        """True when the current pattern occurs anywhere in ``name``."""
        return self._regex is not None and self._regex.search(name) is not None

    def span(self, name: str) -> Optional[Tuple[int, int]]:
        """Return the ``(start, end)`` of the first match in ``name``."""
        if self._regex is None:
            return None
        found = self._regex.search(name)
        return found.span() if found else None

    def _scan(self, names: Sequence[str], start: int, step: int) -> Optional[int]:
        """Walk from ``start`` by ``step``, wrapping, until a match or back at ``start``."""
        count = len(names)
        if self._regex is None or count == 0:
            return None
        index = (start + step) % count
        while index != start % count:
            if self.matches(names[index]):
                return index
            index = (index + step) % count
        return None

    def find_next(self, names: Sequence[str], start: int) -> Optional[int]:
        """First match after ``start``, wrapping; never ``start`` itself."""
        return self._scan(names, start, 1)

    def find_prev(self, names: Sequence[str], start: int) -> Optional[int]:
        """First match before ``start``, wrapping; never ``start`` itself."""
        return self._scan(names, start, -1)


__all__ = ["SearchEngine"]
