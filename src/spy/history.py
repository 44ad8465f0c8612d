"""Scoped, duplicate-free line histories backed by plain text files."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator, List, Optional

JUMP_HISTORY_FILE = Path.home() / ".spy_jumps"
COMMAND_HISTORY_FILE = Path.home() / ".spy_history"
SEARCH_HISTORY_FILE = Path.home() / ".spy_searches"


class ScopedHistory:
    """Ordered history where re-adding a line moves it to the end."""

    def __init__(self, name: str, path: Optional[Path] = None) -> None:
        self.name = name
        self.path = path
        self.entries: List[str] = []

    def add(self, line: str) -> None:
        """Append ``line``, dropping any earlier copy; empty lines are ignored."""
        if not line:
            return
        try:
            self.entries.remove(line)
        except ValueError:
            pass
        self.entries.append(line)

    @property
    def last(self) -> Optional[str]:
        """Most recent entry, or None when the history is empty."""
        return self.entries[-1] if self.entries else None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def load(self) -> None:
        """Read the backing file, oldest entry first; missing files are empty."""
        if self.path is None or not self.path.exists():
            return
        try:
            text = self.path.read_text(encoding="utf-8", errors="surrogateescape")
        except OSError as err:
            print(f"Warning: Failed to read {self.name} history from {self.path}: {err}", file=sys.stderr)
            return
        for line in text.splitlines():
            self.add(line)

    def save(self) -> None:
        """Rewrite the backing file in full."""
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8", errors="surrogateescape") as f:
                for line in self.entries:
                    f.write(f"{line}\n")
        except OSError as err:
            print(f"Warning: Failed to save {self.name} history to {self.path}: {err}", file=sys.stderr)


class HistoryManager:
    """The three independent histories used by the jump, search and shell prompts."""

    def __init__(
        self,
        jump_file: Optional[Path] = None,
        command_file: Optional[Path] = None,
        search_file: Optional[Path] = None,
    ) -> None:
        self.jumps = ScopedHistory("jump", jump_file)
        self.commands = ScopedHistory("command", command_file)
        # Session-only unless a file is given
        self.searches = ScopedHistory("search", search_file)

    @classmethod
    def default(cls, persist_search: bool = False) -> "HistoryManager":
        """Build the histories stored under the home directory.

        The search history gets a file only when ``persist_search`` is set.
        """
        return cls(
            JUMP_HISTORY_FILE,
            COMMAND_HISTORY_FILE,
            SEARCH_HISTORY_FILE if persist_search else None,
        )

    def _all(self) -> List[ScopedHistory]:
        return [self.jumps, self.searches, self.commands]

    def load_all(self) -> None:
        """Load every history that has a backing file."""
        for history in self._all():
            history.load()

    def save_all(self) -> None:
        """Save every history that has a backing file."""
        for history in self._all():
            history.save()


__all__ = [
    "ScopedHistory",
    "HistoryManager",
    "JUMP_HISTORY_FILE",
    "COMMAND_HISTORY_FILE",
    "SEARCH_HISTORY_FILE",
]
