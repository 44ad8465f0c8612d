"""Directory entries, ignore masks and sorted directory listings."""

from __future__ import annotations

import fnmatch
import os
import re
import stat
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from spy.modes import DetailMode


class ListingError(Exception):
    """Raised when a directory cannot be read."""


_DIGIT_RUN = re.compile(r"(\d+)")
_LEADING_DIGITS = re.compile(r"\d*")


def natural_key(name: str) -> Tuple[Union[str, int], ...]:
    """Return a case-insensitive sort key where embedded numbers compare numerically.

    A digit run that starts the name is compared character by character, so
    ``"10.txt"`` sorts before ``"2.txt"`` while ``"file2"`` sorts before
    ``"file10"``.  Text and number tokens alternate, which keeps tuple
    comparison well typed.
    """
    lowered = name.lower()
    prefix = _LEADING_DIGITS.match(lowered).group(0)
    parts = _DIGIT_RUN.split(lowered[len(prefix):])
    key: List[Union[str, int]] = [prefix + parts[0]]
    for index, part in enumerate(parts[1:], start=1):
        key.append(int(part) if index % 2 else part)
    return tuple(key)


@dataclass
class Entry:
    """One member of a directory with lazily fetched ``lstat`` attributes."""

    name: str
    is_dir: bool
    directory: Path = field(default_factory=Path)
    _attrs: Optional[os.stat_result] = field(default=None, repr=False, compare=False)
    _fetched: bool = field(default=False, repr=False, compare=False)

    @property
    def path(self) -> Path:
        """Full path of the entry."""
        return self.directory / self.name

    def attrs(self) -> Optional[os.stat_result]:
        """Stat the entry once and cache the result (or the failure)."""
        if not self._fetched:
            self._fetched = True
            try:
                self._attrs = os.lstat(self.path)
            except OSError:
                self._attrs = None
        return self._attrs

    @property
    def size(self) -> int:
        """Size in bytes, or 0 when the entry cannot be stat'ed."""
        attrs = self.attrs()
        return attrs.st_size if attrs is not None else 0

    @property
    def mtime(self) -> float:
        attrs = self.attrs()
        return attrs.st_mtime if attrs is not None else 0.0

    @property
    def modified(self) -> Optional[datetime]:
        """Modification time, or None when the entry cannot be stat'ed."""
        attrs = self.attrs()
        if attrs is None:
            return None
        return datetime.fromtimestamp(attrs.st_mtime)

    @property
    def mode(self) -> int:
        attrs = self.attrs()
        return attrs.st_mode if attrs is not None else 0

    @property
    def is_symlink(self) -> bool:
        """True when the entry itself is a symbolic link."""
        return stat.S_ISLNK(self.mode)

    @property
    def is_executable(self) -> bool:
        """True for regular files with any execute bit set."""
        if self.is_dir or not stat.S_ISREG(self.mode):
            return False
        return bool(self.mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))

    @property
    def is_readonly(self) -> bool:
        """True when the owner cannot write the entry."""
        if self.attrs() is None:
            return False
        return not bool(self.mode & stat.S_IWUSR)


@dataclass
class IgnoreGroup:
    """Glob patterns that are switched on and off together."""

    patterns: List[str] = field(default_factory=list)
    enabled: bool = True


class IgnoreRules:
    """Labelled groups of glob patterns that hide matching names."""

    DEFAULT_LABEL = "0"

    def __init__(self) -> None:
        self.groups: Dict[str, IgnoreGroup] = {}

    def add(self, pattern: str, label: str = DEFAULT_LABEL) -> None:
        """Add ``pattern`` to the group ``label``, creating the group if needed."""
        self.groups.setdefault(label, IgnoreGroup()).patterns.append(pattern)

    def set_enabled(self, label: str, enabled: bool) -> None:
        """Enable or disable the group ``label``, creating it if needed."""
        self.groups.setdefault(label, IgnoreGroup()).enabled = enabled

    def toggle(self, label: Optional[str] = None) -> bool:
        """Flip one group (or all groups); return False for an unknown label."""
        if label is None:
            for group in self.groups.values():
                group.enabled = not group.enabled
            return bool(self.groups)
        group = self.groups.get(label)
        if group is None:
            return False
        group.enabled = not group.enabled
        return True

    def hides(self, name: str) -> bool:
        """True when any enabled group has a pattern matching ``name``."""
        for group in self.groups.values():
            if not group.enabled:
                continue
            if any(fnmatch.fnmatchcase(name, pattern) for pattern in group.patterns):
                return True
        return False


def sort_entries(entries: List[Entry], detail: DetailMode = DetailMode.NONE) -> None:
    """Sort in place: directories first, then the detail key descending, then name."""

    def key(entry: Entry):
        if detail is DetailMode.SIZE:
            secondary: float = -entry.size
        elif detail is DetailMode.TIME:
            secondary = -entry.mtime
        else:
            secondary = 0
        return (not entry.is_dir, secondary, natural_key(entry.name), entry.name)

    entries.sort(key=key)


def _classify(item: os.DirEntry) -> bool:
    """Trust the directory entry type hint; scandir stats only when it is unknown."""
    try:
        return item.is_dir(follow_symlinks=False)
    except OSError:
        return False


class DirectoryListing:
    """Sorted, filtered snapshot of one directory."""

    def __init__(self, directory: Path, entries: Sequence[Entry] = ()) -> None:
        self.directory = directory
        self.entries: List[Entry] = list(entries)

    @classmethod
    def build(
        cls,
        directory: Path,
        ignore: Optional[IgnoreRules] = None,
        detail: DetailMode = DetailMode.NONE,
    ) -> "DirectoryListing":
        """Read ``directory`` and return a new listing.

        Raises:
            ListingError: if the directory cannot be opened or read.
        """
        items: List[Entry] = []
        try:
            with os.scandir(directory) as scan:
                for item in scan:
                    if item.name in (".", ".."):
                        continue
                    if ignore is not None and ignore.hides(item.name):
                        continue
                    items.append(Entry(name=item.name, is_dir=_classify(item), directory=directory))
        except OSError as err:
            reason = err.strerror or str(err)
            raise ListingError(f"{directory}: {reason}") from err
        sort_entries(items, detail)
        return cls(directory, items)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> Entry:
        return self.entries[index]

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self.entries]

    def index_of(self, name: str) -> Optional[int]:
        """Position of the entry called ``name``, or None."""
        for index, entry in enumerate(self.entries):
            if entry.name == name:
                return index
        return None

    def max_name_width(self) -> int:
        """Length of the longest name; 0 for an empty listing."""
        return max((len(entry.name) for entry in self.entries), default=0)


__all__ = [
    "Entry",
    "DirectoryListing",
    "IgnoreGroup",
    "IgnoreRules",
    "ListingError",
    "natural_key",
    "sort_entries",
]
