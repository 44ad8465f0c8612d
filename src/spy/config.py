"""Settings file management for spy.

Key bindings, colors and ignore masks live in the ``.spyrc`` language (see
:mod:`spy.keymap`).  Everything else that a user may want to tune is kept in
a small TOML file, ``~/.spy.toml``.  Environment variables such as ``SHELL``
or ``EDITOR`` take precedence over the file, which only provides fallbacks.
"""

from __future__ import annotations

import copy
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore

import tomli_w

# Default settings file location
CONFIG_FILE = Path.home() / ".spy.toml"

# Default settings
DEFAULT_CONFIG = {
    "shell": {
        "program": "/bin/sh",
        # Shells that can report their final directory back to the browser
        "recover_cwd": ["bash"],
    },
    "programs": {
        "editor": "vi",
        "pager": "less",
    },
    "history": {
        "persist_search": False,
    },
    "layout": {
        "padding": 1,
    },
    "input": {
        "poll_ms": 1000,
    },
}


def load_config() -> Dict[str, Any]:
    """Load settings from file or return defaults."""
    if not CONFIG_FILE.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(CONFIG_FILE, "rb") as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as err:
        print(f"Warning: Ignoring unreadable settings file {CONFIG_FILE}: {err}", file=sys.stderr)
        return copy.deepcopy(DEFAULT_CONFIG)
    # Merge with defaults to ensure all keys exist
    return _merge_config(DEFAULT_CONFIG, config)


def save_config(config: Dict[str, Any]) -> None:
    """Save settings to file."""
    try:
        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "wb") as f:
            tomli_w.dump(config, f)
    except OSError as err:
        # Don't break the app if saving fails, but inform the user
        print(f"Warning: Failed to save settings to {CONFIG_FILE}: {err}", file=sys.stderr)


def _merge_config(default: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    """Merge user settings with defaults, preserving user values."""
    result = copy.deepcopy(default)
    for key, value in user.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_config(result[key], value)
        else:
            result[key] = value
    return result


def create_default_config() -> bool:
    """Create the default settings file if it doesn't exist.

    Returns True when a new file was written.
    """
    if CONFIG_FILE.exists():
        return False

    save_config(DEFAULT_CONFIG)
    return CONFIG_FILE.exists()


@dataclass(frozen=True)
class Settings:
    """Resolved settings, after environment overrides."""

    shell: str
    recover_cwd: Tuple[str, ...]
    editor: str
    pager: str
    persist_search: bool
    padding: int
    poll_ms: int


def _as_int(value: Any, fallback: int, minimum: int = 0) -> int:
    """Coerce a settings value to an int no smaller than ``minimum``."""
    try:
        return max(minimum, int(value))
    except (TypeError, ValueError):
        return fallback


def get_settings(
    config: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Resolve the effective settings from the environment and the settings file."""
    if config is None:
        config = load_config()
    if environ is None:
        environ = os.environ

    shell = config.get("shell", {})
    programs = config.get("programs", {})
    defaults_shell = DEFAULT_CONFIG["shell"]
    defaults_programs = DEFAULT_CONFIG["programs"]

    recover = shell.get("recover_cwd", defaults_shell["recover_cwd"])
    if isinstance(recover, str):
        recover = [recover]

    return Settings(
        shell=environ.get("SHELL") or shell.get("program") or defaults_shell["program"],
        recover_cwd=tuple(str(name) for name in recover),
        editor=environ.get("EDITOR") or programs.get("editor") or defaults_programs["editor"],
        pager=environ.get("PAGER") or programs.get("pager") or defaults_programs["pager"],
        persist_search=bool(config.get("history", {}).get("persist_search", False)),
        padding=_as_int(config.get("layout", {}).get("padding"), 1),
        poll_ms=_as_int(config.get("input", {}).get("poll_ms"), 1000, minimum=50),
    )


__all__ = [
    "CONFIG_FILE",
    "DEFAULT_CONFIG",
    "Settings",
    "create_default_config",
    "get_settings",
    "load_config",
    "save_config",
]
