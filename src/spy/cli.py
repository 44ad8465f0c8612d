"""Command-line entry point for spy.

The steps are:

1. Read command line arguments.
2. Check that the requested starting directory really exists.
3. Load settings and the rc files, then launch the interactive browser.
4. Print where the user ended up, or log any crash information.
"""

from __future__ import annotations

import argparse
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from spy import Session, SessionError, __version__
from spy import config
from spy.keymap import load_configuration

# Crash dump file location
CRASH_LOG_FILE = Path.home() / "spy.crash.txt"


def validate_directory(path: Path) -> Optional[Path]:
    """Check that ``path`` is a directory the browser can start in.

    Returns the resolved path, or None after printing a warning so the caller
    can stay in the current directory.
    """
    try:
        resolved = path.expanduser().resolve()
        if not resolved.exists():
            print(f"Warning: directory does not exist: {path}", file=sys.stderr)
            return None
        if not resolved.is_dir():
            print(f"Warning: not a directory: {path}", file=sys.stderr)
            return None
        return resolved
    except (OSError, RuntimeError) as e:
        print(f"Warning: cannot access directory {path}: {e}", file=sys.stderr)
        return None


def write_crash_log(exception: BaseException) -> None:
    """Append a detailed crash report to :data:`CRASH_LOG_FILE`."""
    try:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        crash_info = f"""
================================================================================
spy Crash Report
================================================================================
Timestamp: {timestamp}
Version: {__version__}
Python: {sys.version}
Platform: {sys.platform}

Exception Type: {type(exception).__name__}
Exception Message: {str(exception)}

Traceback:
{traceback.format_exc()}
================================================================================
"""
        with open(CRASH_LOG_FILE, "a") as f:
            f.write(crash_info)

        print("\nspy crashed unexpectedly!", file=sys.stderr)
        print(f"   Crash details saved to: {CRASH_LOG_FILE}", file=sys.stderr)
    except OSError:
        print("\nspy crashed and could not write crash log!", file=sys.stderr)
        traceback.print_exc()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="spy",
        description="Browse a directory in a paginated terminal grid.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show version number and exit.",
    )
    parser.add_argument(
        "--rc",
        type=Path,
        default=None,
        help="Read key bindings from this file instead of ./.spyrc or ~/.spyrc.",
    )
    parser.add_argument(
        "--write-config",
        action="store_true",
        help=f"Write default settings to {config.CONFIG_FILE} and exit.",
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=None,
        help="Directory to start in (default: current directory).",
    )
    return parser.parse_args(argv)


def has_terminal() -> bool:
    """curses reads keys from stdin and draws on stdout; both must be ttys."""
    return sys.stdin.isatty() and sys.stdout.isatty()


def main(argv: Optional[List[str]] = None) -> int:
    """Launch the browser; return the process exit status."""
    try:
        args = parse_args(argv)

        if args.write_config:
            if config.create_default_config():
                print(f"Wrote default settings to {config.CONFIG_FILE}")
            else:
                print(f"Settings file already exists: {config.CONFIG_FILE}")
            return 0

        if not has_terminal():
            print("spy requires an interactive terminal.")
            return 1

        start_dir = validate_directory(args.directory) if args.directory else None
        settings = config.get_settings()
        configuration = load_configuration(args.rc)

        session = Session(start_dir, settings=settings, configuration=configuration)
        final_dir = session.browse()

        print(final_dir)
        return 0

    except SessionError as err:
        print(f"Could not start browser: {err}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT
    except Exception as e:
        write_crash_log(e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
