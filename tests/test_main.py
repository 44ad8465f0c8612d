"""Tests for the command-line entry point."""

import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

from spy import cli

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def test_main_requires_interactive_terminal():
    """Test that main refuses to run without a terminal."""
    result = subprocess.run(
        [sys.executable, "-m", "spy.cli"],
        cwd=PROJECT_ROOT / "src",
        capture_output=True,
        text=True,
        check=False,
    )
    assert result.returncode == 1
    assert "requires an interactive terminal" in result.stdout
    assert result.stderr == ""


def test_write_config(tmp_path, capsys):
    """Test writing the default settings file."""
    with patch.object(cli.config, "CONFIG_FILE", tmp_path / "spy.toml"):
        assert cli.main(["--write-config"]) == 0
        assert (tmp_path / "spy.toml").exists()
        assert cli.main(["--write-config"]) == 0
    out = capsys.readouterr().out
    assert "Wrote default settings" in out
    assert "already exists" in out


def test_validate_directory(tmp_path, capsys):
    """Test validation of the start directory argument."""
    (tmp_path / "file").write_text("x")
    assert cli.validate_directory(tmp_path) == tmp_path.resolve()
    assert cli.validate_directory(tmp_path / "missing") is None
    assert cli.validate_directory(tmp_path / "file") is None
    err = capsys.readouterr().err
    assert "does not exist" in err
    assert "not a directory" in err


def test_session_error_exit_status(capsys):
    """Test that a session start failure exits with status 1."""
    with patch("spy.cli.has_terminal", return_value=True), \
            patch("spy.cli.config.get_settings"), \
            patch("spy.cli.load_configuration"), \
            patch("spy.cli.Session") as mock_session:
        mock_session.return_value.browse.side_effect = cli.SessionError("no tty")
        assert cli.main([]) == 1
    assert "Could not start browser: no tty" in capsys.readouterr().err


def test_crash_is_logged(tmp_path):
    """Test that unexpected errors are written to the crash log."""
    with patch.object(cli, "CRASH_LOG_FILE", tmp_path / "crash.txt"), \
            patch("spy.cli.has_terminal", return_value=True), \
            patch("spy.cli.config.get_settings", side_effect=RuntimeError("boom")):
        assert cli.main([]) == 1
    log = (tmp_path / "crash.txt").read_text()
    assert "RuntimeError" in log
    assert "boom" in log


def test_final_directory_printed(tmp_path, capsys):
    """Test that the final directory is printed on exit."""
    with patch("spy.cli.has_terminal", return_value=True), \
            patch("spy.cli.config.get_settings"), \
            patch("spy.cli.load_configuration"), \
            patch("spy.cli.Session") as mock_session:
        mock_session.return_value.browse.return_value = tmp_path
        assert cli.main([str(tmp_path)]) == 0
    mock_session.assert_called_once()
    assert mock_session.call_args.args[0] == tmp_path.resolve()
    assert capsys.readouterr().out.strip() == str(tmp_path)


def test_terminal_needed_on_stdin_and_stdout():
    """Test that redirecting either stdin or stdout disables the browser."""
    tty, pipe = MagicMock(), MagicMock()
    tty.isatty.return_value = True
    pipe.isatty.return_value = False
    with patch("spy.cli.sys.stdin", tty), patch("spy.cli.sys.stdout", tty):
        assert cli.has_terminal()
    with patch("spy.cli.sys.stdin", pipe), patch("spy.cli.sys.stdout", tty):
        assert not cli.has_terminal()
    with patch("spy.cli.sys.stdin", tty), patch("spy.cli.sys.stdout", pipe):
        assert not cli.has_terminal()


def test_main_refuses_redirected_stdin(capsys):
    """Test that main exits before starting curses when stdin is redirected."""
    with patch("spy.cli.has_terminal", return_value=False), \
            patch("spy.cli.Session") as mock_session:
        assert cli.main([]) == 1
    mock_session.assert_not_called()
    assert "requires an interactive terminal" in capsys.readouterr().out
