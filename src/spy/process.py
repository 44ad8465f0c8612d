"""Run shell command lines while the browser hands over the terminal.

A command goes through ``IDLE -> LAUNCHING -> RUNNING -> REAPING -> IDLE``.
While the child runs, :class:`spy.signals.SignalState` knows its pid so an
interrupt reaches the child instead of shutting the browser down.

For shells that support it, the command line is extended so that the shell
reports its final working directory through a private pipe.  This lets a
``cd`` inside the command move the browser as well.
"""

from __future__ import annotations

import errno
import os
import re
import shlex
import signal
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from spy.browser import Terminal
    from spy.signals import SignalState

# Shells that understand the ``pwd >&N`` epilogue
DEFAULT_RECOVER_SHELLS = ("bash",)

EXEC_FAILURE_STATUS = 127

_SAFE_NAME = re.compile(r"[A-Za-z0-9_.-]+")


class TemplateError(ValueError):
    """Raised when a command template cannot be expanded."""


class RunMode(Enum):
    """How the terminal is handed over to a command."""

    SILENT = "silent"
    INTERACTIVE = "interactive"
    CONTINUE = "continue"


class RunnerState(Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    RUNNING = "running"
    REAPING = "reaping"


class ExitKind(Enum):
    EXITED = "exited"
    SIGNALED = "signaled"
    LAUNCH_FAILED = "launch_failed"


@dataclass(frozen=True)
class ExitReport:
    """How a child process ended, in a form ready for the status line."""

    kind: ExitKind
    code: int = 0
    signal: int = 0
    core_dumped: bool = False
    detail: str = ""

    @property
    def ok(self) -> bool:
        """True for a normal exit with status 0."""
        return self.kind is ExitKind.EXITED and self.code == 0

    @property
    def signal_name(self) -> str:
        try:
            return signal.Signals(self.signal).name
        except ValueError:
            return f"signal {self.signal}"

    @property
    def message(self) -> Optional[str]:
        """Status line text, or None for a clean exit."""
        if self.kind is ExitKind.LAUNCH_FAILED:
            return self.detail or "Could not start command."
        if self.kind is ExitKind.SIGNALED:
            text = f"Terminated by {self.signal_name}"
            if self.core_dumped:
                text += " (core dumped)"
            return text
        if self.code == 0:
            return None
        text = f"Exit status {self.code}"
        if self.detail:
            text += f" ({self.detail})"
        return text


@dataclass(frozen=True)
class RunResult:
    command: str
    report: ExitReport
    new_cwd: Optional[str] = None


def classify_status(status: int) -> ExitReport:
    """Turn a raw ``waitpid`` status into an :class:`ExitReport`."""
    if os.WIFSIGNALED(status):
        return ExitReport(
            ExitKind.SIGNALED,
            signal=os.WTERMSIG(status),
            core_dumped=os.WCOREDUMP(status),
        )
    return ExitReport(ExitKind.EXITED, code=os.WEXITSTATUS(status))


def quote_name(name: str) -> str:
    """Quote ``name`` for the shell unless it is made of safe characters only."""
    if _SAFE_NAME.fullmatch(name):
        return name
    return shlex.quote(name)


def _word_boundary(text: str, index: int) -> bool:
    return index < 0 or index >= len(text) or text[index].isspace()


def expand_template(template: str, name: Optional[str], home: str) -> str:
    """Substitute ``%``, ``\\%`` and word-leading ``~`` in a command template.

    Raises:
        TemplateError: if the template uses ``%`` and no entry is selected.
    """
    out = []
    index = 0
    while index < len(template):
        char = template[index]
        if char == "\\" and template[index + 1:index + 2] == "%":
            out.append("%")
            index += 2
            continue
        if char == "%":
            if name is None:
                raise TemplateError("No entry selected.")
            out.append(quote_name(name))
        elif (
            char == "~"
            and _word_boundary(template, index - 1)
            and (_word_boundary(template, index + 1) or template[index + 1] == "/")
        ):
            out.append(home)
        else:
            out.append(char)
        index += 1
    return "".join(out)


def _with_cwd_report(command: str, fd: int) -> str:
    """Append an epilogue that writes the final ``pwd`` to ``fd``.

    The command's exit status is preserved.
    """
    # Newlines keep a trailing comment or '&' in the user command harmless.
    return f"{command}\n__spy_status=$?\npwd >&{fd}\nexit $__spy_status"


def _read_reported_cwd(fd: int) -> Optional[str]:
    """Drain the report pipe and return the last line written, if any."""
    os.set_blocking(fd, False)
    chunks = []
    while True:
        try:
            chunk = os.read(fd, 4096)
        except BlockingIOError:
            break
        if not chunk:
            break
        chunks.append(chunk)
    text = b"".join(chunks).decode("utf-8", errors="surrogateescape").strip()
    lines = text.splitlines()
    return lines[-1] if lines else None


class ProcessRunner:
    """Launch ``shell -c command`` in the foreground and classify its exit."""

    def __init__(
        self,
        shell: str,
        terminal: "Terminal",
        signals: Optional["SignalState"] = None,
        recover_shells: Iterable[str] = DEFAULT_RECOVER_SHELLS,
    ) -> None:
        self.shell = shell
        self.terminal = terminal
        self.signals = signals
        self.recover_shells = tuple(recover_shells)
        self.state = RunnerState.IDLE

    @property
    def recovers_cwd(self) -> bool:
        return Path(self.shell).name in self.recover_shells

    def run(self, command: str, mode: RunMode = RunMode.CONTINUE) -> RunResult:
        """Run an already expanded command line and wait for it to finish."""
        self.state = RunnerState.LAUNCHING
        read_fd: Optional[int] = None
        write_fd: Optional[int] = None
        try:
            shell_command = command
            if self.recovers_cwd:
                read_fd, write_fd = os.pipe()
                shell_command = _with_cwd_report(command, write_fd)

            self.terminal.release(None if mode is RunMode.SILENT else command)
            try:
                process = subprocess.Popen(
                    [self.shell, "-c", shell_command],
                    pass_fds=(write_fd,) if write_fd is not None else (),
                )
            except OSError as err:
                return RunResult(command, self._launch_failure(err))
            finally:
                if write_fd is not None:
                    os.close(write_fd)
                    write_fd = None

            self.state = RunnerState.RUNNING
            if self.signals is not None:
                self.signals.child_pid = process.pid
            try:
                _, status = os.waitpid(process.pid, 0)
            finally:
                if self.signals is not None:
                    self.signals.child_pid = None
            self.state = RunnerState.REAPING
            process.returncode = os.waitstatus_to_exitcode(status)
            report = classify_status(status)

            new_cwd = _read_reported_cwd(read_fd) if read_fd is not None else None
            if mode is RunMode.CONTINUE:
                self.terminal.wait_for_key("Continue:")
            return RunResult(command, report, new_cwd)
        finally:
            for fd in (read_fd, write_fd):
                if fd is not None:
                    os.close(fd)
            self.terminal.reacquire()
            self.state = RunnerState.IDLE

    def _launch_failure(self, err: OSError) -> ExitReport:
        """Turn a Popen failure into an exit report."""
        reason = err.strerror or str(err)
        if err.errno in (errno.EAGAIN, errno.ENOMEM):
            return ExitReport(ExitKind.LAUNCH_FAILED, detail=f"fork failed: {reason}")
        # The shell itself could not be executed: report it like the child would.
        return ExitReport(
            ExitKind.EXITED,
            code=EXEC_FAILURE_STATUS,
            detail=f"{self.shell}: {reason}",
        )


__all__ = [
    "DEFAULT_RECOVER_SHELLS",
    "ExitKind",
    "ExitReport",
    "ProcessRunner",
    "RunMode",
    "RunResult",
    "RunnerState",
    "TemplateError",
    "classify_status",
    "expand_template",
    "quote_name",
]
