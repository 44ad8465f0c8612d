"""Signal handlers that only record what happened.

The handlers never touch browser state.  SIGINT is forwarded to a running
child, or turned into a shutdown request; SIGWINCH marks the geometry as stale.
The event loop polls both flags at a safe point.
"""

from __future__ import annotations

import os
import signal
from typing import Any, Dict, Optional


class SignalState:
    """Flags shared between the signal handlers and the event loop.

    ``child_pid`` is set by the process runner while a child is in the
    foreground.
    """

    def __init__(self) -> None:
        self.child_pid: Optional[int] = None
        self.resize_pending: bool = False
        self.shutdown_requested: bool = False
        self._previous: Dict[int, Any] = {}

    def install(self) -> None:
        """Install the SIGINT and SIGWINCH handlers, remembering the old ones."""
        self._previous[signal.SIGINT] = signal.signal(signal.SIGINT, self._on_interrupt)
        if hasattr(signal, "SIGWINCH"):
            self._previous[signal.SIGWINCH] = signal.signal(signal.SIGWINCH, self._on_resize)

    def restore(self) -> None:
        """Put back the handlers that were active before :meth:`install`."""
        for signum, handler in self._previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()

    def _on_interrupt(self, signum: int, frame: Any) -> None:
        """Forward SIGINT to the running child, or request shutdown."""
        pid = self.child_pid
        if pid is not None:
            try:
                os.kill(pid, signum)
            except ProcessLookupError:
                # Already exited; the loop reaps it.
                pass
            return
        self.shutdown_requested = True

    def _on_resize(self, signum: int, frame: Any) -> None:
        self.resize_pending = True

    def consume_resize(self) -> bool:
        """Return True once per pending resize, clearing the flag."""
        pending = self.resize_pending
        self.resize_pending = False
        return pending


__all__ = ["SignalState"]
