"""Public interface for the spy directory browser."""

from .browser import Session, SessionError

__version__ = "1.0.0"
__all__ = ["Session", "SessionError", "__version__"]
