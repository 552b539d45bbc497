"""
core/session — Pure data types for interactive analysis sessions.

The stateful controller that drives recomputation lives in
``infrastructure/session_controller.py``; this package only defines the
values it passes around.

Public API:
    Types:  SessionParameters, SessionState
"""

from core.session.types import SessionParameters, SessionState

__all__ = [
    "SessionParameters",
    "SessionState",
]
