"""TaskDeck core — application state, form state machine and session gate."""

from taskdeck.core.board import Notice, PendingAttachment, TaskBoard  # noqa: F401
from taskdeck.core.form import TaskForm  # noqa: F401
from taskdeck.core.session import GateDecision, SessionGate  # noqa: F401

__all__ = ["GateDecision", "Notice", "PendingAttachment", "SessionGate", "TaskBoard", "TaskForm"]
