"""
TaskDeck UI — Reflex state, components and pages.

Public API:
    State:  AuthState, TaskState, set_backend
    Pages:  index_page, auth_page
"""

from taskdeck.ui.pages import auth_page, index_page
from taskdeck.ui.state import AuthState, TaskState, set_backend

__all__ = ["AuthState", "TaskState", "auth_page", "index_page", "set_backend"]
