"""
Session Gate — guards the task view behind an authenticated session.

    LOADING  → WAIT      (render nothing)
    ABSENT   → REDIRECT  (to the auth route)
    PRESENT  → RENDER
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from taskdeck.backend.auth import AuthClient, AuthEvent, Subscription
from taskdeck.models import Session, SessionStatus

logger = logging.getLogger("taskdeck.core.session")


class GateDecision(str, Enum):
    RENDER = "render"
    WAIT = "wait"
    REDIRECT = "redirect"


class SessionGate:
    """
    Tracks the auth state for one mounted view.

    ``mount()`` subscribes to auth changes and runs the initial session
    check; ``unmount()`` releases the subscription.

    Auth-change listeners run inside whichever handler caused the change, so
    the gate itself cannot push to a UI. Callers read ``status`` and
    ``session`` back after any sign-in or sign-out they trigger.
    """

    def __init__(self, auth: AuthClient, redirect_to: str = "/auth"):
        self._auth = auth
        self.redirect_to = redirect_to
        self.status = SessionStatus.LOADING
        self.session: Optional[Session] = None
        self._subscription: Optional[Subscription] = None

    @property
    def mounted(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def decision(self) -> GateDecision:
        if self.status is SessionStatus.PRESENT:
            return GateDecision.RENDER
        if self.status is SessionStatus.ABSENT:
            return GateDecision.REDIRECT
        return GateDecision.WAIT

    async def mount(self, access_token: Optional[str]) -> GateDecision:
        if self._subscription is None:
            self._subscription = self._auth.on_auth_state_change(self._on_auth_change)
        self._apply(await self._auth.get_session(access_token))
        return self.decision()

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_auth_change(self, event: AuthEvent, session: Optional[Session]) -> None:
        logger.debug(f"Auth change: {event.value}")
        self._apply(session if event is AuthEvent.SIGNED_IN else None)

    def _apply(self, session: Optional[Session]) -> None:
        self.session = session
        self.status = SessionStatus.PRESENT if session else SessionStatus.ABSENT
