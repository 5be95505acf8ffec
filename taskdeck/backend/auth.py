"""
Auth Adapter — session lookup, sign-in, sign-out and auth-change notifications.

The client never interprets tokens: a session is either returned by the
backend for a given access token, or it is absent.
"""

from __future__ import annotations

import itertools
import logging
from enum import Enum
from typing import Callable, Dict, Optional

from taskdeck.backend.client import BackendClient
from taskdeck.engine.errors import BackendRequestError, SessionError
from taskdeck.models import Session

logger = logging.getLogger("taskdeck.backend.auth")


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthListener = Callable[[AuthEvent, Optional[Session]], None]


class Subscription:
    """Handle returned by ``AuthClient.on_auth_state_change``."""

    def __init__(self, auth: "AuthClient", key: int):
        self._auth = auth
        self._key = key

    @property
    def active(self) -> bool:
        return self._key in self._auth._listeners

    def unsubscribe(self) -> None:
        self._auth._listeners.pop(self._key, None)


class AuthClient:
    """GoTrue-style auth endpoints plus an in-process listener registry."""

    def __init__(self, client: BackendClient):
        self._client = client
        self._listeners: Dict[int, AuthListener] = {}
        self._ids = itertools.count(1)

    # -----------------------------------------------------------------------
    # Notifications
    # -----------------------------------------------------------------------

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        key = next(self._ids)
        self._listeners[key] = listener
        return Subscription(self, key)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self, event: AuthEvent, session: Optional[Session]) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener(event, session)
            except Exception as e:
                logger.error(f"Auth listener failed on {event.value}: {e}", exc_info=True)

    # -----------------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------------

    async def get_session(self, access_token: Optional[str]) -> Optional[Session]:
        """
        Resolve ``access_token`` to a session.

        Returns None when there is no token or the backend rejects it. A failed
        check is indistinguishable from "absent".
        """
        if not access_token:
            return None
        try:
            user = await self._client.request(
                "GET",
                "/auth/v1/user",
                category="auth",
                operation="get_session",
                access_token=access_token,
            )
        except BackendRequestError as e:
            logger.warning(f"Session check failed: {e.message}")
            return None
        user = user or {}
        return Session(
            access_token=access_token,
            user_id=str(user.get("id", "")),
            email=user.get("email") or "",
        )

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Password sign-in.

        Raises:
            SessionError if the backend rejects the credentials.
        """
        try:
            body = await self._client.request(
                "POST",
                "/auth/v1/token",
                category="auth",
                operation="sign_in",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
            )
        except BackendRequestError as e:
            raise SessionError(
                f"Sign-in failed for {email}",
                operation="sign_in",
                status_code=e.status_code,
            ) from e

        body = body or {}
        if not body.get("access_token"):
            raise SessionError("Sign-in response had no access token", operation="sign_in")

        user = body.get("user") or {}
        session = Session(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token") or "",
            user_id=str(user.get("id", "")),
            email=user.get("email") or email,
        )
        logger.info(f"Signed in {session.email}")
        self._notify(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_out(self, access_token: Optional[str]) -> None:
        """
        Revoke the session server-side and notify listeners.

        Listeners are told the user signed out even if the revoke call fails;
        the local session is dropped either way.
        """
        try:
            if access_token:
                await self._client.request(
                    "POST",
                    "/auth/v1/logout",
                    category="auth",
                    operation="sign_out",
                    access_token=access_token,
                )
        except BackendRequestError as e:
            logger.warning(f"Sign-out request failed: {e.message}")
        finally:
            self._notify(AuthEvent.SIGNED_OUT, None)
