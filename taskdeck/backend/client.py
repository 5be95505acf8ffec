"""
TaskDeck Backend Client — Shared HTTP pipeline for the managed backend.

Pipeline (per call):
    1. Build headers: ``apikey`` + ``Authorization: Bearer <token>``
    2. Execute via httpx.AsyncClient (one pooled client per backend)
    3. Map transport errors and non-2xx responses to BackendRequestError
    4. Log the call to the stdlib logger and the JSONL diagnostic channel

No retries: a failed call is terminal for the action that issued it.
"""

from __future__ import annotations

import copy
import logging
import time
from typing import Any, Dict, Optional, Type

import httpx

from taskdeck.engine.config import BackendConfig
from taskdeck.engine.errors import BackendRequestError
from taskdeck.engine.logging import log, log_backend_event

logger = logging.getLogger("taskdeck.backend.client")


class BackendClient:
    """
    Thin async wrapper around one httpx.AsyncClient bound to the backend URL.

    Requests use the signed-in user's access token when one is set, and the
    anonymous key otherwise.
    """

    def __init__(
        self,
        config: BackendConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config.require_credentials()
        self._config = config
        self._access_token: Optional[str] = None
        self._client = httpx.AsyncClient(
            base_url=config.url,
            timeout=httpx.Timeout(config.timeout, connect=5.0),
            transport=transport,
            follow_redirects=True,
        )

    @property
    def config(self) -> BackendConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.url

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    def set_access_token(self, token: Optional[str]) -> None:
        """Use ``token`` for subsequent requests (None → anonymous key)."""
        self._access_token = token or None

    def with_token(self, token: Optional[str]) -> "BackendClient":
        """A view of this client with its own access token and the same pool."""
        scoped = copy.copy(self)
        scoped._access_token = token or None
        return scoped

    def headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        token = access_token or self._access_token or self._config.anon_key
        return {
            "apikey": self._config.anon_key,
            "Authorization": f"Bearer {token}",
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        category: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        access_token: Optional[str] = None,
        error_cls: Type[BackendRequestError] = BackendRequestError,
        **error_context: Any,
    ) -> Any:
        """
        Issue one request and return the decoded JSON body (None if empty).

        Raises:
            ``error_cls`` (BackendRequestError or a subclass) on transport
            failure or a non-2xx status.
        """
        request_headers = self.headers(access_token)
        if headers:
            request_headers.update(headers)

        start = time.monotonic()
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                content=content,
                headers=request_headers,
            )
        except httpx.HTTPError as e:
            duration_ms = (time.monotonic() - start) * 1000
            err = error_cls(
                f"{operation} failed: {e}",
                operation=operation,
                **error_context,
            )
            self._record(category, operation, False, duration_ms, None, err)
            raise err from e

        duration_ms = (time.monotonic() - start) * 1000

        if response.status_code >= 400:
            err = error_cls(
                f"{operation} failed with HTTP {response.status_code}",
                operation=operation,
                status_code=response.status_code,
                response_body=response.text[:500],
                **error_context,
            )
            self._record(category, operation, False, duration_ms, response.status_code, err)
            raise err

        self._record(category, operation, True, duration_ms, response.status_code, None)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _record(
        self,
        category: str,
        operation: str,
        success: bool,
        duration_ms: float,
        status_code: Optional[int],
        error: Optional[BackendRequestError],
    ) -> None:
        if error is None:
            logger.debug(f"{operation} ok ({status_code}, {duration_ms:.1f}ms)")
        else:
            logger.error(f"{operation} error: {error.message}")
        log(log_backend_event(
            category,
            operation,
            success,
            duration_ms=duration_ms,
            status_code=status_code,
            error=error.to_dict() if error else None,
        ))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
