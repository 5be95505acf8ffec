"""
TaskDeck Backend — adapters for the managed backend (table, storage, auth).

Public API:
    Backend, create_backend
    BackendClient, TaskStore, UploadAdapter, AuthClient, AuthEvent
"""

from __future__ import annotations

from typing import Optional

import httpx

from taskdeck.backend.auth import AuthClient, AuthEvent, Subscription
from taskdeck.backend.client import BackendClient
from taskdeck.backend.storage import Stamper, UploadAdapter
from taskdeck.backend.tasks import TaskStore
from taskdeck.engine.config import TaskDeckConfig


class Backend:
    """One connection to the backend and the three adapters sharing it."""

    def __init__(
        self,
        client: BackendClient,
        newest_first: bool = True,
        stamper: Optional[Stamper] = None,
    ):
        self.client = client
        self.newest_first = newest_first
        self.tasks = TaskStore(client, table=client.config.table, newest_first=newest_first)
        self.storage = UploadAdapter(client, bucket=client.config.bucket, stamper=stamper)
        self.auth = AuthClient(client)

    def scoped(self, access_token: Optional[str] = None) -> "Backend":
        """
        Per-user view: own access token and auth listeners, shared connection
        pool and upload stamps.
        """
        return Backend(
            self.client.with_token(access_token),
            newest_first=self.newest_first,
            stamper=self.storage.stamper,
        )

    async def aclose(self) -> None:
        await self.client.aclose()


def create_backend(
    config: TaskDeckConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Backend:
    """Build a Backend from config. Raises ConfigError without credentials."""
    client = BackendClient(config.backend, transport=transport)
    return Backend(client, newest_first=config.ui.newest_first)


__all__ = [
    "AuthClient",
    "AuthEvent",
    "Backend",
    "BackendClient",
    "Stamper",
    "Subscription",
    "TaskStore",
    "UploadAdapter",
    "create_backend",
]
