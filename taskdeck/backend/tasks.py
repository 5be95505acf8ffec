"""Task Store Adapter — CRUD against the remote ``tasks`` table (PostgREST)."""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import ValidationError

from taskdeck.backend.client import BackendClient
from taskdeck.engine.errors import BackendRequestError
from taskdeck.engine.logging import log, log_backend_event
from taskdeck.models import Task, TaskDraft

logger = logging.getLogger("taskdeck.backend.tasks")


class TaskStore:
    """
    Issues select/insert/update/delete requests for task rows.

    Ordering is by ``id`` in one direction chosen at construction time, so
    every List call in a running app sorts the same way.
    """

    def __init__(self, client: BackendClient, table: str = "tasks", newest_first: bool = True):
        self._client = client
        self._table = table
        self._order = f"id.{'desc' if newest_first else 'asc'}"

    @property
    def path(self) -> str:
        return f"/rest/v1/{self._table}"

    async def list_tasks(self) -> List[Task]:
        rows = await self._client.request(
            "GET",
            self.path,
            category="tasks",
            operation="list_tasks",
            params={"select": "*", "order": self._order},
        )
        try:
            return [Task.model_validate(row) for row in rows or []]
        except ValidationError as e:
            err = BackendRequestError(
                f"list_tasks returned a malformed row: {e.error_count()} error(s)",
                operation="list_tasks",
                response_body=str(rows)[:500],
            )
            logger.error(f"list_tasks error: {err!r}")
            log(log_backend_event("tasks", "list_tasks", False, error=err.to_dict()))
            raise err from e

    async def create(self, draft: TaskDraft) -> Optional[Task]:
        """Insert one row. Returns the stored record when the backend echoes it."""
        rows = await self._client.request(
            "POST",
            self.path,
            category="tasks",
            operation="create_task",
            json=[draft.to_row()],
            headers={"Prefer": "return=representation"},
        )
        created = _first(rows)
        if created is not None:
            logger.info(f"Created task {created.id}")
        return created

    async def update(self, task_id: int, draft: TaskDraft) -> Optional[Task]:
        """Replace the mutable fields of row ``task_id``."""
        rows = await self._client.request(
            "PATCH",
            self.path,
            category="tasks",
            operation="update_task",
            params={"id": f"eq.{task_id}"},
            json=draft.to_row(),
            headers={"Prefer": "return=representation"},
            record_id=task_id,
        )
        logger.info(f"Updated task {task_id}")
        return _first(rows)

    async def delete(self, task_id: int) -> None:
        await self._client.request(
            "DELETE",
            self.path,
            category="tasks",
            operation="delete_task",
            params={"id": f"eq.{task_id}"},
            record_id=task_id,
        )
        logger.info(f"Deleted task {task_id}")


def _first(rows) -> Optional[Task]:
    """The echoed record, or None when it is missing or does not parse."""
    if isinstance(rows, list) and rows:
        row = rows[0]
    elif isinstance(rows, dict):
        row = rows
    else:
        return None
    try:
        return Task.model_validate(row)
    except ValidationError as e:
        # The write itself succeeded; only the echo is unusable
        logger.warning(f"Ignoring malformed echoed row: {e.error_count()} error(s)")
        return None
