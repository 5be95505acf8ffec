"""
TaskBoard — the application state object.

Owns the cached task list, the form, and pending user notices. Every user
action takes the backend adapter it needs as an argument; the board keeps no
reference to the backend, so it can be rebuilt from serialized UI state.

All mutations follow the same shape: issue one request, on success re-list
the whole collection, on failure add a notice and leave prior state alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from taskdeck.backend.storage import UploadAdapter
from taskdeck.backend.tasks import TaskStore
from taskdeck.core.form import TaskForm, data_url
from taskdeck.engine.errors import BackendRequestError, TaskValidationError, UploadError
from taskdeck.models import Editing, MediaCategory, Task

logger = logging.getLogger("taskdeck.core.board")


@dataclass(frozen=True)
class Notice:
    """A blocking message for the user."""
    message: str
    level: str = "info"  # "info" | "error"


@dataclass(frozen=True)
class PendingAttachment:
    """Form values to restore if an in-flight upload fails."""
    category: MediaCategory
    previous_url: str
    previous_preview: Optional[str]


@dataclass
class TaskBoard:
    tasks: List[Task] = field(default_factory=list)
    form: TaskForm = field(default_factory=TaskForm)
    notices: List[Notice] = field(default_factory=list)
    # Monotonic List request tokens
    issued_token: int = 0
    applied_token: int = 0

    # -----------------------------------------------------------------------
    # Notices
    # -----------------------------------------------------------------------

    def notify(self, message: str, level: str = "info") -> None:
        self.notices.append(Notice(message, level))

    def drain_notices(self) -> List[Notice]:
        pending, self.notices = self.notices, []
        return pending

    # -----------------------------------------------------------------------
    # List
    # -----------------------------------------------------------------------

    def issue_list_token(self) -> int:
        self.issued_token += 1
        return self.issued_token

    def apply_list(self, token: int, tasks: List[Task]) -> bool:
        """
        Replace the cache with a List response.

        Responses older than the latest issued token are dropped.
        """
        if token < self.issued_token:
            logger.debug(f"Discarding stale list response {token} (latest {self.issued_token})")
            return False
        self.tasks = list(tasks)
        self.applied_token = token
        return True

    async def refresh(self, store: TaskStore) -> bool:
        token = self.issue_list_token()
        try:
            tasks = await store.list_tasks()
        except BackendRequestError as e:
            logger.error(f"fetch tasks error: {e!r}")
            self.notify("Error loading tasks!", "error")
            return False
        return self.apply_list(token, tasks)

    def find(self, task_id: int) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    # -----------------------------------------------------------------------
    # Create / Update
    # -----------------------------------------------------------------------

    async def submit(self, store: TaskStore) -> bool:
        """Insert in Create mode, update in Editing mode."""
        try:
            draft = self.form.payload()
        except TaskValidationError as e:
            self.notify(e.user_message, "error")
            return False

        mode = self.form.mode
        try:
            if isinstance(mode, Editing):
                await store.update(mode.task_id, draft)
            else:
                await store.create(draft)
        except BackendRequestError as e:
            logger.error(f"insert/update error: {e!r}")
            self.notify("Error saving task!", "error")
            return False

        self.notify("Task updated!" if isinstance(mode, Editing) else "Task added!")
        self.form.reset()
        await self.refresh(store)
        return True

    # -----------------------------------------------------------------------
    # Edit / Delete
    # -----------------------------------------------------------------------

    def edit(self, task_id: int) -> bool:
        task = self.find(task_id)
        if task is None:
            logger.warning(f"Edit requested for unknown task {task_id}")
            return False
        self.form.begin_edit(task)
        return True

    async def delete(self, store: TaskStore, task_id: int) -> bool:
        try:
            await store.delete(task_id)
        except BackendRequestError as e:
            logger.error(f"delete error: {e!r}")
            self.notify("Error deleting task!", "error")
            return False

        # The form must not stay bound to a row that no longer exists
        if self.form.editing_id == task_id:
            self.form.reset()
        self.notify("Task deleted!")
        await self.refresh(store)
        return True

    # -----------------------------------------------------------------------
    # Attachments
    # -----------------------------------------------------------------------

    def begin_attachment(
        self,
        category: MediaCategory,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> PendingAttachment:
        """Show a local preview and mark the form as uploading."""
        category = MediaCategory(category)
        previous_url, previous_preview = self.form.attachment(category)
        self.form.set_preview(category, data_url(data, content_type))
        self.form.uploading = True
        return PendingAttachment(category, previous_url, previous_preview)

    async def complete_attachment(
        self,
        uploader: UploadAdapter,
        pending: PendingAttachment,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> bool:
        """
        Upload and bind the public URL to the form.

        On failure the field's previous URL and preview are restored. Files
        already uploaded for other fields are left in storage.
        """
        category = pending.category
        try:
            url = await uploader.upload(data, filename, category, content_type)
        except UploadError as e:
            logger.error(f"upload error: {e!r}")
            self.form.set_attachment(category, pending.previous_url, pending.previous_preview)
            self.notify(e.user_message, "error")
            return False
        finally:
            self.form.uploading = False

        _, preview = self.form.attachment(category)
        self.form.set_attachment(category, url, preview)
        return True

    async def attach(
        self,
        uploader: UploadAdapter,
        category: MediaCategory,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> bool:
        pending = self.begin_attachment(category, data, content_type)
        return await self.complete_attachment(uploader, pending, data, filename, content_type)
