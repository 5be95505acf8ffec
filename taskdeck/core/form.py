"""
Form/Edit state machine.

    Create ──begin_edit(task)──▶ Editing(task.id) ──begin_edit(other)──▶ Editing(other.id)
      ▲                                │
      └───────────── reset() ◀─────────┘   (after a successful submit)
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Optional

from taskdeck.models import Create, Editing, FormMode, MediaCategory, Task, TaskDraft


def data_url(data: bytes, content_type: Optional[str]) -> str:
    """Inline preview for a file that has not finished uploading."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type or 'application/octet-stream'};base64,{encoded}"


@dataclass
class TaskForm:
    """A single form bound to at most one record."""

    mode: FormMode = field(default_factory=Create)
    title: str = ""
    description: str = ""
    image_url: str = ""
    video_url: str = ""
    preview_image: Optional[str] = None
    preview_video: Optional[str] = None
    uploading: bool = False

    @property
    def is_editing(self) -> bool:
        return isinstance(self.mode, Editing)

    @property
    def editing_id(self) -> Optional[int]:
        return self.mode.task_id if isinstance(self.mode, Editing) else None

    @property
    def heading(self) -> str:
        return "Edit Task" if self.is_editing else "Task Manager"

    @property
    def submit_label(self) -> str:
        return "Update Task" if self.is_editing else "Add Task"

    def begin_edit(self, task: Task) -> None:
        """Bind the form to ``task`` and load its current values."""
        self.mode = Editing(task.id)
        self.title = task.title
        self.description = task.description
        self.image_url = task.image_url or ""
        self.video_url = task.video_url or ""
        self.preview_image = task.image_url or None
        self.preview_video = task.video_url or None

    def reset(self) -> None:
        """Back to an empty Create form."""
        self.mode = Create()
        self.title = ""
        self.description = ""
        self.image_url = ""
        self.video_url = ""
        self.preview_image = None
        self.preview_video = None
        self.uploading = False

    def draft(self) -> TaskDraft:
        return TaskDraft(
            title=self.title,
            description=self.description,
            image_url=self.image_url,
            video_url=self.video_url,
        )

    def payload(self) -> TaskDraft:
        """Validated draft. Raises TaskValidationError on blank fields."""
        draft = self.draft()
        draft.validate_required()
        return draft

    # Attachments -----------------------------------------------------------

    def attachment(self, category: MediaCategory) -> tuple:
        """(url, preview) currently held for ``category``."""
        if MediaCategory(category) is MediaCategory.IMAGE:
            return self.image_url, self.preview_image
        return self.video_url, self.preview_video

    def set_attachment(
        self,
        category: MediaCategory,
        url: str,
        preview: Optional[str] = None,
    ) -> None:
        if MediaCategory(category) is MediaCategory.IMAGE:
            self.image_url = url
            self.preview_image = preview
        else:
            self.video_url = url
            self.preview_video = preview

    def set_preview(self, category: MediaCategory, preview: Optional[str]) -> None:
        if MediaCategory(category) is MediaCategory.IMAGE:
            self.preview_image = preview
        else:
            self.preview_video = preview
