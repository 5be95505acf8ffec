"""
TaskDeck data model — task records, drafts, form mode and session state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from taskdeck.engine.errors import TaskValidationError


class Task(BaseModel):
    """A task row as returned by the remote ``tasks`` table."""

    id: int = Field(description="Server-assigned identifier")
    title: str
    description: str
    created_at: Optional[datetime] = Field(default=None, description="Server-assigned")
    image_url: Optional[str] = None
    video_url: Optional[str] = None


class TaskDraft(BaseModel):
    """The mutable field set sent on insert and update."""

    title: str = ""
    description: str = ""
    image_url: str = ""
    video_url: str = ""

    def validate_required(self) -> None:
        """Raise TaskValidationError if title or description is blank."""
        missing = [
            name for name in ("title", "description")
            if not getattr(self, name).strip()
        ]
        if missing:
            raise TaskValidationError(
                f"Required field(s) empty: {', '.join(missing)}",
                missing_fields=missing,
            )

    def to_row(self) -> Dict[str, Any]:
        """Row body for the table API. Empty attachments are stored as null."""
        return {
            "title": self.title,
            "description": self.description,
            "image_url": self.image_url or None,
            "video_url": self.video_url or None,
        }


class MediaCategory(str, Enum):
    """Attachment kind. The storage folder is the plural (``images/``)."""
    IMAGE = "image"
    VIDEO = "video"

    @property
    def folder(self) -> str:
        return f"{self.value}s"

    @property
    def url_field(self) -> str:
        return f"{self.value}_url"


# ---------------------------------------------------------------------------
# Form mode — Create | Editing(id)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Create:
    """Form is not bound to any record."""


@dataclass(frozen=True)
class Editing:
    """Form is bound to exactly one existing record."""
    task_id: int


FormMode = Union[Create, Editing]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class SessionStatus(str, Enum):
    LOADING = "loading"
    ABSENT = "absent"
    PRESENT = "present"


class Session(BaseModel):
    """Opaque authenticated session. Claims are never interpreted."""

    access_token: str
    refresh_token: str = ""
    user_id: str = ""
    email: str = ""
