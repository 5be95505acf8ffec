"""
TaskDeck Error Hierarchy — Structured exceptions for backend and UI failures.

Every error serializes to JSON so it can be written to the diagnostic log
and shown in a uniform way to the user.

Hierarchy:
    TaskDeckError
    ├── TaskValidationError   — Required form field missing
    ├── BackendRequestError   — Table / auth request failed
    │   └── UploadError       — Object storage upload failed
    ├── SessionError          — Session / auth state error
    └── ConfigError           — Configuration error
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class TaskDeckError(Exception):
    """
    Base error for all TaskDeck failures.
    All context is kept so it can be serialized for the diagnostic log.
    """

    # Generic message shown to the end user. Causes are never distinguished.
    user_message: str = "Something went wrong!"

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.operation: Optional[str] = context.get("operation")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "operation": self.operation,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k != "operation"
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.operation:
            parts.append(f"operation={self.operation}")
        return " | ".join(parts)


class TaskValidationError(TaskDeckError):
    """
    A required field was empty at submission time.
    Raised before any backend request is issued.
    """

    user_message = "Please fill in both title and description!"

    def __init__(self, message: str, **context: Any):
        self.missing_fields: List[str] = list(context.get("missing_fields") or [])
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["missing_fields"] = self.missing_fields
        return d


class BackendRequestError(TaskDeckError):
    """A request to the remote table or auth API failed (network, auth, constraint)."""

    user_message = "Request to the backend failed!"

    def __init__(self, message: str, **context: Any):
        self.status_code: Optional[int] = context.get("status_code")
        self.response_body: Optional[str] = context.get("response_body")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["status_code"] = self.status_code
        return d


class UploadError(BackendRequestError):
    """Uploading a file to object storage failed."""

    user_message = "File upload failed!"

    def __init__(self, message: str, **context: Any):
        self.category: Optional[str] = context.get("media_category")
        self.path: Optional[str] = context.get("storage_path")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["category"] = self.category
        d["path"] = self.path
        return d


class SessionError(TaskDeckError):
    """Session or authentication error."""

    user_message = "Authentication failed!"


class ConfigError(TaskDeckError):
    """Configuration error — invalid taskdeck.yaml or missing credentials."""
    pass
