"""
Upload Adapter — pushes attachments to object storage and resolves public URLs.

Storage layout:
    {bucket}/images/{epoch_millis}.{ext}
    {bucket}/videos/{epoch_millis}.{ext}
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from taskdeck.backend.client import BackendClient
from taskdeck.engine.errors import UploadError
from taskdeck.models import MediaCategory

logger = logging.getLogger("taskdeck.backend.storage")


class Stamper:
    """Epoch-millisecond stamps that never repeat within the process."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            stamp = max(int(self._clock() * 1000), self._last + 1)
            self._last = stamp
            return stamp


class UploadAdapter:
    """
    Uploads one file per call. Names are timestamp based and strictly
    increasing for every adapter sharing a Stamper, so two uploads never
    share a path even when the original filenames match.
    """

    def __init__(
        self,
        client: BackendClient,
        bucket: str = "task_uploads",
        stamper: Optional[Stamper] = None,
    ):
        self._client = client
        self._bucket = bucket
        self._stamper = stamper or Stamper()

    @property
    def stamper(self) -> Stamper:
        return self._stamper

    def build_path(self, filename: str, category: MediaCategory) -> str:
        """``images/1700000000000.png`` style path for a new upload."""
        category = MediaCategory(category)
        stamp = self._stamper.next()
        ext = filename.rsplit(".", 1)[-1] if "." in filename else ""
        name = f"{stamp}.{ext}" if ext else str(stamp)
        return f"{category.folder}/{name}"

    def public_url(self, path: str) -> str:
        return f"{self._client.base_url}/storage/v1/object/public/{self._bucket}/{path}"

    async def upload(
        self,
        data: bytes,
        filename: str,
        category: MediaCategory,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Store ``data`` and return its public URL.

        Raises:
            UploadError if the storage request fails.
        """
        category = MediaCategory(category)
        path = self.build_path(filename, category)
        await self._client.request(
            "POST",
            f"/storage/v1/object/{self._bucket}/{path}",
            category="storage",
            operation="upload_file",
            content=data,
            headers={
                "Content-Type": content_type or "application/octet-stream",
                "x-upsert": "false",
            },
            error_cls=UploadError,
            media_category=category.value,
            storage_path=path,
        )
        url = self.public_url(path)
        logger.info(f"Uploaded {category.value} '{filename}' to {path}")
        return url
