"""
TaskDeck Test Suite — Shared fixtures and an in-memory fake backend.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

import httpx
import pytest

from taskdeck.backend import Backend, create_backend
from taskdeck.engine.config import BackendConfig, TaskDeckConfig

BACKEND_URL = "https://demo.supabase.co"
ANON_KEY = "anon-key"


class FakeSupabase:
    """
    In-memory stand-in for the table, storage and auth endpoints.

    ``fail`` holds operation names that answer with HTTP 500:
    list, insert, update, delete, upload, user, token, logout.
    """

    def __init__(self, table: str = "tasks", bucket: str = "task_uploads"):
        self.table = table
        self.bucket = bucket
        self.rows: Dict[int, Dict[str, Any]] = {}
        self.objects: Dict[str, bytes] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, Dict[str, Any]] = {}
        self.fail: Set[str] = set()
        self.requests: List[httpx.Request] = []
        # Body returned for inserts instead of the stored rows
        self.insert_echo: Optional[Any] = None
        self._next_id = 1

    # Helpers ---------------------------------------------------------------

    def add_user(self, email: str, password: str) -> None:
        self.users[email] = {"id": f"user-{len(self.users) + 1}", "email": email, "password": password}

    def issue_token(self, email: str) -> str:
        token = f"token-{email}-{len(self.tokens) + 1}"
        user = self.users[email]
        self.tokens[token] = {"id": user["id"], "email": email}
        return token

    def seed(self, title: str, description: str, **extra: Any) -> Dict[str, Any]:
        row = {
            "id": self._next_id,
            "title": title,
            "description": description,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "image_url": extra.get("image_url"),
            "video_url": extra.get("video_url"),
        }
        self.rows[row["id"]] = row
        self._next_id += 1
        return row

    def count(self, method: str, path_prefix: str) -> int:
        return sum(
            1 for r in self.requests
            if r.method == method and r.url.path.startswith(path_prefix)
        )

    # Transport -------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("apikey") != ANON_KEY:
            return httpx.Response(401, json={"message": "Invalid API key"})

        path = request.url.path
        if path == f"/rest/v1/{self.table}":
            return self._table(request)
        if path.startswith(f"/storage/v1/object/{self.bucket}/"):
            return self._storage(request, path[len(f"/storage/v1/object/{self.bucket}/"):])
        if path.startswith("/auth/v1/"):
            return self._auth(request, path[len("/auth/v1/"):])
        return httpx.Response(404, json={"message": "Not found"})

    def _error(self, op: str) -> Optional[httpx.Response]:
        if op in self.fail:
            return httpx.Response(500, json={"message": f"{op} failed"})
        return None

    def _id_filter(self, request: httpx.Request) -> Optional[int]:
        raw = request.url.params.get("id", "")
        return int(raw[3:]) if raw.startswith("eq.") else None

    def _table(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            err = self._error("list")
            if err:
                return err
            order = request.url.params.get("order", "id.asc")
            rows = sorted(self.rows.values(), key=lambda r: r["id"], reverse=order.endswith(".desc"))
            return httpx.Response(200, json=rows)

        if request.method == "POST":
            err = self._error("insert")
            if err:
                return err
            created = []
            for body in json.loads(request.content):
                created.append(self.seed(**body))
            return httpx.Response(201, json=created if self.insert_echo is None else self.insert_echo)

        if request.method == "PATCH":
            err = self._error("update")
            if err:
                return err
            task_id = self._id_filter(request)
            body = json.loads(request.content)
            updated = []
            if task_id in self.rows:
                self.rows[task_id].update(body)
                updated.append(self.rows[task_id])
            return httpx.Response(200, json=updated)

        if request.method == "DELETE":
            err = self._error("delete")
            if err:
                return err
            self.rows.pop(self._id_filter(request), None)
            return httpx.Response(204)

        return httpx.Response(405)

    def _storage(self, request: httpx.Request, key: str) -> httpx.Response:
        err = self._error("upload")
        if err:
            return err
        if key in self.objects:
            return httpx.Response(409, json={"message": "The resource already exists"})
        self.objects[key] = request.content
        return httpx.Response(200, json={"Key": f"{self.bucket}/{key}"})

    def _auth(self, request: httpx.Request, endpoint: str) -> httpx.Response:
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")

        if endpoint == "user":
            err = self._error("user")
            if err:
                return err
            if token not in self.tokens:
                return httpx.Response(401, json={"message": "invalid JWT"})
            return httpx.Response(200, json=self.tokens[token])

        if endpoint == "token":
            err = self._error("token")
            if err:
                return err
            body = json.loads(request.content)
            user = self.users.get(body.get("email"))
            if user is None or user["password"] != body.get("password"):
                return httpx.Response(400, json={"error": "invalid_grant"})
            access = self.issue_token(user["email"])
            return httpx.Response(200, json={
                "access_token": access,
                "refresh_token": f"refresh-{access}",
                "user": {"id": user["id"], "email": user["email"]},
            })

        if endpoint == "logout":
            err = self._error("logout")
            if err:
                return err
            self.tokens.pop(token, None)
            return httpx.Response(204)

        return httpx.Response(404)


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Reset module singletons and backend env vars between tests."""
    import taskdeck.engine.config as cfg_mod
    import taskdeck.engine.logging as log_mod

    for name in ("TASKDECK_BACKEND_URL", "SUPABASE_URL", "TASKDECK_ANON_KEY", "SUPABASE_ANON_KEY"):
        monkeypatch.delenv(name, raising=False)
    cfg_mod._config = None
    log_mod._file_logger = None
    yield
    cfg_mod._config = None
    log_mod._file_logger = None


# ---------------------------------------------------------------------------
# Backend fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config() -> TaskDeckConfig:
    return TaskDeckConfig(backend=BackendConfig(url=BACKEND_URL, anon_key=ANON_KEY))


@pytest.fixture
def fake() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def backend(config, fake) -> Backend:
    return create_backend(config, transport=fake.transport())


@pytest.fixture
def project_root(tmp_path):
    """A directory holding a taskdeck.yaml."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "taskdeck.yaml").write_text(
        "environment: staging\n"
        "backend:\n"
        f"  url: {BACKEND_URL}/\n"
        f"  anon_key: {ANON_KEY}\n"
        "  bucket: media\n"
        "ui:\n"
        "  newest_first: false\n"
        "  default_theme: light\n"
        "logging:\n"
        "  level: DEBUG\n",
        encoding="utf-8",
    )
    return root
