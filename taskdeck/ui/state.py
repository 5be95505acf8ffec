"""
TaskDeck — Reflex State for the task manager and the auth gate.

Provides:
- AuthState: session check / release, sign-in, sign-out
- TaskState: serializable projection of TaskBoard with its event handlers

Event handlers rebuild a TaskBoard from the state vars, run one action
against the backend, then copy the board back. Notices become window alerts.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import reflex as rx

from taskdeck.backend import Backend, create_backend
from taskdeck.core.board import TaskBoard
from taskdeck.core.form import TaskForm
from taskdeck.core.session import GateDecision, SessionGate
from taskdeck.engine.config import get_config
from taskdeck.engine.errors import ConfigError, SessionError
from taskdeck.models import Create, Editing, MediaCategory, SessionStatus, Task

logger = logging.getLogger("taskdeck.ui.state")

FORM_ANCHOR = "task-form"


def _default_dark_mode() -> bool:
    try:
        return get_config().ui.default_theme == "dark"
    except ConfigError as e:
        logger.warning(f"Using dark theme, config not loaded: {e.message}")
        return True


class AuthState(rx.State):
    """Session Gate for the protected task view."""

    access_token: str = rx.LocalStorage("", name="taskdeck_access_token")
    status: str = SessionStatus.LOADING.value
    email: str = ""

    # Auth page
    auth_error: str = ""
    is_loading: bool = False

    @rx.var
    def is_present(self) -> bool:
        return self.status == SessionStatus.PRESENT.value

    def _client_key(self) -> str:
        return self.router.session.client_token

    async def check_session(self):
        """
        On mount of the protected view: subscribe and check the session.

        The view stays hidden (LOADING) until the backend has answered, so a
        revoked token never shows the previous list.
        """
        self.status = SessionStatus.LOADING.value
        yield
        try:
            gate = _gate_for(self._client_key(), self.access_token)
        except ConfigError as e:
            logger.error(f"Backend not configured: {e.message}")
            self.status = SessionStatus.ABSENT.value
            yield rx.window_alert("Backend connection is not configured!")
            return

        decision = await gate.mount(self.access_token)
        self._adopt(gate)

        if decision is GateDecision.REDIRECT:
            tasks = await self.get_state(TaskState)
            tasks._clear_board()
            yield rx.redirect(gate.redirect_to)
        elif decision is GateDecision.RENDER:
            yield TaskState.load_tasks

    def release_session(self) -> None:
        """On unmount: drop the subscription and this client's backend view."""
        _release(self._client_key())
        self.status = SessionStatus.LOADING.value

    def _adopt(self, gate: SessionGate) -> None:
        """Copy the gate's view of the session into the UI vars."""
        self.status = gate.status.value
        self.email = gate.session.email if gate.session else ""

    async def sign_in(self, form_data: dict):
        """Handle auth form submission."""
        self.is_loading = True
        self.auth_error = ""

        email = (form_data.get("email") or "").strip()
        password = form_data.get("password") or ""
        if not email or not password:
            self.auth_error = "Email and password are required"
            self.is_loading = False
            return None

        key = self._client_key()
        try:
            backend = _backend_for(key, None)
            session = await backend.auth.sign_in(email, password)
        except (ConfigError, SessionError) as e:
            logger.warning(f"Sign-in failed: {e!r}")
            self.auth_error = e.user_message if isinstance(e, SessionError) else e.message
            self.is_loading = False
            return None

        backend.client.set_access_token(session.access_token)
        self.access_token = session.access_token
        gate = _gates.get(key)
        if gate is not None:
            # Listener already moved the gate to PRESENT
            self._adopt(gate)
        else:
            self.email = session.email
            self.status = SessionStatus.PRESENT.value
        self.is_loading = False
        return rx.redirect("/")

    async def sign_out(self):
        key = self._client_key()
        redirect_to = get_config().ui.auth_route
        try:
            backend = _backend_for(key, self.access_token)
            await backend.auth.sign_out(self.access_token)
        except ConfigError as e:
            logger.error(f"Sign-out without backend: {e.message}")

        gate = _gates.get(key)
        if gate is not None:
            # Listener already moved the gate to ABSENT
            self._adopt(gate)
            redirect_to = gate.redirect_to
        else:
            self.email = ""
            self.status = SessionStatus.ABSENT.value
        _release(key)
        self.access_token = ""

        tasks = await self.get_state(TaskState)
        tasks._clear_board()
        return rx.redirect(redirect_to)


class TaskState(rx.State):
    """Task list, form fields and theme for the main page."""

    tasks: List[Dict[str, Any]] = []

    # Form
    title: str = ""
    description: str = ""
    image_url: str = ""
    video_url: str = ""
    preview_image: str = ""
    preview_video: str = ""
    editing_id: Optional[int] = None
    uploading: bool = False

    # List request tokens
    issued_token: int = 0
    applied_token: int = 0

    dark_mode: bool = _default_dark_mode()

    @rx.var
    def is_editing(self) -> bool:
        return self.editing_id is not None

    @rx.var
    def heading(self) -> str:
        return "Edit Task" if self.editing_id is not None else "Task Manager"

    @rx.var
    def submit_label(self) -> str:
        return "Update Task" if self.editing_id is not None else "Add Task"

    # -----------------------------------------------------------------------
    # Board round trip
    # -----------------------------------------------------------------------

    def _board(self) -> TaskBoard:
        form = TaskForm(
            mode=Editing(self.editing_id) if self.editing_id is not None else Create(),
            title=self.title,
            description=self.description,
            image_url=self.image_url,
            video_url=self.video_url,
            preview_image=self.preview_image or None,
            preview_video=self.preview_video or None,
            uploading=self.uploading,
        )
        return TaskBoard(
            tasks=[Task.model_validate(t) for t in self.tasks],
            form=form,
            issued_token=self.issued_token,
            applied_token=self.applied_token,
        )

    def _sync(self, board: TaskBoard) -> list:
        self.tasks = [t.model_dump(mode="json") for t in board.tasks]
        form = board.form
        self.title = form.title
        self.description = form.description
        self.image_url = form.image_url
        self.video_url = form.video_url
        self.preview_image = form.preview_image or ""
        self.preview_video = form.preview_video or ""
        self.editing_id = form.editing_id
        self.uploading = form.uploading
        self.issued_token = board.issued_token
        self.applied_token = board.applied_token
        return [rx.window_alert(n.message) for n in board.drain_notices()]

    def _clear_board(self) -> None:
        """Drop the cached list and form (session ended or was rejected)."""
        self._sync(TaskBoard())

    async def _backend(self) -> Backend:
        auth = await self.get_state(AuthState)
        return _backend_for(self.router.session.client_token, auth.access_token)

    # -----------------------------------------------------------------------
    # Event handlers
    # -----------------------------------------------------------------------

    def set_title(self, value: str) -> None:
        self.title = value

    def set_description(self, value: str) -> None:
        self.description = value

    def toggle_theme(self) -> None:
        self.dark_mode = not self.dark_mode

    async def load_tasks(self):
        board = self._board()
        await board.refresh((await self._backend()).tasks)
        return self._sync(board)

    async def submit(self, form_data: dict):
        board = self._board()
        await board.submit((await self._backend()).tasks)
        return self._sync(board)

    def edit_task(self, task_id: int):
        board = self._board()
        board.edit(task_id)
        events = self._sync(board)
        events.append(rx.scroll_to(FORM_ANCHOR))
        return events

    async def delete_task(self, task_id: int):
        board = self._board()
        await board.delete((await self._backend()).tasks, task_id)
        return self._sync(board)

    async def upload_image(self, files: list[rx.UploadFile]):
        async for event in self._attach(files, MediaCategory.IMAGE):
            yield event

    async def upload_video(self, files: list[rx.UploadFile]):
        async for event in self._attach(files, MediaCategory.VIDEO):
            yield event

    async def _attach(self, files: list, category: MediaCategory):
        if not files:
            return
        file = files[0]
        data = await file.read()
        board = self._board()
        pending = board.begin_attachment(category, data, file.content_type)
        self._sync(board)
        # Push the local preview and the uploading flag before the upload
        yield
        await board.complete_attachment(
            (await self._backend()).storage,
            pending,
            data,
            file.filename or category.value,
            file.content_type,
        )
        for event in self._sync(board):
            yield event


# ---------------------------------------------------------------------------
# Backend / gate registry (one scoped backend per browser client)
# ---------------------------------------------------------------------------

_backend_instance: Optional[Backend] = None
_scoped: Dict[str, Backend] = {}
_gates: Dict[str, SessionGate] = {}


def set_backend(backend: Optional[Backend]) -> None:
    """Set the shared backend connection (tests and app startup)."""
    global _backend_instance
    _backend_instance = backend
    _scoped.clear()
    _gates.clear()


def _get_backend() -> Backend:
    global _backend_instance
    if _backend_instance is None:
        _backend_instance = create_backend(get_config())
    return _backend_instance


def _backend_for(client_key: str, access_token: Optional[str]) -> Backend:
    scoped = _scoped.get(client_key)
    if scoped is None:
        scoped = _get_backend().scoped(access_token)
        _scoped[client_key] = scoped
    elif access_token and scoped.client.access_token != access_token:
        scoped.client.set_access_token(access_token)
    return scoped


def _release(client_key: str) -> None:
    """Forget everything held for ``client_key``."""
    gate = _gates.pop(client_key, None)
    if gate is not None:
        gate.unmount()
    _scoped.pop(client_key, None)


def _gate_for(client_key: str, access_token: Optional[str]) -> SessionGate:
    gate = _gates.get(client_key)
    if gate is None:
        backend = _backend_for(client_key, access_token)
        gate = SessionGate(backend.auth, redirect_to=get_config().ui.auth_route)
        _gates[client_key] = gate
    return gate
