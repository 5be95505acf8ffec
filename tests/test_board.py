"""
Unit tests for taskdeck.core.board — list/refresh, submit, edit, delete and
attachments against the in-memory backend.
"""

import asyncio

import pytest

from taskdeck.backend.storage import Stamper
from taskdeck.core.board import Notice, TaskBoard
from taskdeck.models import Editing, MediaCategory, Task


def _messages(board):
    return [n.message for n in board.drain_notices()]


class GatedStore:
    """A store whose List calls complete only when the test releases them."""

    def __init__(self):
        self.calls = []

    async def list_tasks(self):
        done = asyncio.Event()
        slot = {"done": done}
        self.calls.append(slot)
        await done.wait()
        return slot["tasks"]

    def release(self, index, tasks):
        self.calls[index]["tasks"] = tasks
        self.calls[index]["done"].set()


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_replaces_cache(self, backend, fake):
        fake.seed("a", "1")
        board = TaskBoard()
        assert await board.refresh(backend.tasks) is True
        assert [t.title for t in board.tasks] == ["a"]
        assert board.issued_token == board.applied_token == 1

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_prior_list(self, backend, fake):
        fake.seed("a", "1")
        board = TaskBoard()
        await board.refresh(backend.tasks)
        fake.fail.add("list")
        assert await board.refresh(backend.tasks) is False
        assert [t.title for t in board.tasks] == ["a"]
        assert _messages(board) == ["Error loading tasks!"]

    @pytest.mark.asyncio
    async def test_row_with_null_column_keeps_prior_list(self, backend, fake):
        fake.seed("a", "1")
        board = TaskBoard()
        await board.refresh(backend.tasks)
        fake.seed("legacy", None)
        assert await board.refresh(backend.tasks) is False
        assert [t.title for t in board.tasks] == ["a"]
        assert _messages(board) == ["Error loading tasks!"]

    def test_apply_list_drops_stale_token(self):
        board = TaskBoard()
        old = board.issue_list_token()
        board.issue_list_token()
        assert board.apply_list(old, [Task(id=1, title="t", description="d")]) is False
        assert board.tasks == []

    @pytest.mark.asyncio
    async def test_stale_response_discarded(self):
        store = GatedStore()
        board = TaskBoard()
        first = asyncio.create_task(board.refresh(store))
        await asyncio.sleep(0)
        second = asyncio.create_task(board.refresh(store))
        await asyncio.sleep(0)
        assert len(store.calls) == 2

        store.release(1, [Task(id=2, title="new", description="d")])
        assert await second is True
        store.release(0, [Task(id=1, title="old", description="d")])
        assert await first is False

        assert [t.title for t in board.tasks] == ["new"]
        assert board.applied_token == 2


class TestSubmit:
    @pytest.mark.asyncio
    async def test_validation_blocks_request(self, backend, fake):
        board = TaskBoard()
        board.form.title = "only title"
        assert await board.submit(backend.tasks) is False
        assert fake.requests == []
        assert board.notices == [Notice("Please fill in both title and description!", "error")]
        assert board.form.title == "only title"

    @pytest.mark.asyncio
    async def test_create_adds_exactly_one(self, backend, fake):
        fake.seed("existing", "x")
        board = TaskBoard()
        await board.refresh(backend.tasks)
        board.form.title = "new"
        board.form.description = "y"
        assert await board.submit(backend.tasks) is True
        assert len(board.tasks) == 2
        assert board.tasks[0].title == "new"
        assert board.form.title == ""
        assert _messages(board) == ["Task added!"]

    @pytest.mark.asyncio
    async def test_update_keeps_id(self, backend, fake):
        row = fake.seed("t", "d")
        board = TaskBoard()
        await board.refresh(backend.tasks)
        board.edit(row["id"])
        board.form.description = "changed"
        assert await board.submit(backend.tasks) is True
        assert [(t.id, t.description) for t in board.tasks] == [(row["id"], "changed")]
        assert not board.form.is_editing
        assert _messages(board) == ["Task updated!"]

    @pytest.mark.asyncio
    async def test_save_failure_keeps_form(self, backend, fake):
        fake.fail.add("insert")
        board = TaskBoard()
        board.form.title = "a"
        board.form.description = "b"
        assert await board.submit(backend.tasks) is False
        assert board.form.title == "a"
        assert _messages(board) == ["Error saving task!"]
        assert fake.count("GET", "/rest/v1/tasks") == 0

    @pytest.mark.asyncio
    async def test_malformed_echo_still_counts_as_saved(self, backend, fake):
        fake.insert_echo = [{"id": 99}]
        board = TaskBoard()
        board.form.title = "a"
        board.form.description = "b"
        assert await board.submit(backend.tasks) is True
        assert board.form.title == ""
        assert [t.title for t in board.tasks] == ["a"]
        assert _messages(board) == ["Task added!"]

        # A second click on the now-empty form cannot insert a duplicate
        assert await board.submit(backend.tasks) is False
        assert len(fake.rows) == 1

    @pytest.mark.asyncio
    async def test_buy_milk_scenario(self, backend, fake):
        board = TaskBoard()
        board.form.title = "Buy milk"
        board.form.description = "2%"
        await board.submit(backend.tasks)
        assert len(board.tasks) == 1
        task_id = board.tasks[0].id

        board.edit(task_id)
        board.form.title = "Buy oat milk"
        await board.submit(backend.tasks)
        (task,) = board.tasks
        assert task.id == task_id
        assert task.title == "Buy oat milk"
        assert task.description == "2%"

        await board.delete(backend.tasks, task_id)
        assert board.tasks == []
        assert _messages(board) == ["Task added!", "Task updated!", "Task deleted!"]


class TestEditDelete:
    @pytest.mark.asyncio
    async def test_edit_populates_exact_record(self, backend, fake):
        fake.seed("a", "1")
        second = fake.seed("b", "2", image_url="http://i/b.png")
        board = TaskBoard()
        await board.refresh(backend.tasks)
        assert board.edit(second["id"]) is True
        assert board.form.mode == Editing(second["id"])
        assert (board.form.title, board.form.description) == ("b", "2")
        assert board.form.preview_image == "http://i/b.png"

    def test_edit_unknown_id(self):
        board = TaskBoard()
        assert board.edit(42) is False
        assert not board.form.is_editing

    @pytest.mark.asyncio
    async def test_delete_removes(self, backend, fake):
        keep = fake.seed("keep", "1")
        drop = fake.seed("drop", "2")
        board = TaskBoard()
        await board.refresh(backend.tasks)
        assert await board.delete(backend.tasks, drop["id"]) is True
        assert [t.id for t in board.tasks] == [keep["id"]]

    @pytest.mark.asyncio
    async def test_delete_record_being_edited_resets_form(self, backend, fake):
        row = fake.seed("t", "d")
        board = TaskBoard()
        await board.refresh(backend.tasks)
        board.edit(row["id"])
        await board.delete(backend.tasks, row["id"])
        assert not board.form.is_editing
        assert board.form.title == ""

    @pytest.mark.asyncio
    async def test_delete_other_record_keeps_edit(self, backend, fake):
        a = fake.seed("a", "1")
        b = fake.seed("b", "2")
        board = TaskBoard()
        await board.refresh(backend.tasks)
        board.edit(a["id"])
        await board.delete(backend.tasks, b["id"])
        assert board.form.editing_id == a["id"]

    @pytest.mark.asyncio
    async def test_delete_failure(self, backend, fake):
        row = fake.seed("t", "d")
        board = TaskBoard()
        await board.refresh(backend.tasks)
        fake.fail.add("delete")
        assert await board.delete(backend.tasks, row["id"]) is False
        assert len(board.tasks) == 1
        assert _messages(board) == ["Error deleting task!"]


class TestAttachments:
    @pytest.mark.asyncio
    async def test_attach_binds_public_url(self, backend, fake):
        board = TaskBoard()
        assert await board.attach(backend.storage, MediaCategory.IMAGE, b"img", "a.png", "image/png")
        assert board.form.image_url.endswith(".png")
        assert board.form.preview_image == "data:image/png;base64,aW1n"
        assert board.form.uploading is False
        assert len(fake.objects) == 1

    def test_begin_attachment_marks_uploading(self):
        board = TaskBoard()
        board.form.video_url = "http://v/old.mp4"
        pending = board.begin_attachment(MediaCategory.VIDEO, b"v", "video/mp4")
        assert board.form.uploading is True
        assert board.form.preview_video.startswith("data:video/mp4;base64,")
        assert pending.previous_url == "http://v/old.mp4"

    @pytest.mark.asyncio
    async def test_upload_failure_restores_previous(self, backend, fake):
        board = TaskBoard()
        board.form.set_attachment(MediaCategory.IMAGE, "http://i/old.png", "http://i/old.png")
        fake.fail.add("upload")
        assert await board.attach(backend.storage, MediaCategory.IMAGE, b"x", "new.png") is False
        assert board.form.attachment(MediaCategory.IMAGE) == ("http://i/old.png", "http://i/old.png")
        assert board.form.uploading is False
        assert _messages(board) == ["File upload failed!"]

    @pytest.mark.asyncio
    async def test_same_filename_distinct_urls(self, backend):
        backend.storage._stamper = Stamper(clock=lambda: 1700000000.0)
        board = TaskBoard()
        await board.attach(backend.storage, MediaCategory.IMAGE, b"1", "same.png")
        first = board.form.image_url
        await board.attach(backend.storage, MediaCategory.IMAGE, b"2", "same.png")
        assert first and board.form.image_url and first != board.form.image_url

    @pytest.mark.asyncio
    async def test_upload_then_insert_failure_orphans_file(self, backend, fake):
        board = TaskBoard()
        await board.refresh(backend.tasks)
        board.form.title = "with picture"
        board.form.description = "d"
        await board.attach(backend.storage, MediaCategory.IMAGE, b"img", "p.png")
        fake.fail.add("insert")
        assert await board.submit(backend.tasks) is False
        assert len(fake.objects) == 1
        assert fake.rows == {}
        assert board.tasks == []
        assert board.form.image_url
