"""Unit tests for the JSON store."""

import json

import pytest

from insightboard.graph.models import Priority, ProcessedTask, TaskStatus
from insightboard.storage.models import JobRecord, JobStatus
from insightboard.storage.store import JsonStore, StoreError


def processed(task_id: str, status: TaskStatus = TaskStatus.READY, description: str = "x") -> ProcessedTask:
    return ProcessedTask(
        id=task_id,
        description=description,
        priority=Priority.HIGH,
        dependencies=[],
        status=status,
    )


def test_job_record_defaults():
    """Test JobRecord starts pending with a generated id."""
    job = JobRecord(transcript_hash="abc")

    assert job.status == JobStatus.PENDING
    assert job.id
    assert job.error_message is None
    assert job.completed_at is None


def test_transcript_round_trip(tmp_path):
    """Test transcripts persist across store instances."""
    record = JsonStore(tmp_path).save_transcript("hello")

    loaded = JsonStore(tmp_path).get_transcript(record.id)

    assert loaded.raw_text == "hello"
    assert not (tmp_path / "store.tmp").exists()


def test_list_tasks_sorted_by_task_id(tmp_path):
    """Test tasks are returned ordered by task id and scoped to a transcript."""
    store = JsonStore(tmp_path)
    store.save_tasks("t1", [processed("task-3"), processed("task-1", TaskStatus.BLOCKED)])
    store.save_tasks("t2", [processed("task-2")])

    tasks = store.list_tasks("t1")

    assert [t.task_id for t in tasks] == ["task-1", "task-3"]
    assert tasks[0].status == TaskStatus.BLOCKED
    assert tasks[0].priority == Priority.HIGH


def test_save_tasks_duplicate_ids_keep_last(tmp_path):
    """Test (transcript_id, task_id) is unique and the last record wins."""
    store = JsonStore(tmp_path)
    store.save_tasks("t1", [processed("task-1", description="first"), processed("task-1", description="second")])

    tasks = store.list_tasks("t1")

    assert len(tasks) == 1
    assert tasks[0].description == "second"


def test_job_lifecycle(tmp_path):
    """Test job creation, update and lookup."""
    store = JsonStore(tmp_path)
    job = store.create_job("hash-1")

    assert store.find_completed_job("hash-1") is None

    store.update_job(job.id, status=JobStatus.COMPLETED, transcript_id="t1", completed_at="2024-01-01T00:00:00+00:00")

    found = store.find_completed_job("hash-1")
    assert found.id == job.id
    assert store.get_job(job.id).transcript_id == "t1"
    assert store.get_job("missing") is None


def test_find_completed_job_prefers_latest(tmp_path):
    """Test the most recently completed job is returned."""
    store = JsonStore(tmp_path)
    older = store.create_job("h")
    newer = store.create_job("h")
    store.update_job(older.id, status=JobStatus.COMPLETED, completed_at="2024-01-01T00:00:00+00:00")
    store.update_job(newer.id, status=JobStatus.COMPLETED, completed_at="2024-06-01T00:00:00+00:00")

    assert store.find_completed_job("h").id == newer.id


def test_update_unknown_job(tmp_path):
    """Test updating a missing job raises KeyError."""
    with pytest.raises(KeyError):
        JsonStore(tmp_path).update_job("missing", status=JobStatus.FAILED)


def test_corrupt_store_file(tmp_path):
    """Test unreadable store files raise StoreError."""
    (tmp_path / "store.json").write_text("{not json")

    with pytest.raises(StoreError):
        JsonStore(tmp_path).get_job("x")


def test_store_file_is_json(tmp_path):
    """Test on-disk layout."""
    store = JsonStore(tmp_path)
    store.create_job("h")

    data = json.loads((tmp_path / "store.json").read_text())

    assert set(data) == {"transcripts", "tasks", "jobs"}
    assert list(data["jobs"].values())[0]["status"] == "pending"


def test_failed_write_keeps_store_and_removes_temp_file(tmp_path, monkeypatch):
    """Test a failed write leaves the previous store intact and no temp files behind."""
    store = JsonStore(tmp_path)
    job = store.create_job("h")
    before = (tmp_path / "store.json").read_text()

    def broken_dump(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("insightboard.storage.store.json.dump", broken_dump)
    with pytest.raises(OSError, match="disk full"):
        store.create_job("other")

    assert (tmp_path / "store.json").read_text() == before
    assert [p.name for p in tmp_path.iterdir()] == ["store.json"]
    monkeypatch.undo()
    assert store.get_job(job.id) is not None


def test_writes_leave_no_temp_files(tmp_path):
    """Test each write renames its own temp file into place."""
    store = JsonStore(tmp_path)
    store.create_job("a")
    store.create_job("b")

    assert [p.name for p in tmp_path.iterdir()] == ["store.json"]
