"""JSON file store with atomic writes."""

import json
import logging
import os
import tempfile
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..graph.models import ProcessedTask
from .models import JobRecord, JobStatus, StoreData, TaskRecord, TranscriptRecord

logger = logging.getLogger(__name__)

STORE_FILENAME = "store.json"


class StoreError(Exception):
    """Store file unreadable or invalid."""

    pass


class JsonStore:
    """Transcripts, tasks and jobs kept in a single JSON document."""

    def __init__(self, data_dir: Path):
        """Initialize store.

        Args:
            data_dir: Directory holding the store file (created on first write)
        """
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / STORE_FILENAME
        self._lock = threading.Lock()

    def _load(self) -> StoreData:
        if not self.path.exists():
            return StoreData()
        try:
            with open(self.path, "r") as f:
                return StoreData(**json.load(f))
        except (json.JSONDecodeError, ValidationError) as e:
            raise StoreError(f"Invalid store file {self.path}: {e}")

    def _save(self, data: StoreData) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        # Atomic write: unique temp file -> rename
        f = tempfile.NamedTemporaryFile(
            "w", dir=self.data_dir, prefix=".store-", suffix=".tmp", delete=False
        )
        temp_path = Path(f.name)
        try:
            with f:
                json.dump(data.model_dump(mode="json"), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            temp_path.replace(self.path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise

    def save_transcript(self, raw_text: str) -> TranscriptRecord:
        """Store transcript text under a new id."""
        record = TranscriptRecord(raw_text=raw_text)
        with self._lock:
            data = self._load()
            data.transcripts[record.id] = record
            self._save(data)
        logger.debug(f"Saved transcript {record.id}")
        return record

    def save_tasks(self, transcript_id: str, tasks: Sequence[ProcessedTask]) -> list[TaskRecord]:
        """Store processed tasks for a transcript.

        Records are keyed by (transcript_id, task_id); a later task with the
        same key replaces the earlier one.
        """
        records = [
            TaskRecord(
                transcript_id=transcript_id,
                task_id=task.id,
                description=task.description,
                priority=task.priority,
                dependencies=list(task.dependencies),
                status=task.status,
            )
            for task in tasks
        ]

        with self._lock:
            data = self._load()
            by_key = {(r.transcript_id, r.task_id): r for r in data.tasks}
            written: set[str] = set()
            for record in records:
                if record.task_id in written:
                    logger.warning(
                        f"Duplicate task id {record.task_id} in transcript {transcript_id}; "
                        "keeping the last one"
                    )
                written.add(record.task_id)
                by_key[(record.transcript_id, record.task_id)] = record
            data.tasks = list(by_key.values())
            self._save(data)

        logger.debug(f"Saved {len(records)} tasks for transcript {transcript_id}")
        return records

    def list_tasks(self, transcript_id: str) -> list[TaskRecord]:
        """Tasks of a transcript ordered by task id."""
        with self._lock:
            data = self._load()
        return sorted(
            (r for r in data.tasks if r.transcript_id == transcript_id),
            key=lambda r: r.task_id,
        )

    def get_transcript(self, transcript_id: str) -> Optional[TranscriptRecord]:
        with self._lock:
            return self._load().transcripts.get(transcript_id)

    def create_job(self, transcript_hash: str) -> JobRecord:
        """Create a pending job."""
        job = JobRecord(transcript_hash=transcript_hash)
        with self._lock:
            data = self._load()
            data.jobs[job.id] = job
            self._save(data)
        return job

    def update_job(self, job_id: str, **updates) -> JobRecord:
        """Update job fields.

        Raises:
            KeyError: If the job does not exist
        """
        with self._lock:
            data = self._load()
            job = data.jobs[job_id]
            for key, value in updates.items():
                setattr(job, key, value)
            self._save(data)
        return job

    def get_job(self, job_id: str) -> Optional[JobRecord]:
        with self._lock:
            return self._load().jobs.get(job_id)

    def find_completed_job(self, transcript_hash: str) -> Optional[JobRecord]:
        """Most recently completed job for a transcript hash."""
        with self._lock:
            data = self._load()
        completed = [
            job
            for job in data.jobs.values()
            if job.transcript_hash == transcript_hash and job.status == JobStatus.COMPLETED
        ]
        if not completed:
            return None
        return max(completed, key=lambda job: job.completed_at or "")
