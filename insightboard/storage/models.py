"""Persisted record models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..graph.models import Priority, TaskStatus


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


class JobStatus(str, Enum):
    """Background job status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TranscriptRecord(BaseModel):
    """Stored transcript."""

    id: str = Field(default_factory=_new_id)
    raw_text: str
    created_at: str = Field(default_factory=_now)


class TaskRecord(BaseModel):
    """Stored processed task, unique per (transcript_id, task_id)."""

    transcript_id: str
    task_id: str
    description: str
    priority: Priority
    dependencies: list[str] = Field(default_factory=list)
    status: TaskStatus = Field(default=TaskStatus.READY)
    created_at: str = Field(default_factory=_now)


class JobRecord(BaseModel):
    """Asynchronous processing job keyed by transcript content hash."""

    id: str = Field(default_factory=_new_id)
    transcript_hash: str
    status: JobStatus = Field(default=JobStatus.PENDING)
    error_message: Optional[str] = Field(default=None)
    error_code: Optional[str] = Field(default=None)
    transcript_id: Optional[str] = Field(default=None)
    created_at: str = Field(default_factory=_now)
    completed_at: Optional[str] = Field(default=None)


class StoreData(BaseModel):
    """On-disk layout of the JSON store."""

    transcripts: dict[str, TranscriptRecord] = Field(default_factory=dict)
    tasks: list[TaskRecord] = Field(default_factory=list)
    jobs: dict[str, JobRecord] = Field(default_factory=dict)
