"""Transcript processing and asynchronous jobs."""

import asyncio
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..graph.models import ProcessedTask
from ..graph.processor import process_graph
from ..storage.models import JobStatus, TaskRecord
from ..storage.store import JsonStore
from .base import BaseTranscriptParser

logger = logging.getLogger(__name__)

MAX_ERROR_MESSAGE_CHARS = 2000


class JobNotFoundError(Exception):
    """Job id is unknown."""

    pass


@dataclass
class ProcessResult:
    """Result of synchronous transcript processing."""

    transcript_id: str
    tasks: list[ProcessedTask]


@dataclass
class JobSubmitResult:
    """Result of job submission."""

    job_id: str
    status: JobStatus


@dataclass
class JobStatusResult:
    """Job status as served to pollers."""

    job_id: str
    status: JobStatus
    transcript_id: Optional[str] = None
    tasks: Optional[list[ProcessedTask]] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None


def hash_transcript(transcript: str) -> str:
    """SHA-256 of the trimmed transcript text."""
    return hashlib.sha256(transcript.strip().encode("utf-8")).hexdigest()


def _task_from_record(record: TaskRecord) -> ProcessedTask:
    return ProcessedTask(
        id=record.task_id,
        description=record.description,
        priority=record.priority,
        dependencies=record.dependencies,
        status=record.status,
    )


@dataclass
class TranscriptService:
    """Parses transcripts, builds the task graph and persists the result."""

    parser: BaseTranscriptParser
    store: JsonStore
    _background: set[asyncio.Task] = field(default_factory=set, init=False, repr=False)

    async def _parse_and_store(self, transcript: str) -> ProcessResult:
        raw_tasks = await self.parser.parse(transcript)
        tasks = process_graph(raw_tasks)
        saved = self.store.save_transcript(transcript)
        self.store.save_tasks(saved.id, tasks)
        return ProcessResult(transcript_id=saved.id, tasks=tasks)

    async def process_transcript(self, transcript: str) -> ProcessResult:
        """Process a transcript synchronously.

        Args:
            transcript: Validated transcript text

        Returns:
            ProcessResult with the stored transcript id and processed tasks
        """
        result = await self._parse_and_store(transcript)
        logger.info(f"Processed transcript {result.transcript_id}: {len(result.tasks)} tasks")
        return result

    async def submit_job(self, transcript: str) -> JobSubmitResult:
        """Submit a transcript for background processing.

        A completed job for the same transcript content is returned instead of
        starting a new one.

        Args:
            transcript: Validated transcript text

        Returns:
            JobSubmitResult with job id and status (pending or completed)
        """
        transcript_hash = hash_transcript(transcript)
        existing = self.store.find_completed_job(transcript_hash)
        if existing:
            logger.info(f"Reusing completed job {existing.id}")
            return JobSubmitResult(job_id=existing.id, status=JobStatus.COMPLETED)

        job = self.store.create_job(transcript_hash)
        task = asyncio.create_task(self._run_job(job.id, transcript))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

        logger.info(f"Submitted job {job.id}")
        return JobSubmitResult(job_id=job.id, status=JobStatus.PENDING)

    async def _run_job(self, job_id: str, transcript: str) -> None:
        try:
            result = await self._parse_and_store(transcript)
        except Exception as e:
            logger.error(f"Job {job_id} failed: {e}")
            self.store.update_job(
                job_id,
                status=JobStatus.FAILED,
                error_message=str(e)[:MAX_ERROR_MESSAGE_CHARS],
                error_code=type(e).__name__,
            )
            return

        self.store.update_job(
            job_id,
            status=JobStatus.COMPLETED,
            transcript_id=result.transcript_id,
            completed_at=datetime.now(timezone.utc).isoformat(),
            error_message=None,
            error_code=None,
        )
        logger.info(f"Job {job_id} completed: transcript {result.transcript_id}")

    async def wait_for_jobs(self) -> None:
        """Wait until all background jobs started by this service finish."""
        while self._background:
            await asyncio.gather(*list(self._background))

    def get_job_status(self, job_id: str) -> JobStatusResult:
        """Look up a job.

        Raises:
            JobNotFoundError: If no job has this id
        """
        job = self.store.get_job(job_id)
        if job is None:
            raise JobNotFoundError("Job not found")

        result = JobStatusResult(
            job_id=job.id,
            status=job.status,
            error_message=job.error_message or None,
            error_code=job.error_code or None,
        )
        if job.status == JobStatus.COMPLETED and job.transcript_id:
            result.transcript_id = job.transcript_id
            result.tasks = [_task_from_record(r) for r in self.store.list_tasks(job.transcript_id)]
        return result
