"""Deterministic line-based transcript parser."""

import logging
import re

from ..graph.models import Priority, RawTask
from .base import BaseTranscriptParser

logger = logging.getLogger(__name__)

SKIP_PATTERNS = [
    re.compile(r"^\*\*Meeting Title\*\*", re.IGNORECASE),
    re.compile(r"^\*\*Date\*\*", re.IGNORECASE),
    re.compile(r"^\*\*Attendees\*\*", re.IGNORECASE),
    re.compile(r"^---\s*$"),
    re.compile(r"^\s*$"),
]

MAX_LINES = 25
MAX_DESCRIPTION_CHARS = 500
PRIORITY_CYCLE = (Priority.HIGH, Priority.MEDIUM, Priority.LOW)


def is_metadata_or_separator(line: str) -> bool:
    """Check whether a transcript line is header metadata or a separator."""
    stripped = line.strip()
    return len(stripped) < 3 or any(p.search(stripped) for p in SKIP_PATTERNS)


class MockTranscriptParser(BaseTranscriptParser):
    """One task per transcript line, each depending on the one before.

    Used when no language model is configured. Header lines such as
    ``**Date**`` and ``---`` separators are skipped.
    """

    async def parse(self, transcript: str) -> list[RawTask]:
        lines = [line.strip() for line in re.split(r"\n+", transcript.strip())]
        lines = [line for line in lines if line and not is_metadata_or_separator(line)]

        if not lines:
            return [
                RawTask(
                    id="task-1",
                    description="Review meeting notes",
                    priority=Priority.HIGH,
                    dependencies=[],
                )
            ]

        tasks = [
            RawTask(
                id=f"task-{i + 1}",
                description=line[:MAX_DESCRIPTION_CHARS],
                priority=PRIORITY_CYCLE[i % len(PRIORITY_CYCLE)],
                dependencies=[f"task-{i}"] if i > 0 else [],
            )
            for i, line in enumerate(lines[:MAX_LINES])
        ]
        logger.info(f"Extracted {len(tasks)} tasks from {len(lines)} transcript lines")
        return tasks
