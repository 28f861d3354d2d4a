"""Transcript parser interface and shared task normalization."""

import logging
import re
from abc import ABC, abstractmethod

from ..graph.models import Priority, RawTask

logger = logging.getLogger(__name__)

TASK_ID_PATTERN = re.compile(r"^task-\d+$")
MAX_TASKS = 100
MAX_DESCRIPTION_CHARS = 2000


class BaseTranscriptParser(ABC):
    """Turns transcript text into raw tasks."""

    @abstractmethod
    async def parse(self, transcript: str) -> list[RawTask]:
        """Extract tasks from a transcript.

        Args:
            transcript: Meeting transcript text

        Returns:
            Raw tasks with ids of the form ``task-<n>``
        """
        pass


def normalize_tasks(items: list, max_tasks: int = MAX_TASKS) -> list[RawTask]:
    """Coerce loosely structured task dicts into RawTask records.

    Ids that do not look like ``task-<n>`` are replaced by their position.
    Repeated ids are suffixed (``task-1``, ``task-1-2``, ``task-1-3``);
    dependency references are left as given, so ``task-1`` keeps pointing at
    the first task carrying that id.

    Args:
        items: Task entries (dicts; anything else is treated as empty)
        max_tasks: Entries kept from the head of the list

    Returns:
        Normalized tasks
    """
    if not items:
        return [
            RawTask(
                id="task-1",
                description="No tasks extracted from transcript.",
                priority=Priority.MEDIUM,
                dependencies=[],
            )
        ]

    if len(items) > max_tasks:
        logger.warning("Parser returned %s tasks; keeping first %s", len(items), max_tasks)

    priorities = {p.value: p for p in Priority}
    seen: dict[str, int] = {}
    tasks: list[RawTask] = []

    for index, item in enumerate(items[:max_tasks]):
        data = item if isinstance(item, dict) else {}

        raw_id = data.get("id")
        if not isinstance(raw_id, str) or not TASK_ID_PATTERN.match(raw_id):
            raw_id = f"task-{index + 1}"

        description = data.get("description")
        if isinstance(description, str):
            description = description[:MAX_DESCRIPTION_CHARS]
        else:
            description = f"Task {index + 1}"

        priority = data.get("priority")
        priority = priorities.get(priority, Priority.MEDIUM) if isinstance(priority, str) else Priority.MEDIUM

        dependencies = data.get("dependencies")
        if isinstance(dependencies, list):
            dependencies = [dep for dep in dependencies if isinstance(dep, str)]
        else:
            dependencies = []

        count = seen.get(raw_id, 0) + 1
        seen[raw_id] = count
        task_id = raw_id if count == 1 else f"{raw_id}-{count}"

        tasks.append(
            RawTask(
                id=task_id,
                description=description,
                priority=priority,
                dependencies=dependencies,
            )
        )

    return tasks
