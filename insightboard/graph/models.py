"""Task record models shared by parsers, the graph engine and storage."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Priority(str, Enum):
    """Task priority."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TaskStatus(str, Enum):
    """Status assigned by cycle detection."""

    READY = "Ready"
    BLOCKED = "Blocked/Error"


class RawTask(BaseModel):
    """Task as produced by a transcript parser."""

    id: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    dependencies: list[str] = Field(default_factory=list)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class ProcessedTask(RawTask):
    """Task with a status derived from the dependency graph."""

    status: TaskStatus = TaskStatus.READY
