"""Data models for extracted tasks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class TaskKind(StrEnum):
    """Which report sub-section a task came from."""

    NEXT_ACTION = "next_action"
    REQUIRED_ACTION = "required_action"


class TaskStatus(StrEnum):
    """Task lifecycle state.  Only the task store moves a task to COMPLETED."""

    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Candidate:
    """An unvalidated (assignee, content, deadline) parse of one action line."""

    assignee: str
    content: str
    deadline: str | None = None


@dataclass(frozen=True)
class Task:
    """A normalized action item with a single owner."""

    assignee: str
    content: str
    room: str
    source_date: str
    kind: TaskKind
    deadline: str | None = None
    status: TaskStatus = TaskStatus.PENDING

    @property
    def key(self) -> tuple[str, str]:
        """Natural key used for deduplication."""
        return (self.assignee, self.content)


@dataclass
class AssigneeTasks:
    """Tasks grouped under one assignee."""

    assignee: str
    tasks: list[Task] = field(default_factory=list)
