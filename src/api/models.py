"""Pydantic request/response schemas for the task extraction API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from src.extraction.models import TaskKind, TaskStatus


class ReportRequest(BaseModel):
    """One daily report to extract tasks from."""

    text: str
    identifier: str = Field(description="Source identifier, e.g. the file name '2026-01-14.md'.")


class BatchExtractRequest(BaseModel):
    """Request body for the /api/extract/batch endpoint."""

    reports: list[ReportRequest]


class TaskResponse(BaseModel):
    """A single task in API responses."""

    assignee: str
    content: str
    deadline: str | None = None
    room: str
    source_date: str
    kind: TaskKind
    status: TaskStatus = TaskStatus.PENDING


class ExtractResponse(BaseModel):
    """Response body for the /api/extract endpoint."""

    report_date: str
    rooms: int
    tasks: list[TaskResponse] = []


class AssigneeCount(BaseModel):
    assignee: str
    count: int


class BatchExtractResponse(BaseModel):
    """Response body for the /api/extract/batch endpoint."""

    report_dates: list[str]
    tasks_extracted: int
    tasks: list[TaskResponse] = []
    by_assignee: list[AssigneeCount] = []
