"""Extraction endpoints: turn daily report text into tasks."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from src.api.models import (
    AssigneeCount,
    BatchExtractRequest,
    BatchExtractResponse,
    ExtractResponse,
    ReportRequest,
    TaskResponse,
)
from src.config import get_settings
from src.extraction.assembler import (
    assemble_tasks,
    deduplicate_tasks,
    extract_tasks_from_reports,
    group_tasks_by_assignee,
)
from src.extraction.models import Task
from src.ingestion.parsers import parse_report
from src.pipeline_config import Roster, roster_from_settings

router = APIRouter()


def get_roster() -> Roster:
    """Roster dependency, built from application settings."""
    return roster_from_settings(get_settings())


RosterDep = Annotated[Roster, Depends(get_roster)]


def _task_response(task: Task) -> TaskResponse:
    return TaskResponse(
        assignee=task.assignee,
        content=task.content,
        deadline=task.deadline,
        room=task.room,
        source_date=task.source_date,
        kind=task.kind,
        status=task.status,
    )


@router.post("/api/extract", response_model=ExtractResponse)
async def extract_report(request: ReportRequest, roster: RosterDep) -> ExtractResponse:
    """Extract deduplicated tasks from a single daily report."""
    report = parse_report(request.text, request.identifier)
    tasks = deduplicate_tasks(assemble_tasks(report, roster))

    return ExtractResponse(
        report_date=report.date,
        rooms=len(report.rooms),
        tasks=[_task_response(t) for t in tasks],
    )


@router.post("/api/extract/batch", response_model=BatchExtractResponse)
async def extract_batch(request: BatchExtractRequest, roster: RosterDep) -> BatchExtractResponse:
    """Extract tasks across several daily reports, deduplicated over the batch."""
    reports = [parse_report(r.text, r.identifier) for r in request.reports]
    tasks = extract_tasks_from_reports(reports, roster)

    return BatchExtractResponse(
        report_dates=[r.date for r in reports],
        tasks_extracted=len(tasks),
        tasks=[_task_response(t) for t in tasks],
        by_assignee=[
            AssigneeCount(assignee=g.assignee, count=len(g.tasks))
            for g in group_tasks_by_assignee(tasks, roster.operator)
        ],
    )
