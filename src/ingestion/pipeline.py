"""End-to-end daily pipeline: load -> parse -> extract -> (validate) -> group."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from src.extraction.assembler import extract_tasks_from_reports, group_tasks_by_assignee
from src.extraction.models import AssigneeTasks, Task
from src.ingestion.loader import load_reports
from src.ingestion.models import RawReport
from src.pipeline_config import Roster

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Output of one pipeline run."""

    reports: list[RawReport]
    tasks: list[Task]
    grouped: list[AssigneeTasks] = field(default_factory=list)

    @property
    def latest_date(self) -> str | None:
        return self.reports[-1].date if self.reports else None


def extract_tasks(
    reports: list[RawReport],
    roster: Roster,
    use_llm: bool = False,
    validate: bool = False,
    api_key: str = "",
) -> list[Task]:
    """Extract tasks from parsed reports.

    Args:
        reports: Parsed reports, in processing order.
        roster: Team roster and operator.
        use_llm: Extract with Claude instead of the pattern rules.
        validate: Filter the extracted tasks through Claude.
        api_key: Anthropic API key used for the Claude steps; without one they
            are skipped.

    Returns:
        Deduplicated tasks.
    """
    if (use_llm or validate) and not api_key:
        logger.warning("ANTHROPIC_API_KEY is not configured; using rule-based extraction only")
        use_llm = validate = False

    client = None
    if use_llm or validate:
        from src.extraction.extractor import (
            create_client,
            extract_tasks_with_llm,
            validate_tasks_with_llm,
        )

        client = create_client(api_key)

    if use_llm:
        tasks = extract_tasks_with_llm(reports, roster, client=client)
    else:
        tasks = extract_tasks_from_reports(reports, roster)

    if validate and tasks:
        before = len(tasks)
        tasks = validate_tasks_with_llm(tasks, client=client)
        logger.info("Validation kept %d of %d tasks", len(tasks), before)

    return tasks


def run_pipeline(
    paths: list[Path],
    roster: Roster,
    use_llm: bool = False,
    validate: bool = False,
    api_key: str = "",
) -> PipelineResult:
    """Load the given report files and extract their tasks."""
    reports = load_reports(paths)
    if not reports:
        logger.warning("No parseable reports among %d files", len(paths))
        return PipelineResult(reports=[], tasks=[])

    tasks = extract_tasks(reports, roster, use_llm=use_llm, validate=validate, api_key=api_key)
    return PipelineResult(
        reports=reports,
        tasks=tasks,
        grouped=group_tasks_by_assignee(tasks, roster.operator),
    )
