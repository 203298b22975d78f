"""Turn parsed reports into deduplicated Task records."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.extraction.models import AssigneeTasks, Task, TaskKind
from src.extraction.names import mutually_contains, normalize_assignee_name
from src.extraction.patterns import extract_candidate
from src.ingestion.models import RawReport, RoomSection
from src.pipeline_config import Roster

logger = logging.getLogger(__name__)


def is_excluded_room(room_name: str, excluded_rooms: Iterable[str]) -> bool:
    """True if *room_name* and any exclusion entry contain one another."""
    return any(mutually_contains(room_name, excluded) for excluded in excluded_rooms)


def _room_tasks(room: RoomSection, source_date: str, roster: Roster) -> list[Task]:
    tasks: list[Task] = []

    for line in room.next_actions:
        candidate = extract_candidate(line, roster)
        if candidate is None:
            continue
        tasks.append(
            Task(
                assignee=normalize_assignee_name(candidate.assignee, roster),
                content=candidate.content,
                deadline=candidate.deadline,
                room=room.name,
                source_date=source_date,
                kind=TaskKind.NEXT_ACTION,
            )
        )

    for line in room.required_actions:
        candidate = extract_candidate(line, roster)
        if candidate is not None:
            tasks.append(
                Task(
                    assignee=normalize_assignee_name(candidate.assignee, roster),
                    content=candidate.content,
                    deadline=candidate.deadline,
                    room=room.name,
                    source_date=source_date,
                    kind=TaskKind.REQUIRED_ACTION,
                )
            )
            continue

        # Unattributed obligations belong to the operator.
        content = line.strip()
        if content:
            tasks.append(
                Task(
                    assignee=roster.operator,
                    content=content,
                    room=room.name,
                    source_date=source_date,
                    kind=TaskKind.REQUIRED_ACTION,
                )
            )

    return tasks


def assemble_tasks(report: RawReport, roster: Roster) -> list[Task]:
    """Build the tasks of one report, in encounter order.

    Excluded rooms contribute nothing.  Within a room, next actions come
    before required actions.
    """
    tasks: list[Task] = []

    for room in report.rooms:
        if is_excluded_room(room.name, roster.excluded_rooms):
            logger.debug("Skipping excluded room %s (%s)", room.name, report.date)
            continue
        tasks.extend(_room_tasks(room, report.date, roster))

    return tasks


def deduplicate_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Drop tasks whose (assignee, content) was already seen; first one wins."""
    seen: set[tuple[str, str]] = set()
    unique: list[Task] = []

    for task in tasks:
        if task.key in seen:
            continue
        seen.add(task.key)
        unique.append(task)

    return unique


def extract_tasks_from_reports(reports: Iterable[RawReport], roster: Roster) -> list[Task]:
    """Extract and deduplicate tasks across a batch of daily reports."""
    all_tasks: list[Task] = []

    for report in reports:
        tasks = assemble_tasks(report, roster)
        logger.info("Extracted %d tasks from %s", len(tasks), report.date)
        all_tasks.extend(tasks)

    unique = deduplicate_tasks(all_tasks)
    if len(unique) != len(all_tasks):
        logger.info("Removed %d duplicate tasks", len(all_tasks) - len(unique))
    return unique


def group_tasks_by_assignee(tasks: Iterable[Task], operator: str) -> list[AssigneeTasks]:
    """Group tasks per assignee: the operator first, then by name."""
    grouped: dict[str, list[Task]] = {}
    for task in tasks:
        grouped.setdefault(task.assignee, []).append(task)

    ordered = sorted(grouped, key=lambda name: (name != operator, name))
    return [AssigneeTasks(assignee=name, tasks=grouped[name]) for name in ordered]


def filter_my_tasks(tasks: Iterable[Task], operator: str) -> list[Task]:
    return [task for task in tasks if task.assignee == operator]


def filter_team_tasks(tasks: Iterable[Task], members: Iterable[str]) -> list[Task]:
    """Keep tasks whose assignee fuzzily matches a team member."""
    members = list(members)
    return [
        task
        for task in tasks
        if any(mutually_contains(task.assignee, member) for member in members)
    ]
