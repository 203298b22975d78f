"""Markdown task reports for the Obsidian vault."""

from __future__ import annotations

import logging
import re
from collections import Counter
from datetime import datetime
from pathlib import Path

from src.extraction.models import AssigneeTasks, Task, TaskKind, TaskStatus

logger = logging.getLogger(__name__)

TEAM_OVERVIEW_FILENAME = "チームタスク一覧.md"

_UNSAFE_FILENAME_RE = re.compile(r'[*/\\:?"<>|]')


def sanitize_file_name(name: str) -> str:
    """Remove characters that are not allowed in Windows file names."""
    return _UNSAFE_FILENAME_RE.sub("", name).strip()


def _timestamp(generated_at: datetime) -> str:
    return generated_at.strftime("%Y/%m/%d %H:%M:%S")


def _checkbox(task: Task) -> str:
    return "[x]" if task.status is TaskStatus.COMPLETED else "[ ]"


def format_task(task: Task) -> str:
    deadline = f" 📅 {task.deadline}" if task.deadline else ""
    return f"- {_checkbox(task)} {task.content}{deadline} ({task.room})"


def render_assignee_tasks(assignee: str, tasks: list[Task], generated_at: datetime) -> str:
    """Render one assignee's task file: required actions, next actions, sources."""
    lines = [f"# {assignee}のタスク", "", f"> 最終更新: {_timestamp(generated_at)}", ""]

    required = [t for t in tasks if t.kind is TaskKind.REQUIRED_ACTION]
    upcoming = [t for t in tasks if t.kind is TaskKind.NEXT_ACTION]

    if required:
        lines.extend(["## 🔴 要対応", ""])
        lines.extend(format_task(t) for t in required)
        lines.append("")

    if upcoming:
        lines.extend(["## 📋 次アクション", ""])
        lines.extend(format_task(t) for t in upcoming)
        lines.append("")

    lines.extend(["---", "", "## ソース情報", ""])
    sources = dict.fromkeys(f"{t.source_date} - {t.room}" for t in tasks)
    lines.extend(f"- {source}" for source in sources)

    return "\n".join(lines)


def render_team_overview(assignee_tasks: list[AssigneeTasks], generated_at: datetime) -> str:
    lines = ["# チームタスク一覧", "", f"> 最終更新: {_timestamp(generated_at)}", ""]

    for group in assignee_tasks:
        lines.extend([f"## {group.assignee} ({len(group.tasks)}件)", ""])
        for task in group.tasks:
            deadline = f" 📅 {task.deadline}" if task.deadline else ""
            lines.append(f"- {_checkbox(task)} {task.content}{deadline} 📌 {task.room}")
        lines.append("")

    return "\n".join(lines)


def render_daily_report(
    tasks: list[Task],
    date: str,
    operator: str,
    generated_at: datetime,
) -> str:
    """Render the per-day summary: totals, per-assignee counts, task details."""
    counts = Counter(t.assignee for t in tasks)

    lines = [
        f"# タスクレポート ({date})",
        "",
        f"> 生成日時: {_timestamp(generated_at)}",
        "",
        "## 📊 サマリー",
        "",
        f"- 合計タスク数: {len(tasks)}件",
        f"- 担当者数: {len(counts)}名",
        "",
        "## 👥 担当者別タスク数",
        "",
    ]

    for assignee, count in counts.most_common():
        marker = " ⭐" if assignee == operator else ""
        lines.append(f"- {assignee}: {count}件{marker}")

    lines.extend(["", "## 📝 タスク詳細", ""])
    for task in tasks:
        deadline = f" 📅 {task.deadline}" if task.deadline else ""
        icon = "🔴" if task.kind is TaskKind.REQUIRED_ACTION else "📋"
        lines.append(f"- {icon} **{task.assignee}**: {task.content}{deadline}")

    return "\n".join(lines)


def write_assignee_files(
    assignee_tasks: list[AssigneeTasks],
    output_dir: str | Path,
    generated_at: datetime | None = None,
) -> list[Path]:
    """Write one ``<name>_タスク.md`` per assignee plus the team overview."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    generated_at = generated_at or datetime.now()
    written: list[Path] = []

    for group in assignee_tasks:
        safe_name = sanitize_file_name(group.assignee)
        if not safe_name:
            continue
        path = output_dir / f"{safe_name}_タスク.md"
        path.write_text(render_assignee_tasks(group.assignee, group.tasks, generated_at), encoding="utf-8")
        logger.info("Wrote %d tasks for %s to %s", len(group.tasks), group.assignee, path.name)
        written.append(path)

    overview = output_dir / TEAM_OVERVIEW_FILENAME
    overview.write_text(render_team_overview(assignee_tasks, generated_at), encoding="utf-8")
    written.append(overview)

    return written


def write_daily_report(
    tasks: list[Task],
    date: str,
    operator: str,
    output_dir: str | Path,
    generated_at: datetime | None = None,
) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"タスクレポート_{date}.md"
    path.write_text(
        render_daily_report(tasks, date, operator, generated_at or datetime.now()),
        encoding="utf-8",
    )
    logger.info("Wrote daily report %s", path.name)
    return path
