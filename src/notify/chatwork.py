"""Post task digests to a Chatwork room."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Iterable

import httpx

from src.extraction.models import AssigneeTasks, Task, TaskKind

logger = logging.getLogger(__name__)

API_BASE = "https://api.chatwork.com/v2"

# Deadlines that look like a concrete near-term date.
_URGENT_DEADLINE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\d{1,2}/\d{1,2}"),
    re.compile(r"\d{1,2}月\d{1,2}日"),
    re.compile(r"今日|本日"),
    re.compile(r"明日"),
    re.compile(r"今週"),
]


def format_task_list(assignee_tasks: Iterable[AssigneeTasks]) -> str:
    """Format every assignee's tasks as one Chatwork info block."""
    lines = ["[info][title]📋 本日のタスク一覧[/title]"]

    for group in assignee_tasks:
        if not group.tasks:
            continue

        lines.append("[hr]")
        lines.append(f"👤 {group.assignee}")
        lines.append("")
        for task in group.tasks:
            deadline = f" ({task.deadline})" if task.deadline else ""
            room = f" [{task.room}]" if task.room else ""
            lines.append(f"・{task.content}{deadline}{room}")
        lines.append("")

    lines.append("[/info]")
    return "\n".join(lines)


def format_personal_notification(
    assignee: str,
    tasks: list[Task],
    account_id: str | None = None,
) -> str:
    """Format one assignee's tasks, mentioning them when their account id is known."""
    mention = f"[To:{account_id}]" if account_id else ""
    lines = [
        f"{mention}{assignee}さん",
        "",
        "[info][title]📋 あなたのタスク[/title]",
    ]

    for task in tasks:
        deadline = f" ({task.deadline})" if task.deadline else ""
        priority = "🔴 " if task.kind is TaskKind.REQUIRED_ACTION else ""
        lines.append(f"{priority}・{task.content}{deadline}")

    lines.append("[/info]")
    return "\n".join(lines)


def has_urgent_deadline(task: Task) -> bool:
    if not task.deadline:
        return False
    return any(p.search(task.deadline) for p in _URGENT_DEADLINE_PATTERNS)


def format_deadline_reminder(tasks: list[Task]) -> str:
    lines = ["[info][title]⚠️ 期限が近いタスク[/title]"]
    for task in tasks:
        lines.append(f"・{task.assignee}: {task.content} ({task.deadline})")
    lines.append("[/info]")
    return "\n".join(lines)


def format_daily_summary(assignee_tasks: list[AssigneeTasks], date: str) -> str:
    """Format totals for the day plus the three busiest assignees."""
    total = sum(len(group.tasks) for group in assignee_tasks)
    member_count = sum(1 for group in assignee_tasks if group.tasks)

    lines = [
        f"[info][title]📊 {date} タスクサマリー[/title]",
        "",
        f"・合計タスク数: {total}件",
        f"・担当者数: {member_count}名",
        "",
    ]

    busiest = sorted(assignee_tasks, key=lambda group: len(group.tasks), reverse=True)[:3]
    if busiest:
        lines.append("📌 タスクが多い担当者:")
        for group in busiest:
            lines.append(f"  {group.assignee}: {len(group.tasks)}件")

    lines.extend(["", "[/info]"])
    return "\n".join(lines)


class ChatworkNotifier:
    """Sends formatted task messages to a single Chatwork room.

    Sending never raises: a missing token or an HTTP failure is logged and
    reported as ``False``.
    """

    def __init__(
        self,
        api_token: str,
        room_id: str,
        client: httpx.Client | None = None,
        delay_seconds: float = 0.5,
    ) -> None:
        self.api_token = api_token
        self.room_id = room_id
        self._owns_client = client is None
        self.client = client or httpx.Client(base_url=API_BASE, timeout=10.0)
        self.delay_seconds = delay_seconds

    def close(self) -> None:
        """Close the HTTP client if this notifier created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> ChatworkNotifier:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def send_message(self, body: str) -> bool:
        if not self.api_token:
            logger.warning("CHATWORK_API_TOKEN is not configured; message not sent")
            return False

        try:
            r = self.client.post(
                f"/rooms/{self.room_id}/messages",
                headers={"X-ChatWorkToken": self.api_token},
                data={"body": body},
            )
            r.raise_for_status()
        except httpx.HTTPError:
            logger.exception("Chatwork message to room %s failed", self.room_id)
            return False

        return True

    def notify_all_tasks(self, assignee_tasks: list[AssigneeTasks]) -> bool:
        sent = self.send_message(format_task_list(assignee_tasks))
        if sent:
            logger.info("Posted task list for %d assignees", len(assignee_tasks))
        return sent

    def notify_individual_tasks(
        self,
        assignee_tasks: list[AssigneeTasks],
        account_ids: dict[str, str],
    ) -> dict[str, bool]:
        """Send one mention message per assignee.

        Args:
            assignee_tasks: Grouped tasks.
            account_ids: Canonical name -> Chatwork account id.

        Returns:
            Assignee -> whether the message was sent.
        """
        results: dict[str, bool] = {}

        for group in assignee_tasks:
            if not group.tasks:
                continue

            message = format_personal_notification(
                group.assignee, group.tasks, account_ids.get(group.assignee)
            )
            results[group.assignee] = self.send_message(message)
            if not results[group.assignee]:
                logger.warning("Failed to notify %s", group.assignee)

            # Chatwork rate limit
            if self.delay_seconds:
                time.sleep(self.delay_seconds)

        return results

    def send_deadline_reminder(self, tasks: list[Task]) -> bool:
        urgent = [task for task in tasks if has_urgent_deadline(task)]
        if not urgent:
            logger.info("No tasks with near deadlines")
            return True
        return self.send_message(format_deadline_reminder(urgent))

    def send_daily_summary(self, assignee_tasks: list[AssigneeTasks], date: str) -> bool:
        return self.send_message(format_daily_summary(assignee_tasks, date))
