"""Claude-powered task extraction and validation over parsed room sections."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from typing import Any

from anthropic import Anthropic, APIError

from src.config import settings
from src.extraction.assembler import deduplicate_tasks, is_excluded_room
from src.extraction.models import Task, TaskKind
from src.extraction.names import strip_whitespace
from src.ingestion.models import RawReport, RoomSection
from src.ingestion.parsers import NEXT_ACTIONS_HEADING, REQUIRED_ACTIONS_HEADING
from src.pipeline_config import Roster

logger = logging.getLogger(__name__)

MAX_SECTION_CHARS = 4000
MIN_SECTION_CHARS = 10

# Tool definition for Claude structured output
EXTRACTION_TOOL: dict[str, Any] = {
    "name": "store_tasks",
    "description": (
        "Store the tasks found in a room's action sections. "
        "Call this once with every task owned by a listed team member."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "tasks": {
                "type": "array",
                "description": "Tasks owned by team members.",
                "items": {
                    "type": "object",
                    "properties": {
                        "assignee": {
                            "type": "string",
                            "description": "Owner, exactly as written in the log.",
                        },
                        "content": {
                            "type": "string",
                            "description": "What needs to be done.",
                        },
                        "deadline": {
                            "type": "string",
                            "description": "Deadline if mentioned (free-form text).",
                        },
                        "kind": {
                            "type": "string",
                            "enum": [k.value for k in TaskKind],
                            "description": "Section the task came from.",
                        },
                    },
                    "required": ["assignee", "content"],
                },
            },
        },
        "required": ["tasks"],
    },
}

VALIDATION_TOOL: dict[str, Any] = {
    "name": "store_verdicts",
    "description": "Record, for each numbered candidate, whether it is a real task.",
    "input_schema": {
        "type": "object",
        "properties": {
            "verdicts": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "index": {"type": "integer", "description": "1-based candidate number."},
                        "is_task": {"type": "boolean"},
                        "reason": {"type": "string"},
                    },
                    "required": ["index", "is_task"],
                },
            },
        },
        "required": ["verdicts"],
    },
}

EXTRACTION_PROMPT = """以下はチャットワークの会話ログから抽出された「次アクション」「要対応」セクションです。

## 対象メンバー一覧
{members}

## ログ内容
{text}

## ルール
1. ログに記載された担当者が対象メンバーの場合のみ抽出
2. 担当者名はログに記載された通りに出力（推測・変更しない）
3. 対象メンバー以外の人のタスクはスキップ
4. 担当者不明のタスクもスキップ

store_tasks ツールで結果を返してください。該当なしなら空配列を返してください。"""

VALIDATION_PROMPT = """以下はチャットワークの会話ログから抽出された「タスク候補」です。
各項目が本当に「誰かがやるべきアクションアイテム（タスク）」かどうかを判定してください。

## タスク候補
{candidates}

## 判定基準
- タスク: 具体的なアクションがあり、担当者が明確で、実行可能なもの
- タスクではない: 単なる報告、共有情報、質問、完了した事項、一般的な会話

store_verdicts ツールで全候補の判定を返してください。"""


def create_client(api_key: str | None = None) -> Anthropic:
    """Build an Anthropic client, falling back to the configured key."""
    return Anthropic(api_key=api_key or settings.anthropic_api_key)


def _get_client(client: Anthropic | None) -> Anthropic:
    return client or create_client()


def substitute_member_ids(text: str, member_ids: dict[str, str]) -> str:
    """Replace Chatwork account ids in *text* with member names.

    Handles ``※08012345678`` and ``(08012345678)`` forms.
    """
    for account_id, name in member_ids.items():
        escaped = re.escape(account_id)
        text = re.sub(rf"※{escaped}", f"（{name}）", text)
        text = re.sub(rf"\({escaped}\)", f"（{name}）", text)
    return text


def _same_member(name: str, member: str) -> bool:
    normalized = strip_whitespace(name)
    member_normalized = strip_whitespace(member)

    if normalized == member_normalized:
        return True

    # Same surname: compare the leading three characters.
    surname = normalized[:3]
    if len(surname) >= 2 and surname == member_normalized[:3]:
        return True

    return normalized in member_normalized or member_normalized in normalized


def is_member_match(name: str | None, members: Iterable[str]) -> bool:
    """True if *name* refers to one of *members* (exact, surname, or substring)."""
    if not name:
        return False
    return any(_same_member(name, member) for member in members)


def normalize_to_member(name: str, members: Iterable[str]) -> str:
    """Return the first member *name* refers to, or *name* unchanged."""
    for member in members:
        if _same_member(name, member):
            return member
    return name


def build_section_text(room: RoomSection) -> str:
    return "\n".join(
        [
            f"## {NEXT_ACTIONS_HEADING}",
            *room.next_actions,
            "",
            f"## {REQUIRED_ACTIONS_HEADING}",
            *room.required_actions,
        ]
    )


def _tool_input(response: Any, tool_name: str) -> dict[str, Any] | None:
    """Return the input of the first matching tool_use block."""
    for block in response.content:
        if block.type != "tool_use":
            continue
        if block.name != tool_name:
            continue

        data = block.input
        if isinstance(data, str):
            data = json.loads(data)
        return data  # type: ignore[no-any-return]

    return None


def _parse_task_response(
    response: Any,
    roster: Roster,
    room_name: str,
    source_date: str,
) -> list[Task]:
    """Parse the Claude tool_use response into Task records owned by members."""
    data = _tool_input(response, EXTRACTION_TOOL["name"])
    if data is None:
        return []

    tasks: list[Task] = []
    for item in data.get("tasks", []):
        assignee = (item.get("assignee") or "").strip()
        content = (item.get("content") or "").strip()

        # Assignee may come back as a bare account id.
        for account_id, name in roster.member_ids.items():
            if account_id in assignee:
                assignee = name
                break

        if not assignee or not content:
            continue
        if not is_member_match(assignee, roster.members):
            continue

        try:
            kind = TaskKind(item.get("kind") or TaskKind.NEXT_ACTION)
        except ValueError:
            kind = TaskKind.NEXT_ACTION

        tasks.append(
            Task(
                assignee=normalize_to_member(assignee, roster.members),
                content=content,
                deadline=item.get("deadline") or None,
                room=room_name,
                source_date=source_date,
                kind=kind,
            )
        )

    return tasks


def extract_from_section(
    room: RoomSection,
    source_date: str,
    roster: Roster,
    client: Anthropic | None = None,
    model: str | None = None,
) -> list[Task]:
    """Ask Claude for the member-owned tasks in one room's action sections.

    Failures are logged and yield no tasks for the room.
    """
    text = build_section_text(room)
    if len(text.strip()) < MIN_SECTION_CHARS:
        return []

    text = substitute_member_ids(text, dict(roster.member_ids))
    prompt = EXTRACTION_PROMPT.format(
        members=", ".join(roster.members),
        text=text[:MAX_SECTION_CHARS],
    )

    try:
        response = _get_client(client).messages.create(
            model=model or settings.llm_model,
            max_tokens=1024,
            tools=[EXTRACTION_TOOL],
            tool_choice={"type": "tool", "name": EXTRACTION_TOOL["name"]},
            messages=[{"role": "user", "content": prompt}],
        )
        return _parse_task_response(response, roster, room.name, source_date)
    except (APIError, json.JSONDecodeError):
        logger.exception("LLM extraction failed for room %s (%s)", room.name, source_date)
        return []


def extract_tasks_with_llm(
    reports: Iterable[RawReport],
    roster: Roster,
    client: Anthropic | None = None,
    model: str | None = None,
) -> list[Task]:
    """Extract member-owned tasks from every non-excluded room using Claude.

    Args:
        reports: Parsed daily reports.
        roster: Team members, account-id map and excluded rooms.
        client: Optional Anthropic client (one is created from settings otherwise).
        model: Model name; defaults to ``settings.llm_model``.

    Returns:
        Deduplicated tasks, in report and room order.
    """
    client = _get_client(client)
    all_tasks: list[Task] = []

    for report in reports:
        for room in report.rooms:
            if is_excluded_room(room.name, roster.excluded_rooms):
                continue
            if not room.next_actions and not room.required_actions:
                continue
            all_tasks.extend(extract_from_section(room, report.date, roster, client, model))

    return deduplicate_tasks(all_tasks)


def _format_candidates(batch: list[Task]) -> str:
    return "\n".join(
        f"{i}. 担当者: {t.assignee}, 内容: {t.content}, 期限: {t.deadline or '未設定'}"
        for i, t in enumerate(batch, start=1)
    )


def validate_tasks_with_llm(
    tasks: list[Task],
    client: Anthropic | None = None,
    model: str | None = None,
    batch_size: int | None = None,
) -> list[Task]:
    """Keep only the tasks Claude judges to be real action items.

    A batch whose call fails, or that comes back without verdicts, is kept
    unchanged.
    """
    if not tasks:
        return []

    client = _get_client(client)
    batch_size = batch_size or settings.validation_batch_size
    validated: list[Task] = []

    for start in range(0, len(tasks), batch_size):
        batch = tasks[start : start + batch_size]

        try:
            response = client.messages.create(
                model=model or settings.llm_model,
                max_tokens=1024,
                tools=[VALIDATION_TOOL],
                tool_choice={"type": "tool", "name": VALIDATION_TOOL["name"]},
                messages=[
                    {
                        "role": "user",
                        "content": VALIDATION_PROMPT.format(candidates=_format_candidates(batch)),
                    }
                ],
            )
            data = _tool_input(response, VALIDATION_TOOL["name"])
        except (APIError, json.JSONDecodeError):
            logger.exception("LLM validation failed; keeping batch of %d", len(batch))
            validated.extend(batch)
            continue

        if not data or not data.get("verdicts"):
            logger.warning("No verdicts returned; keeping batch of %d", len(batch))
            validated.extend(batch)
            continue

        accepted = {
            verdict.get("index", 0)
            for verdict in data["verdicts"]
            if verdict.get("is_task")
        }
        validated.extend(task for i, task in enumerate(batch, start=1) if i in accepted)

    return validated
