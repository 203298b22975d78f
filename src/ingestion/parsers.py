"""Parser for daily Chatwork reports written as Obsidian markdown.

A report is a sequence of callout blocks, one per room::

    > [!note] 営業チーム
    > ## 次アクション
    > - **宮内良明**：資料送付（1/20）
    > ## 要対応
    > - 見積書を確認する
    > ## 自分への関係
    > - 自分宛てメンション: 2件

Rooms are split on the callout header, then each room's sub-sections are
reduced to plain action lines.  Malformed sections are dropped silently.
"""

from __future__ import annotations

import re

from src.ingestion.models import RawReport, RoomSection, SelfRelation

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")

# Split point: the start of every callout header line.
_ROOM_SPLIT_RE = re.compile(r"(?=^> \[!(?:note|info)\])", re.MULTILINE)
_ROOM_HEADER_RE = re.compile(r"> \[!(?:note|info)\] (.+)")

NEXT_ACTIONS_HEADING = "次アクション"
REQUIRED_ACTIONS_HEADING = "要対応"
SELF_RELATION_HEADING = "自分への関係"

NONE_LITERAL = "なし"
# "なし", "なし（特になし）", "- なし"
_NONE_PLACEHOLDER_RE = re.compile(r"^(?:[-*]\s*)?なし(?:（.*）)?$")
WHO_WHAT_WHEN_PLACEHOLDER = "誰が・何を・いつまでに"
NO_DEADLINE_ACTION_PLACEHOLDER = "期限付きアクションは記載されていない"

_QUOTE_PREFIX_RE = re.compile(r"^>\s*")
_MENTION_RE = re.compile(r"自分宛てメンション:\s*(?:あり|\d+件)")
_MESSAGE_RE = re.compile(r"自分の発言:\s*(?:あり|\d+件)")


def derive_report_date(identifier: str) -> str:
    """Return the ``YYYY-MM-DD`` date found in *identifier*, or *identifier* itself."""
    match = _DATE_RE.search(identifier)
    return match.group(0) if match else identifier


def parse_report(content: str, identifier: str) -> RawReport:
    """Parse one day's report text into a :class:`RawReport`.

    Args:
        content: Raw markdown of the report.
        identifier: Source identifier (usually the file stem); the report
            date is derived from it.
    """
    return RawReport(
        date=derive_report_date(identifier),
        identifier=identifier,
        rooms=parse_rooms(content),
    )


def parse_rooms(content: str) -> list[RoomSection]:
    """Split report text into room sections, in document order."""
    rooms: list[RoomSection] = []
    content = content.replace("\r\n", "\n")

    for segment in _ROOM_SPLIT_RE.split(content):
        if not segment.strip():
            continue

        # Text before the first header has no header of its own and is dropped here.
        header = _ROOM_HEADER_RE.match(segment)
        if not header:
            continue

        name = header.group(1).strip()
        if not name:
            continue

        rooms.append(
            RoomSection(
                name=name,
                next_actions=extract_next_actions(segment),
                required_actions=extract_required_actions(segment),
                self_relation=extract_self_relation(segment),
            )
        )

    return rooms


def _subsection(segment: str, heading: str) -> str | None:
    """Return the body under ``## <heading>`` up to the next level-2 heading."""
    pattern = re.compile(
        rf"^(?:>[ \t]*)?## {re.escape(heading)}[ \t]*\n(.*?)(?=^(?:>[ \t]*)?## |\Z)",
        re.MULTILINE | re.DOTALL,
    )
    match = pattern.search(segment)
    return match.group(1) if match else None


def _is_none_placeholder(line: str) -> bool:
    return bool(_NONE_PLACEHOLDER_RE.match(line))


def _bullet_content(line: str) -> str | None:
    if line in ("-", "*"):
        return ""
    if line.startswith(("- ", "* ")):
        return line[2:].strip()
    return None


def _action_lines(body: str, *, required: bool) -> list[str]:
    actions: list[str] = []

    for raw in body.splitlines():
        line = _QUOTE_PREFIX_RE.sub("", raw).strip()

        if not line or line.startswith("#"):
            continue
        if _is_none_placeholder(line):
            continue
        if WHO_WHAT_WHEN_PLACEHOLDER in line:
            continue
        if not required and NO_DEADLINE_ACTION_PLACEHOLDER in line:
            continue

        content = _bullet_content(line)
        if content is not None:
            if content and content != NONE_LITERAL:
                actions.append(content)
        elif required and not line.startswith(">"):
            # Required actions are sometimes written as prose.
            actions.append(line)

    return actions


def extract_next_actions(segment: str) -> list[str]:
    """Return the action lines under the room's "next actions" heading."""
    body = _subsection(segment, NEXT_ACTIONS_HEADING)
    if body is None:
        return []
    return _action_lines(body, required=False)


def extract_required_actions(segment: str) -> list[str]:
    """Return the action lines under the room's "required actions" heading."""
    body = _subsection(segment, REQUIRED_ACTIONS_HEADING)
    if body is None:
        return []
    return _action_lines(body, required=True)


def extract_self_relation(segment: str) -> SelfRelation | None:
    """Detect whether the operator was mentioned in, or posted to, the room.

    Returns ``None`` when the room has no self-relation sub-section.
    """
    body = _subsection(segment, SELF_RELATION_HEADING)
    if body is None:
        return None
    return SelfRelation(
        has_mention=bool(_MENTION_RE.search(body)),
        has_message=bool(_MESSAGE_RE.search(body)),
    )
