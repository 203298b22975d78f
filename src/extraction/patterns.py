"""Rule-based parsing of a single action line into a Candidate.

Matchers are tried in priority order.  A matcher that fits the text but
yields an implausible assignee does not end the search; the next matcher
gets a chance.  Only a validated assignee stops it.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from src.extraction.models import Candidate
from src.extraction.names import is_valid_assignee_name
from src.pipeline_config import Roster

# Lines containing any of these are template boilerplate, not tasks.
PLACEHOLDER_PHRASES: tuple[str, ...] = (
    "誰が・何を・いつまでに",
    "期限付きアクションは記載されていない",
    "承認が完了し",
)

_MENTION_SUFFIX_RE = re.compile(r"@.*$")


def _strip_mention(assignee: str) -> str:
    return _MENTION_SUFFIX_RE.sub("", assignee).strip()


@dataclass(frozen=True)
class ActionLineMatcher:
    """One pattern rule: groups are (assignee, content, deadline)."""

    name: str
    pattern: re.Pattern[str]
    clean_assignee: Callable[[str], str] = str.strip

    def match(self, line: str) -> Candidate | None:
        m = self.pattern.match(line)
        if not m:
            return None

        assignee = self.clean_assignee(m.group(1).strip())
        content = m.group(2).strip()
        if not content:
            return None

        deadline = m.group(3)
        return Candidate(
            assignee=assignee,
            content=content,
            deadline=deadline.strip() if deadline else None,
        )


# Ordered from most to least specific.
ACTION_LINE_MATCHERS: tuple[ActionLineMatcher, ...] = (
    # **宮内良明**：資料送付（1/20）
    ActionLineMatcher(
        "bold",
        re.compile(r"^\*\*(.+?)\*\*[：:]\s*(.+?)(?:（(.+?)）)?$"),
    ),
    # 宮内さんが資料を送付（1/20）
    ActionLineMatcher(
        "narrative",
        re.compile(r"^(.+?)さんが(.+?)(?:（(.+?)）)?$"),
    ),
    # 宮内@営業が・資料送付・1/20
    ActionLineMatcher(
        "triple",
        re.compile(r"^(.+?)が・(.+?)・(.+?)$"),
        clean_assignee=_strip_mention,
    ),
    # 宮内：資料送付（1/20）
    ActionLineMatcher(
        "colon",
        re.compile(r"^(.+?)[：:]\s*(.+?)(?:（(.+?)）)?$"),
    ),
)


def is_placeholder(line: str) -> bool:
    return any(phrase in line for phrase in PLACEHOLDER_PHRASES)


def extract_candidate(
    line: str,
    roster: Roster,
    matchers: tuple[ActionLineMatcher, ...] = ACTION_LINE_MATCHERS,
) -> Candidate | None:
    """Parse *line* into a Candidate whose assignee passes validation.

    Returns ``None`` for placeholder lines and for lines no matcher can
    attribute to a plausible person.
    """
    if is_placeholder(line):
        return None

    for matcher in matchers:
        candidate = matcher.match(line)
        if candidate is not None and is_valid_assignee_name(candidate.assignee, roster):
            return candidate

    return None
