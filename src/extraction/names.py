"""Assignee name validation and normalization against the roster."""

from __future__ import annotations

import re

from src.pipeline_config import Roster

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 15

# Section headers, template words and markup that show up where a name should be.
INVALID_NAME_TOKENS: tuple[str, ...] = (
    "決定事項",
    "発言者",
    "内容",
    "時系列",
    "いつまでに",
    "何を",
    "誰が",
    "スコープ",
    "体制",
    "条件",
    "募集",
    "契約",
    "金額",
    "時期",
    "期限",
    "http",
    "URL",
    "※",
    "【",
    "】",
    "（システム",
    "インフォメーション",
    "**",
    "__",
)

SELF_TOKEN = "自分"

# Hiragana, katakana and CJK unified ideographs.
_JAPANESE_RE = re.compile(r"[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FFF]")
_WHITESPACE_RE = re.compile(r"\s+")
_MENTION_SUFFIX_RE = re.compile(r"@.*$")


def mutually_contains(a: str, b: str) -> bool:
    """True if either string is a substring of the other.

    Shared by name normalization and room exclusion.  Note that the match is
    permissive: ``"宮内"`` and ``"宮内良明"`` match, and so would any name that
    happens to contain a short roster entry.
    """
    return a in b or b in a


def strip_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub("", value)


def is_valid_assignee_name(name: str, roster: Roster) -> bool:
    """Return True if *name* plausibly names a person.

    Japanese names are accepted on sight; anything else must fuzzily match a
    roster member.
    """
    name = name.strip()

    if len(name) < MIN_NAME_LENGTH or len(name) > MAX_NAME_LENGTH:
        return False
    if name[0].isdigit():
        return False
    if any(token in name for token in INVALID_NAME_TOKENS):
        return False
    if _JAPANESE_RE.search(name):
        return True
    compact = strip_whitespace(name)
    return any(mutually_contains(strip_whitespace(member), compact) for member in roster.members)


def find_member(name: str, roster: Roster) -> str | None:
    """Return the first roster member that mutually contains *name*."""
    for member in roster.members:
        if mutually_contains(strip_whitespace(member), name):
            return member
    return None


def normalize_assignee_name(name: str, roster: Roster) -> str:
    """Map a raw assignee string to a canonical owner.

    Invalid names fall back to the operator.  Names outside the roster are
    returned as-is once cleaned; roster filtering happens downstream.
    """
    normalized = name.replace("**", "").strip()
    normalized = _MENTION_SUFFIX_RE.sub("", normalized).strip()

    if SELF_TOKEN in normalized:
        normalized = roster.operator

    normalized = strip_whitespace(normalized)

    if not is_valid_assignee_name(normalized, roster):
        return roster.operator

    return find_member(normalized, roster) or normalized
