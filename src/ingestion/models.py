"""Data models for parsed daily chat reports."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SelfRelation:
    """How the operator is involved in a room on a given day."""

    has_mention: bool
    has_message: bool


@dataclass(frozen=True)
class RoomSection:
    """One room's section of a daily report."""

    name: str
    next_actions: list[str] = field(default_factory=list)
    required_actions: list[str] = field(default_factory=list)
    self_relation: SelfRelation | None = None


@dataclass(frozen=True)
class RawReport:
    """A single day's report, split into rooms."""

    date: str
    identifier: str
    rooms: list[RoomSection] = field(default_factory=list)
