"""Tests for Settings, the Roster value, and the task enums."""

from __future__ import annotations

import pytest

from src.config import Settings
from src.extraction.models import Task, TaskKind, TaskStatus
from src.pipeline_config import Roster, roster_from_settings

# ---------------------------------------------------------------------------
# Enum tests
# ---------------------------------------------------------------------------


class TestTaskKind:
    def test_values(self) -> None:
        assert TaskKind.NEXT_ACTION.value == "next_action"
        assert TaskKind.REQUIRED_ACTION.value == "required_action"

    def test_from_string(self) -> None:
        assert TaskKind("next_action") is TaskKind.NEXT_ACTION

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            TaskKind("ai_extracted")

    def test_is_str_subclass(self) -> None:
        """Enum values behave as plain strings for JSON serialization."""
        assert isinstance(TaskKind.NEXT_ACTION, str)


class TestTaskStatus:
    def test_values(self) -> None:
        assert TaskStatus.PENDING.value == "pending"
        assert TaskStatus.COMPLETED.value == "completed"

    def test_new_task_is_pending(self) -> None:
        task = Task("宮内良明", "送付", "営業", "2026-01-14", TaskKind.NEXT_ACTION)
        assert task.status is TaskStatus.PENDING
        assert task.key == ("宮内良明", "送付")

    def test_task_immutable(self) -> None:
        task = Task("宮内良明", "送付", "営業", "2026-01-14", TaskKind.NEXT_ACTION)
        with pytest.raises(AttributeError):
            task.assignee = "安田太郎"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Roster tests
# ---------------------------------------------------------------------------


class TestRoster:
    def test_defaults(self) -> None:
        roster = Roster(members=("宮内良明",), operator="宮内良明")
        assert roster.member_ids == {}
        assert roster.excluded_rooms == ()

    def test_blank_entries_dropped(self) -> None:
        roster = Roster(
            members=(" 宮内良明 ", "", "  "),
            operator="宮内良明",
            member_ids={"": "x", "123": " 宮内良明 "},
            excluded_rooms=("雑談", ""),
        )
        assert roster.members == ("宮内良明",)
        assert roster.member_ids == {"123": "宮内良明"}
        assert roster.excluded_rooms == ("雑談",)

    def test_order_preserved(self) -> None:
        roster = Roster(members=("安田太郎", "宮内良明"), operator="安田太郎")
        assert roster.members == ("安田太郎", "宮内良明")

    def test_account_ids(self) -> None:
        roster = Roster(members=("宮内良明",), operator="宮内良明", member_ids={"123": "宮内良明"})
        assert roster.account_ids == {"宮内良明": "123"}

    def test_immutable(self) -> None:
        roster = Roster(members=("宮内良明",), operator="宮内良明")
        with pytest.raises(AttributeError):
            roster.operator = "安田太郎"  # type: ignore[misc]


class TestRosterFromSettings:
    def test_explicit_operator(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            operator_name="安部直樹",
            team_members=["宮内良明", "安田太郎"],
            excluded_rooms=["パートナーA"],
        )
        roster = roster_from_settings(settings)
        assert roster.operator == "安部直樹"
        assert roster.members == ("宮内良明", "安田太郎")
        assert roster.excluded_rooms == ("パートナーA",)

    def test_operator_defaults_to_first_member(self) -> None:
        settings = Settings(_env_file=None, team_members=["宮内良明", "安田太郎"])  # type: ignore[call-arg]
        assert roster_from_settings(settings).operator == "宮内良明"

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TEAM_MEMBERS", '["宮内良明", "安田太郎"]')
        monkeypatch.setenv("MEMBER_IDS", '{"08011112222": "安田太郎"}')
        monkeypatch.setenv("OPERATOR_NAME", "安部直樹")

        roster = roster_from_settings(Settings(_env_file=None))  # type: ignore[call-arg]

        assert roster.members == ("宮内良明", "安田太郎")
        assert roster.member_ids == {"08011112222": "安田太郎"}
        assert roster.operator == "安部直樹"
        assert roster.excluded_rooms == ()
