"""Tests for Claude-backed extraction and validation (no external APIs required)."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, patch

import httpx
from anthropic import APIError

from src.extraction.extractor import (
    EXTRACTION_TOOL,
    VALIDATION_TOOL,
    _parse_task_response,
    build_section_text,
    extract_tasks_with_llm,
    is_member_match,
    normalize_to_member,
    substitute_member_ids,
    validate_tasks_with_llm,
)
from src.extraction.models import Task, TaskKind
from src.ingestion.models import RawReport, RoomSection
from src.pipeline_config import Roster


def _tool_response(name: str, data: Any) -> MagicMock:
    tool_block = MagicMock()
    tool_block.type = "tool_use"
    tool_block.name = name
    tool_block.input = data

    response = MagicMock()
    response.content = [tool_block]
    return response


def _api_error() -> APIError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    return APIError("overloaded", request, body=None)


def _task(assignee: str, content: str) -> Task:
    return Task(assignee, content, "開発", "2026-01-14", TaskKind.NEXT_ACTION)


class TestMemberMatching:
    def test_exact_ignoring_whitespace(self) -> None:
        assert is_member_match("宮内 良明", ["宮内良明"])

    def test_same_surname(self) -> None:
        assert is_member_match("佐藤花子", ["佐藤有一"]) is False
        assert is_member_match("五十嵐太郎", ["五十嵐光"])

    def test_substring(self) -> None:
        assert is_member_match("宮内", ["宮内良明"])

    def test_missing_name(self) -> None:
        assert not is_member_match(None, ["宮内良明"])
        assert not is_member_match("", ["宮内良明"])

    def test_non_member(self) -> None:
        assert not is_member_match("伊藤蒼星", ["宮内良明", "安田太郎"])

    def test_normalize_to_member(self) -> None:
        assert normalize_to_member("五十嵐さん", ["宮内良明", "五十嵐光"]) == "五十嵐光"
        assert normalize_to_member("伊藤", ["宮内良明"]) == "伊藤"


class TestSubstituteMemberIds:
    def test_both_forms(self) -> None:
        text = "担当※08011112222、確認(08011112222)"
        assert substitute_member_ids(text, {"08011112222": "安田太郎"}) == "担当（安田太郎）、確認（安田太郎）"

    def test_no_ids(self) -> None:
        assert substitute_member_ids("そのまま", {}) == "そのまま"


class TestBuildSectionText:
    def test_layout(self) -> None:
        room = RoomSection(name="開発", next_actions=["A"], required_actions=["B"])
        assert build_section_text(room) == "## 次アクション\nA\n\n## 要対応\nB"


class TestParseTaskResponse:
    def test_filters_and_normalizes(self, roster: Roster) -> None:
        response = _tool_response(
            EXTRACTION_TOOL["name"],
            {
                "tasks": [
                    {"assignee": "宮内", "content": "資料送付", "deadline": "1/20", "kind": "required_action"},
                    {"assignee": "伊藤蒼星", "content": "対象外"},
                    {"assignee": "08011112222", "content": "見積作成"},
                    {"assignee": "宮内良明", "content": "   "},
                    {"assignee": "宮内良明", "content": "変な種別", "kind": "other"},
                ]
            },
        )

        tasks = _parse_task_response(response, roster, "営業", "2026-01-14")

        assert [(t.assignee, t.content, t.deadline, t.kind) for t in tasks] == [
            ("宮内良明", "資料送付", "1/20", TaskKind.REQUIRED_ACTION),
            ("安田太郎", "見積作成", None, TaskKind.NEXT_ACTION),
            ("宮内良明", "変な種別", None, TaskKind.NEXT_ACTION),
        ]
        assert all(t.room == "営業" and t.source_date == "2026-01-14" for t in tasks)

    def test_string_input(self, roster: Roster) -> None:
        response = _tool_response(
            EXTRACTION_TOOL["name"], '{"tasks": [{"assignee": "宮内良明", "content": "送付"}]}'
        )
        assert len(_parse_task_response(response, roster, "営業", "2026-01-14")) == 1

    def test_ignores_non_tool_blocks(self, roster: Roster) -> None:
        text_block = MagicMock()
        text_block.type = "text"
        response = MagicMock()
        response.content = [text_block]
        assert _parse_task_response(response, roster, "営業", "2026-01-14") == []


class TestExtractTasksWithLLM:
    def _reports(self) -> list[RawReport]:
        return [
            RawReport(
                date="2026-01-14",
                identifier="2026-01-14",
                rooms=[
                    RoomSection(name="営業", next_actions=["**宮内**：資料送付"]),
                    RoomSection(name="社外_パートナーA", next_actions=["**宮内**：契約書送付"]),
                    RoomSection(name="雑談"),
                    RoomSection(name="開発", required_actions=["宮内さんがレビュー"]),
                ],
            )
        ]

    def test_one_call_per_eligible_room(self, roster: Roster) -> None:
        client = MagicMock()
        client.messages.create.return_value = _tool_response(
            EXTRACTION_TOOL["name"], {"tasks": [{"assignee": "宮内良明", "content": "資料送付"}]}
        )

        tasks = extract_tasks_with_llm(self._reports(), roster, client=client, model="test-model")

        assert client.messages.create.call_count == 2
        # The same task from two rooms is deduplicated.
        assert [(t.assignee, t.room) for t in tasks] == [("宮内良明", "営業")]

        call_kwargs = client.messages.create.call_args.kwargs
        assert call_kwargs["model"] == "test-model"
        assert call_kwargs["tool_choice"] == {"type": "tool", "name": "store_tasks"}
        assert "安部直樹, 宮内良明, 安田太郎" in call_kwargs["messages"][0]["content"]

    def test_failed_room_is_skipped(self, roster: Roster) -> None:
        client = MagicMock()
        client.messages.create.side_effect = [
            _api_error(),
            _tool_response(EXTRACTION_TOOL["name"], {"tasks": [{"assignee": "宮内", "content": "レビュー"}]}),
        ]

        tasks = extract_tasks_with_llm(self._reports(), roster, client=client)

        assert [(t.content, t.room) for t in tasks] == [("レビュー", "開発")]

    @patch("src.extraction.extractor.Anthropic")
    def test_client_created_from_settings(self, mock_anthropic_cls: MagicMock, roster: Roster) -> None:
        mock_client = MagicMock()
        mock_anthropic_cls.return_value = mock_client
        mock_client.messages.create.return_value = _tool_response(EXTRACTION_TOOL["name"], {"tasks": []})

        result = extract_tasks_with_llm(self._reports(), roster)

        mock_anthropic_cls.assert_called_once()
        assert result == []

    def test_malformed_tool_input_skips_room(self, roster: Roster) -> None:
        client = MagicMock()
        client.messages.create.side_effect = [
            _tool_response(EXTRACTION_TOOL["name"], "{not json"),
            _tool_response(EXTRACTION_TOOL["name"], {"tasks": [{"assignee": "宮内", "content": "レビュー"}]}),
        ]

        tasks = extract_tasks_with_llm(self._reports(), roster, client=client)

        assert [(t.content, t.room) for t in tasks] == [("レビュー", "開発")]


class TestValidateTasksWithLLM:
    def test_keeps_only_confirmed(self) -> None:
        client = MagicMock()
        client.messages.create.return_value = _tool_response(
            VALIDATION_TOOL["name"],
            {
                "verdicts": [
                    {"index": 1, "is_task": True, "reason": "具体的なアクション"},
                    {"index": 2, "is_task": False, "reason": "完了報告"},
                    {"index": 9, "is_task": True},
                ]
            },
        )
        tasks = [_task("宮内良明", "送付"), _task("安田太郎", "送付済みの報告")]

        assert validate_tasks_with_llm(tasks, client=client) == [tasks[0]]

    def test_batches(self) -> None:
        client = MagicMock()
        client.messages.create.return_value = _tool_response(
            VALIDATION_TOOL["name"], {"verdicts": [{"index": 1, "is_task": True}]}
        )
        tasks = [_task("宮内良明", "a"), _task("宮内良明", "b"), _task("宮内良明", "c")]

        assert validate_tasks_with_llm(tasks, client=client, batch_size=1) == tasks
        assert client.messages.create.call_count == 3

    def test_repeated_verdict_keeps_task_once(self) -> None:
        client = MagicMock()
        client.messages.create.return_value = _tool_response(
            VALIDATION_TOOL["name"],
            {
                "verdicts": [
                    {"index": 2, "is_task": True},
                    {"index": 1, "is_task": True},
                    {"index": 2, "is_task": True},
                ]
            },
        )
        tasks = [_task("宮内良明", "a"), _task("宮内良明", "b")]

        assert validate_tasks_with_llm(tasks, client=client) == tasks

    def test_malformed_verdicts_keep_batch(self) -> None:
        client = MagicMock()
        client.messages.create.return_value = _tool_response(VALIDATION_TOOL["name"], "{not json")
        tasks = [_task("宮内良明", "a")]

        assert validate_tasks_with_llm(tasks, client=client) == tasks

    def test_failed_batch_is_kept(self) -> None:
        client = MagicMock()
        client.messages.create.side_effect = _api_error()
        tasks = [_task("宮内良明", "a")]

        assert validate_tasks_with_llm(tasks, client=client) == tasks

    def test_missing_verdicts_keeps_batch(self) -> None:
        client = MagicMock()
        client.messages.create.return_value = _tool_response(VALIDATION_TOOL["name"], {"verdicts": []})
        tasks = [_task("宮内良明", "a")]

        assert validate_tasks_with_llm(tasks, client=client) == tasks

    def test_empty(self) -> None:
        client = MagicMock()
        assert validate_tasks_with_llm([], client=client) == []
        client.messages.create.assert_not_called()
