"""Shared fixtures: a small roster and a two-room daily report."""

from __future__ import annotations

import pytest

from src.pipeline_config import Roster

SAMPLE_REPORT = """# 2026-01-14 Chatwork ログ

今日のまとめ

> [!note] 営業チーム
> ## 次アクション
> - **宮内良明**：資料送付（1/20）
> - 誰が・何を・いつまでに: 明確な期限指定なし
> - 安田さんが見積書を作成（今週中）
> ## 要対応
> - 資料を確認してください
> ## 自分への関係
> - 自分宛てメンション: 2件
> - 自分の発言: なし

> [!info] 社外_パートナーA
> ## 次アクション
> - **宮内良明**：契約書送付
> ## 要対応
> なし
"""


@pytest.fixture
def roster() -> Roster:
    return Roster(
        members=("安部直樹", "宮内良明", "安田太郎"),
        operator="安部直樹",
        member_ids={"08011112222": "安田太郎"},
        excluded_rooms=("パートナーA",),
    )


@pytest.fixture
def sample_report_text() -> str:
    return SAMPLE_REPORT
