"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from quotesmith.library import ALL_CATEGORY, QuoteLibrary
from quotesmith.models import GenerationRequest, GenerationResult, QuoteRecord


class FakeTransport:
    """Stand-in for GenerationClient.

    Hands out queued outcomes in order: a GenerationResult is returned, an
    exception is raised. An optional gate holds every call until set.
    """

    def __init__(self, outcomes: list[Any] | None = None, gate: asyncio.Event | None = None):
        self.outcomes = list(outcomes or [])
        self.gate = gate
        self.requests: list[GenerationRequest] = []
        self.media: list[bytes | None] = []

    async def send(
        self, request: GenerationRequest, media_data: bytes | None = None
    ) -> GenerationResult:
        self.requests.append(request)
        self.media.append(media_data)
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_result(*quotes: str, summary: str = "summary") -> GenerationResult:
    return GenerationResult(summary_text=summary, quotes=tuple(quotes))


@pytest.fixture
def sample_video(tmp_path: Path) -> Path:
    """A fake mp4 file; content is irrelevant to ingest."""
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"fake video content")
    return path


@pytest.fixture
def sample_records() -> tuple[QuoteRecord, ...]:
    """Twenty records: 5 workplace, 3 mortgage, 4 marriage, 4 loneliness, 4 money."""
    specs = [
        ("职场·内卷", "加班到凌晨，工位比家更熟悉。"),
        ("职场·内卷", "老板说DEADLINE是生命线，我的生命却成了底线。"),
        ("职场·内卷", "周报写得越来越漂亮，人却越来越憔悴。"),
        ("职场·内卷", "年终奖是一张饼，画在明年的日历上。"),
        ("职场·内卷", "会议开完了，问题还在原地。"),
        ("房贷·生存", "每个月的还款日都比生日记得清楚。"),
        ("房贷·生存", "三十年的贷款，换一个不敢辞职的自己。"),
        ("房贷·生存", "房子是我的，夜晚的焦虑也是我的。"),
        ("婚姻·情感", "后来我们不吵架了，也不说话了。"),
        ("婚姻·情感", "一张床，两部手机，各自的世界。"),
        ("婚姻·情感", "柴米油盐把浪漫磨成了账单。"),
        ("婚姻·情感", "结婚纪念日，只剩提醒事项还记得。"),
        ("孤独·崩溃", "崩溃是静音的，哭完还要回消息。"),
        ("孤独·崩溃", "深夜的deadline比朋友更常陪着我。"),
        ("孤独·崩溃", "一个人吃饭，连外卖都点双份的满减。"),
        ("孤独·崩溃", "地铁窗户里的那张脸，很久没笑了。"),
        ("金钱·阶层", "有人出生在终点，我还在找起点。"),
        ("金钱·阶层", "没钱的时候，尊严也打折。"),
        ("金钱·阶层", "时间不值钱的人，只能用时间换钱。"),
        ("金钱·阶层", "存款的数字，决定说话的音量。"),
    ]
    return tuple(
        QuoteRecord(id=i, text=text, category=category)
        for i, (category, text) in enumerate(specs, start=1)
    )


@pytest.fixture
def sample_library(sample_records: tuple[QuoteRecord, ...]) -> QuoteLibrary:
    return QuoteLibrary(
        quotes=sample_records,
        categories=(ALL_CATEGORY, "职场·内卷", "房贷·生存", "婚姻·情感", "孤独·崩溃", "金钱·阶层"),
        hot_topics=("房贷压力", "中年失业"),
    )


@pytest.fixture
def sample_config_dict() -> dict:
    """Return a sample configuration dictionary."""
    return {
        "model": "gemini-2.5-flash",
        "timeout": 120,
        "max_retries": 2,
        "retry_delay": 2.0,
        "max_video_seconds": 300.0,
        "default_length": "m",
        "rotation_period_seconds": 120,
        "page_size": 8,
    }


@pytest.fixture
def no_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
