"""
quotesmith.llm.builder - Generation request assembly.

Builds the immutable GenerationRequest from the current inputs and holds the
length-bucket table the instruction prompt refers to.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple

from quotesmith.exceptions import ValidationFault
from quotesmith.models import GenerationRequest, LengthBucket, MediaAsset

MISSING_INPUT_MESSAGE = "请至少上传一个视频或输入一个主题。"


class LengthTarget(NamedTuple):
    chars: int
    framing: str
    directive: str


LENGTH_TARGETS: dict[LengthBucket, LengthTarget] = {
    LengthBucket.XS: LengthTarget(
        20,
        "punchy headline",
        "极短（读完约10秒），像短视频标题一样一针见血，20字左右。",
    ),
    LengthBucket.S: LengthTarget(
        35,
        "quotable card",
        "短句（读完约15秒），适合做成金句卡片，35字左右。",
    ),
    LengthBucket.M: LengthTarget(
        60,
        "spoken caption, one emotional build",
        "中长句（读完约25秒），适合口播文案，60字左右，先铺垫一次情绪再落点。",
    ),
    LengthBucket.L: LengthTarget(
        300,
        "monologue, deep analysis",
        "长独白（读完约60秒），约300字，深度剖析一个具体处境。",
    ),
    LengthBucket.XL: LengthTarget(
        800,
        "escalating long-form essay",
        "深度长文（读完约3分钟），800字左右，层层递进，像一篇完整的社会观察小作文。",
    ),
    LengthBucket.XXL: LengthTarget(
        1500,
        "documentary-scale narrative",
        "纪录片式超长独白（读完约5分钟），1500字以上，宏大叙事与具体细节交织。",
    ),
}


def normalize_topic(topic: str | None) -> str | None:
    """Blank topics count as no topic."""
    if topic is None:
        return None
    topic = topic.strip()
    return topic or None


def build_request(
    media: MediaAsset | None,
    topic: str | None,
    length_bucket: LengthBucket | str = LengthBucket.S,
    avoid: Iterable[str] = (),
) -> GenerationRequest:
    """Assemble a generation request.

    Args:
        media: Loaded video, or None for topic-only mode
        topic: Free-text topic, or None
        length_bucket: Target length/style bucket
        avoid: Previously generated quotes the model should not repeat

    Returns:
        Immutable GenerationRequest

    Raises:
        ValidationFault: If neither media nor a non-blank topic is given
    """
    topic = normalize_topic(topic)
    if media is None and topic is None:
        raise ValidationFault(MISSING_INPUT_MESSAGE)

    return GenerationRequest(
        media=media,
        topic=topic,
        length_bucket=LengthBucket.parse(length_bucket),
        avoid=tuple(avoid),
    )
