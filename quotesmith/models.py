"""
quotesmith.models - Data model shared by the generation and library layers.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_AUTHOR = "大承活法"


class AnalysisStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


class LengthBucket(str, Enum):
    """Target length/style category passed to the model.

    Each bucket also has the reading-time label the quotes were
    originally sized for (10s, 15s, ...).
    """

    XS = "xs"
    S = "s"
    M = "m"
    L = "l"
    XL = "xl"
    XXL = "xxl"

    @property
    def reading_time(self) -> str:
        return _READING_TIMES[self]

    @classmethod
    def parse(cls, value: str | LengthBucket) -> LengthBucket:
        """Parse a bucket name ("m") or reading-time label ("25s")."""
        if isinstance(value, LengthBucket):
            return value
        key = value.strip().lower()
        for bucket in cls:
            if key in (bucket.value, bucket.reading_time):
                return bucket
        valid = [b.value for b in cls] + [b.reading_time for b in cls]
        raise ValueError(f"Unknown length bucket '{value}'. Use one of: {', '.join(valid)}")


_READING_TIMES = {
    LengthBucket.XS: "10s",
    LengthBucket.S: "15s",
    LengthBucket.M: "25s",
    LengthBucket.L: "60s",
    LengthBucket.XL: "3m",
    LengthBucket.XXL: "5m",
}


class MediaAsset(BaseModel):
    """An uploaded video. duration_seconds == 0 means not yet known."""

    model_config = ConfigDict(frozen=True)

    path: Path
    mime_type: str
    byte_size: int = Field(ge=0)
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def size_mb(self) -> float:
        return self.byte_size / (1024 * 1024)


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    media: MediaAsset | None = None
    topic: str | None = None
    length_bucket: LengthBucket = LengthBucket.S
    avoid: tuple[str, ...] = ()

    @property
    def topic_only(self) -> bool:
        return self.media is None


class GenerationResult(BaseModel):
    """Parsed model output. Three quotes are asked for but not enforced."""

    model_config = ConfigDict(frozen=True)

    summary_text: str
    quotes: tuple[str, ...]


class QuoteRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    text: str
    category: str
    author: str = DEFAULT_AUTHOR
