"""
quotesmith.orchestrator - Generation state machine.

GenerationOrchestrator owns one generation at a time:

    idle -> analyzing -> completed | failed
    completed | failed -> analyzing   (new submit or "another set")

It turns user commands (upload, topic selection, submit, reset) into explicit
transitions, builds requests from the current context, and records each
successful set in DedupMemory so later sets in the same context avoid it.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from quotesmith.exceptions import (
    GenerationBusyError,
    GenerationError,
    ValidationFault,
)
from quotesmith.llm.builder import build_request
from quotesmith.logging import logger
from quotesmith.media import OVER_LIMIT_MESSAGE, MediaIngest
from quotesmith.memory import DedupMemory
from quotesmith.models import (
    AnalysisStatus,
    GenerationResult,
    LengthBucket,
    MediaAsset,
)
from quotesmith.progress import ProgressEstimator

OVER_LIMIT_SUBMIT_MESSAGE = "视频时长超过5分钟，无法进行二创。请更换视频。"
TRANSPORT_FAILURE_MESSAGE = (
    "网络传输失败：视频文件可能过大，无法直接处理。"
    "请尝试压缩视频或仅使用【自定义主题】进行生成。"
)
UNKNOWN_FAILURE_MESSAGE = "分析过程中发生未知错误，请重试。"
TRANSPORT_FAILURE_SIGNATURES = ("rpc failed", "xhr error", "code: 6")


def user_facing_message(error: Exception) -> str:
    """Message shown for a failed generation.

    Transport failures on large uploads get rewritten into advice to shrink
    the video or switch to topic-only mode.
    """
    message = str(error).strip()
    if not message:
        return UNKNOWN_FAILURE_MESSAGE
    lowered = message.lower()
    if any(signature in lowered for signature in TRANSPORT_FAILURE_SIGNATURES):
        return TRANSPORT_FAILURE_MESSAGE
    return message


class OrchestratorState(BaseModel):
    """Read-only view of the orchestrator for rendering."""

    model_config = ConfigDict(frozen=True)

    status: AnalysisStatus
    progress: float
    media: MediaAsset | None
    topic: str
    length_bucket: LengthBucket
    result: GenerationResult | None
    error: str | None
    remembered: int


class GenerationOrchestrator:
    """Drives a single generation attempt at a time."""

    def __init__(
        self,
        transport: Any,
        ingest: MediaIngest | None = None,
        memory: DedupMemory | None = None,
        progress: ProgressEstimator | None = None,
        length_bucket: LengthBucket | str = LengthBucket.S,
    ) -> None:
        self.transport = transport
        self.ingest = ingest or MediaIngest()
        self.memory = memory or DedupMemory()
        self.progress = progress or ProgressEstimator()
        self._length_bucket = LengthBucket.parse(length_bucket)
        self._status = AnalysisStatus.IDLE
        self._topic = ""
        self._result: GenerationResult | None = None
        self._error: str | None = None

    @classmethod
    def from_config(cls, config: Any, api_key: str | None = None) -> GenerationOrchestrator:
        """Build an orchestrator wired to the Gemini client.

        Raises:
            ConfigError: If no API key is available
        """
        from quotesmith.llm.client import create_client_from_config

        return cls(
            transport=create_client_from_config(config, api_key=api_key),
            ingest=MediaIngest(max_seconds=config.max_video_seconds),
            progress=ProgressEstimator(tick_seconds=config.progress_tick_seconds),
            length_bucket=config.default_length,
        )

    @property
    def status(self) -> AnalysisStatus:
        return self._status

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def length_bucket(self) -> LengthBucket:
        return self._length_bucket

    @property
    def result(self) -> GenerationResult | None:
        return self._result

    @property
    def error(self) -> str | None:
        return self._error

    def snapshot(self) -> OrchestratorState:
        return OrchestratorState(
            status=self._status,
            progress=self.progress.value,
            media=self.ingest.asset,
            topic=self._topic,
            length_bucket=self._length_bucket,
            result=self._result,
            error=self._error,
            remembered=len(self.memory),
        )

    def _ensure_not_analyzing(self) -> None:
        if self._status is AnalysisStatus.ANALYZING:
            raise GenerationBusyError("A generation is already in progress")

    # Context commands

    def upload(self, path: Path | str, mime_type: str | None = None) -> MediaAsset:
        """Load a new video. A new video is a new context, so memory resets.

        Raises:
            ValidationFault: If the file is unreadable or not a video
                (previous state and memory kept, error recorded)
        """
        self._ensure_not_analyzing()
        try:
            asset = self.ingest.set_asset(path, mime_type)
        except ValidationFault as e:
            self._error = str(e)
            raise
        self.memory.reset()
        self._result = None
        self._error = None
        self._status = AnalysisStatus.IDLE
        self.progress.reset()
        return asset

    def report_duration(self, seconds: float) -> MediaAsset:
        """Accept the decoded duration; an over-long video is flagged, not dropped."""
        asset = self.ingest.report_duration(seconds)
        fault = self.ingest.fault
        if fault:
            self._error = fault
        elif self._error in (OVER_LIMIT_MESSAGE, OVER_LIMIT_SUBMIT_MESSAGE):
            self._error = None
        return asset

    def reupload(self) -> None:
        """Drop the current video so another can be chosen."""
        self._ensure_not_analyzing()
        self.ingest.clear()
        self.memory.reset()
        self._error = None

    def set_topic(self, text: str) -> None:
        """Free-text topic edit. Does not clear memory."""
        self._ensure_not_analyzing()
        self._topic = text

    def select_topic(self, topic: str) -> None:
        """Pick a suggested topic. An explicit topic change resets memory."""
        self._ensure_not_analyzing()
        self._topic = topic
        self.memory.reset()

    def set_length(self, bucket: LengthBucket | str) -> None:
        self._ensure_not_analyzing()
        self._length_bucket = LengthBucket.parse(bucket)

    def full_reset(self) -> None:
        """Return to a blank idle state, forgetting media, topic, and memory."""
        self._ensure_not_analyzing()
        self.ingest.clear()
        self.memory.reset()
        self.progress.reset()
        self._topic = ""
        self._result = None
        self._error = None
        self._status = AnalysisStatus.IDLE

    # Generation

    async def submit(self) -> GenerationResult | None:
        """Run one generation with the current context.

        Returns the result on success, None on failure (the failure message
        is in `error` and status is FAILED).

        Raises:
            GenerationBusyError: If a generation is already in flight
            ValidationFault: If the inputs cannot be submitted; no transition
        """
        self._ensure_not_analyzing()

        try:
            if self.ingest.over_limit:
                raise ValidationFault(OVER_LIMIT_SUBMIT_MESSAGE)
            request = build_request(
                media=self.ingest.asset,
                topic=self._topic,
                length_bucket=self._length_bucket,
                avoid=self.memory.snapshot(),
            )
        except ValidationFault as e:
            self._error = str(e)
            raise

        self._status = AnalysisStatus.ANALYZING
        self._error = None
        self.progress.start()
        logger.info(
            "Generating %s set (%s, avoiding %d)",
            "video" if request.media else "topic-only",
            request.length_bucket.value,
            len(request.avoid),
        )

        try:
            media_data = None
            if request.media is not None:
                media_data = await asyncio.to_thread(self.ingest.read_bytes)
            result = await self.transport.send(request, media_data)
        except Exception as e:
            if isinstance(e, GenerationError):
                logger.error("Generation failed: %s", e)
            else:
                logger.exception("Generation failed unexpectedly")
            self._error = user_facing_message(e)
            self._status = AnalysisStatus.FAILED
            self.progress.reset()
            return None

        self.memory.record(result.quotes)
        self._result = result
        self._status = AnalysisStatus.COMPLETED
        self.progress.complete()
        return result

    async def another_set(self) -> GenerationResult | None:
        """Generate again in the same context, avoiding everything so far."""
        return await self.submit()

    def close(self) -> None:
        """Stop timers and release the media handle."""
        self.progress.stop()
        self.ingest.clear()
