"""
quotesmith.progress - Simulated progress for an in-flight generation.

The remote call reports no progress, so this only gives the user something
that moves: fast at first, slowing as it approaches a 95% ceiling, then
snapping to 100% when the result lands.
"""

from __future__ import annotations

import asyncio
import random

CEILING = 95.0
SLOWDOWN_THRESHOLD = 90.0
MIN_INCREMENT = 0.2

STAGE_CAPTIONS = (
    (25.0, "小渝兒正在接收信号源... (Signal Receiving)"),
    (50.0, "系统正在解构视频情感... (Decoding Emotions)"),
    (75.0, "正在检索人间清醒数据库... (Accessing Database)"),
)
FINAL_CAPTION = "正在生成扎心语录... (Generating)"


def stage_caption(value: float) -> str:
    """Loading caption for a progress value."""
    for upper, caption in STAGE_CAPTIONS:
        if value < upper:
            return caption
    return FINAL_CAPTION


class ProgressEstimator:
    """Display-only progress signal driven by a repeating asyncio tick."""

    def __init__(self, tick_seconds: float = 0.15, rng: random.Random | None = None) -> None:
        self.tick_seconds = tick_seconds
        self._rng = rng or random.Random()
        self._value = 0.0
        self._task: asyncio.Task[None] | None = None

    @property
    def value(self) -> float:
        return self._value

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def advance(self) -> float:
        """Apply one tick and return the new value.

        The step is random and proportional to the distance left to the
        ceiling. Past the slowdown threshold the value holds until resolved.
        """
        if self._value < SLOWDOWN_THRESHOLD:
            remaining = CEILING - self._value
            increment = max(MIN_INCREMENT, remaining * 0.05 * self._rng.random())
            self._value = min(CEILING, self._value + increment)
        return self._value

    def start(self) -> None:
        """Reset to 0 and begin ticking. Must be called inside a running loop."""
        self.stop()
        self._value = 0.0
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_seconds)
            self.advance()

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def complete(self) -> None:
        self.stop()
        self._value = 100.0

    def reset(self) -> None:
        self.stop()
        self._value = 0.0
