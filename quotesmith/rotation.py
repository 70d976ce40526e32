"""
quotesmith.rotation - Periodic re-sampling of the visible library quotes.

Every rotation period the scheduler draws a fresh random page of quotes from
the selected category. A non-empty search term replaces the rotated page with
search matches across the whole collection; clearing the term brings the last
rotated page back without forcing a new draw.
"""

from __future__ import annotations

import asyncio
import random

from quotesmith.library import ALL_CATEGORY, QuoteLibrary
from quotesmith.logging import logger
from quotesmith.models import QuoteRecord


class RotationScheduler:
    """Drives the visible quote set and the countdown to the next rotation."""

    def __init__(
        self,
        library: QuoteLibrary,
        period_seconds: int = 120,
        page_size: int = 8,
        rng: random.Random | None = None,
    ) -> None:
        self.library = library
        self.period_seconds = period_seconds
        self.page_size = page_size
        self._rng = rng or random.Random()
        self._category = ALL_CATEGORY
        self._search = ""
        self._visible: tuple[QuoteRecord, ...] = ()
        self._countdown = period_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def category(self) -> str:
        return self._category

    @property
    def countdown(self) -> int:
        """Seconds until the next automatic rotation."""
        return self._countdown

    @property
    def visible(self) -> tuple[QuoteRecord, ...]:
        """The last rotated page, regardless of any active search."""
        return self._visible

    @property
    def searching(self) -> bool:
        return bool(self._search)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def refresh(self, category: str | None = None) -> tuple[QuoteRecord, ...]:
        """Draw a new page from the category and restart the countdown."""
        if category is not None:
            self._category = category
        pool = list(self.library.partition(self._category))
        self._rng.shuffle(pool)
        self._visible = tuple(pool[: self.page_size])
        self._countdown = self.period_seconds
        logger.debug("Rotated %d quotes from %s", len(self._visible), self._category)
        return self._visible

    def select_category(self, category: str) -> tuple[QuoteRecord, ...]:
        if category not in self.library.categories:
            raise ValueError(f"Unknown category: {category}")
        return self.refresh(category)

    def set_search(self, term: str) -> None:
        self._search = term.strip()

    def display(self) -> list[QuoteRecord]:
        """What the library view should show right now."""
        if self._search:
            return self.library.search(self._search)
        return list(self._visible)

    def tick(self) -> bool:
        """Advance the countdown by one second. Returns True if it rotated."""
        if self._countdown <= 1:
            self.refresh()
            return True
        self._countdown -= 1
        return False

    def start(self) -> None:
        """Show a first page and begin the one-second tick."""
        self.stop()
        self.refresh()
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(1)
            self.tick()

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
