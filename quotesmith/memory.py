"""
quotesmith.memory - Memory of quotes already generated in the current context.

The remembered quotes are sent back with the next request as an "avoid" list
so the model does not hand out the same lines again on "another set".
"""

from __future__ import annotations

from collections.abc import Iterable


class DedupMemory:
    """Append-only record of generated quotes, cleared when context changes."""

    def __init__(self) -> None:
        self._quotes: list[str] = []

    def __len__(self) -> int:
        return len(self._quotes)

    def record(self, quotes: Iterable[str]) -> None:
        self._quotes.extend(quotes)

    def reset(self) -> None:
        self._quotes.clear()

    def snapshot(self) -> list[str]:
        """Return a copy of the remembered quotes, oldest first."""
        return list(self._quotes)
