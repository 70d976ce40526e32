"""
quotesmith.library - Built-in quote collection, categories, and hot topics.

Loaded once from the bundled quotes.yaml; nothing here mutates the records.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from quotesmith.exceptions import ConfigError
from quotesmith.models import QuoteRecord

ALL_CATEGORY = "全部"
DATA_FILE = Path(__file__).parent / "data" / "quotes.yaml"


class QuoteLibrary:
    """Immutable quote collection with its category list and suggested topics."""

    def __init__(
        self,
        quotes: tuple[QuoteRecord, ...],
        categories: tuple[str, ...] = (ALL_CATEGORY,),
        hot_topics: tuple[str, ...] = (),
    ) -> None:
        self.quotes = quotes
        self.categories = categories
        self.hot_topics = hot_topics

    def __len__(self) -> int:
        return len(self.quotes)

    def partition(self, category: str) -> tuple[QuoteRecord, ...]:
        """Records in a category, or every record for the all-category."""
        if category == ALL_CATEGORY:
            return self.quotes
        return tuple(q for q in self.quotes if q.category == category)

    def search(self, term: str) -> list[QuoteRecord]:
        """Case-insensitive substring match over the whole collection."""
        needle = term.lower()
        return [q for q in self.quotes if needle in q.text.lower()]


def parse_library(data: dict[str, Any]) -> QuoteLibrary:
    """Build a QuoteLibrary from the raw YAML mapping.

    Raises:
        ConfigError: If the data is malformed or ids repeat
    """
    try:
        quotes = tuple(QuoteRecord(**item) for item in data.get("quotes", []))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid quote record: {e}") from e

    ids = [q.id for q in quotes]
    if len(ids) != len(set(ids)):
        raise ConfigError("Quote ids must be unique")

    categories = tuple(data.get("categories") or (ALL_CATEGORY,))
    if ALL_CATEGORY not in categories:
        categories = (ALL_CATEGORY,) + categories

    return QuoteLibrary(
        quotes=quotes,
        categories=categories,
        hot_topics=tuple(data.get("hot_topics", [])),
    )


def load_library(path: Path | None = None) -> QuoteLibrary:
    """Load the quote library from YAML (the bundled file by default)."""
    path = path or DATA_FILE
    if not path.exists():
        raise FileNotFoundError(f"Quote library not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return parse_library(data)
