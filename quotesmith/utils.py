"""
quotesmith.utils - Shared formatting helpers for the CLI views.
"""

from __future__ import annotations


def format_duration(seconds: float) -> str:
    """Clip length or rotation countdown as M:SS (H:MM:SS past an hour)."""
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_size_mb(byte_size: int) -> str:
    """Format a byte count as megabytes with two decimals."""
    return f"{byte_size / (1024 * 1024):.2f} MB"
