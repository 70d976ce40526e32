"""
quotesmith.media - Uploaded video validation and handle management.

MediaIngest owns the single loaded video: it checks the content type on
upload, takes the decoded duration when the caller reports it, and holds an
open file handle for reading the bytes at submit time. The handle is released
whenever the asset is cleared or replaced.
"""

from __future__ import annotations

import json
import mimetypes
import shutil
import subprocess
from pathlib import Path
from typing import BinaryIO

from quotesmith.exceptions import MediaProbeError, ValidationFault
from quotesmith.logging import logger
from quotesmith.models import MediaAsset

INVALID_TYPE_MESSAGE = "请上传有效的视频文件 (MP4, MOV等)"
OVER_LIMIT_MESSAGE = "视频时长超过限制（最大5分钟）。请上传较短的视频。"


def guess_mime_type(path: Path) -> str:
    """Guess a content type from the file name, empty string if unknown."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or ""


class MediaIngest:
    """Holds at most one uploaded video and its transient file handle."""

    def __init__(self, max_seconds: float = 300.0) -> None:
        self.max_seconds = max_seconds
        self._asset: MediaAsset | None = None
        self._handle: BinaryIO | None = None

    def __enter__(self) -> MediaIngest:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.clear()

    @property
    def asset(self) -> MediaAsset | None:
        return self._asset

    @property
    def over_limit(self) -> bool:
        return self._asset is not None and self._asset.duration_seconds > self.max_seconds

    @property
    def fault(self) -> str | None:
        """Validation message for the loaded asset, if any."""
        if self.over_limit:
            return OVER_LIMIT_MESSAGE
        return None

    @property
    def has_handle(self) -> bool:
        return self._handle is not None

    def set_asset(self, path: Path | str, mime_type: str | None = None) -> MediaAsset:
        """Load a new video, replacing (and releasing) any previous one.

        Raises:
            ValidationFault: If the file is missing, unreadable, or not a
                video. The previously loaded asset stays in place.
        """
        path = Path(path)
        if not path.is_file():
            raise ValidationFault(f"File not found: {path}")

        mime_type = mime_type or guess_mime_type(path)
        if not mime_type.startswith("video/"):
            raise ValidationFault(INVALID_TYPE_MESSAGE)

        try:
            handle = open(path, "rb")
        except OSError as e:
            raise ValidationFault(f"Cannot read {path.name}: {e}") from e
        try:
            byte_size = path.stat().st_size
        except OSError as e:
            handle.close()
            raise ValidationFault(f"Cannot read {path.name}: {e}") from e

        self.clear()
        self._handle = handle
        self._asset = MediaAsset(
            path=path,
            mime_type=mime_type,
            byte_size=byte_size,
        )
        logger.debug("Loaded %s (%s, %d bytes)", path.name, mime_type, self._asset.byte_size)
        return self._asset

    def report_duration(self, seconds: float) -> MediaAsset:
        """Record the decoded duration. Over-long assets stay loaded but flagged."""
        if self._asset is None:
            raise ValidationFault("No video loaded")
        self._asset = self._asset.model_copy(update={"duration_seconds": max(0.0, seconds)})
        if self.over_limit:
            logger.info(
                "%s is %.1fs, over the %.0fs limit",
                self._asset.path.name,
                seconds,
                self.max_seconds,
            )
        return self._asset

    def read_bytes(self) -> bytes | None:
        """Read the whole video through the held handle."""
        if self._handle is None:
            return None
        self._handle.seek(0)
        return self._handle.read()

    def clear(self) -> None:
        """Release the handle and forget the asset. Safe to call repeatedly."""
        if self._handle is not None:
            try:
                self._handle.close()
            finally:
                self._handle = None
        self._asset = None


def probe_duration(path: Path) -> float:
    """Probe video duration in seconds using ffprobe.

    Raises:
        MediaProbeError: If ffprobe is missing or cannot read the file
    """
    ffprobe_path = shutil.which("ffprobe")
    if not ffprobe_path:
        raise MediaProbeError(
            "FFprobe not found in PATH. Install with: brew install ffmpeg (macOS) "
            "or apt install ffmpeg (Linux)"
        )

    cmd = [
        ffprobe_path,
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        str(path),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise MediaProbeError(f"ffprobe failed for {path}: {result.stderr}")

    try:
        data = json.loads(result.stdout)
        return float(data.get("format", {}).get("duration", 0))
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        raise MediaProbeError(f"Could not read duration of {path}: {e}") from e
