"""Tests for quotesmith.media module."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from quotesmith.exceptions import MediaProbeError, ValidationFault
from quotesmith.media import (
    INVALID_TYPE_MESSAGE,
    OVER_LIMIT_MESSAGE,
    MediaIngest,
    guess_mime_type,
    probe_duration,
)


class TestGuessMimeType:
    def test_mp4(self) -> None:
        assert guess_mime_type(Path("a.mp4")) == "video/mp4"

    def test_unknown_extension(self) -> None:
        assert guess_mime_type(Path("a.unknownext")) == ""


class TestSetAsset:
    def test_accepts_video(self, sample_video: Path) -> None:
        ingest = MediaIngest()
        asset = ingest.set_asset(sample_video)
        assert asset.mime_type == "video/mp4"
        assert asset.byte_size == len(b"fake video content")
        assert asset.duration_seconds == 0.0
        assert ingest.has_handle
        assert not ingest.over_limit
        assert ingest.fault is None
        ingest.clear()

    def test_rejects_non_video(self, tmp_path: Path) -> None:
        text_file = tmp_path / "notes.txt"
        text_file.write_text("hello")
        ingest = MediaIngest()
        with pytest.raises(ValidationFault, match="有效的视频文件"):
            ingest.set_asset(text_file)
        assert ingest.asset is None
        assert not ingest.has_handle

    def test_explicit_mime_type_wins(self, tmp_path: Path) -> None:
        blob = tmp_path / "upload.bin"
        blob.write_bytes(b"\x00\x01")
        with MediaIngest() as ingest:
            asset = ingest.set_asset(blob, mime_type="video/quicktime")
            assert asset.mime_type == "video/quicktime"

    def test_rejects_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationFault):
            MediaIngest().set_asset(tmp_path / "missing.mp4")

    def test_rejection_keeps_previous_asset(self, sample_video: Path, tmp_path: Path) -> None:
        other = tmp_path / "photo.jpg"
        other.write_bytes(b"jpeg")
        with MediaIngest() as ingest:
            ingest.set_asset(sample_video)
            with pytest.raises(ValidationFault) as exc_info:
                ingest.set_asset(other)
            assert str(exc_info.value) == INVALID_TYPE_MESSAGE
            assert ingest.asset is not None
            assert ingest.asset.path == sample_video
            assert ingest.has_handle

    def test_unreadable_file_keeps_previous_asset(
        self, sample_video: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        locked = tmp_path / "locked.mp4"
        locked.write_bytes(b"locked")
        with MediaIngest() as ingest:
            ingest.set_asset(sample_video)
            first_handle = ingest._handle

            def deny(path, mode="r"):
                raise PermissionError(13, "Permission denied", str(path))

            monkeypatch.setattr("quotesmith.media.open", deny, raising=False)
            with pytest.raises(ValidationFault, match="Cannot read locked.mp4"):
                ingest.set_asset(locked)

            assert ingest.asset.path == sample_video
            assert ingest._handle is first_handle
            assert not first_handle.closed

    def test_replacement_releases_previous_handle(self, sample_video: Path, tmp_path: Path) -> None:
        second = tmp_path / "second.mov"
        second.write_bytes(b"second")
        with MediaIngest() as ingest:
            ingest.set_asset(sample_video)
            first_handle = ingest._handle
            ingest.set_asset(second)
            assert first_handle.closed
            assert ingest.asset.path == second
            assert ingest.read_bytes() == b"second"


class TestDuration:
    def test_unknown_duration_is_not_over_limit(self, sample_video: Path) -> None:
        with MediaIngest() as ingest:
            ingest.set_asset(sample_video)
            assert not ingest.over_limit

    def test_300_seconds_allowed(self, sample_video: Path) -> None:
        with MediaIngest() as ingest:
            ingest.set_asset(sample_video)
            ingest.report_duration(300)
            assert not ingest.over_limit
            assert ingest.fault is None

    def test_301_seconds_flagged_but_kept(self, sample_video: Path) -> None:
        with MediaIngest() as ingest:
            ingest.set_asset(sample_video)
            asset = ingest.report_duration(301)
            assert ingest.over_limit
            assert ingest.fault == OVER_LIMIT_MESSAGE
            assert asset.duration_seconds == 301
            assert ingest.asset is not None
            assert ingest.has_handle

    def test_custom_limit(self, sample_video: Path) -> None:
        with MediaIngest(max_seconds=60) as ingest:
            ingest.set_asset(sample_video)
            ingest.report_duration(61)
            assert ingest.over_limit

    def test_report_without_asset_raises(self) -> None:
        with pytest.raises(ValidationFault):
            MediaIngest().report_duration(10)


class TestClear:
    def test_clear_releases_handle(self, sample_video: Path) -> None:
        ingest = MediaIngest()
        ingest.set_asset(sample_video)
        handle = ingest._handle
        ingest.clear()
        assert handle.closed
        assert ingest.asset is None
        assert ingest.read_bytes() is None

    def test_clear_is_idempotent(self) -> None:
        ingest = MediaIngest()
        ingest.clear()
        ingest.clear()
        assert ingest.asset is None

    def test_context_manager_releases_on_error(self, sample_video: Path) -> None:
        ingest = MediaIngest()
        with pytest.raises(RuntimeError):
            with ingest:
                ingest.set_asset(sample_video)
                handle = ingest._handle
                raise RuntimeError("boom")
        assert handle.closed
        assert ingest.asset is None

    def test_read_bytes_rereads_from_start(self, sample_video: Path) -> None:
        with MediaIngest() as ingest:
            ingest.set_asset(sample_video)
            assert ingest.read_bytes() == b"fake video content"
            assert ingest.read_bytes() == b"fake video content"


class TestProbeDuration:
    def test_missing_ffprobe(self, monkeypatch: pytest.MonkeyPatch, sample_video: Path) -> None:
        monkeypatch.setattr("quotesmith.media.shutil.which", lambda name: None)
        with pytest.raises(MediaProbeError, match="FFprobe"):
            probe_duration(sample_video)

    def test_parses_duration(self, monkeypatch: pytest.MonkeyPatch, sample_video: Path) -> None:
        monkeypatch.setattr("quotesmith.media.shutil.which", lambda name: "/usr/bin/ffprobe")
        completed = MagicMock(returncode=0, stdout=json.dumps({"format": {"duration": "42.5"}}))
        monkeypatch.setattr(subprocess, "run", lambda *a, **kw: completed)
        assert probe_duration(sample_video) == 42.5

    def test_ffprobe_failure(self, monkeypatch: pytest.MonkeyPatch, sample_video: Path) -> None:
        monkeypatch.setattr("quotesmith.media.shutil.which", lambda name: "/usr/bin/ffprobe")
        completed = MagicMock(returncode=1, stdout="", stderr="invalid data")
        monkeypatch.setattr(subprocess, "run", lambda *a, **kw: completed)
        with pytest.raises(MediaProbeError, match="invalid data"):
            probe_duration(sample_video)
