"""
Tests for DerivativeProcessor — the whole per-job pipeline.

The out_dir fixture is used as TEMP_DIR, so "no leaked temp files" simply
means out_dir holds exactly the files the Result points at (or nothing).
"""

import logging
import os
import tempfile
from unittest.mock import patch

from PIL import Image

from jobs.base import AbstractSourceDecoder, PreparedSource
from jobs.dcraw import DcrawDecoder
from jobs.derivative import DerivativeProcessor
from jobs.errors import SourceMissing
from models.enums import ExtractionStrategy
from models.job import Job


class CopyingDecoder(AbstractSourceDecoder):
    """Writes fixed bytes (or the source's bytes) into an owned temp file."""

    def __init__(self, temp_dir, payload=None):
        self._temp_dir = temp_dir
        self._payload = payload
        self.calls = []

    def prepare(self, strategy, source_path):
        self.calls.append((strategy, source_path))
        if not os.path.exists(source_path):
            raise SourceMissing()
        fd, path = tempfile.mkstemp(prefix="decoded-", dir=self._temp_dir)
        with os.fdopen(fd, "wb") as out:
            if self._payload is not None:
                out.write(self._payload)
            else:
                with open(source_path, "rb") as src:
                    out.write(src.read())
        return PreparedSource(path, temporary=True)

    @property
    def name(self):
        return "copy"


class ExplodingDecoder(AbstractSourceDecoder):
    def prepare(self, strategy, source_path):
        raise RuntimeError("boom")

    @property
    def name(self):
        return "explode"


def _job(path, job_id=1, image_width=6000, thumb_width=400):
    return Job(id=job_id, filename=path, imageWidth=image_width, thumbWidth=thumb_width)


def _assert_jpeg(path, width):
    with Image.open(path) as img:
        assert img.format == "JPEG"
        assert img.size[0] == width
        return img.size


# ── Scenario A: RAW decoded at half size ────────────────────────────


def test_raw_source_half_resolution(make_settings, make_dcraw, make_image, out_dir):
    settings = make_settings(PREVIEW_WIDTH=1200, THUMB_WIDTH=400)
    dcraw = make_dcraw(emit=make_image("decoded.tiff", size=(2400, 1600), fmt="TIFF"))
    raw = make_image("IMG_0001.CR2", size=(16, 16))  # stand-in; dcraw supplies the pixels
    processor = DerivativeProcessor(settings, DcrawDecoder(dcraw, settings.temp_dir))

    result = processor.process(_job(raw, image_width=6000, thumb_width=400))

    assert result.error == ""
    assert _assert_jpeg(result.response.preview, 1200) == (1200, 800)
    assert _assert_jpeg(result.response.thumbnail, 400) == (400, 267)
    with open(dcraw + ".args") as f:
        assert f.read().strip() == f"-c -w -h -T {raw}"
    # decoder output removed, only the two deliverables remain
    assert sorted(os.listdir(out_dir)) == sorted(
        os.path.basename(p) for p in result.output_paths()
    )


# ── Scenario B: source does not exist ───────────────────────────────


def test_missing_source(settings, make_dcraw, tmp_path, out_dir):
    processor = DerivativeProcessor(settings, DcrawDecoder(make_dcraw(emit=None), settings.temp_dir))

    result = processor.process(_job(str(tmp_path / "gone.CR2"), job_id=9))

    assert result.id == 9
    assert result.error == "File does not exist"
    assert result.response.preview == ""
    assert result.response.thumbnail == ""
    assert os.listdir(out_dir) == []


def test_empty_filename_is_a_missing_source(settings, make_dcraw, out_dir):
    processor = DerivativeProcessor(settings, DcrawDecoder(make_dcraw(emit=None), settings.temp_dir))

    result = processor.process(Job(id=2, filename=""))

    assert result.error == "File does not exist"
    assert os.listdir(out_dir) == []


# ── Scenario C: decoder fails, source is a plain JPEG ───────────────


def test_plain_jpeg_fallback(settings, make_dcraw, make_image, out_dir):
    source = make_image("photo.jpg", size=(600, 400))
    processor = DerivativeProcessor(settings, DcrawDecoder(make_dcraw(emit=None), settings.temp_dir))

    result = processor.process(_job(source))

    assert result.ok
    _assert_jpeg(result.response.preview, settings.PREVIEW_WIDTH)
    _assert_jpeg(result.response.thumbnail, settings.THUMB_WIDTH)
    assert os.path.exists(source)
    assert len(os.listdir(out_dir)) == 2


# ── Scenario D: preview encoding fails ──────────────────────────────


def test_encode_failure_leaves_no_files(settings, make_image, out_dir):
    processor = DerivativeProcessor(settings, CopyingDecoder(settings.temp_dir))
    source = make_image("photo.jpg")

    with patch.object(Image.Image, "save", side_effect=OSError("No space left on device")):
        result = processor.process(_job(source))

    assert "No space left on device" in result.error
    assert result.output_paths() == []
    assert os.listdir(out_dir) == []


# ── Other failure paths ─────────────────────────────────────────────


def test_unsupported_format(settings, make_image, out_dir):
    processor = DerivativeProcessor(settings, CopyingDecoder(settings.temp_dir, payload=b"not an image"))

    result = processor.process(_job(make_image("photo.jpg")))

    assert result.error == "could not decode image (not jpeg/tiff/pnm)"
    # the decoded-source temp file was discarded even though decoding failed
    assert os.listdir(out_dir) == []


def test_oversized_image_fails_the_job(settings, make_image, out_dir, monkeypatch):
    processor = DerivativeProcessor(settings, CopyingDecoder(settings.temp_dir))
    source = make_image("photo.jpg", size=(64, 48))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    result = processor.process(_job(source, job_id=5))

    assert result.id == 5
    assert result.error.startswith("image too large to decode")
    assert os.listdir(out_dir) == []


def test_png_source_with_failing_decoder(settings, make_dcraw, make_image, out_dir):
    processor = DerivativeProcessor(settings, DcrawDecoder(make_dcraw(emit=None), settings.temp_dir))

    result = processor.process(_job(make_image("scan.png", fmt="PNG")))

    assert result.error == "could not decode image (not jpeg/tiff/pnm)"
    assert os.listdir(out_dir) == []


def test_unexpected_exception_becomes_result(settings, make_image):
    processor = DerivativeProcessor(settings, ExplodingDecoder())

    result = processor.process(_job(make_image("photo.jpg"), job_id=3))

    assert result.id == 3
    assert result.error == "Unexpected error: boom"


def test_temp_dir_unavailable(make_settings, make_dcraw, make_image, tmp_path):
    settings = make_settings(TEMP_DIR=tmp_path / "missing")
    processor = DerivativeProcessor(settings, DcrawDecoder(make_dcraw(emit=None), settings.temp_dir))

    result = processor.process(_job(make_image("photo.jpg")))

    assert "Could not create temp file" in result.error


def test_job_failures_log_below_warning(settings, make_dcraw, make_image, tmp_path, caplog):
    """The failure Result is the report; nothing extra may reach stderr at WARNING."""
    processor = DerivativeProcessor(settings, DcrawDecoder(make_dcraw(emit=None), settings.temp_dir))

    with caplog.at_level(logging.DEBUG):
        missing = processor.process(_job(str(tmp_path / "gone.CR2"), job_id=1))
        unsupported = processor.process(_job(make_image("scan.png", fmt="PNG"), job_id=2))

    assert missing.error and unsupported.error
    assert [r for r in caplog.records if r.levelno >= logging.WARNING] == []
    assert any("Job 1 failed at" in r.getMessage() for r in caplog.records)


# ── Strategy wiring ─────────────────────────────────────────────────


def test_strategy_uses_job_widths_and_preview_width(make_settings, make_image):
    settings = make_settings(PREVIEW_WIDTH=1200)
    decoder = CopyingDecoder(settings.temp_dir)
    processor = DerivativeProcessor(settings, decoder)
    source = make_image("photo.jpg")

    processor.process(_job(source, image_width=6000, thumb_width=400))
    processor.process(_job(source, image_width=6000, thumb_width=1500))
    processor.process(_job(source, image_width=1600, thumb_width=400))

    assert [strategy for strategy, _ in decoder.calls] == [
        ExtractionStrategy.HALF_RESOLUTION,
        ExtractionStrategy.EMBEDDED_PREVIEW,
        ExtractionStrategy.FULL_RESOLUTION,
    ]


def test_thumbnail_width_comes_from_settings(settings, make_image):
    """The job's thumbWidth only steers the decoder; output size is global."""
    processor = DerivativeProcessor(settings, CopyingDecoder(settings.temp_dir))

    result = processor.process(_job(make_image("photo.jpg"), thumb_width=999))

    _assert_jpeg(result.response.thumbnail, settings.THUMB_WIDTH)


# ── Idempotence ─────────────────────────────────────────────────────


def test_same_job_twice_gives_independent_outputs(settings, make_image, out_dir):
    processor = DerivativeProcessor(settings, CopyingDecoder(settings.temp_dir))
    job = _job(make_image("photo.jpg", size=(600, 400)))

    first = processor.process(job)
    second = processor.process(job)

    assert first.ok and second.ok
    assert set(first.output_paths()).isdisjoint(second.output_paths())
    for result in (first, second):
        assert _assert_jpeg(result.response.preview, 120) == (120, 80)
        assert _assert_jpeg(result.response.thumbnail, 40) == (40, 27)
    assert len(os.listdir(out_dir)) == 4


# ── Debug mode ──────────────────────────────────────────────────────


def test_debug_marks_result_for_discard_but_keeps_files(make_settings, make_image):
    settings = make_settings(DEBUG=True)
    processor = DerivativeProcessor(settings, CopyingDecoder(settings.temp_dir))

    result = processor.process(_job(make_image("photo.jpg")))

    assert result.ok
    assert result.discard_outputs is True
    # deletion is the writer's job, after the line is emitted
    assert all(os.path.exists(p) for p in result.output_paths())


def test_no_discard_without_debug(settings, make_image):
    processor = DerivativeProcessor(settings, CopyingDecoder(settings.temp_dir))
    result = processor.process(_job(make_image("photo.jpg")))
    assert result.discard_outputs is False
