"""
Shared test fixtures.

These replace real infrastructure with lightweight local alternatives:
- Source images → small Pillow-generated JPEG/TIFF/PPM files in tmp_path
- dcraw → tiny /bin/sh scripts that cat a prepared file or exit non-zero
- Output streams → io.StringIO

This means tests:
- Run without a RAW decoder installed
- Run in milliseconds (tiny images)
- Are fully isolated (every test gets its own temp/output directory)
"""

import stat

import pytest
from PIL import Image

from config.settings import Settings


@pytest.fixture
def out_dir(tmp_path):
    """Directory the pipeline writes temp and output files into."""
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def make_image(tmp_path):
    """Factory: write a solid-color image and return its path as str."""

    def _make(name="source.jpg", size=(600, 400), fmt="JPEG", mode="RGB"):
        color = (200, 30, 30) if mode == "RGB" else 128
        img = Image.new(mode, size, color=color)
        path = tmp_path / name
        img.save(path, fmt)
        return str(path)

    return _make


@pytest.fixture
def make_dcraw(tmp_path):
    """
    Factory: write a fake dcraw executable.

    emit=<path>  → prints that file on stdout and exits 0
    emit=None    → prints an error on stderr and exits 1
    Every invocation's arguments are appended to <script>.args.
    """

    def _make(emit=None, name="dcraw-json"):
        script = tmp_path / name
        args_log = tmp_path / f"{name}.args"
        lines = ["#!/bin/sh", f'echo "$@" >> "{args_log}"']
        if emit is None:
            lines += ['echo "dcraw: cannot decode file" >&2', "exit 1"]
        else:
            lines += [f'cat "{emit}"']
        script.write_text("\n".join(lines) + "\n")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(script)

    return _make


@pytest.fixture
def make_settings(out_dir, tmp_path):
    """Factory: Settings with small widths, debug off, temp files in out_dir."""

    def _make(**overrides):
        values = {
            "DCRAW_PATH": str(tmp_path / "missing-dcraw"),
            "PREVIEW_WIDTH": 120,
            "THUMB_WIDTH": 40,
            "DEBUG": False,
            "WORKER_POOL_SIZE": 4,
            "TEMP_DIR": out_dir,
            "PROFILE_DIR": tmp_path / "profiling",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()
