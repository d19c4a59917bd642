"""
Centralized configuration using pydantic-settings.

How it works:
- Reads environment variables automatically (e.g., PREVIEW_WIDTH env var → Settings.PREVIEW_WIDTH)
- Falls back to defaults defined here if env vars are not set
- Can also read from a .env file in the project root
- Command-line flags win over both (worker/main.py passes them as kwargs)

Unlike a module-level singleton, a Settings instance is built ONCE at startup
and handed to the processor, the pool and the writer. It is frozen, so every
worker thread reads the same values and nobody can change them mid-run.
"""

import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


def default_dcraw_path() -> str:
    """The decoder ships next to this program as 'dcraw-json'."""
    program_dir = os.path.dirname(os.path.abspath(sys.argv[0]))
    return os.path.join(program_dir, "dcraw-json")


class Settings(BaseSettings):
    # ── External decoder ────────────────────────────────────────
    DCRAW_PATH: str = Field(default_factory=default_dcraw_path)

    # ── Derivative sizes ────────────────────────────────────────
    PREVIEW_WIDTH: int = Field(default=1200, gt=0)  # pixels
    THUMB_WIDTH: int = Field(default=400, gt=0)     # pixels

    # ── Worker ──────────────────────────────────────────────────
    WORKER_POOL_SIZE: int = Field(default_factory=lambda: os.cpu_count() or 1, gt=0)
    TEMP_DIR: Optional[Path] = None    # None → tempfile's default directory

    # ── Debug / load testing ────────────────────────────────────
    # Deletes preview + thumbnail right after they are reported and
    # captures a memory snapshot into PROFILE_DIR on exit.
    DEBUG: bool = True
    PROFILE_DIR: Path = Path("./profiling/")

    # ── App ─────────────────────────────────────────────────────
    LOG_LEVEL: str = "WARNING"

    @property
    def temp_dir(self) -> Optional[str]:
        """TEMP_DIR as the str-or-None that the tempfile module expects."""
        return str(self.TEMP_DIR) if self.TEMP_DIR is not None else None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True}
