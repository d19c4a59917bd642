"""Memory snapshot for debug runs (tracemalloc)."""

import contextlib
import logging
import os
import time
import tracemalloc
from pathlib import Path

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def memory_profile(profile_dir: Path, enabled: bool = True):
    """
    Trace allocations for the duration of the block and dump a snapshot into
    profile_dir. Load it later with tracemalloc.Snapshot.load(path).
    """
    if not enabled:
        yield None
        return

    tracemalloc.start()
    try:
        yield profile_dir
    finally:
        snapshot = tracemalloc.take_snapshot()
        _, peak = tracemalloc.get_traced_memory()
        tracemalloc.stop()

        os.makedirs(profile_dir, exist_ok=True)
        path = os.path.join(profile_dir, f"mem-{time.strftime('%Y%m%d-%H%M%S')}.tracemalloc")
        snapshot.dump(path)
        logger.info(f"Memory profile written to {path} (peak {peak / 1024 / 1024:.1f} MiB)")
