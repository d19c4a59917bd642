"""
Throughput benchmark — measures jobs/sec for a given worker pool size.

How it works:
1. Generate one large sample JPEG (or use the one given)
2. Feed N identical job lines through the real pipeline, in-process
3. Wait for all N results
4. Calculate: throughput = N / total_wall_clock_time

Debug mode is forced on, so every preview/thumbnail is deleted right after its
result line is written and the disk doesn't fill up over long runs. The
scratch dir holding the generated sample is removed by cleanup(), or on
leaving a `with ThroughputBenchmark(...)` block.

The sample is a plain JPEG, so the decoder call fails and each job takes the
"read the source directly" fallback. Point --dcraw at a real decoder and
--image at a RAW file to benchmark the full path.
"""

import io
import json
import os
import shutil
import tempfile
import time
from typing import Optional

from config.settings import Settings
from scripts.generate_sample_image import generate_sample_image
from worker.main import run


class ThroughputBenchmark:

    def __init__(
        self,
        num_jobs: int = 100,
        image_path: Optional[str] = None,
        image_size: tuple[int, int] = (6000, 4000),
        dcraw_path: Optional[str] = None,
        base_dir: Optional[str] = None,
    ):
        self.num_jobs = num_jobs
        self.image_size = image_size
        self.dcraw_path = dcraw_path
        self._scratch = tempfile.mkdtemp(prefix="derivative-bench-", dir=base_dir)
        self.image_path = image_path or generate_sample_image(
            os.path.join(self._scratch, "sample.jpg"), image_size
        )

    def job_lines(self) -> list[str]:
        return [
            json.dumps({
                "id": i,
                "filename": self.image_path,
                "imageWidth": self.image_size[0],
                "thumbWidth": 400,
            })
            for i in range(self.num_jobs)
        ]

    def run(self, workers: int) -> dict:
        """Run the benchmark for a single pool size."""
        overrides = {"WORKER_POOL_SIZE": workers, "DEBUG": True, "TEMP_DIR": self._scratch}
        if self.dcraw_path:
            overrides["DCRAW_PATH"] = self.dcraw_path
        settings = Settings(**overrides)

        out, err = io.StringIO(), io.StringIO()
        start = time.monotonic()
        stats = run(settings, self.job_lines(), out, err)
        elapsed = time.monotonic() - start

        succeeded = len(out.getvalue().splitlines())
        return {
            "workers": workers,
            "num_jobs": stats.submitted,
            "succeeded": succeeded,
            "failed": stats.submitted - succeeded,
            "wall_clock_sec": round(elapsed, 3),
            "throughput_jobs_per_sec": round(stats.submitted / elapsed, 2) if elapsed else 0.0,
        }

    def cleanup(self) -> None:
        """Remove the scratch dir, generated sample included. Safe to call twice."""
        shutil.rmtree(self._scratch, ignore_errors=True)

    def __enter__(self) -> "ThroughputBenchmark":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()

    def run_all(self, pool_sizes: list[int]) -> list[dict]:
        """Benchmark each pool size sequentially."""
        results = []
        for workers in pool_sizes:
            print(f"\n--- Benchmarking {workers} worker(s) ---")
            result = self.run(workers)
            print(f"  {result['throughput_jobs_per_sec']} jobs/sec")
            results.append(result)
        return results
