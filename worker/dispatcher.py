"""
Dispatcher — reads job lines from a stream and feeds the worker pool.

    stdin ──line──> Job.model_validate_json ──ok──> WorkerPool.submit
                              │
                              └──bad──> diagnostic line on stderr (no Result)

The dispatcher never waits on a job: it submits and moves on to the next
line. When the input ends it waits for the pool to drain and for the writer
to flush the last results.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from pydantic import ValidationError

from models.job import Job
from worker.pool import WorkerPool
from worker.writer import ResultWriter

logger = logging.getLogger(__name__)


@dataclass
class DispatchStats:
    submitted: int = 0   # accepted by the pool
    refused: int = 0     # pool was shut down
    rejected: int = 0    # line did not parse


class Dispatcher:

    def __init__(self, pool: WorkerPool, writer: ResultWriter):
        self._pool = pool
        self._writer = writer

    def run(self, lines: Iterable[Union[str, bytes]]) -> DispatchStats:
        """
        Dispatch every line, then wait for all results to be written.

        Lines may be bytes (e.g. sys.stdin.buffer); each one is decoded on its
        own, so a line that isn't valid UTF-8 is rejected without ending the run.
        """
        stats = DispatchStats()
        try:
            for raw in lines:
                line = self._decode(raw)
                if line is None:
                    stats.rejected += 1
                    continue
                line = line.strip()
                if not line:
                    continue

                job = self._parse(line)
                if job is None:
                    stats.rejected += 1
                    continue

                if self._pool.submit(job):
                    stats.submitted += 1
                else:
                    stats.refused += 1
        finally:
            self._pool.stop(wait=True)
            self._writer.close()

        logger.info(
            f"Input exhausted: {stats.submitted} submitted, "
            f"{stats.rejected} rejected, {stats.refused} refused"
        )
        return stats

    def _parse(self, line: str) -> Optional[Job]:
        try:
            return Job.model_validate_json(line)
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'line'}: {err['msg']}"
                for err in e.errors()
            )
            self._writer.diagnostic(f"Failed to unmarshal task: {errors}")
            return None

    def _decode(self, raw: Union[str, bytes]) -> Optional[str]:
        if isinstance(raw, str):
            return raw
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            self._writer.diagnostic(f"Failed to unmarshal task: line is not valid UTF-8 ({e})")
            return None
