"""
Worker pool — runs derivative jobs on a fixed number of threads.

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                    WorkerPool                            │
    │                                                         │
    │  submit(job)  ← called by the Dispatcher, never waits   │
    │       │         for other jobs to finish                │
    │       ▼                                                 │
    │  ┌──────────────────────────────────────────┐           │
    │  │ ThreadPoolExecutor (N = CPU count)        │           │
    │  │  ┌────────┐ ┌────────┐ ┌────────┐ ┌────────┐       │
    │  │  │Thread 1│ │Thread 2│ │Thread 3│ │Thread 4│       │
    │  │  │process │ │process │ │process │ │(idle)  │       │
    │  │  └───┬────┘ └───┬────┘ └───┬────┘ └────────┘       │
    │  └──────┼──────────┼──────────┼─────────────┘           │
    │         ▼          ▼          ▼                         │
    │   done callback (one per job) → ResultWriter.emit()      │
    └─────────────────────────────────────────────────────────┘

Each submission gets its own done callback, which bridges that one future to
the shared writer. Results therefore come out in COMPLETION order, not
submission order, and a slow job (say a hung dcraw) only ties up its own
thread.

Jobs beyond N wait in the executor's internal queue until a thread frees up.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial

from jobs.derivative import DerivativeProcessor
from jobs.errors import DispatchFailure
from models.job import Job, Result
from worker.writer import ResultWriter

logger = logging.getLogger(__name__)


class WorkerPool:

    def __init__(self, processor: DerivativeProcessor, writer: ResultWriter, size: int):
        self._processor = processor
        self._writer = writer
        self._size = size
        self._executor = ThreadPoolExecutor(
            max_workers=size,
            thread_name_prefix="derivative-worker",
        )

    @property
    def size(self) -> int:
        return self._size

    def submit(self, job: Job) -> bool:
        """
        Hand a job to the pool. Returns False if the pool refused it.

        A refused job still gets exactly one Result (an error) so the
        caller hears back about every id it sent.
        """
        try:
            future: Future = self._executor.submit(self._processor.process, job)
        except RuntimeError as e:
            # executor already shut down
            error = DispatchFailure(f"Failed to send work to pool: {e}")
            logger.info(f"Job {job.id}: {error}")
            self._writer.emit(Result.failure(job.id, str(error)))
            return False

        logger.debug(f"Dispatched job {job.id} to thread pool")
        future.add_done_callback(partial(self._on_job_done, job))
        return True

    def stop(self, wait: bool = True) -> None:
        """Stop accepting jobs. With wait=True, blocks until in-flight jobs finish."""
        self._executor.shutdown(wait=wait)
        logger.info("Worker pool stopped")

    def _on_job_done(self, job: Job, future: Future) -> None:
        """
        Callback fired when a worker thread finishes a job.

        This runs in the thread that completed the job. process() already
        turns every failure into a Result, so an exception here means a bug;
        report it as that job's result instead of losing the job.
        """
        exc = future.exception()
        if exc is not None:
            logger.error(f"Unhandled worker exception for job {job.id}: {exc}")
            self._writer.emit(Result.failure(job.id, f"Worker crashed: {exc}"))
            return
        self._writer.emit(future.result())
