"""
Result writer — the only thing that writes to the output streams.

Up to N worker threads finish jobs at the same time. If each of them printed
its own result, two lines could interleave halfway through. Instead every
finished Result goes into a queue, and ONE writer thread drains it:

    worker 1 ─┐
    worker 2 ─┼─> queue.Queue ─> writer thread ─┬─> out  (error == "")
    worker N ─┘                                 └─> err  (error != "", diagnostics)

One item = one full line, flushed immediately so a downstream reader sees
each result as soon as it's done.

Debug mode: after a Result marked for discard is written, the writer deletes
its preview/thumbnail. The files exist at the moment the line is emitted,
which is all a load test needs, and the disk doesn't fill up.
"""

import logging
import queue
import threading
from typing import TextIO, Union

from jobs.imaging import remove_quietly
from models.job import Result

logger = logging.getLogger(__name__)

_STOP = object()


class ResultWriter:

    def __init__(self, out: TextIO, err: TextIO):
        self._out = out
        self._err = err
        self._queue: "queue.Queue[Union[Result, str, object]]" = queue.Queue()
        self._thread = threading.Thread(
            target=self._write_loop, name="result-writer", daemon=True
        )
        self._emitted = 0
        self._failed = 0

    def start(self) -> None:
        self._thread.start()

    def emit(self, result: Result) -> None:
        """Queue a Result. Safe to call from any thread."""
        self._queue.put(result)

    def diagnostic(self, message: str) -> None:
        """Queue a plain-text line for the error stream."""
        self._queue.put(message)

    def close(self) -> None:
        """Write everything still queued, then stop the writer thread."""
        self._queue.put(_STOP)
        self._thread.join()

    @property
    def emitted(self) -> int:
        return self._emitted

    @property
    def failed(self) -> int:
        return self._failed

    def _write_loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            try:
                if isinstance(item, Result):
                    self._write_result(item)
                else:
                    self._write_line(self._err, item)
            except Exception as e:
                # a broken output stream must not kill the writer thread
                logger.error(f"Could not write output line: {e}", exc_info=True)

    def _write_result(self, result: Result) -> None:
        line = result.model_dump_json()
        if result.ok:
            self._write_line(self._out, line)
        else:
            self._failed += 1
            self._write_line(self._err, line)
        self._emitted += 1

        if result.discard_outputs:
            for path in result.output_paths():
                remove_quietly(path)

    @staticmethod
    def _write_line(stream: TextIO, line: str) -> None:
        stream.write(line + "\n")
        stream.flush()
