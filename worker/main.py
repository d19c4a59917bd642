"""
Worker process entry point.

Reads one JSON job per line on stdin and writes one JSON result per line:
successes on stdout, failures (and unparseable input) on stderr.

    $ echo '{"id":1,"filename":"IMG_0001.CR2","imageWidth":6000,"thumbWidth":400}' \
        | python -m worker.main -dcraw /usr/local/bin/dcraw-json -debug=false
    {"id":1,"error":"","response":{"preview":"/tmp/preview-x1.jpg","thumbnail":"/tmp/thumb-y2.jpg"}}

Components wired together here:

    1. Settings — built once from env/.env, then CLI flags on top
    2. DcrawDecoder + DerivativeProcessor — the per-job pipeline
    3. WorkerPool + ResultWriter — N threads, one output writer
    4. Dispatcher — stdin → pool, until EOF

The only fatal error is a missing/non-executable decoder at startup
(exit status 1). Everything that goes wrong inside a job is reported as
that job's result and the process keeps going.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence, TextIO

from pydantic import ValidationError

from config.settings import Settings
from jobs.dcraw import DcrawDecoder, verify_decoder
from jobs.derivative import DerivativeProcessor
from jobs.errors import DecoderNotFound
from worker.dispatcher import Dispatcher, DispatchStats
from worker.pool import WorkerPool
from worker.profiling import memory_profile
from worker.writer import ResultWriter

logger = logging.getLogger(__name__)


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("1", "t", "true", "yes", "on"):
        return True
    if lowered in ("0", "f", "false", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {value!r}")


def build_parser() -> argparse.ArgumentParser:
    # Flags default to None so that unset flags fall through to env/.env
    parser = argparse.ArgumentParser(
        description="Render preview and thumbnail JPEGs for jobs read from stdin"
    )
    parser.add_argument(
        "-dcraw", "--dcraw", dest="DCRAW_PATH", type=str, default=None,
        help="path to dcraw-json program (default: next to this program)",
    )
    parser.add_argument(
        "-previewWidth", "--preview-width", dest="PREVIEW_WIDTH", type=int, default=None,
        help="preview image width (default: 1200)",
    )
    parser.add_argument(
        "-thumbWidth", "--thumb-width", dest="THUMB_WIDTH", type=int, default=None,
        help="thumbnail image width (default: 400)",
    )
    parser.add_argument(
        "-debug", "--debug", dest="DEBUG", type=_parse_bool, nargs="?", const=True, default=None,
        help="enable debug mode: delete outputs after reporting, profile memory (default: true)",
    )
    parser.add_argument(
        "-workers", "--workers", dest="WORKER_POOL_SIZE", type=int, default=None,
        help="number of worker threads (default: CPU count)",
    )
    parser.add_argument(
        "-tempDir", "--temp-dir", dest="TEMP_DIR", type=str, default=None,
        help="directory for temporary and output files (default: system temp dir)",
    )
    return parser


def build_settings(argv: Optional[Sequence[str]] = None) -> Settings:
    args = build_parser().parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    return Settings(**overrides)


def run(settings: Settings, stdin: TextIO, stdout: TextIO, stderr: TextIO) -> DispatchStats:
    """Process every job line on stdin. Returns once all results are written."""
    decoder = DcrawDecoder(settings.DCRAW_PATH, settings.temp_dir)
    processor = DerivativeProcessor(settings, decoder)

    writer = ResultWriter(stdout, stderr)
    writer.start()
    pool = WorkerPool(processor, writer, settings.WORKER_POOL_SIZE)
    logger.info(f"Worker pool started with {pool.size} threads")

    # read raw bytes when there are any, so one bad line can't break decoding of the rest
    lines = getattr(stdin, "buffer", stdin)
    return Dispatcher(pool, writer).run(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        settings = build_settings(argv)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        verify_decoder(settings.DCRAW_PATH)
    except DecoderNotFound as e:
        print(e, file=sys.stderr)
        return 1

    with memory_profile(settings.PROFILE_DIR, enabled=settings.DEBUG):
        run(settings, sys.stdin, sys.stdout, sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
