"""
dcraw subprocess decoder.

Runs the external RAW decoder once per job:

    dcraw-json -c <strategy flags> <source path>   →  image bytes on stdout

stdout goes straight into a temp file (no buffering the whole image in
memory). A failed decode is NOT a failed job: the most common cause is that
the "RAW" file is actually a JPEG/TIFF the camera or the user produced, which
dcraw refuses but Pillow can read directly. So on failure we fall back to the
source file itself, unless the file has disappeared in the meantime.

There is no timeout. A hung decoder holds its worker thread until it exits.
"""

import logging
import os
import subprocess
import tempfile
from typing import Optional

from jobs.base import AbstractSourceDecoder, PreparedSource
from jobs.errors import DecodeSubprocessFailure, DecoderNotFound, SourceMissing, TempFileFailure
from jobs.strategy import decoder_flags
from models.enums import ExtractionStrategy

logger = logging.getLogger(__name__)


def verify_decoder(path: str) -> str:
    """Make sure the decoder exists and can be executed. Returns the absolute path."""
    if not os.path.isfile(path):
        raise DecoderNotFound(f"dcraw not found at {path}")
    if not os.access(path, os.X_OK):
        raise DecoderNotFound(f"dcraw at {path} is not executable")
    return os.path.abspath(path)


class DcrawDecoder(AbstractSourceDecoder):

    def __init__(self, dcraw_path: str, temp_dir: Optional[str] = None):
        self._dcraw_path = dcraw_path
        self._temp_dir = temp_dir

    def prepare(self, strategy: ExtractionStrategy, source_path: str) -> PreparedSource:
        # -c: write the decoded image to stdout
        args = [self._dcraw_path, "-c", *decoder_flags(strategy), source_path]
        decoded = PreparedSource(self._create_output_file(), temporary=True)

        try:
            self._run(args, decoded.path)
        except DecodeSubprocessFailure as e:
            decoded.discard()  # empty or half-written, no longer needed
            # the file may have been removed while the job sat in the queue
            if not os.path.exists(source_path):
                raise SourceMissing() from e
            logger.debug(f"{e}; reading {source_path} directly")
            return PreparedSource(source_path, temporary=False)

        logger.debug(f"Decoded {source_path} [{strategy.value}] into {decoded.path}")
        return decoded

    @property
    def name(self) -> str:
        return "dcraw"

    def _create_output_file(self) -> str:
        try:
            fd, path = tempfile.mkstemp(prefix="decoded-", dir=self._temp_dir)
        except OSError as e:
            raise TempFileFailure(f"Could not create temp file for decoder output: {e}") from e
        os.close(fd)
        return path

    def _run(self, args: list[str], output_path: str) -> None:
        """Run dcraw with stdout redirected into output_path."""
        try:
            with open(output_path, "wb") as out:
                proc = subprocess.run(args, stdout=out, stderr=subprocess.PIPE, check=False)
        except OSError as e:
            raise DecodeSubprocessFailure(f"Could not run {args[0]}: {e}") from e

        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            raise DecodeSubprocessFailure(
                f"{os.path.basename(args[0])} exited with {proc.returncode}: {stderr}"
            )
