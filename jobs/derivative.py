"""
Derivative job — turns one source image into a preview + thumbnail JPEG.

This is the code that actually DOES THE WORK. Each worker thread calls
processor.process(job), and this method walks the job through its stages:

    START            pick an extraction strategy, run the decoder
      ↓
    SOURCE_PREPARED  decode the bytes into a Pillow image
      ↓
    DECODED          resize twice, write two JPEGs
      ↓
    RENDERED         build the success Result
      ↓
    DONE

Any stage can fail. process() never raises: every failure becomes a Result
with an error message, and the stage it happened in goes to the log at INFO.
The Result is the report; stderr belongs to the ResultWriter, so an ordinary
job failure must not also show up there at the default WARNING level.

Temp files:
- decoder output: always deleted before process() returns
- preview/thumbnail: handed to the caller via the Result; render_derivatives
  cleans them up itself when it fails

Thread safety:
- Settings is frozen and the decoder is stateless
- Every job gets its own temp files
So multiple threads can call process() simultaneously without locks.
"""

import logging
import time

from config.settings import Settings
from jobs.base import AbstractSourceDecoder
from jobs.errors import DerivativeError
from jobs.imaging import decode_image, render_derivatives
from jobs.strategy import select_strategy
from models.enums import JobStage
from models.job import Job, Result

logger = logging.getLogger(__name__)


class DerivativeProcessor:

    def __init__(self, settings: Settings, decoder: AbstractSourceDecoder):
        self._settings = settings
        self._decoder = decoder

    def process(self, job: Job) -> Result:
        stage = JobStage.START
        start_time = time.monotonic()
        try:
            # ── Step 1: Decide how much decoding we need ────────
            strategy = select_strategy(
                job.image_width, job.thumb_width, self._settings.PREVIEW_WIDTH
            )
            source = self._decoder.prepare(strategy, job.filename)
            stage = JobStage.SOURCE_PREPARED

            # ── Step 2: Bytes → raster ──────────────────────────
            try:
                with source.open() as stream:
                    image = decode_image(stream)
            finally:
                source.discard()
            stage = JobStage.DECODED

            # ── Step 3: Resize + encode ─────────────────────────
            preview_path, thumb_path = render_derivatives(
                image,
                self._settings.PREVIEW_WIDTH,
                self._settings.THUMB_WIDTH,
                self._settings.temp_dir,
            )
            stage = JobStage.RENDERED

        except DerivativeError as e:
            logger.info(f"Job {job.id} failed at {stage.value}: {e}")
            return Result.failure(job.id, str(e))
        except OSError as e:
            # e.g. the source vanished between the decoder fallback and open()
            logger.info(f"Job {job.id} failed at {stage.value}: {e}")
            return Result.failure(job.id, str(e))
        except Exception as e:
            logger.exception(f"Job {job.id} crashed at {stage.value}")
            return Result.failure(job.id, f"Unexpected error: {e}")

        # ── Step 4: Success ─────────────────────────────────────
        result = Result.success(job.id, preview_path, thumb_path)
        if self._settings.DEBUG:
            # load-testing mode: the writer deletes both files once reported
            result.mark_for_discard()

        elapsed = time.monotonic() - start_time
        logger.info(
            f"Job {job.id} [{strategy.value}] {JobStage.DONE.value} in {elapsed:.3f}s"
        )
        return result
