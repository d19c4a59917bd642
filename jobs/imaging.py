"""
Pillow side of the pipeline: bytes → raster → preview + thumbnail JPEGs.

decode_image() tries a fixed list of formats in order. It is not a content
sniffer: each decoder gets the whole stream and either produces a raster or
rejects it. JPEG goes first because that's what an embedded-preview
extraction returns, TIFF second (dcraw -T), PNM last (plain dcraw output).

render_derivatives() resizes twice:

    source ──BILINEAR──> preview (PREVIEW_WIDTH) ──NEAREST──> thumbnail (THUMB_WIDTH)

The thumbnail is cut from the preview, not from the source. The preview is
already small, so this is much cheaper than resampling the full raster again,
and nobody inspects a 400px thumbnail closely enough to see the difference.

Either both JPEGs are written or neither file is left on disk.
"""

import logging
import os
import tempfile
from typing import BinaryIO, Optional

from PIL import Image

from jobs.errors import EncodeFailure, ImageTooLarge, TempFileFailure, UnsupportedFormat

logger = logging.getLogger(__name__)

# Pillow format ids, tried in this order ("PPM" also covers PBM/PGM/PAM)
DECODE_ORDER = ("JPEG", "TIFF", "PPM")


def decode_image(stream: BinaryIO) -> Image.Image:
    """Decode the first format that accepts the stream. Raises UnsupportedFormat.

    A raster over Image.MAX_IMAGE_PIXELS (Pillow's bomb limit) raises
    ImageTooLarge straight away; the other formats are not tried.
    """
    for fmt in DECODE_ORDER:
        stream.seek(0)
        try:
            image = Image.open(stream, formats=[fmt])
            image.load()  # force the full decode now, the stream is closed after this
        except Image.DecompressionBombError as e:
            raise ImageTooLarge(f"image too large to decode: {e}") from e
        except (OSError, SyntaxError, ValueError) as e:
            logger.debug(f"{fmt} decoder rejected stream: {e}")
            continue
        return image
    raise UnsupportedFormat()


def scaled_size(size: tuple[int, int], width: int) -> tuple[int, int]:
    """(width, height) for a target width, keeping the aspect ratio."""
    src_width, src_height = size
    return width, max(1, round(src_height * width / src_width))


def render_derivatives(
    image: Image.Image,
    preview_width: int,
    thumb_width: int,
    temp_dir: Optional[str] = None,
) -> tuple[str, str]:
    """
    Write the preview and the thumbnail JPEGs to fresh temp files.

    Returns:
        (preview_path, thumbnail_path); both files exist and are complete.

    Raises:
        TempFileFailure: output files could not be created.
        EncodeFailure: either JPEG could not be written. Both files are removed.
    """
    if image.mode not in ("RGB", "L"):
        # JPEG has no alpha / palette / 16-bit modes
        image = image.convert("RGB")

    preview_path, thumb_path = _create_output_files(temp_dir)
    try:
        preview = image.resize(scaled_size(image.size, preview_width), Image.Resampling.BILINEAR)
        thumbnail = preview.resize(scaled_size(preview.size, thumb_width), Image.Resampling.NEAREST)

        _encode_jpeg(preview, preview_path, "preview")
        _encode_jpeg(thumbnail, thumb_path, "thumbnail")
    except Exception:
        # a result is only valid with both files present
        remove_quietly(preview_path)
        remove_quietly(thumb_path)
        raise

    return preview_path, thumb_path


def remove_quietly(path: str) -> None:
    """Best-effort delete used on cleanup paths."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")


def _create_output_files(temp_dir: Optional[str]) -> tuple[str, str]:
    paths: list[str] = []
    try:
        for prefix in ("preview-", "thumb-"):
            fd, path = tempfile.mkstemp(prefix=prefix, suffix=".jpg", dir=temp_dir)
            os.close(fd)
            paths.append(path)
    except OSError as e:
        for path in paths:
            remove_quietly(path)
        raise TempFileFailure(f"Could not create output file: {e}") from e
    return paths[0], paths[1]


def _encode_jpeg(image: Image.Image, path: str, label: str) -> None:
    try:
        # default quality, same as a plain image.save(path, "JPEG")
        image.save(path, "JPEG")
    except (OSError, ValueError) as e:
        raise EncodeFailure(f"Could not encode {label} JPEG: {e}") from e
