"""
Exceptions raised while turning one job into a preview + thumbnail.

Every one of these is scoped to a single job. DerivativeProcessor catches
them at its boundary and turns str(exc) into Result.error, so the message
is what the caller ends up reading.
"""


class DerivativeError(Exception):
    """Base class for per-job failures."""


class SourceMissing(DerivativeError):
    """The source file is gone (it may have been deleted while queued)."""

    def __init__(self, message: str = "File does not exist"):
        super().__init__(message)


class DecodeSubprocessFailure(DerivativeError):
    """The external decoder exited non-zero or could not be spawned.

    Never surfaced on its own: DcrawDecoder catches it and falls back
    to reading the source file directly.
    """


class UnsupportedFormat(DerivativeError):
    """None of the JPEG / TIFF / PNM decoders accepted the bytes."""

    def __init__(self, message: str = "could not decode image (not jpeg/tiff/pnm)"):
        super().__init__(message)


class ImageTooLarge(DerivativeError):
    """The decoded raster exceeds Pillow's decompression-bomb pixel limit."""


class TempFileFailure(DerivativeError):
    """A scoped temporary file could not be created or written."""


class EncodeFailure(DerivativeError):
    """JPEG encoding of the preview or the thumbnail failed."""


class DispatchFailure(DerivativeError):
    """The job could not be handed to the worker pool."""


class DecoderNotFound(Exception):
    """Startup check: the external decoder is missing or not executable."""
