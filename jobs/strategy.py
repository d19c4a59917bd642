"""
Extraction strategy — how much work should the RAW decoder do?

Decoding a RAW file at full resolution is by far the most expensive step of a
job. Most of the time we don't need it: the preview is only PREVIEW_WIDTH
pixels wide, so either the JPEG the camera embedded in the file or a
half-size decode is visually identical once downscaled.

Decision table (half = image_width // 2), checked top to bottom:

    thumb >= preview and thumb <= half  → EMBEDDED_PREVIEW
    half >= preview                     → HALF_RESOLUTION
    thumb >= preview                    → EMBEDDED_PREVIEW
    otherwise                           → FULL_RESOLUTION

Only caller-declared widths are used; the source file is never probed.
The rules overlap at some boundaries (thumb == preview == half matches both
of the first two), so the order matters. Don't collapse the conditions.
"""

from models.enums import ExtractionStrategy

# dcraw flags:
#   -e  extract the embedded thumbnail/preview
#   -w  use the camera's white balance
#   -h  half-size output
#   -T  write TIFF instead of PPM
_DECODER_FLAGS: dict[ExtractionStrategy, list[str]] = {
    ExtractionStrategy.EMBEDDED_PREVIEW: ["-e"],
    ExtractionStrategy.HALF_RESOLUTION: ["-w", "-h", "-T"],
    ExtractionStrategy.FULL_RESOLUTION: ["-w", "-T"],
}


def select_strategy(full_width: int, thumb_width: int, preview_width: int) -> ExtractionStrategy:
    """Pick the cheapest decode that still covers the preview width."""
    half_width = full_width // 2

    if thumb_width >= preview_width and thumb_width <= half_width:
        # embedded previews can be full res, only take this branch while it
        # is still smaller than what -h would produce (less memory needed)
        return ExtractionStrategy.EMBEDDED_PREVIEW
    if half_width >= preview_width:
        return ExtractionStrategy.HALF_RESOLUTION
    if thumb_width >= preview_width:
        # half size is too small; the camera-rendered preview beats a full decode
        return ExtractionStrategy.EMBEDDED_PREVIEW
    return ExtractionStrategy.FULL_RESOLUTION


def decoder_flags(strategy: ExtractionStrategy) -> list[str]:
    """dcraw arguments for a strategy (a fresh list, safe to extend)."""
    return list(_DECODER_FLAGS[strategy])
