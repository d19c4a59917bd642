"""
Shared enumerations used across the entire project.

Using Python enums (inheriting from str) means:
- They serialize to JSON automatically ("half_resolution", not "ExtractionStrategy.HALF_RESOLUTION")
- They read well in log lines
- Typos become immediate errors instead of silent bugs
"""

import enum


class ExtractionStrategy(str, enum.Enum):
    EMBEDDED_PREVIEW = "embedded_preview"  # pull the camera's own JPEG out of the RAW file
    HALF_RESOLUTION = "half_resolution"    # demosaic at half size (4x fewer pixels)
    FULL_RESOLUTION = "full_resolution"    # full demosaic, the expensive path


class JobStage(str, enum.Enum):
    START = "START"                        # job picked up by a worker
    SOURCE_PREPARED = "SOURCE_PREPARED"    # decoder ran (or fell back to the source file)
    DECODED = "DECODED"                    # raster image in memory
    RENDERED = "RENDERED"                  # preview + thumbnail written to disk
    DONE = "DONE"                          # result handed back to the pool
