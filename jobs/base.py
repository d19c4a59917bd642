"""
Abstract base class for source decoders.

The job processor needs "something that turns a source path into a file
Pillow can read". Today that's the dcraw subprocess (jobs/dcraw.py), but the
processor only talks to this interface, so an in-process decoder (or a fake
in tests) can be dropped in without touching the pipeline.

Same Strategy pattern as before:
- AbstractSourceDecoder = interface
- DcrawDecoder = implementation

To add a new decoder:
1. Create a class that inherits AbstractSourceDecoder
2. Implement prepare() and name
3. Pass an instance to DerivativeProcessor
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO

from models.enums import ExtractionStrategy

logger = logging.getLogger(__name__)


@dataclass
class PreparedSource:
    """
    A readable image file produced by a decoder.

    temporary=True means the job owns the file and must discard() it.
    temporary=False means it's the caller's own file, never deleted.
    """
    path: str
    temporary: bool

    def open(self) -> BinaryIO:
        return open(self.path, "rb")

    def discard(self) -> None:
        """Delete the file if we own it. Safe to call more than once."""
        if not self.temporary:
            return
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary source {self.path}: {e}")
        self.temporary = False


class AbstractSourceDecoder(ABC):

    @abstractmethod
    def prepare(self, strategy: ExtractionStrategy, source_path: str) -> PreparedSource:
        """
        Produce a readable image for source_path.

        Raises:
            SourceMissing: the source file does not exist.
            TempFileFailure: scratch space for the decoded output is unavailable.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in log lines (e.g., 'dcraw')."""
        ...
