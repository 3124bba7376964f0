# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass
from pathlib import Path
from typing import Self


@dataclass(frozen=True)
class JobLog:
    """
    Destination of the standard output and error stream of a job.

    The job manager does not interpret the destination; it is only forwarded
    to the backend (in the submission command) or to the execution service.
    """

    # File receiving the standard output (and the error stream, if `err` is not set).
    out: Path | None = None
    # File receiving the error stream.
    err: Path | None = None

    @classmethod
    def none(cls) -> Self:
        """Log destination discarding all output."""
        return cls()

    @classmethod
    def toFile(cls, file: Path | str) -> Self:
        """Log destination joining both streams into one file."""
        return cls(out=Path(file))

    @classmethod
    def toFiles(cls, out: Path | str, err: Path | str) -> Self:
        """Log destination with separate files for output and errors."""
        return cls(out=Path(out), err=Path(err))

    def isNone(self) -> bool:
        return self.out is None and self.err is None

    def isJoined(self) -> bool:
        """Check whether both streams are written into the same file."""
        return self.out is not None and self.err is None
