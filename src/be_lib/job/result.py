# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .command import Command
from .job_id import JobID

if TYPE_CHECKING:
    from .job import Job


@dataclass
class JobResult:
    """
    Outcome of a single submission (or direct execution) of a job.
    """

    # Command used to submit or run the job.
    command: Command
    # Identifier assigned to the job (a sentinel if the job was never dispatched).
    job_id: JobID
    # Whether the backend accepted the job (or, for direct execution, whether the job succeeded).
    successful: bool
    # Exit code of the submission (or of the job itself, for direct execution).
    exit_code: int | None = None
    # Output lines of the submission (or of the job itself, for direct execution).
    result_lines: list[str] = field(default_factory=list)
    # Tool called by the job.
    tool: Path | None = None
    # Inline script run by the job.
    script: str | None = None
    # Parameters passed to the job.
    parameters: dict[str, str] = field(default_factory=dict)
    # Direct parents of the job at the time of submission.
    parent_jobs: list["Job"] = field(default_factory=list)

    @property
    def wasExecuted(self) -> bool:
        """Check whether the job was actually dispatched to a backend."""
        return self.job_id.isValid()
