# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .job_id import JobID
from .log import JobLog

if TYPE_CHECKING:
    from .job import Job


@dataclass
class Command:
    """
    A command ready to be handed over to an execution service.

    Submission commands are bound to the job they submit and receive the
    identifier assigned by the backend once they have been executed.
    """

    # Shell text of the command.
    text: str
    # Job submitted or run by the command.
    job: "Job | None" = None
    # Data fed to the standard input of the command (e.g. an inline job script).
    stdin: str | None = None
    # Environment variables to set for the command.
    env: dict[str, str] = field(default_factory=dict)
    # Directory to run the command in.
    working_dir: Path | None = None
    # Where the output of the command should go.
    log: JobLog = field(default_factory=JobLog.none)
    # Identifier assigned by the backend after execution.
    job_id: JobID | None = None

    def setExecutionId(self, job_id: JobID) -> None:
        """Store the identifier the backend assigned to the submitted job."""
        self.job_id = job_id

    def toStr(self) -> str:
        return self.text

    def __str__(self) -> str:
        return self.text
