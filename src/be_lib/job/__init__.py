# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
The job entity and everything attached to it.

- `Job`: a schedulable unit of work with its resource request, direct
  parents, state, metadata, and run result.

- `JobID` and `FakeJobID`: backend-assigned identifiers and the sentinel
  identifiers of jobs that were never dispatched.

- `JobLog`, `JobCreationCounter`, `Command`, and `JobResult`: the log
  destination of a job, the counter numbering jobs, the command submitting a
  job, and the outcome of the submission.
"""

from .command import Command
from .counter import JobCreationCounter
from .job import Job
from .job_id import FakeJobID, FakeJobReason, JobID
from .log import JobLog
from .result import JobResult

__all__ = [
    "Command",
    "FakeJobID",
    "FakeJobReason",
    "Job",
    "JobCreationCounter",
    "JobID",
    "JobLog",
    "JobResult",
]
