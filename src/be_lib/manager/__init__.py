# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Orchestration of jobs on a backend.

- `JobManager`: submits, releases, aborts, and queries jobs through a backend
  adapter and an execution service.

- `StatusSynchronizer`: the time-budgeted cache of the bulk backend status and
  the registry of tracked jobs reconciled against it.

- `StatusPoller`: the cancellable background task refreshing the status.
"""

from .manager import JobManager, JobManagerParameters
from .poller import StatusPoller
from .synchronizer import StatusSynchronizer

__all__ = ["JobManager", "JobManagerParameters", "StatusPoller", "StatusSynchronizer"]
