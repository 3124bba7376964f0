# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import itertools
import threading
from collections.abc import Iterable
from enum import Enum


class JobID:
    """
    Identifier of a job as assigned by a backend.

    The string form is the identity of the job: two identifiers with the same
    string form refer to the same job. An identifier created without a value
    is unassigned (the job has not been dispatched yet).
    """

    def __init__(self, id: str | None = None):
        self._id = id

    @property
    def id(self) -> str | None:
        return self._id

    @property
    def shortId(self) -> str | None:
        """
        Return the identifier without the server suffix (`123.pbs01` -> `123`).
        """
        if self._id is None:
            return None

        return self._id.split(".", 1)[0]

    def isAssigned(self) -> bool:
        return self._id is not None

    def isValid(self) -> bool:
        """
        Check whether the identifier refers to a job actually known to the backend.
        """
        return self.isAssigned() and not FakeJobID.isFakeJobId(self._id)

    def __str__(self) -> str:
        return "" if self._id is None else self._id

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._id!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, JobID):
            return str(self) == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))

    @staticmethod
    def uniqueValidJobIds(job_ids: Iterable["JobID"]) -> list["JobID"]:
        """
        Filter out unassigned and sentinel identifiers and deduplicate the rest
        by their string form.

        Returns:
            list[JobID]: Valid identifiers sorted by their string form.
        """
        unique = {str(x): x for x in job_ids if x.isValid()}
        return [unique[key] for key in sorted(unique)]


class FakeJobReason(Enum):
    """
    Reason a job obtained a sentinel identifier.
    """

    # A parent job was not in an acceptable state, so the job was never executed.
    NOT_EXECUTED = 1
    # The backend refused or failed to accept the job.
    SUBMISSION_FAILED = 2
    # No specific reason.
    UNDEFINED = 3

    def __str__(self) -> str:
        return self.name.lower()


class FakeJobID(JobID):
    """
    Sentinel identifier of a job that was never dispatched to a backend.

    Sentinel identifiers are unique within a process and are never valid.
    """

    PREFIX = "fake"

    _counter = itertools.count(1)
    _counter_lock = threading.Lock()

    def __init__(self, reason: FakeJobReason = FakeJobReason.UNDEFINED):
        with FakeJobID._counter_lock:
            n = next(FakeJobID._counter)
        super().__init__(f"{FakeJobID.PREFIX}.{reason}.{n}")
        self.reason = reason

    def isValid(self) -> bool:
        return False

    @staticmethod
    def isFakeJobId(job_id: str | JobID | None) -> bool:
        """
        Check whether the identifier (or its string form) is a sentinel.
        """
        if isinstance(job_id, FakeJobID):
            return True
        if job_id is None:
            return False

        return str(job_id).startswith(f"{FakeJobID.PREFIX}.")
