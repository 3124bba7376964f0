# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
The job entity and its direct-parent dependency model.

A `Job` is one schedulable unit of work: it runs either a tool (a script file)
or an inline script, requests resources through a `ResourceSet`, and may depend
on other jobs (its direct parents). Jobs without a tool and a script are
placeholders that only refer to jobs known to a backend.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Self

from be_lib.core.error import BEConfigurationError
from be_lib.core.logger import get_logger
from be_lib.properties.info import JobInfo
from be_lib.properties.parameters import ProcessingParameters
from be_lib.properties.resources import ResourceSet
from be_lib.properties.states import JobState

from .counter import JobCreationCounter
from .job_id import FakeJobID, JobID
from .log import JobLog

if TYPE_CHECKING:
    from .result import JobResult

logger = get_logger(__name__)


class Job:
    """
    A schedulable unit of work.
    """

    # Name reserved for sentinel jobs that only stand in for other jobs.
    FAKE_JOB_NAME = "Fakejob"

    def __init__(
        self,
        name: str,
        counter: JobCreationCounter,
        job_log: JobLog | None = JobLog.none(),
        tool: Path | str | None = None,
        script: str | None = None,
        resource_set: ResourceSet | None = None,
        parameters: dict[str, str] | None = None,
        parent_jobs: Iterable["Job"] | None = None,
        working_directory: Path | None = None,
        accounting_name: str | None = None,
        job_id: JobID | str | None = None,
    ):
        """
        Create a new job in the UNSTARTED state.

        Args:
            name (str): Name of the job.
            counter (JobCreationCounter): Counter numbering the jobs of this process.
            job_log (JobLog): Destination of the output of the job.
            tool (Path | str | None): Script file run by the job.
            script (str | None): Inline script run by the job.
            resource_set (ResourceSet | None): Resources requested for the job.
            parameters (dict[str, str] | None): Parameters exported into the environment of the job.
            parent_jobs (Iterable[Job] | None): Direct parents of the job.
            working_directory (Path | None): Directory the job should run in.
            accounting_name (str | None): Project or account the job is charged to.
            job_id (JobID | str | None): Identifier of a job already known to a backend.

        Raises:
            BEConfigurationError: If both a tool and a script are specified,
                if neither is specified for a job that is not a placeholder,
                or if no log destination is provided.
        """
        if tool is not None and script is not None:
            raise BEConfigurationError(
                f"Job '{name}' cannot specify both a tool and an inline script."
            )

        if job_log is None:
            raise BEConfigurationError(f"Job '{name}' has no log destination.")

        self._job_id = job_id if isinstance(job_id, JobID) else JobID(job_id)

        if (
            tool is None
            and script is None
            and not self._job_id.isAssigned()
            and name != Job.FAKE_JOB_NAME
        ):
            raise BEConfigurationError(
                f"Job '{name}' must specify either a tool or an inline script."
            )

        self.name = name
        self.accounting_name = accounting_name
        self.tool = Path(tool) if tool is not None else None
        self.script = script
        self.resource_set = resource_set or ResourceSet()
        self.parameters = dict(parameters or {})
        self.working_directory = working_directory
        self.job_log = job_log
        self.creation_counter = counter.next()

        self._state = JobState.UNSTARTED
        self._info: JobInfo | None = None
        self._run_result: "JobResult | None" = None
        self._processing_parameters: list[ProcessingParameters] = []
        self._parents: list[Job] = []

        self.addParentJobs(parent_jobs or [])

        logger.debug(
            f"Created job '{self.name}' (#{self.creation_counter}, id '{self._job_id}')."
        )

    @classmethod
    def fromId(
        cls, job_id: JobID | str, counter: JobCreationCounter, name: str | None = None
    ) -> Self:
        """
        Create a placeholder job referring to a job already known to a backend.
        """
        job_id = job_id if isinstance(job_id, JobID) else JobID(job_id)
        return cls(name or str(job_id), counter, job_id=job_id)

    def getJobId(self) -> JobID:
        return self._job_id

    def resetJobId(self, job_id: JobID | str | None = None) -> None:
        """
        Replace the identifier of the job (unassign it if no identifier is given).
        """
        self._job_id = job_id if isinstance(job_id, JobID) else JobID(job_id)

    def getJobState(self) -> JobState:
        return self._state

    def setJobState(self, state: JobState) -> None:
        if state != self._state:
            logger.debug(f"Job '{self.name}' ({self._job_id}): {self._state} -> {state}.")
        self._state = state

    def getJobInfo(self) -> JobInfo | None:
        return self._info

    def updateJobInfo(self, info: JobInfo) -> None:
        """
        Merge freshly obtained metadata into the metadata of the job.
        """
        if self._info is None:
            self._info = JobInfo()
        self._info.merge(info)

    def getRunResult(self) -> "JobResult | None":
        return self._run_result

    def setRunResult(self, result: "JobResult") -> None:
        """
        Attach the result of the submission to the job.

        An unassigned identifier of the job is taken over from the result.

        Raises:
            BEConfigurationError: If the job already has a different identifier.
        """
        if self._job_id.isAssigned() and self._job_id != result.job_id:
            raise BEConfigurationError(
                f"Run result with id '{result.job_id}' does not belong to job '{self.name}' ({self._job_id})."
            )

        self._job_id = result.job_id
        self._run_result = result

    def isFakeJob(self) -> bool:
        """Check whether the job is a sentinel that was never dispatched to a backend."""
        return self.name == Job.FAKE_JOB_NAME or FakeJobID.isFakeJobId(self._job_id)

    def isPlaceholder(self) -> bool:
        """Check whether the job runs neither a tool nor a script."""
        return self.tool is None and self.script is None

    def getParentJobs(self) -> list["Job"]:
        return list(self._parents)

    def addParentJobs(self, parents: Iterable["Job"]) -> None:
        """
        Add direct parents to the job.

        Parents are unique by the string form of their identifier; parents
        without an identifier are unique by identity.

        Raises:
            BEConfigurationError: If adding a parent would create a dependency cycle.
        """
        for parent in parents:
            if self._isAncestorOf(parent):
                raise BEConfigurationError(
                    f"Job '{parent.name}' cannot be a parent of job '{self.name}': dependency cycle."
                )

            if any(self._isSameJob(parent, known) for known in self._parents):
                logger.debug(f"Job '{parent.name}' is already a parent of '{self.name}'.")
                continue

            self._parents.append(parent)

    def addParentJobIds(
        self, job_ids: Iterable[JobID | str], counter: JobCreationCounter
    ) -> None:
        """
        Add direct parents known only by their backend identifiers.
        """
        self.addParentJobs(Job.fromId(job_id, counter) for job_id in job_ids)

    def getParentJobIds(self) -> list[JobID]:
        """
        Return the valid identifiers of the direct parents (deduplicated and sorted).
        """
        return JobID.uniqueValidJobIds(p.getJobId() for p in self._parents)

    def getProcessingParameters(self) -> list[ProcessingParameters]:
        return list(self._processing_parameters)

    def addProcessingParameters(self, params: ProcessingParameters) -> None:
        """Attach backend-native parameters overriding or extending the resource request."""
        self._processing_parameters.append(params)

    @staticmethod
    def jobsWithUniqueValidJobId(jobs: Iterable["Job"]) -> list["Job"]:
        """
        Filter out jobs without a valid identifier and deduplicate the rest by identifier.

        Returns:
            list[Job]: Jobs sorted by the string form of their identifier.
        """
        unique: dict[str, Job] = {}
        for job in jobs:
            if job.isFakeJob() or not job.getJobId().isValid():
                continue
            unique.setdefault(str(job.getJobId()), job)

        return [unique[key] for key in sorted(unique)]

    def _isAncestorOf(self, job: "Job") -> bool:
        """Check whether this job is the job itself or one of its (transitive) parents."""
        stack = [job]
        seen: set[int] = set()
        while stack:
            current = stack.pop()
            if current is self:
                return True
            if id(current) in seen:
                continue
            seen.add(id(current))
            stack.extend(current._parents)

        return False

    @staticmethod
    def _isSameJob(a: "Job", b: "Job") -> bool:
        if a is b:
            return True
        return a.getJobId().isAssigned() and a.getJobId() == b.getJobId()

    def __str__(self) -> str:
        if self._job_id.isAssigned():
            return f"Job {self.name} [{self._job_id}] ({self._state})"
        return f"Job {self.name} ({self._state})"

    def __repr__(self) -> str:
        return f"Job(name={self.name!r}, job_id={self._job_id!r}, state={self._state.name})"
