# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import getpass
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

from be_lib.batch.interface import AdapterMeta, BatchAdapter, DependencyMode
from be_lib.core.config import CFG
from be_lib.core.error import BEAbortionError, BEError, BETransportError
from be_lib.core.logger import get_logger
from be_lib.execution.local import LocalExecutionService
from be_lib.execution.service import ExecutionResult, ExecutionService
from be_lib.job.command import Command
from be_lib.job.job import Job
from be_lib.job.job_id import FakeJobID, FakeJobReason, JobID
from be_lib.job.result import JobResult
from be_lib.properties.info import JobInfo
from be_lib.properties.parameters import ProcessingParameters
from be_lib.properties.states import JobState

from .poller import StatusPoller
from .synchronizer import StatusSynchronizer

logger = get_logger(__name__)


@dataclass
class JobManagerParameters:
    """
    Settings of a job manager.
    """

    # Submit jobs on hold. Uses the default of the backend if not set.
    hold_jobs: bool | None = None
    # Scope status queries to the jobs submitted by this manager if only a few are tracked.
    track_only_started_jobs: bool = True
    # Restrict status queries to the jobs of a single user.
    track_user_jobs: bool = False
    # User to restrict status queries to. Defaults to the current user.
    user_id: str | None = None
    # Start the background status updates when the manager is created.
    create_daemon: bool = False
    # Interval (in seconds) between background status updates.
    update_interval: int = field(default_factory=lambda: CFG.manager.update_interval)


class JobManager:
    """
    Submits, releases, aborts, and tracks jobs of a single backend.

    The manager is independent of the backend: everything backend-specific is
    delegated to the adapter, everything execution-specific to the execution
    service. Jobs may be submitted from several threads at once.
    """

    def __init__(
        self,
        service: ExecutionService,
        adapter: type[BatchAdapter],
        params: JobManagerParameters | None = None,
    ):
        """
        Args:
            service (ExecutionService): Service executing the commands of the manager.
            adapter (type[BatchAdapter]): Adapter of the backend to use.
            params (JobManagerParameters | None): Settings of the manager.
        """
        params = params or JobManagerParameters()

        self._service = service
        self._adapter = adapter
        self._hold_jobs = (
            params.hold_jobs
            if params.hold_jobs is not None
            else adapter.getDefaultForHoldJobsEnabled()
        )

        user = None
        if params.track_user_jobs:
            user = params.user_id or getpass.getuser()

        self._synchronizer = StatusSynchronizer(
            service, adapter, params.track_only_started_jobs, user
        )

        self._poller = None
        if not adapter.executesWithoutJobSystem():
            self._poller = StatusPoller(self.updateJobStatus, params.update_interval)
            if params.create_daemon:
                self.startStatusUpdates()

        logger.debug(
            f"Created job manager for backend '{adapter.envName()}' (hold jobs: {self._hold_jobs})."
        )

    @classmethod
    def fromBackend(
        cls, name: str | None = None, params: JobManagerParameters | None = None
    ) -> Self:
        """
        Create a manager executing commands on the current host.

        Args:
            name (str | None): Name of the backend. If not specified, the backend is
                selected using the environment variable or by guessing.
            params (JobManagerParameters | None): Settings of the manager.

        Raises:
            BEError: If no suitable backend is found.
        """
        return cls(LocalExecutionService(), AdapterMeta.obtain(name), params)

    @property
    def adapter(self) -> type[BatchAdapter]:
        return self._adapter

    def isHoldJobsEnabled(self) -> bool:
        return self._hold_jobs

    def executesWithoutJobSystem(self) -> bool:
        return self._adapter.executesWithoutJobSystem()

    def runJob(self, job: Job) -> JobResult:
        """
        Submit the job to the backend (or run it, for backends without a scheduler).

        Exactly one submission is attempted. Failures of the backend are reported
        through the returned result and the state of the job; they never raise.

        Args:
            job (Job): The job to submit.

        Returns:
            JobResult: The result of the submission.

        Raises:
            BEError: If the job is a placeholder or has already been submitted.
        """
        if job.isPlaceholder():
            raise BEError(f"{job} runs neither a tool nor a script and cannot be submitted.")

        if job.getJobId().isAssigned():
            raise BEError(f"{job} has already been submitted.")

        parameters = self._adapter.convertResourceSet(job.resource_set).merge(
            *job.getProcessingParameters()
        )

        if self._adapter.getDependencyMode() == DependencyMode.PREFLIGHT_CHECKED:
            command = self._adapter.createCommand(job, parameters, [], False)

            if blocking := [
                p for p in job.getParentJobs() if not p.getJobState().isAcceptableParentState()
            ]:
                logger.warning(
                    f"Not executing {job}: parent jobs {', '.join(str(p) for p in blocking)} "
                    "are not in an acceptable state."
                )
                return self._finish(
                    job, command, None, FakeJobID(FakeJobReason.NOT_EXECUTED), JobState.FAILED
                )
        else:
            command = self._adapter.createCommand(
                job, parameters, job.getParentJobIds(), self._hold_jobs
            )

        try:
            execution = self._service.execute(command)
        except BETransportError as e:
            logger.warning(f"Could not submit {job}: {e}")
            return self._finish(
                job, command, None, FakeJobID(FakeJobReason.SUBMISSION_FAILED), JobState.FAILED
            )

        job_id = self._adapter.parseJobId(execution)

        if self._adapter.executesWithoutJobSystem():
            if job_id is None:
                job_id = FakeJobID(FakeJobReason.UNDEFINED)
            state = (
                JobState.COMPLETED_SUCCESSFUL if execution.successful else JobState.FAILED
            )
            if not execution.successful:
                logger.warning(
                    f"Execution of job '{job.name}' ({job_id}) failed with exit code {execution.exit_code}."
                )
            return self._finish(job, command, execution, job_id, state)

        if not execution.successful or job_id is None:
            logger.warning(
                f"Submission of job '{job.name}' failed with exit code {execution.exit_code}: "
                f"{' '.join(execution.error_lines).strip()}"
            )
            return self._finish(
                job,
                command,
                execution,
                FakeJobID(FakeJobReason.SUBMISSION_FAILED),
                JobState.FAILED,
                successful=False,
            )

        result = self._finish(
            job,
            command,
            execution,
            job_id,
            JobState.HOLD if self._hold_jobs else JobState.QUEUED,
        )
        self._synchronizer.addListener(job)
        logger.info(f"Submitted job '{job.name}' as '{job_id}'.")

        return result

    def startHeldJobs(self, jobs: list[Job]) -> None:
        """
        Release held jobs using a single backend command.

        The state of the jobs is not changed; the next status update reflects the release.

        Raises:
            BEError: If the jobs could not be released.
        """
        if not self._hold_jobs or not jobs:
            return

        job_ids = [job.getJobId() for job in Job.jobsWithUniqueValidJobId(jobs)]
        if not job_ids:
            return

        if not (command := self._adapter.buildReleaseCommand(job_ids)):
            logger.debug(f"Backend '{self._adapter.envName()}' does not release jobs.")
            return

        result = self._service.execute(command)
        if not result.successful:
            raise BEError(
                f"Could not release jobs {', '.join(str(x) for x in job_ids)}: "
                f"{' '.join(result.error_lines).strip()}"
            )

        logger.info(f"Released jobs {', '.join(str(x) for x in job_ids)}.")

    def queryJobAbortion(self, jobs: list[Job]) -> None:
        """
        Abort the jobs using a single backend command, mark them as ABORTED, and stop
        tracking them.

        Raises:
            BEAbortionError: If the backend refused to abort the jobs. No job is changed.
        """
        unique = Job.jobsWithUniqueValidJobId(jobs)
        if not unique:
            return

        job_ids = [job.getJobId() for job in unique]
        if not (command := self._adapter.buildAbortCommand(job_ids)):
            logger.debug(f"Backend '{self._adapter.envName()}' has nothing to abort.")
            return

        try:
            result = self._service.execute(command)
        except BETransportError as e:
            raise BEAbortionError(f"Could not abort jobs: {e}") from e

        if not result.successful:
            raise BEAbortionError(
                f"Could not abort jobs {', '.join(str(x) for x in job_ids)}: "
                f"{' '.join(result.error_lines).strip()}"
            )

        aborted = {str(x) for x in job_ids}
        for job in jobs:
            if str(job.getJobId()) in aborted:
                job.setJobState(JobState.ABORTED)
                self._synchronizer.removeListener(job)

    def queryJobStatus(
        self, jobs: list[Job], forceUpdate: bool = False
    ) -> dict[Job, JobState]:
        """
        Return the best-known state of each job, refreshing the status cache if needed.
        """
        return self._synchronizer.queryJobStatus(jobs, forceUpdate)

    def queryJobStatusById(
        self, job_ids: list[JobID | str], forceUpdate: bool = False
    ) -> dict[str, JobState]:
        return self._synchronizer.queryStatusById(job_ids, forceUpdate)

    def queryJobStatusAll(self, forceUpdate: bool = False) -> dict[str, JobState]:
        return self._synchronizer.queryStatusAll(forceUpdate)

    def queryExtendedJobState(
        self, jobs: list[Job], forceUpdate: bool = False
    ) -> dict[Job, JobInfo]:
        """
        Return the normalized metadata of each job, refreshing the status cache if needed.
        """
        self._synchronizer.queryJobStatus(jobs, forceUpdate)
        return {
            job: job.getJobInfo() or JobInfo(job_id=str(job.getJobId()) or None)
            for job in jobs
        }

    def addJobStatusChangeListener(self, job: Job) -> None:
        """Track a job, e.g. one submitted by another process."""
        self._synchronizer.addListener(job)

    def updateJobStatus(self) -> None:
        """Refresh the status of all tracked jobs."""
        self._synchronizer.refresh(force=True)

    def convertToArrayResult(
        self, child: Job, parent_result: JobResult, index: int
    ) -> JobResult:
        return self._adapter.convertToArrayResult(child, parent_result, index)

    def parseProcessingParameters(self, raw: str) -> ProcessingParameters:
        return self._adapter.parseProcessingParameters(raw)

    def extractProcessingParametersFromToolScript(self, file: Path) -> ProcessingParameters:
        return self._adapter.extractProcessingParametersFromToolScript(file)

    def startStatusUpdates(self) -> None:
        """Start updating the status of tracked jobs in the background."""
        if self._poller is None:
            logger.debug("Background status updates are not used for this backend.")
            return
        self._poller.start()

    def stopStatusUpdates(self) -> None:
        if self._poller is not None:
            self._poller.stop()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stopStatusUpdates()

    def _finish(
        self,
        job: Job,
        command: Command,
        execution: ExecutionResult | None,
        job_id: JobID,
        state: JobState,
        successful: bool | None = None,
    ) -> JobResult:
        """
        Record the outcome of a submission in the command, the job, and its result.
        """
        command.setExecutionId(job_id)

        result = JobResult(
            command=command,
            job_id=job_id,
            successful=(
                successful
                if successful is not None
                else execution is not None and execution.successful
            ),
            exit_code=execution.exit_code if execution else None,
            result_lines=list(execution.result_lines) if execution else [],
            tool=job.tool,
            script=job.script,
            parameters=dict(job.parameters),
            parent_jobs=job.getParentJobs(),
        )

        job.setRunResult(result)
        job.setJobState(state)

        return result
