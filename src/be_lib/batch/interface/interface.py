# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import time
from abc import ABC
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path

from be_lib.core.common import collapse_whitespace, starts_with_job_number
from be_lib.core.error import BEError, BEUnsupportedOperationError
from be_lib.core.logger import get_logger
from be_lib.execution.service import ExecutionResult
from be_lib.job.command import Command
from be_lib.job.job import Job
from be_lib.job.job_id import JobID
from be_lib.job.result import JobResult
from be_lib.properties.info import JobInfo
from be_lib.properties.parameters import ProcessingParameters
from be_lib.properties.resources import ResourceSet
from be_lib.properties.states import JobState

logger = get_logger(__name__)


class DependencyMode(Enum):
    """
    How a backend expresses the dependencies of a job on its parents.
    """

    # parent identifiers are handed over to the scheduler which defers the job
    QUEUE_MEDIATED = 1
    # parent states are checked before the job is executed
    PREFLIGHT_CHECKED = 2


@dataclass
class StatusRecord:
    """
    Status of a single job parsed from the bulk status output of a backend.
    """

    # Identifier of the job (without the server suffix).
    job_id: str
    # Canonical state of the job.
    state: JobState
    # Normalized metadata of the job.
    info: JobInfo = field(default_factory=JobInfo)
    # Monotonic time at which the record was parsed.
    timestamp: float = field(default_factory=time.monotonic)


class BatchAdapter(ABC):
    """
    Abstract base class for backend adapters.

    An adapter bundles everything specific to one backend: how resources and
    dependencies are rendered into a submission command, how the bulk status
    output is parsed, how backend-native state tokens map to `JobState`, and
    which hold policy applies. Adapters never execute anything themselves;
    they only build commands and parse their output.

    All methods are static. Backend adapters are used as classes.
    """

    @staticmethod
    def envName() -> str:
        """
        Return the name of the backend.

        Returns:
            str: The backend name.
        """
        raise NotImplementedError(
            "envName method is not implemented for this backend adapter"
        )

    @staticmethod
    def isAvailable() -> bool:
        """
        Determine whether the backend is available on the current host.

        Returns:
            bool: True if the backend is available, False otherwise.
        """
        raise NotImplementedError(
            "isAvailable method is not implemented for this backend adapter"
        )

    @staticmethod
    def executesWithoutJobSystem() -> bool:
        """
        Check whether jobs are executed synchronously without any scheduler.

        Job states of such backends are authoritative as soon as the job has been
        run and are never polled.
        """
        return False

    @staticmethod
    def getDefaultForHoldJobsEnabled() -> bool:
        """
        Return whether jobs should be submitted on hold unless configured otherwise.
        """
        raise NotImplementedError(
            "getDefaultForHoldJobsEnabled method is not implemented for this backend adapter"
        )

    @staticmethod
    def getDependencyMode() -> DependencyMode:
        """Return how dependencies of jobs are expressed for this backend."""
        return DependencyMode.QUEUE_MEDIATED

    @staticmethod
    def convertResourceSet(resource_set: ResourceSet) -> ProcessingParameters:
        """
        Render a resource request into backend-native processing parameters.

        Every field of the resource set is rendered independently. Fields that
        are not set contribute nothing.

        Args:
            resource_set (ResourceSet): The requested resources.

        Returns:
            ProcessingParameters: The rendered parameters.
        """
        raise NotImplementedError(
            "convertResourceSet method is not implemented for this backend adapter"
        )

    @staticmethod
    def formatWalltime(walltime: timedelta) -> str:
        """
        Render a walltime into the literal syntax of the backend.
        """
        raise NotImplementedError(
            "formatWalltime method is not implemented for this backend adapter"
        )

    @staticmethod
    def parseProcessingParameters(raw: str) -> ProcessingParameters:
        """
        Parse a backend-native option string into processing parameters.

        Raises:
            BEError: If the option string cannot be parsed.
        """
        return ProcessingParameters.fromStr(raw)

    @staticmethod
    def extractProcessingParametersFromToolScript(file: Path) -> ProcessingParameters:
        """
        Collect the processing parameters specified as directives in a job script.

        Args:
            file (Path): Path to the job script.

        Returns:
            ProcessingParameters: Parameters of all directives in the script.

        Raises:
            BEError: If the script cannot be read or a directive cannot be parsed.
            BEUnsupportedOperationError: If the backend does not support directives.
        """
        raise BEUnsupportedOperationError(
            "This backend does not support directives in job scripts."
        )

    @staticmethod
    def createCommand(
        job: Job,
        parameters: ProcessingParameters,
        dependencies: list[JobID],
        hold: bool,
    ) -> Command:
        """
        Build the command submitting (or running) the job.

        Args:
            job (Job): The job to submit.
            parameters (ProcessingParameters): Rendered resources and additional parameters.
            dependencies (list[JobID]): Valid identifiers of the parents the job depends on.
            hold (bool): Whether the job should be submitted on hold.

        Returns:
            Command: The submission command bound to the job.
        """
        raise NotImplementedError(
            "createCommand method is not implemented for this backend adapter"
        )

    @staticmethod
    def parseJobId(result: ExecutionResult) -> JobID | None:
        """
        Extract the identifier of the submitted job from the result of the submission.

        Returns:
            JobID | None: The identifier or None if it cannot be found.
        """
        raise NotImplementedError(
            "parseJobId method is not implemented for this backend adapter"
        )

    @staticmethod
    def buildReleaseCommand(job_ids: list[JobID]) -> Command | None:
        """
        Build one command releasing all the specified held jobs.

        Returns:
            Command | None: The release command or None if the backend does not hold jobs.
        """
        raise NotImplementedError(
            "buildReleaseCommand method is not implemented for this backend adapter"
        )

    @staticmethod
    def buildAbortCommand(job_ids: list[JobID]) -> Command | None:
        """
        Build one command aborting all the specified jobs.

        Returns:
            Command | None: The abort command or None if the backend has nothing to abort.
        """
        raise NotImplementedError(
            "buildAbortCommand method is not implemented for this backend adapter"
        )

    @staticmethod
    def buildStatusQuery(job_ids: list[JobID] | None, user: str | None) -> Command:
        """
        Build the bulk status query.

        Args:
            job_ids (list[JobID] | None): Restrict the query to these jobs. Query all jobs if None.
            user (str | None): Restrict the query to jobs of this user.

        Returns:
            Command: The status query.
        """
        raise NotImplementedError(
            "buildStatusQuery method is not implemented for this backend adapter"
        )

    @staticmethod
    def parseStatus(lines: Iterable[str]) -> dict[str, StatusRecord]:
        """
        Parse the output of the bulk status query.

        Only lines starting with a job number are considered. Other lines are
        silently discarded.

        Args:
            lines (Iterable[str]): Lines of the output of the status query.

        Returns:
            dict[str, StatusRecord]: Status records keyed by job identifier.
        """
        raise NotImplementedError(
            "parseStatus method is not implemented for this backend adapter"
        )

    @staticmethod
    def parseStatusLine(line: str) -> StatusRecord | None:
        """
        Parse a single line of the bulk status output.

        The line has already been stripped and its whitespace collapsed.

        Returns:
            StatusRecord | None: The parsed record or None if the line is malformed.
        """
        raise NotImplementedError(
            "parseStatusLine method is not implemented for this backend adapter"
        )

    @staticmethod
    def parseJobState(token: str) -> JobState:
        """
        Map a backend-native state token to the canonical job state.

        Unrecognized tokens map to `JobState.UNKNOWN_SUBMITTED`.
        """
        raise NotImplementedError(
            "parseJobState method is not implemented for this backend adapter"
        )

    @staticmethod
    def convertToArrayResult(
        child: Job, parent_result: JobResult, index: int
    ) -> JobResult:
        """
        Derive the result of a single element of an array job.

        Raises:
            BEUnsupportedOperationError: If the backend does not support array jobs.
        """
        raise BEUnsupportedOperationError(
            "This backend does not support array jobs."
        )

    @staticmethod
    def _parseStatusLines(
        lines: Iterable[str], parse_line: Callable[[str], StatusRecord | None]
    ) -> dict[str, StatusRecord]:
        """
        Shared implementation of `parseStatus`.

        Lines not starting with a job number are discarded, whitespace of the
        remaining lines is collapsed, and each line is parsed by `parse_line`.
        """
        records = {}
        for line in lines:
            if not starts_with_job_number(line):
                continue

            record = parse_line(collapse_whitespace(line))
            if record is None:
                logger.debug(f"Skipping malformed status line: '{line}'.")
                continue

            records[record.job_id] = record

        return records

    @staticmethod
    def _readDirectives(file: Path, prefix: str) -> str:
        """
        Collect the options of the leading block of directives in a job script.

        Lines before the first directive are skipped. Collection stops at the first
        line following the block that is not a directive.

        Returns:
            str: Options of all directives joined by spaces.

        Raises:
            BEError: If the script cannot be read.
        """
        try:
            lines = file.read_text().splitlines()
        except OSError as e:
            raise BEError(f"Could not read job script '{file}': {e}.") from e

        options = []
        in_block = False
        for line in lines:
            if not line.startswith(prefix):
                if in_block:
                    break
                continue

            in_block = True
            options.append(line[len(prefix) :].strip())

        return " ".join(options)

