# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import shlex
import shutil
from collections.abc import Iterable
from datetime import timedelta
from pathlib import Path

from be_lib.batch.interface import (
    AdapterMeta,
    BatchAdapter,
    DependencyMode,
    StatusRecord,
    batch_adapter,
)
from be_lib.core.common import duration_to_hhmmss
from be_lib.core.config import CFG
from be_lib.core.logger import get_logger
from be_lib.execution.service import ExecutionResult
from be_lib.job.command import Command
from be_lib.job.job import Job
from be_lib.job.job_id import JobID
from be_lib.properties.parameters import ProcessingParameters
from be_lib.properties.resources import ResourceSet
from be_lib.properties.states import JobState

from .common import parseQstatLine

logger = get_logger(__name__)


@batch_adapter
class PBS(BatchAdapter, metaclass=AdapterMeta):
    """
    Implementation of BatchAdapter for PBS/Torque.
    """

    # backend-native state tokens
    STATE_TOKENS = {
        "R": JobState.RUNNING,
        "E": JobState.RUNNING,
        "H": JobState.HOLD,
        "S": JobState.HOLD,
        "Q": JobState.QUEUED,
        "W": JobState.QUEUED,
        "T": JobState.QUEUED,
        "C": JobState.COMPLETED_UNKNOWN,
        "F": JobState.COMPLETED_UNKNOWN,
    }

    # prefix of directives in job scripts
    DIRECTIVE = "#PBS"

    def envName() -> str:
        return "PBS"

    def isAvailable() -> bool:
        return shutil.which("qsub") is not None

    def getDefaultForHoldJobsEnabled() -> bool:
        return True

    def getDependencyMode() -> DependencyMode:
        return DependencyMode.QUEUE_MEDIATED

    def convertResourceSet(resource_set: ResourceSet) -> ProcessingParameters:
        params = ProcessingParameters()

        if resource_set.isQueueSet():
            params.add("-q", resource_set.queue)

        if resource_set.isMemSet():
            params.add("-l", f"mem={resource_set.mem.toStrExact()}")

        if resource_set.isWalltimeSet():
            params.add("-l", f"walltime={PBS.formatWalltime(resource_set.walltime)}")

        if resource_set.isCoresSet() or resource_set.isNodesSet():
            nodes = resource_set.nodes if resource_set.isNodesSet() else 1
            cores = resource_set.cores if resource_set.isCoresSet() else 1
            params.add("-l", f"nodes={nodes}:ppn={cores}")

        return params

    def formatWalltime(walltime: timedelta) -> str:
        return duration_to_hhmmss(walltime)

    def parseProcessingParameters(raw: str) -> ProcessingParameters:
        return ProcessingParameters.fromStr(raw)

    def extractProcessingParametersFromToolScript(file: Path) -> ProcessingParameters:
        return PBS.parseProcessingParameters(
            BatchAdapter._readDirectives(file, PBS.DIRECTIVE)
        )

    def createCommand(
        job: Job,
        parameters: ProcessingParameters,
        dependencies: list[JobID],
        hold: bool,
    ) -> Command:
        command = PBS._translateSubmit(job, parameters, dependencies, hold)
        logger.debug(command)

        return Command(
            text=command,
            job=job,
            stdin=job.script,
            working_dir=job.working_directory,
        )

    def parseJobId(result: ExecutionResult) -> JobID | None:
        # qsub prints nothing but the identifier of the submitted job
        for line in result.result_lines:
            if line.strip() and line.strip()[0].isdigit():
                return JobID(line.strip())

        return None

    def buildReleaseCommand(job_ids: list[JobID]) -> Command | None:
        return Command(text=f"qrls {' '.join(str(x) for x in job_ids)}")

    def buildAbortCommand(job_ids: list[JobID]) -> Command | None:
        return Command(text=f"qdel {' '.join(str(x) for x in job_ids)}")

    def buildStatusQuery(job_ids: list[JobID] | None, user: str | None) -> Command:
        command = "qstat"

        if user:
            command += f" -u {shlex.quote(user)}"
        if job_ids:
            command += f" {' '.join(str(x) for x in job_ids)}"

        return Command(text=command)

    def parseStatus(lines: Iterable[str]) -> dict[str, StatusRecord]:
        return BatchAdapter._parseStatusLines(lines, PBS.parseStatusLine)

    def parseStatusLine(line: str) -> StatusRecord | None:
        if not (parsed := parseQstatLine(line)):
            return None

        raw_id, token, info = parsed
        job_id = JobID(raw_id).shortId
        info.job_id = job_id

        return StatusRecord(job_id=job_id, state=PBS.parseJobState(token), info=info)

    def parseJobState(token: str) -> JobState:
        return PBS.STATE_TOKENS.get(token.strip().upper(), JobState.UNKNOWN_SUBMITTED)

    @staticmethod
    def _translateSubmit(
        job: Job,
        parameters: ProcessingParameters,
        dependencies: list[JobID],
        hold: bool,
    ) -> str:
        """
        Generate the qsub command submitting the job.

        Inline scripts are read by qsub from its standard input.

        Args:
            job (Job): The job to submit.
            parameters (ProcessingParameters): Rendered resources and additional parameters.
            dependencies (list[JobID]): Identifiers of the parents of the job.
            hold (bool): Whether to submit the job on hold.

        Returns:
            str: The fully constructed qsub command string.
        """
        command = "qsub "
        if hold:
            command += "-h "

        command += f"-N {shlex.quote(job.name)} "

        if job.accounting_name:
            command += f"-A {shlex.quote(job.accounting_name)} "

        command += PBS._translateLog(job)

        if job.working_directory:
            command += f"-d {shlex.quote(str(job.working_directory))} "

        command += f"-v {PBS._translateEnvVars(job)} "

        if not parameters.isEmpty():
            command += f"{parameters.toStr()} "

        if translated := PBS._translateDependencies(dependencies):
            command += f"-W depend={translated} "

        if job.tool is not None:
            command += shlex.quote(str(job.tool))

        return command.strip()

    @staticmethod
    def _translateLog(job: Job) -> str:
        log = job.job_log
        if log.isNone():
            return "-j oe -o /dev/null "

        if log.isJoined():
            return f"-j oe -o {shlex.quote(str(log.out))} "

        translated = f"-o {shlex.quote(str(log.out))} " if log.out else ""
        return translated + f"-e {shlex.quote(str(log.err))} "

    @staticmethod
    def _translateEnvVars(job: Job) -> str:
        env_vars = {CFG.env_vars.job_creation_counter: str(job.creation_counter)}
        env_vars.update(job.parameters)

        converted = []
        for key, value in env_vars.items():
            converted.append(f"\"{key}='{value}'\"")

        return ",".join(converted)

    @staticmethod
    def _translateDependencies(dependencies: list[JobID]) -> str | None:
        """
        Convert parent identifiers into a PBS dependency string (e.g. `afterok:123:124`).
        """
        if not dependencies:
            return None

        return ":".join(
            [CFG.pbs_options.dependency_type] + [str(job_id) for job_id in dependencies]
        )
