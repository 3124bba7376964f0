# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import re
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
from be_lib.core.common import duration_to_hhmm
from be_lib.core.config import CFG
from be_lib.core.logger import get_logger
from be_lib.execution.service import ExecutionResult
from be_lib.job.command import Command
from be_lib.job.job import Job
from be_lib.job.job_id import JobID
from be_lib.job.result import JobResult
from be_lib.properties.parameters import ProcessingParameters
from be_lib.properties.resources import ResourceSet
from be_lib.properties.states import JobState

from .common import LSF_STATUS_FIELDS, parseLSFFields

logger = get_logger(__name__)


@batch_adapter
class LSF(BatchAdapter, metaclass=AdapterMeta):
    """
    Implementation of BatchAdapter for IBM Spectrum LSF.
    """

    # backend-native state tokens
    STATE_TOKENS = {
        "RUN": JobState.RUNNING,
        "PSUSP": JobState.HOLD,
        "USUSP": JobState.HOLD,
        "SSUSP": JobState.HOLD,
        "PEND": JobState.QUEUED,
        "WAIT": JobState.QUEUED,
        "PROV": JobState.QUEUED,
        "DONE": JobState.COMPLETED_UNKNOWN,
        "EXIT": JobState.FAILED,
    }

    # prefix of directives in job scripts
    DIRECTIVE = "#BSUB"

    def envName() -> str:
        return "LSF"

    def isAvailable() -> bool:
        return shutil.which("bsub") is not None

    def getDefaultForHoldJobsEnabled() -> bool:
        # parents submitted shortly before their children may not be known to the
        # scheduler yet when the child is released
        return True

    def getDependencyMode() -> DependencyMode:
        return DependencyMode.QUEUE_MEDIATED

    def convertResourceSet(resource_set: ResourceSet) -> ProcessingParameters:
        params = ProcessingParameters()

        if resource_set.isQueueSet():
            params.add("-q", resource_set.queue)

        if resource_set.isMemSet():
            params.add("-M", str(resource_set.mem.toKilobytes()))

        if resource_set.isWalltimeSet():
            params.add("-W", LSF.formatWalltime(resource_set.walltime))

        if resource_set.isCoresSet() or resource_set.isNodesSet():
            nodes = resource_set.nodes if resource_set.isNodesSet() else 1
            cores = resource_set.cores if resource_set.isCoresSet() else 1
            params.add("-n", str(nodes * cores))

        return params

    def formatWalltime(walltime: timedelta) -> str:
        return duration_to_hhmm(walltime)

    def parseProcessingParameters(raw: str) -> ProcessingParameters:
        return ProcessingParameters.fromStr(raw)

    def extractProcessingParametersFromToolScript(file: Path) -> ProcessingParameters:
        return LSF.parseProcessingParameters(
            BatchAdapter._readDirectives(file, LSF.DIRECTIVE)
        )

    def createCommand(
        job: Job,
        parameters: ProcessingParameters,
        dependencies: list[JobID],
        hold: bool,
    ) -> Command:
        command = LSF._translateSubmit(job, parameters, dependencies, hold)
        logger.debug(command)

        return Command(
            text=command,
            job=job,
            stdin=job.script,
            working_dir=job.working_directory,
        )

    def parseJobId(result: ExecutionResult) -> JobID | None:
        for line in result.result_lines:
            if match := re.search(r"<(\d+)>", line):
                return JobID(match.group(1))

        return None

    def buildReleaseCommand(job_ids: list[JobID]) -> Command | None:
        return Command(text=f"bresume {LSF._joinIds(job_ids)}")

    def buildAbortCommand(job_ids: list[JobID]) -> Command | None:
        return Command(text=f"bkill {LSF._joinIds(job_ids)}")

    def buildStatusQuery(job_ids: list[JobID] | None, user: str | None) -> Command:
        fields = " ".join(LSF_STATUS_FIELDS)
        command = f"bjobs -noheader -o \"{fields} delimiter='{CFG.lsf_options.delimiter}'\""

        if job_ids:
            command += f" {LSF._joinIds(job_ids)}"
        if user:
            command += f" -u {shlex.quote(user)}"

        return Command(text=command)

    def parseStatus(lines: Iterable[str]) -> dict[str, StatusRecord]:
        return BatchAdapter._parseStatusLines(lines, LSF.parseStatusLine)

    def parseStatusLine(line: str) -> StatusRecord | None:
        delimiter = CFG.lsf_options.delimiter
        delimited = delimiter in line
        values = line.split(delimiter) if delimited else line.split(" ")

        # id, name and state are required
        if len(values) < 3:
            return None

        job_id = JobID(values[0].strip()).shortId
        state = LSF.parseJobState(values[2])

        if delimited:
            info = parseLSFFields(job_id, values)
        else:
            # fields other than the leading ones may contain spaces
            info = parseLSFFields(job_id, values[:3])

        return StatusRecord(job_id=job_id, state=state, info=info)

    def parseJobState(token: str) -> JobState:
        return LSF.STATE_TOKENS.get(token.strip().upper(), JobState.UNKNOWN_SUBMITTED)

    def convertToArrayResult(
        child: Job, parent_result: JobResult, index: int
    ) -> JobResult:
        job_id = JobID(f"{parent_result.job_id.shortId}[{index}]")
        logger.debug(f"Array element {index} of '{parent_result.job_id}': '{job_id}'.")

        return JobResult(
            command=parent_result.command,
            job_id=job_id,
            successful=parent_result.successful,
            exit_code=parent_result.exit_code,
            result_lines=list(parent_result.result_lines),
            tool=child.tool,
            script=child.script,
            parameters=dict(child.parameters),
            parent_jobs=child.getParentJobs(),
        )

    @staticmethod
    def _translateSubmit(
        job: Job,
        parameters: ProcessingParameters,
        dependencies: list[JobID],
        hold: bool,
    ) -> str:
        """
        Generate the bsub command submitting the job.

        Inline scripts are read by bsub from its standard input.

        Args:
            job (Job): The job to submit.
            parameters (ProcessingParameters): Rendered resources and additional parameters.
            dependencies (list[JobID]): Identifiers of the parents of the job.
            hold (bool): Whether to submit the job on hold.

        Returns:
            str: The fully constructed bsub command string.
        """
        command = "bsub "
        if hold:
            command += "-H "

        command += f"-J {shlex.quote(job.name)} "

        if job.accounting_name:
            command += f"-P {shlex.quote(job.accounting_name)} "

        command += LSF._translateLog(job)

        if job.working_directory:
            command += f"-cwd {shlex.quote(str(job.working_directory))} "

        command += f"-env {shlex.quote(LSF._translateEnvVars(job))} "

        if not parameters.isEmpty():
            command += f"{parameters.toStr()} "

        if translated := LSF._translateDependencies(dependencies):
            command += f"-w {shlex.quote(translated)} "

        if job.tool is not None:
            command += shlex.quote(str(job.tool))

        return command.strip()

    @staticmethod
    def _translateLog(job: Job) -> str:
        log = job.job_log
        if log.isNone():
            return "-o /dev/null "

        translated = f"-o {shlex.quote(str(log.out))} " if log.out else ""
        if log.err:
            translated += f"-e {shlex.quote(str(log.err))} "

        return translated

    @staticmethod
    def _translateEnvVars(job: Job) -> str:
        """
        Convert the parameters of the job into the value of the bsub -env option.
        """
        env_vars = {CFG.env_vars.job_creation_counter: str(job.creation_counter)}
        env_vars.update(job.parameters)

        return ", ".join(["all"] + [f"{key}={value}" for key, value in env_vars.items()])

    @staticmethod
    def _translateDependencies(dependencies: list[JobID]) -> str | None:
        """
        Convert parent identifiers into an LSF dependency expression
        (e.g. `done(123) && done(124)`).
        """
        if not dependencies:
            return None

        return " && ".join(f"done({job_id.shortId})" for job_id in dependencies)

    @staticmethod
    def _joinIds(job_ids: list[JobID]) -> str:
        return " ".join(job_id.shortId for job_id in job_ids)
