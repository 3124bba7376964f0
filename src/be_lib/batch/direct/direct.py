# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import shlex
import shutil
from collections.abc import Iterable
from datetime import timedelta

from be_lib.batch.interface import (
    AdapterMeta,
    BatchAdapter,
    DependencyMode,
    StatusRecord,
    batch_adapter,
)
from be_lib.core.common import duration_to_hhmmss
from be_lib.core.config import CFG
from be_lib.core.error import BEUnsupportedOperationError
from be_lib.core.logger import get_logger
from be_lib.execution.service import ExecutionResult
from be_lib.job.command import Command
from be_lib.job.job import Job
from be_lib.job.job_id import JobID
from be_lib.properties.parameters import ProcessingParameters
from be_lib.properties.resources import ResourceSet
from be_lib.properties.states import JobState

logger = get_logger(__name__)


@batch_adapter
class Direct(BatchAdapter, metaclass=AdapterMeta):
    """
    Implementation of BatchAdapter running jobs synchronously on the current host.

    There is no scheduler: jobs are executed immediately and their state is known
    as soon as they finish. Parents are checked before a job is executed.
    """

    def envName() -> str:
        return "Direct"

    def isAvailable() -> bool:
        return shutil.which("bash") is not None

    def executesWithoutJobSystem() -> bool:
        return True

    def getDefaultForHoldJobsEnabled() -> bool:
        return False

    def getDependencyMode() -> DependencyMode:
        return DependencyMode.PREFLIGHT_CHECKED

    def convertResourceSet(resource_set: ResourceSet) -> ProcessingParameters:
        if not resource_set.isEmpty():
            logger.debug(f"Ignoring requested resources for direct execution: {resource_set}.")
        return ProcessingParameters()

    def formatWalltime(walltime: timedelta) -> str:
        return duration_to_hhmmss(walltime)

    def createCommand(
        job: Job,
        parameters: ProcessingParameters,
        dependencies: list[JobID],
        hold: bool,
    ) -> Command:
        text = job.script if job.tool is None else f"bash {shlex.quote(str(job.tool))}"

        env = {CFG.env_vars.job_creation_counter: str(job.creation_counter)}
        env.update(job.parameters)

        return Command(
            text=text,
            job=job,
            env=env,
            working_dir=job.working_directory,
            log=job.job_log,
        )

    def parseJobId(result: ExecutionResult) -> JobID | None:
        # the process executing the job identifies it
        return JobID(result.process_id) if result.process_id else None

    def buildReleaseCommand(job_ids: list[JobID]) -> Command | None:
        return None

    def buildAbortCommand(job_ids: list[JobID]) -> Command | None:
        return None

    def buildStatusQuery(job_ids: list[JobID] | None, user: str | None) -> Command:
        raise BEUnsupportedOperationError(
            "Jobs executed directly cannot be queried for their status."
        )

    def parseStatus(lines: Iterable[str]) -> dict[str, StatusRecord]:
        return BatchAdapter._parseStatusLines(lines, Direct.parseStatusLine)

    def parseStatusLine(line: str) -> StatusRecord | None:
        return None

    def parseJobState(token: str) -> JobState:
        return JobState.UNKNOWN_SUBMITTED
