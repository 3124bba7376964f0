# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import sys
from pathlib import Path
from typing import NoReturn

import click
from click_option_group import optgroup

from be_lib.core.click_format import GNUHelpColorsCommand
from be_lib.core.common import parse_key_value, split_job_ids
from be_lib.core.config import CFG
from be_lib.core.error import BEError
from be_lib.core.logger import get_logger
from be_lib.job.counter import JobCreationCounter
from be_lib.job.job import Job
from be_lib.job.log import JobLog
from be_lib.manager.manager import JobManager, JobManagerParameters
from be_lib.properties.resources import ResourceSet
from be_lib.properties.states import JobState

logger = get_logger(__name__)


@click.command(
    short_help="Submit a job to a backend.",
    help=f"""
Submit a job to a batch backend from the command line.

{click.style("SCRIPT", fg="green")}   Path to the script to submit. Optional if `--command` is used.

Directives of the backend written in the script (e.g. `#BSUB -q short` or `#PBS -q short`)
are applied to the job if `--directives` is specified.
""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument(
    "script",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    metavar=click.style("SCRIPT", fg="green"),
    required=False,
    default=None,
)
@optgroup.group(f"{click.style('General settings', fg='yellow')}")
@optgroup.option(
    "--name", "-N", type=str, default=None, help="Name of the job. Defaults to the name of the script."
)
@optgroup.option(
    "--command",
    "-c",
    type=str,
    default=None,
    help="Inline script to run instead of a script file.",
)
@optgroup.option(
    "--account", type=str, default=None, help="Project or account the job is charged to."
)
@optgroup.option(
    "--depend",
    type=str,
    default=None,
    help="Identifiers of jobs that must finish before this job starts, separated by commas, colons, or spaces.",
)
@optgroup.option(
    "--hold/--no-hold",
    default=None,
    help="Submit the job on hold. Defaults to the policy of the backend (LSF and PBS hold jobs; start them with `beu release`).",
)
@optgroup.option(
    "--workdir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to run the job in.",
)
@optgroup.option(
    "--log",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File to write the output of the job to.",
)
@optgroup.option(
    "--param",
    "-p",
    "params",
    type=str,
    multiple=True,
    help="Parameter of the job in the format KEY=VALUE. Exported into the environment of the job. Can be repeated.",
)
@optgroup.option(
    "--directives",
    is_flag=True,
    help="Apply the backend directives written in the script.",
)
@optgroup.option(
    "--backend",
    type=str,
    default=None,
    help=f"Name of the backend to submit the job to. If not specified, the environment variable '{CFG.env_vars.backend}' is used or the backend is detected automatically.",
)
@optgroup.group(f"{click.style('Requested resources', fg='yellow')}")
@optgroup.option(
    "--queue", "-q", type=str, default=None, help="Name of the queue to submit the job to."
)
@optgroup.option(
    "--mem",
    type=str,
    default=None,
    help="Memory to allocate for the job. Specify as 'Nmb' or 'Ngb' (e.g., 500mb or 4gb).",
)
@optgroup.option(
    "--cores", type=int, default=None, help="Number of CPU cores to allocate per node."
)
@optgroup.option(
    "--nodes", type=int, default=None, help="Number of computing nodes to allocate."
)
@optgroup.option(
    "--walltime",
    type=str,
    default=None,
    help="Maximum runtime of the job. Specify as 'HH:MM:SS' or e.g. '1d2h', '30m'.",
)
def submit(
    script: Path | None,
    name: str | None,
    command: str | None,
    account: str | None,
    depend: str | None,
    hold: bool | None,
    workdir: Path | None,
    log: Path | None,
    params: tuple[str, ...],
    directives: bool,
    backend: str | None,
    queue: str | None,
    mem: str | None,
    cores: int | None,
    nodes: int | None,
    walltime: str | None,
) -> NoReturn:
    """
    Submit a job to a backend.
    """
    try:
        manager = JobManager.fromBackend(backend, JobManagerParameters(hold_jobs=hold))
        counter = JobCreationCounter()

        job = Job(
            name or (script.stem if script else "job"),
            counter,
            job_log=JobLog.toFile(log) if log else JobLog.none(),
            tool=script.resolve() if script else None,
            script=command,
            resource_set=ResourceSet(
                queue=queue, mem=mem, cores=cores, nodes=nodes, walltime=walltime
            ),
            parameters=dict(parse_key_value(x) for x in params),
            parent_jobs=[Job.fromId(x, counter) for x in split_job_ids(depend)],
            working_directory=workdir.resolve() if workdir else None,
            accounting_name=account,
        )

        if directives:
            if not job.tool:
                raise BEError("Directives can only be read from a script file.")
            job.addProcessingParameters(
                manager.extractProcessingParametersFromToolScript(job.tool)
            )

        result = manager.runJob(job)
        if not result.successful:
            raise BEError(
                f"Job '{job.name}' failed ({job.getJobState()}). Exit code: {result.exit_code}."
            )

        if manager.executesWithoutJobSystem():
            logger.info(f"Job '{job.name}' finished successfully.")
        else:
            logger.info(f"Job '{job.name}' submitted as '{result.job_id}' ({job.getJobState()}).")
            if job.getJobState() == JobState.HOLD:
                logger.info(
                    f"The job is held. Start it with '{CFG.binary_name} release {result.job_id}'."
                )
        sys.exit(0)
    except BEError as e:
        logger.error(e)
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)
