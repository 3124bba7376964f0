# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import sys
from typing import NoReturn

import click

from be_lib.core.click_format import GNUHelpColorsCommand
from be_lib.core.config import CFG
from be_lib.core.error import BEError
from be_lib.core.logger import get_logger
from be_lib.job.counter import JobCreationCounter
from be_lib.job.job import Job
from be_lib.manager.manager import JobManager, JobManagerParameters

logger = get_logger(__name__)


@click.command(
    short_help="Release held jobs.",
    help=f"""Release the specified held jobs using a single command of the backend.

{click.style("JOB_ID", fg="green")}   Identifiers of the jobs to release.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument(
    "job_ids",
    type=str,
    nargs=-1,
    required=True,
    metavar=click.style("JOB_ID", fg="green"),
)
@click.option(
    "--backend",
    type=str,
    default=None,
    help=f"Name of the backend. If not specified, the environment variable '{CFG.env_vars.backend}' is used or the backend is detected automatically.",
)
def release(job_ids: tuple[str, ...], backend: str | None) -> NoReturn:
    try:
        manager = JobManager.fromBackend(backend, JobManagerParameters(hold_jobs=True))
        counter = JobCreationCounter()

        manager.startHeldJobs([Job.fromId(x, counter) for x in job_ids])
        sys.exit(0)
    except BEError as e:
        logger.error(e)
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)
