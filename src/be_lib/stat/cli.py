# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import sys
from typing import NoReturn

import click
from rich.console import Console

from be_lib.core.click_format import GNUHelpColorsCommand
from be_lib.core.config import CFG
from be_lib.core.error import BEError
from be_lib.core.logger import get_logger
from be_lib.job.counter import JobCreationCounter
from be_lib.job.job import Job
from be_lib.manager.manager import JobManager, JobManagerParameters
from be_lib.stat.presenter import StatusPresenter

logger = get_logger(__name__)


@click.command(
    short_help="Display the state of jobs.",
    help=f"""Display the state of the specified jobs or of all jobs known to the backend.

{click.style("JOB_ID", fg="green")}   Identifiers of the jobs to show. Optional.""",
    cls=GNUHelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument(
    "job_ids",
    type=str,
    nargs=-1,
    metavar=click.style("JOB_ID", fg="green"),
)
@click.option(
    "-u", "--user", type=str, default=None, help="Only show jobs of the specified user."
)
@click.option(
    "--backend",
    type=str,
    default=None,
    help=f"Name of the backend to query. If not specified, the environment variable '{CFG.env_vars.backend}' is used or the backend is detected automatically.",
)
@click.option("--yaml", is_flag=True, help="Output job metadata in YAML format.")
def stat(job_ids: tuple[str, ...], user: str | None, backend: str | None, yaml: bool) -> NoReturn:
    try:
        manager = JobManager.fromBackend(
            backend,
            JobManagerParameters(
                track_only_started_jobs=False,
                track_user_jobs=user is not None,
                user_id=user,
            ),
        )
        counter = JobCreationCounter()

        if job_ids:
            jobs = [Job.fromId(x, counter) for x in job_ids]
            manager.queryJobStatus(jobs, forceUpdate=True)
        else:
            states = manager.queryJobStatusAll(forceUpdate=True)
            jobs = [Job.fromId(x, counter) for x in states]
            # the cache is fresh, no further query is issued
            manager.queryJobStatus(jobs)

        if not jobs:
            logger.info("No jobs found.")
            sys.exit(0)

        presenter = StatusPresenter(jobs)
        if yaml:
            presenter.dumpYaml()
        else:
            console = Console(record=False, markup=False)
            console.print(presenter.createStatusPanel(console))

        sys.exit(0)
    except BEError as e:
        logger.error(e)
        print()
        sys.exit(CFG.exit_codes.default)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        print()
        sys.exit(CFG.exit_codes.unexpected_error)
