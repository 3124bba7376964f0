# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from be_lib.core.logger import get_logger
from be_lib.properties.info import JobInfo

logger = get_logger(__name__)

# columns of the default qstat output
# Job ID | Name | User | Time Use | S | Queue
PBS_DEFAULT_COLUMNS = 6

# columns of the qstat output when jobs are selected by user (qstat -u)
# Job ID | Username | Queue | Jobname | SessID | NDS | TSK | Memory | Time | S | Time
PBS_USER_COLUMNS = 11


def parseQstatLine(line: str) -> tuple[str, str, JobInfo] | None:
    """
    Split one line of the qstat output into the job identifier, the state token,
    and normalized metadata.

    Both the default layout and the layout used by `qstat -u` are understood.

    Args:
        line (str): Line of the qstat output with collapsed whitespace.

    Returns:
        tuple[str, str, JobInfo] | None: Identifier, state token, and metadata,
            or None if the line matches neither layout.
    """
    values = line.split(" ")

    if len(values) == PBS_DEFAULT_COLUMNS:
        job_id, name, user, cpu_time, state, queue = values
        return job_id, state, JobInfo(
            job_id=job_id,
            job_name=_unset(name),
            user=_unset(user),
            cpu_time=_unset(cpu_time),
            queue=_unset(queue),
        )

    if len(values) == PBS_USER_COLUMNS:
        job_id, user, queue, name, pids = values[:5]
        run_limit, state, run_time = values[8:]
        return job_id, state, JobInfo(
            job_id=job_id,
            job_name=_unset(name),
            user=_unset(user),
            queue=_unset(queue),
            pids=_unset(pids),
            run_limit=_unset(run_limit),
            run_time=_unset(run_time),
        )

    logger.debug(f"Unexpected number of columns in qstat line: '{line}'.")
    return None


def _unset(value: str) -> str | None:
    return None if value in ("", "-", "--") else value
