# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from datetime import datetime

from be_lib.core.config import CFG
from be_lib.core.logger import get_logger
from be_lib.properties.info import JobInfo

logger = get_logger(__name__)

# fields projected by the bulk status query, in order
LSF_STATUS_FIELDS = [
    "jobid",
    "job_name",
    "stat",
    "user",
    "queue",
    "job_description",
    "proj_name",
    "job_group",
    "job_priority",
    "pids",
    "exit_code",
    "from_host",
    "exec_host",
    "submit_time",
    "start_time",
    "finish_time",
    "cpu_used",
    "run_time",
    "user_group",
    "swap",
    "max_mem",
    "runtimelimit",
    "sub_cwd",
    "pend_reason",
    "exec_cwd",
    "output_file",
    "input_file",
    "effective_resreq",
    "exec_home",
]

# field of the bjobs projection -> attribute of JobInfo
_INFO_ATTRIBUTES = {
    "job_name": "job_name",
    "user": "user",
    "queue": "queue",
    "job_description": "description",
    "proj_name": "project_name",
    "job_group": "job_group",
    "job_priority": "priority",
    "pids": "pids",
    "cpu_used": "cpu_time",
    "run_time": "run_time",
    "user_group": "user_group",
    "swap": "swap",
    "max_mem": "max_mem",
    "runtimelimit": "run_limit",
    "sub_cwd": "cwd",
    "pend_reason": "pend_reason",
    "exec_cwd": "exec_cwd",
    "output_file": "output_file",
    "input_file": "input_file",
    "effective_resreq": "resource_request",
    "exec_home": "exec_home",
}


def parseLSFFields(job_id: str, values: list[str]) -> JobInfo:
    """
    Convert the fields of one line of the bjobs projection into normalized metadata.

    Fields containing the placeholder '-' are left unset.

    Args:
        job_id (str): Identifier of the job.
        values (list[str]): Fields of the line in the order of `LSF_STATUS_FIELDS`.

    Returns:
        JobInfo: The normalized metadata.
    """
    raw = {}
    for name, value in zip(LSF_STATUS_FIELDS, values):
        value = value.strip()
        if value and value != "-":
            raw[name] = value

    info = JobInfo(job_id=job_id)
    for name, attribute in _INFO_ATTRIBUTES.items():
        if name in raw:
            setattr(info, attribute, raw[name])

    if "exit_code" in raw:
        try:
            info.exit_status = int(raw["exit_code"])
        except ValueError:
            logger.debug(f"Could not parse exit code '{raw['exit_code']}' of job '{job_id}'.")

    if "from_host" in raw:
        info.submit_host = raw["from_host"]

    if "exec_host" in raw:
        info.exec_hosts = parseLSFHosts(raw["exec_host"])

    info.submit_time = parseLSFTime(raw.get("submit_time"), job_id)
    info.start_time = parseLSFTime(raw.get("start_time"), job_id)
    info.end_time = parseLSFTime(raw.get("finish_time"), job_id)

    return info


def parseLSFHosts(raw: str) -> list[str]:
    """
    Parse the list of execution hosts (e.g. `4*node01:2*node02`) into host names.
    """
    hosts = []
    for item in raw.split(":"):
        host = item.split("*")[-1].strip()
        if host and host not in hosts:
            hosts.append(host)

    return hosts


def parseLSFTime(raw: str | None, job_id: str) -> datetime | None:
    """
    Parse a time reported by bjobs (e.g. `Oct 19 12:03` or `Oct 19 12:03 L`).

    bjobs does not report the year, the current year is assumed.

    Returns:
        datetime | None: The parsed time or None if it is not set or cannot be parsed.
    """
    if not raw:
        return None

    # drop the suffix marking estimated or actual times
    parts = raw.split()
    if len(parts) > 3 and len(parts[-1]) == 1:
        raw = " ".join(parts[:-1])

    try:
        return datetime.strptime(
            f"{datetime.now().year} {raw}", f"%Y {CFG.date_formats.lsf}"
        )
    except ValueError:
        logger.debug(f"Could not parse time '{raw}' of job '{job_id}'.")
        return None
