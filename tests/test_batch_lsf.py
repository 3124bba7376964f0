# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from be_lib.batch.interface import DependencyMode
from be_lib.batch.lsf import LSF
from be_lib.batch.lsf.common import LSF_STATUS_FIELDS, parseLSFHosts, parseLSFTime
from be_lib.execution.service import ExecutionResult
from be_lib.job.command import Command
from be_lib.job.counter import JobCreationCounter
from be_lib.job.job import Job
from be_lib.job.job_id import JobID
from be_lib.job.log import JobLog
from be_lib.job.result import JobResult
from be_lib.properties.parameters import ProcessingParameters
from be_lib.properties.resources import ResourceSet
from be_lib.properties.states import JobState

FULL_RESOURCES = {
    "queue": "short",
    "mem": "10m",
    "cores": 2,
    "nodes": 1,
    "walltime": "30m",
}


def _delimited_line(**values) -> str:
    fields = dict.fromkeys(LSF_STATUS_FIELDS, "-")
    fields.update(values)
    return "<".join(fields[name] for name in LSF_STATUS_FIELDS)


def test_policies():
    assert LSF.envName() == "LSF"
    assert LSF.getDefaultForHoldJobsEnabled()
    assert not LSF.executesWithoutJobSystem()
    assert LSF.getDependencyMode() == DependencyMode.QUEUE_MEDIATED


def test_is_available():
    with patch("be_lib.batch.lsf.lsf.shutil.which", return_value=None):
        assert not LSF.isAvailable()
    with patch("be_lib.batch.lsf.lsf.shutil.which", return_value="/usr/bin/bsub"):
        assert LSF.isAvailable()


def test_convert_resource_set_renders_four_fragments():
    params = LSF.convertResourceSet(ResourceSet(**FULL_RESOURCES))

    assert params.toFragments() == ["-q short", "-M 10240", "-W 00:30", "-n 2"]


@pytest.mark.parametrize(
    "omitted, option", [("queue", "-q"), ("mem", "-M"), ("walltime", "-W")]
)
def test_convert_resource_set_omits_exactly_one_fragment(omitted, option):
    resources = {k: v for k, v in FULL_RESOURCES.items() if k != omitted}

    fragments = LSF.convertResourceSet(ResourceSet(**resources)).toFragments()

    assert len(fragments) == 3
    assert not any(f.startswith(f"{option} ") for f in fragments)


def test_convert_resource_set_cores_and_nodes_share_one_fragment():
    assert LSF.convertResourceSet(ResourceSet(cores=4, nodes=2)).toFragments() == ["-n 8"]
    assert LSF.convertResourceSet(ResourceSet(nodes=3)).toFragments() == ["-n 3"]
    assert LSF.convertResourceSet(ResourceSet(queue="short")).toFragments() == ["-q short"]


def test_convert_resource_set_memory_in_bytes():
    params = LSF.convertResourceSet(ResourceSet(mem="5000000b"))

    assert params.toFragments() == ["-M 4883"]


def test_convert_empty_resource_set():
    assert LSF.convertResourceSet(ResourceSet()).isEmpty()


def test_format_walltime():
    assert LSF.formatWalltime(timedelta(days=1, minutes=1, seconds=30)) == "24:02"


def test_parse_status_skips_non_job_lines():
    records = LSF.parseStatus(["123 myjob RUN user1 ...", "", "not-a-job-line"])

    assert list(records) == ["123"]
    assert records["123"].state == JobState.RUNNING
    assert records["123"].info.job_name == "myjob"


def test_parse_status_delimited_line():
    line = _delimited_line(
        jobid="456",
        job_name="job one",
        stat="PEND",
        user="alice",
        queue="short",
        proj_name="proj",
        exit_code="1",
        from_host="login01",
        exec_host="4*node01:2*node02",
        submit_time="Oct 19 12:03",
        pend_reason="New job is waiting for scheduling",
    )

    records = LSF.parseStatus([line])
    record = records["456"]

    assert record.state == JobState.QUEUED
    assert record.info.job_id == "456"
    assert record.info.job_name == "job one"
    assert record.info.user == "alice"
    assert record.info.queue == "short"
    assert record.info.project_name == "proj"
    assert record.info.exit_status == 1
    assert record.info.submit_host == "login01"
    assert record.info.exec_hosts == ["node01", "node02"]
    assert (record.info.submit_time.month, record.info.submit_time.day) == (10, 19)
    assert (record.info.submit_time.hour, record.info.submit_time.minute) == (12, 3)
    assert record.info.pend_reason == "New job is waiting for scheduling"
    assert record.info.description is None
    assert record.info.start_time is None


def test_parse_status_line_too_short():
    assert LSF.parseStatusLine("123 myjob") is None


def test_parse_status_array_element_uses_short_id():
    records = LSF.parseStatus(["789.srv myjob DONE alice"])

    assert records["789"].state == JobState.COMPLETED_UNKNOWN


@pytest.mark.parametrize(
    "token, state",
    [
        ("RUN", JobState.RUNNING),
        ("PSUSP", JobState.HOLD),
        ("USUSP", JobState.HOLD),
        ("SSUSP", JobState.HOLD),
        ("PEND", JobState.QUEUED),
        ("WAIT", JobState.QUEUED),
        ("PROV", JobState.QUEUED),
        ("DONE", JobState.COMPLETED_UNKNOWN),
        ("EXIT", JobState.FAILED),
        ("run", JobState.RUNNING),
        ("ZOMBI", JobState.UNKNOWN_SUBMITTED),
    ],
)
def test_parse_job_state(token, state):
    assert LSF.parseJobState(token) == state


def test_parse_job_id():
    result = ExecutionResult(True, 0, ["Job <12345> is submitted to queue <short>."])

    assert LSF.parseJobId(result) == JobID("12345")


def test_parse_job_id_missing():
    assert LSF.parseJobId(ExecutionResult(False, 255, [])) is None


def test_create_command_inline_script_on_hold():
    counter = JobCreationCounter()
    job = Job("myjob", counter, script="echo hi", parameters={"A": "b"})

    command = LSF.createCommand(
        job,
        LSF.convertResourceSet(ResourceSet(queue="short")),
        [JobID("1"), JobID("2")],
        True,
    )

    assert command.text == (
        "bsub -H -J myjob -o /dev/null -env 'all, JOB_CREATION_COUNTER=1, A=b' "
        "-q short -w 'done(1) && done(2)'"
    )
    assert command.stdin == "echo hi"
    assert command.job is job


def test_create_command_tool():
    counter = JobCreationCounter()
    job = Job(
        "run",
        counter,
        tool="/scripts/run.sh",
        job_log=JobLog.toFiles("/logs/out", "/logs/err"),
        working_directory=Path("/work"),
        accounting_name="proj",
    )

    command = LSF.createCommand(job, ProcessingParameters(), [], False)

    assert command.text == (
        "bsub -J run -P proj -o /logs/out -e /logs/err -cwd /work "
        "-env 'all, JOB_CREATION_COUNTER=1' /scripts/run.sh"
    )
    assert command.stdin is None
    assert command.working_dir == Path("/work")


def test_release_and_abort_commands_use_short_ids():
    ids = [JobID("1.srv"), JobID("2")]

    assert LSF.buildReleaseCommand(ids).text == "bresume 1 2"
    assert LSF.buildAbortCommand(ids).text == "bkill 1 2"


def test_build_status_query():
    query = LSF.buildStatusQuery(None, None).text

    assert query.startswith('bjobs -noheader -o "jobid job_name stat user')
    assert query.endswith("exec_home delimiter='<'\"")


def test_build_status_query_scoped():
    query = LSF.buildStatusQuery([JobID("1"), JobID("2")], "alice").text

    assert query.endswith("\" 1 2 -u alice")


def test_extract_processing_parameters_from_tool_script(tmp_path):
    script = tmp_path / "job.sh"
    script.write_text("#!/bin/bash\n#BSUB -q short\n#BSUB -R 'span[hosts=1]'\nsleep 1\n")

    params = LSF.extractProcessingParametersFromToolScript(script)

    assert params.get("-q") == ["short"]
    assert params.get("-R") == ["span[hosts=1]"]


def test_convert_to_array_result():
    counter = JobCreationCounter()
    child = Job("child", counter, script="true")
    parent_result = JobResult(
        command=Command("bsub"), job_id=JobID("100"), successful=True, exit_code=0
    )

    result = LSF.convertToArrayResult(child, parent_result, 3)

    assert result.job_id == JobID("100[3]")
    assert result.successful
    assert result.script == "true"


def test_parse_lsf_hosts():
    assert parseLSFHosts("4*node01:2*node02:node01") == ["node01", "node02"]


@pytest.mark.parametrize("raw", ["Oct 19 12:03", "Oct 19 12:03 L"])
def test_parse_lsf_time(raw):
    parsed = parseLSFTime(raw, "1")

    assert (parsed.month, parsed.day, parsed.hour, parsed.minute) == (10, 19, 12, 3)


@pytest.mark.parametrize("raw", [None, "", "yesterday"])
def test_parse_lsf_time_invalid(raw):
    assert parseLSFTime(raw, "1") is None
