# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from datetime import timedelta
from pathlib import Path

import pytest

from be_lib.batch.pbs import PBS
from be_lib.batch.pbs.common import parseQstatLine
from be_lib.core.error import BEUnsupportedOperationError
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

QSTAT_OUTPUT = """\
Job ID                    Name             User            Time Use S Queue
------------------------- ---------------- --------------- -------- - -----
123.pbs01                 myjob            alice           00:00:10 R batch
124.pbs01                 other            alice           0        Q batch
125.pbs01                 broken
""".splitlines()

QSTAT_USER_OUTPUT = """\

pbs01:
                                                                         Req'd    Req'd       Elap
Job ID                  Username    Queue    Jobname          SessID  NDS   TSK   Memory   Time    S   Time
----------------------- ----------- -------- ---------------- ------ ----- ------ ------ --------- - ---------
200.pbs01               alice       batch    analysis           4242     1      1    1gb  01:00:00 R  00:10:00
201.pbs01               alice       batch    waiting              --     1      1    1gb  01:00:00 H       --
""".splitlines()


def test_policies():
    assert PBS.envName() == "PBS"
    assert PBS.getDefaultForHoldJobsEnabled()
    assert not PBS.executesWithoutJobSystem()


def test_convert_resource_set_renders_four_fragments():
    params = PBS.convertResourceSet(
        ResourceSet(queue="short", mem="10m", cores=2, nodes=1, walltime="30m")
    )

    assert params.toFragments() == [
        "-q short",
        "-l mem=10240kb",
        "-l walltime=00:30:00",
        "-l nodes=1:ppn=2",
    ]


def test_convert_resource_set_omits_unset_fields():
    params = PBS.convertResourceSet(ResourceSet(mem="1gb"))

    assert params.toFragments() == ["-l mem=1048576kb"]


def test_format_walltime():
    assert PBS.formatWalltime(timedelta(days=2, seconds=5)) == "48:00:05"


def test_parse_status_default_layout():
    records = PBS.parseStatus(QSTAT_OUTPUT)

    assert list(records) == ["123", "124"]
    assert records["123"].state == JobState.RUNNING
    assert records["124"].state == JobState.QUEUED

    info = records["123"].info
    assert info.job_id == "123"
    assert info.job_name == "myjob"
    assert info.user == "alice"
    assert info.cpu_time == "00:00:10"
    assert info.queue == "batch"


def test_parse_status_user_layout():
    records = PBS.parseStatus(QSTAT_USER_OUTPUT)

    assert list(records) == ["200", "201"]
    assert records["200"].state == JobState.RUNNING
    assert records["201"].state == JobState.HOLD

    info = records["200"].info
    assert info.job_name == "analysis"
    assert info.pids == "4242"
    assert info.run_limit == "01:00:00"
    assert info.run_time == "00:10:00"

    assert records["201"].info.pids is None
    assert records["201"].info.run_time is None


def test_parse_qstat_line_unexpected_columns():
    assert parseQstatLine("125.pbs01 broken") is None


@pytest.mark.parametrize(
    "token, state",
    [
        ("R", JobState.RUNNING),
        ("E", JobState.RUNNING),
        ("H", JobState.HOLD),
        ("S", JobState.HOLD),
        ("Q", JobState.QUEUED),
        ("W", JobState.QUEUED),
        ("T", JobState.QUEUED),
        ("C", JobState.COMPLETED_UNKNOWN),
        ("F", JobState.COMPLETED_UNKNOWN),
        ("X", JobState.UNKNOWN_SUBMITTED),
    ],
)
def test_parse_job_state(token, state):
    assert PBS.parseJobState(token) == state


def test_parse_job_id():
    assert PBS.parseJobId(ExecutionResult(True, 0, ["", "4711.pbs01"])) == JobID("4711.pbs01")
    assert PBS.parseJobId(ExecutionResult(False, 1, ["qsub: error"])) is None


def test_create_command_inline_script_on_hold():
    counter = JobCreationCounter()
    job = Job("myjob", counter, script="echo hi", parameters={"A": "b"})

    command = PBS.createCommand(
        job,
        PBS.convertResourceSet(ResourceSet(queue="short")),
        [JobID("1.pbs"), JobID("2.pbs")],
        True,
    )

    assert command.text == (
        "qsub -h -N myjob -j oe -o /dev/null "
        "-v \"JOB_CREATION_COUNTER='1'\",\"A='b'\" "
        "-q short -W depend=afterok:1.pbs:2.pbs"
    )
    assert command.stdin == "echo hi"


def test_create_command_tool_with_joined_log():
    counter = JobCreationCounter()
    job = Job(
        "run",
        counter,
        tool="/scripts/run.sh",
        job_log=JobLog.toFile("/logs/run.log"),
        working_directory=Path("/work"),
        accounting_name="proj",
    )

    command = PBS.createCommand(job, ProcessingParameters(), [], False)

    assert command.text == (
        "qsub -N run -A proj -j oe -o /logs/run.log -d /work "
        "-v \"JOB_CREATION_COUNTER='1'\" /scripts/run.sh"
    )


def test_release_abort_and_status_commands_use_full_ids():
    ids = [JobID("1.pbs"), JobID("2")]

    assert PBS.buildReleaseCommand(ids).text == "qrls 1.pbs 2"
    assert PBS.buildAbortCommand(ids).text == "qdel 1.pbs 2"
    assert PBS.buildStatusQuery(ids, "alice").text == "qstat -u alice 1.pbs 2"
    assert PBS.buildStatusQuery(None, None).text == "qstat"


def test_extract_processing_parameters_from_tool_script(tmp_path):
    script = tmp_path / "job.sh"
    script.write_text("#!/bin/bash\n#PBS -q long\n#PBS -l mem=2gb\n\n#PBS -l nodes=2\n")

    params = PBS.extractProcessingParametersFromToolScript(script)

    assert params.get("-q") == ["long"]
    assert params.get("-l") == ["mem=2gb"]


def test_convert_to_array_result_unsupported():
    counter = JobCreationCounter()
    child = Job("child", counter, script="true")
    parent_result = JobResult(command=Command("qsub"), job_id=JobID("1"), successful=True)

    with pytest.raises(BEUnsupportedOperationError):
        PBS.convertToArrayResult(child, parent_result, 1)
