# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from be_lib import __version__, cli
from be_lib.core.config import CFG
from be_lib.core.error import BEAbortionError
from be_lib.job.job_id import JobID
from be_lib.kill.cli import kill
from be_lib.manager.manager import JobManagerParameters
from be_lib.properties.states import JobState
from be_lib.release.cli import release
from be_lib.stat.cli import stat
from be_lib.submit.cli import submit


def _manager() -> MagicMock:
    manager = MagicMock()
    manager.runJob.return_value = MagicMock(successful=True, job_id=JobID("42"))
    manager.executesWithoutJobSystem.return_value = False
    return manager


def test_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_group_lists_commands():
    result = CliRunner().invoke(cli, [])

    assert result.exit_code == 0
    for command in ["submit", "stat", "kill", "release"]:
        assert command in result.output


def test_submit_inline_command():
    manager = _manager()

    with patch("be_lib.submit.cli.JobManager.fromBackend", return_value=manager) as from_backend:
        result = CliRunner().invoke(
            submit,
            [
                "-c", "echo hi",
                "-N", "myjob",
                "-q", "short",
                "--mem", "4gb",
                "--walltime", "1h",
                "-p", "A=b",
                "--depend", "1,2",
                "--account", "proj",
            ],
        )

    assert result.exit_code == 0
    from_backend.assert_called_once_with(None, JobManagerParameters(hold_jobs=None))

    job = manager.runJob.call_args[0][0]
    assert job.name == "myjob"
    assert job.script == "echo hi"
    assert job.tool is None
    assert job.resource_set.queue == "short"
    assert job.resource_set.mem.toKilobytes() == 4 * 1024 * 1024
    assert job.parameters == {"A": "b"}
    assert job.accounting_name == "proj"
    assert [str(x) for x in job.getParentJobIds()] == ["1", "2"]


def test_submit_held_job_prints_release_hint():
    manager = _manager()

    def hold(job):
        job.setJobState(JobState.HOLD)
        return manager.runJob.return_value

    manager.runJob.side_effect = hold

    with (
        patch("be_lib.submit.cli.JobManager.fromBackend", return_value=manager),
        patch("be_lib.submit.cli.logger") as logger,
    ):
        result = CliRunner().invoke(submit, ["-c", "echo hi"])

    assert result.exit_code == 0
    messages = [call.args[0] for call in logger.info.call_args_list]
    assert any("beu release 42" in message for message in messages)


def test_submit_queued_job_prints_no_release_hint():
    manager = _manager()

    def queue(job):
        job.setJobState(JobState.QUEUED)
        return manager.runJob.return_value

    manager.runJob.side_effect = queue

    with (
        patch("be_lib.submit.cli.JobManager.fromBackend", return_value=manager),
        patch("be_lib.submit.cli.logger") as logger,
    ):
        result = CliRunner().invoke(submit, ["-c", "echo hi", "--no-hold"])

    assert result.exit_code == 0
    messages = [call.args[0] for call in logger.info.call_args_list]
    assert not any("release" in message for message in messages)


def test_submit_script_with_directives(tmp_path):
    script = tmp_path / "job.sh"
    script.write_text("#!/bin/bash\n#BSUB -q long\n")
    manager = _manager()

    with patch("be_lib.submit.cli.JobManager.fromBackend", return_value=manager) as from_backend:
        result = CliRunner().invoke(
            submit, [str(script), "--directives", "--no-hold", "--backend", "lsf"]
        )

    assert result.exit_code == 0
    from_backend.assert_called_once_with("lsf", JobManagerParameters(hold_jobs=False))
    manager.extractProcessingParametersFromToolScript.assert_called_once_with(
        script.resolve()
    )

    job = manager.runJob.call_args[0][0]
    assert job.name == "job"
    assert job.tool == Path(script.resolve())
    assert len(job.getProcessingParameters()) == 1


def test_submit_without_script_or_command_fails():
    with patch("be_lib.submit.cli.JobManager.fromBackend", return_value=_manager()):
        result = CliRunner().invoke(submit, [])

    assert result.exit_code == CFG.exit_codes.default


def test_submit_rejected_job_fails():
    manager = _manager()
    manager.runJob.return_value = MagicMock(successful=False, exit_code=255)

    with patch("be_lib.submit.cli.JobManager.fromBackend", return_value=manager):
        result = CliRunner().invoke(submit, ["-c", "echo hi"])

    assert result.exit_code == CFG.exit_codes.default


def test_submit_invalid_parameter_fails():
    with patch("be_lib.submit.cli.JobManager.fromBackend", return_value=_manager()):
        result = CliRunner().invoke(submit, ["-c", "echo hi", "-p", "novalue"])

    assert result.exit_code == CFG.exit_codes.default


def test_submit_unexpected_error():
    with patch("be_lib.submit.cli.JobManager.fromBackend", side_effect=RuntimeError("boom")):
        result = CliRunner().invoke(submit, ["-c", "echo hi"])

    assert result.exit_code == CFG.exit_codes.unexpected_error


def test_submit_direct_end_to_end():
    runner = CliRunner()

    assert runner.invoke(submit, ["--backend", "direct", "-c", "exit 0"]).exit_code == 0
    assert (
        runner.invoke(submit, ["--backend", "direct", "-c", "exit 3"]).exit_code
        == CFG.exit_codes.default
    )


def test_stat_selected_jobs_yaml():
    manager = MagicMock()

    with patch("be_lib.stat.cli.JobManager.fromBackend", return_value=manager):
        result = CliRunner().invoke(stat, ["123", "124", "--yaml"])

    assert result.exit_code == 0
    jobs = manager.queryJobStatus.call_args[0][0]
    assert [str(job.getJobId()) for job in jobs] == ["123", "124"]
    assert manager.queryJobStatus.call_args[1] == {"forceUpdate": True}
    assert "job_id: 123" in result.output


def test_stat_all_jobs_panel():
    manager = MagicMock()
    manager.queryJobStatusAll.return_value = {"123": JobState.RUNNING}

    with patch("be_lib.stat.cli.JobManager.fromBackend", return_value=manager) as from_backend:
        result = CliRunner().invoke(stat, ["-u", "alice"])

    assert result.exit_code == 0
    params = from_backend.call_args[0][1]
    assert params.track_user_jobs
    assert params.user_id == "alice"
    assert not params.track_only_started_jobs
    manager.queryJobStatusAll.assert_called_once_with(forceUpdate=True)
    assert "123" in result.output


def test_stat_no_jobs():
    manager = MagicMock()
    manager.queryJobStatusAll.return_value = {}

    with patch("be_lib.stat.cli.JobManager.fromBackend", return_value=manager):
        result = CliRunner().invoke(stat, [])

    assert result.exit_code == 0


def test_kill_with_confirmation_flag():
    manager = MagicMock()

    with (
        patch("be_lib.kill.cli.JobManager.fromBackend", return_value=manager),
        patch("be_lib.kill.cli.yes_or_no_prompt") as prompt,
    ):
        result = CliRunner().invoke(kill, ["1", "2", "--yes"])

    assert result.exit_code == 0
    prompt.assert_not_called()
    jobs = manager.queryJobAbortion.call_args[0][0]
    assert [str(job.getJobId()) for job in jobs] == ["1", "2"]


def test_kill_declined():
    manager = MagicMock()

    with (
        patch("be_lib.kill.cli.JobManager.fromBackend", return_value=manager),
        patch("be_lib.kill.cli.yes_or_no_prompt", return_value=False),
    ):
        result = CliRunner().invoke(kill, ["1"])

    assert result.exit_code == 0
    manager.queryJobAbortion.assert_not_called()


def test_kill_failure():
    manager = MagicMock()
    manager.queryJobAbortion.side_effect = BEAbortionError("refused")

    with patch("be_lib.kill.cli.JobManager.fromBackend", return_value=manager):
        result = CliRunner().invoke(kill, ["1", "-y"])

    assert result.exit_code == CFG.exit_codes.default


def test_kill_requires_job_ids():
    assert CliRunner().invoke(kill, []).exit_code == 2


def test_release():
    manager = MagicMock()

    with patch("be_lib.release.cli.JobManager.fromBackend", return_value=manager) as from_backend:
        result = CliRunner().invoke(release, ["1.pbs", "--backend", "pbs"])

    assert result.exit_code == 0
    from_backend.assert_called_once_with("pbs", JobManagerParameters(hold_jobs=True))
    jobs = manager.startHeldJobs.call_args[0][0]
    assert [str(job.getJobId()) for job in jobs] == ["1.pbs"]
