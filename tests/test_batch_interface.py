# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from unittest.mock import patch

import pytest

from be_lib.batch.direct import Direct
from be_lib.batch.interface import AdapterMeta, BatchAdapter, StatusRecord
from be_lib.batch.lsf import LSF
from be_lib.batch.pbs import PBS
from be_lib.core.config import CFG
from be_lib.core.error import BEError, BEUnsupportedOperationError
from be_lib.properties.states import JobState


@pytest.mark.parametrize(
    "name, adapter",
    [("LSF", LSF), ("lsf", LSF), ("PBS", PBS), ("direct", Direct), ("Di-rect", Direct)],
)
def test_from_str(name, adapter):
    assert AdapterMeta.fromStr(name) is adapter


def test_from_str_unknown_raises():
    with pytest.raises(BEError, match="No backend registered"):
        AdapterMeta.fromStr("slurm")


def test_str_of_adapter_class():
    assert str(LSF) == "LSF"
    assert str(PBS) == "PBS"
    assert str(Direct) == "Direct"


def test_guess_uses_registration_order():
    with (
        patch.object(LSF, "isAvailable", return_value=False),
        patch.object(PBS, "isAvailable", return_value=True),
        patch.object(Direct, "isAvailable", return_value=True),
    ):
        assert AdapterMeta.guess() is PBS


def test_guess_prefers_scheduler_over_direct():
    with (
        patch.object(LSF, "isAvailable", return_value=True),
        patch.object(PBS, "isAvailable", return_value=True),
        patch.object(Direct, "isAvailable", return_value=True),
    ):
        assert AdapterMeta.guess() is LSF


def test_guess_nothing_available_raises():
    with (
        patch.object(LSF, "isAvailable", return_value=False),
        patch.object(PBS, "isAvailable", return_value=False),
        patch.object(Direct, "isAvailable", return_value=False),
        pytest.raises(BEError, match="Could not guess"),
    ):
        AdapterMeta.guess()


def test_from_env_var(monkeypatch):
    monkeypatch.setenv(CFG.env_vars.backend, "pbs")

    assert AdapterMeta.fromEnvVarOrGuess() is PBS


def test_from_env_var_unknown_raises(monkeypatch):
    monkeypatch.setenv(CFG.env_vars.backend, "unknown")

    with pytest.raises(BEError):
        AdapterMeta.fromEnvVarOrGuess()


def test_obtain_by_name_ignores_env_var(monkeypatch):
    monkeypatch.setenv(CFG.env_vars.backend, "pbs")

    assert AdapterMeta.obtain("lsf") is LSF
    assert AdapterMeta.obtain(None) is PBS


def test_read_directives_collects_leading_block(tmp_path):
    script = tmp_path / "job.sh"
    script.write_text(
        "#!/bin/bash\n#BSUB -q short\n#BSUB -M 1024\necho hi\n#BSUB -n 4\n"
    )

    assert BatchAdapter._readDirectives(script, "#BSUB") == "-q short -M 1024"


def test_read_directives_none_present(tmp_path):
    script = tmp_path / "job.sh"
    script.write_text("#!/bin/bash\necho hi\n")

    assert BatchAdapter._readDirectives(script, "#PBS") == ""


def test_read_directives_missing_file_raises(tmp_path):
    with pytest.raises(BEError, match="Could not read job script"):
        BatchAdapter._readDirectives(tmp_path / "missing.sh", "#PBS")


def test_parse_status_lines_skips_noise_and_malformed_lines():
    def parse_line(line):
        values = line.split(" ")
        if len(values) < 2:
            return None
        return StatusRecord(job_id=values[0], state=JobState.fromStr(values[1]))

    records = BatchAdapter._parseStatusLines(
        ["1   running", "", "header line", "2", "  3 queued  "], parse_line
    )

    assert list(records) == ["1", "3"]
    assert records["1"].state == JobState.RUNNING
    assert records["3"].state == JobState.QUEUED


def test_unsupported_capabilities_raise(tmp_path):
    with pytest.raises(BEUnsupportedOperationError):
        Direct.extractProcessingParametersFromToolScript(tmp_path / "job.sh")
