# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from datetime import datetime

import yaml

from be_lib.core.config import CFG
from be_lib.properties.info import JobInfo


def test_merge_copies_only_set_fields():
    info = JobInfo(job_id="123", user="alice", queue="short")
    fresh = JobInfo(job_id="123", queue="long", exec_hosts=["node01"])

    result = info.merge(fresh)

    assert result is info
    assert info.user == "alice"
    assert info.queue == "long"
    assert info.exec_hosts == ["node01"]


def test_merge_never_erases_known_values():
    info = JobInfo(user="alice", exit_status=0)
    info.merge(JobInfo())

    assert info.user == "alice"
    assert info.exit_status == 0


def test_to_dict_excludes_unset_fields():
    assert JobInfo(job_id="1", user="bob").toDict() == {"job_id": "1", "user": "bob"}


def test_to_yaml():
    submitted = datetime(2025, 10, 19, 12, 3)
    info = JobInfo(job_id="123", user="alice", submit_time=submitted, exec_hosts=["a", "b"])

    loaded = yaml.safe_load(info.toYaml())

    assert loaded == {
        "job_id": "123",
        "user": "alice",
        "exec_hosts": ["a", "b"],
        "submit_time": submitted.strftime(CFG.date_formats.standard),
    }
