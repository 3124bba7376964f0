# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Normalized metadata about a job as reported by a backend.

Backends fill a `JobInfo` opportunistically from their status output; fields
the backend does not report stay unset. Repeated status updates are merged
into the job's existing metadata without erasing known values.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Self

import yaml

from be_lib.core.common import load_yaml_dumper
from be_lib.core.config import CFG

Dumper: type[yaml.Dumper] = load_yaml_dumper()


@dataclass
class JobInfo:
    """
    Dataclass storing normalized metadata of a single job.
    """

    # Identifier of the job
    job_id: str | None = None
    # Name of the job
    job_name: str | None = None
    # Owner of the job
    user: str | None = None
    # Queue the job was submitted to
    queue: str | None = None
    # Description of the job
    description: str | None = None
    # Project the job is accounted to
    project_name: str | None = None
    # Group of jobs the job belongs to
    job_group: str | None = None
    # Priority of the job
    priority: str | None = None
    # Process IDs of the job
    pids: str | None = None
    # Exit status of the job
    exit_status: int | None = None
    # Host from which the job was submitted
    submit_host: str | None = None
    # Hosts on which the job is executed
    exec_hosts: list[str] | None = None
    # Time of submission
    submit_time: datetime | None = None
    # Time the job started
    start_time: datetime | None = None
    # Time the job ended
    end_time: datetime | None = None
    # Consumed CPU time
    cpu_time: str | None = None
    # Wall-clock run time
    run_time: str | None = None
    # Group of the owner
    user_group: str | None = None
    # Used swap
    swap: str | None = None
    # Maximal used memory
    max_mem: str | None = None
    # Run time limit
    run_limit: str | None = None
    # Working directory at submission
    cwd: str | None = None
    # Reason the job is pending
    pend_reason: str | None = None
    # Working directory on the execution host
    exec_cwd: str | None = None
    # File the output of the job is written to
    output_file: str | None = None
    # File the input of the job is read from
    input_file: str | None = None
    # Effective resource request
    resource_request: str | None = None
    # Home directory on the execution host
    exec_home: str | None = None

    def merge(self, other: "JobInfo") -> Self:
        """
        Copy every field that is set in `other` into this object.

        Fields unset in `other` never overwrite known values.

        Args:
            other (JobInfo): Freshly obtained metadata.

        Returns:
            Self: This object, updated.
        """
        for f in fields(self):
            if (value := getattr(other, f.name)) is not None:
                setattr(self, f.name, value)

        return self

    def toDict(self) -> dict[str, object]:
        """Return all fields as a dict, excluding fields set to None."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def toYaml(self) -> str:
        """Dump all set fields into a YAML string."""
        to_dump = {
            k: (v.strftime(CFG.date_formats.standard) if isinstance(v, datetime) else v)
            for k, v in self.toDict().items()
        }
        return yaml.dump(
            to_dump, default_flow_style=False, sort_keys=False, Dumper=Dumper
        )
