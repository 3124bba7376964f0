# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core implementation of BatchEuphoria and its `beu` command-line tool.

This package provides a backend-independent job manager for batch processing
systems. It defines the job model, the abstraction of a batch backend and its
concrete adapters (LSF, PBS, and direct execution on the current host), the
execution service running backend commands, and the synchronization of job
states with the bulk status reported by the backend. The `beu` CLI commands
delegate to the functionality implemented here.
"""

from .beu import __version__, cli

__all__ = [
    "__version__",
    "cli",
    "batch",
    "core",
    "execution",
    "job",
    "kill",
    "manager",
    "properties",
    "release",
    "stat",
    "submit",
]
