# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Execution of backend commands.

The job manager never spawns processes itself. It hands every command over to
an `ExecutionService` and consumes the resulting `ExecutionResult`.
`LocalExecutionService` runs the commands on the current host using bash.
"""

from .local import LocalExecutionService
from .service import ExecutionResult, ExecutionService

__all__ = ["ExecutionResult", "ExecutionService", "LocalExecutionService"]
