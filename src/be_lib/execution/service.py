# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from be_lib.job.command import Command


@dataclass
class ExecutionResult:
    """
    Result of a command executed by an execution service.
    """

    # Whether the command finished with a zero exit code.
    successful: bool
    # Exit code of the command.
    exit_code: int
    # Lines written to the standard output.
    result_lines: list[str] = field(default_factory=list)
    # Lines written to the standard error stream.
    error_lines: list[str] = field(default_factory=list)
    # Identifier of the process that executed the command.
    process_id: str | None = None
    # Monotonic time at which the result was obtained.
    created: float = field(default_factory=time.monotonic)

    def ageInSeconds(self) -> float:
        """Return the number of seconds elapsed since the result was obtained."""
        return time.monotonic() - self.created


class ExecutionService(ABC):
    """
    Transport executing commands on behalf of the job manager.

    Implementations should raise BETransportError if the backend
    cannot be reached at all. A command that runs but fails is reported
    through an unsuccessful `ExecutionResult`.
    """

    @abstractmethod
    def execute(self, command: Command) -> ExecutionResult:
        """
        Execute the command and wait for it to finish.

        Args:
            command (Command): The command to execute.

        Returns:
            ExecutionResult: Exit code and output of the command.

        Raises:
            BETransportError: If the command could not be executed at all.
        """
        pass

    def isAvailable(self) -> bool:
        """Check whether the service is able to execute commands."""
        return True
