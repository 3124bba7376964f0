# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import os
import shutil
import subprocess
from pathlib import Path

from be_lib.core.config import CFG
from be_lib.core.error import BETransportError
from be_lib.core.logger import get_logger
from be_lib.job.command import Command
from be_lib.job.log import JobLog

from .service import ExecutionResult, ExecutionService

logger = get_logger(__name__)


class LocalExecutionService(ExecutionService):
    """
    Execution service running commands on the current host using bash.
    """

    def __init__(self, timeout: int | None = None):
        """
        Args:
            timeout (int | None): Kill commands running longer than this many seconds.
                Defaults to `CFG.timeouts.execution`.
        """
        self._timeout = timeout if timeout is not None else CFG.timeouts.execution

    def isAvailable(self) -> bool:
        return shutil.which("bash") is not None

    def execute(self, command: Command) -> ExecutionResult:
        logger.debug(f"Executing: {command.text}")

        env = os.environ | command.env if command.env else None

        try:
            process = subprocess.Popen(
                ["bash", "-c", command.text],
                stdin=subprocess.PIPE if command.stdin is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                env=env,
                cwd=command.working_dir,
            )
        except OSError as e:
            raise BETransportError(f"Could not execute command '{command.text}': {e}.") from e

        try:
            stdout, stderr = process.communicate(
                input=command.stdin, timeout=self._timeout
            )
        except subprocess.TimeoutExpired:
            process.kill()
            stdout, stderr = process.communicate()
            logger.warning(
                f"Command '{command.text}' timed out after {self._timeout} seconds and was killed."
            )
            LocalExecutionService._writeLog(command.log, stdout, stderr)
            return ExecutionResult(
                successful=False,
                exit_code=process.returncode,
                result_lines=stdout.splitlines(),
                error_lines=stderr.splitlines(),
                process_id=str(process.pid),
            )

        LocalExecutionService._writeLog(command.log, stdout, stderr)

        if process.returncode != 0:
            logger.debug(
                f"Command '{command.text}' failed with exit code {process.returncode}: {stderr.strip()}"
            )

        return ExecutionResult(
            successful=process.returncode == 0,
            exit_code=process.returncode,
            result_lines=stdout.splitlines(),
            error_lines=stderr.splitlines(),
            process_id=str(process.pid),
        )

    @staticmethod
    def _writeLog(log: JobLog, stdout: str, stderr: str) -> None:
        """
        Write the output of a command into its log destination.
        """
        if log.isNone():
            return

        if log.isJoined():
            LocalExecutionService._appendTo(log.out, stdout + stderr)
            return

        if log.out is not None:
            LocalExecutionService._appendTo(log.out, stdout)
        if log.err is not None:
            LocalExecutionService._appendTo(log.err, stderr)

    @staticmethod
    def _appendTo(file: Path, text: str) -> None:
        try:
            file.parent.mkdir(parents=True, exist_ok=True)
            with file.open("a") as f:
                f.write(text)
        except OSError as e:
            logger.warning(f"Could not write output into '{file}': {e}.")
