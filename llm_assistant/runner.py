"""Run generated scripts and capture how they exited."""

from __future__ import annotations

import logging
import subprocess
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class ExecutionError(Exception):
    """The interpreter could not be started at all."""
    pass


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one script run."""

    exit_code: int
    stderr_text: str

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class ProcessRunner(Protocol):
    """Runs a command to completion. Never raises on a non-zero exit."""

    def run(self, command: Sequence[str], cwd: Path | None = None) -> ExecutionResult:
        ...


class SubprocessRunner:
    """
    ProcessRunner backed by ``subprocess.run``.

    stdout goes straight to the terminal so the user watches the script
    run; stderr is captured in a temporary file that is removed afterwards.
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    def run(self, command: Sequence[str], cwd: Path | None = None) -> ExecutionResult:
        """
        Run ``command`` and wait for it to exit.

        Raises:
            ExecutionError: If the executable is missing or the run times out
        """
        logger.info(f"Running {' '.join(command)}")
        with tempfile.TemporaryFile(mode="w+b") as stderr_sink:
            try:
                completed = subprocess.run(
                    list(command),
                    cwd=cwd,
                    stderr=stderr_sink,
                    timeout=self.timeout,
                    check=False,
                )
            except FileNotFoundError as e:
                raise ExecutionError(f"Cannot run {command[0]}: {e}") from e
            except subprocess.TimeoutExpired as e:
                raise ExecutionError(f"{command[0]} timed out after {self.timeout}s") from e

            stderr_sink.seek(0)
            stderr_text = stderr_sink.read().decode("utf-8", errors="replace")

        if completed.returncode != 0:
            logger.info(f"{command[0]} exited with {completed.returncode}")
        return ExecutionResult(exit_code=completed.returncode, stderr_text=stderr_text)


__all__ = ["ExecutionError", "ExecutionResult", "ProcessRunner", "SubprocessRunner"]
