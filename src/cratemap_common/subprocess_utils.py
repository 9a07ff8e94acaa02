"""Subprocess execution with optional timeouts and structured error reporting.

This module provides the process-execution helper used by the metadata fetcher:

- executables are resolved to absolute paths before spawning
- commands are never shell-interpreted
- output is captured as text; the environment is inherited unless overridden
- non-zero exits, missing executables and timeouts raise typed errors

Examples
--------
>>> from cratemap_common.subprocess_utils import run_subprocess
>>> print(run_subprocess(["echo", "hello"], timeout=10).strip())
hello
"""

from __future__ import annotations

import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

from cratemap_common.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

__all__ = [
    "MAX_TIMEOUT",
    "MIN_TIMEOUT",
    "ProcessResult",
    "ProcessRunner",
    "SubprocessError",
    "SubprocessTimeoutError",
    "run_subprocess",
]

logger = get_logger(__name__)

MIN_TIMEOUT: Final[int] = 1
MAX_TIMEOUT: Final[int] = 3600


class SubprocessTimeoutError(TimeoutError):
    """Raised when a subprocess exceeds its configured timeout.

    Parameters
    ----------
    message : str
        Error description.
    command : list[str] | None, optional
        The command that timed out.
    timeout_seconds : int | None, optional
        The timeout that was configured.
    """

    def __init__(
        self, message: str, command: list[str] | None = None, timeout_seconds: int | None = None
    ) -> None:
        super().__init__(message)
        self.command = command
        self.timeout_seconds = timeout_seconds


class SubprocessError(RuntimeError):
    """Raised when a subprocess cannot be started or exits with a non-zero status.

    Parameters
    ----------
    message : str
        Error description.
    command : list[str] | None, optional
        The command that failed.
    returncode : int | None, optional
        Exit code, ``None`` when the process never ran.
    stderr : str | None, optional
        Captured standard error.
    """

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


@dataclass(slots=True, frozen=True)
class ProcessResult:
    """Captured result of a finished subprocess."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    duration_seconds: float


@dataclass(slots=True, frozen=True)
class ProcessRunner:
    """Run commands to completion and capture their text output."""

    def resolve(self, executable: str) -> Path:
        """Resolve ``executable`` to an absolute path.

        Raises
        ------
        SubprocessError
            If the executable cannot be found on ``PATH`` or does not exist.
        """
        candidate = Path(executable)
        if candidate.is_absolute() or candidate.parent != Path():
            if candidate.is_file():
                return candidate.resolve()
            msg = f"Executable '{executable}' does not exist"
            raise SubprocessError(msg, command=[executable])

        resolved = shutil.which(executable)
        if resolved is None:
            msg = f"Executable '{executable}' could not be resolved to an absolute path"
            raise SubprocessError(msg, command=[executable])
        return Path(resolved)

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ProcessResult:
        """Execute ``command`` and wait for it to finish.

        The result is returned whatever the exit status; callers decide how to
        treat a non-zero return code.

        Raises
        ------
        SubprocessError
            If the command is empty, the executable is missing or the output
            cannot be decoded.
        SubprocessTimeoutError
            If ``timeout`` elapses before the process exits.
        """
        if not command:
            msg = "Command must contain at least one argument"
            raise SubprocessError(msg, command=[])

        executable = self.resolve(command[0])
        final_command = (str(executable), *command[1:])
        started = time.monotonic()
        try:
            completed = subprocess.run(  # noqa: S603 - arguments are never shell-interpreted
                final_command,
                cwd=str(cwd) if cwd else None,
                env=dict(env) if env is not None else None,
                text=True,
                capture_output=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            timeout_seconds = int(timeout) if timeout is not None else None
            msg = f"Subprocess exceeded timeout of {timeout_seconds} seconds: {' '.join(command)}"
            raise SubprocessTimeoutError(
                msg, command=list(command), timeout_seconds=timeout_seconds
            ) from exc
        except OSError as exc:
            msg = f"Subprocess could not be started: {exc}"
            raise SubprocessError(msg, command=list(command)) from exc
        except UnicodeDecodeError as exc:
            msg = f"Subprocess output is not valid text: {exc}"
            raise SubprocessError(msg, command=list(command)) from exc

        return ProcessResult(
            command=final_command,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
            duration_seconds=time.monotonic() - started,
        )


_DEFAULT_RUNNER = ProcessRunner()


def run_subprocess(
    cmd: Sequence[str],
    *,
    timeout: int | None = None,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    runner: ProcessRunner | None = None,
) -> str:
    """Execute ``cmd`` and return its captured standard output.

    Parameters
    ----------
    cmd : Sequence[str]
        Command and arguments. Arguments are passed literally, never through a shell.
    timeout : int | None, optional
        Maximum execution time in seconds, between ``MIN_TIMEOUT`` and
        ``MAX_TIMEOUT``. ``None`` waits until the process exits.
    cwd : Path | None, optional
        Working directory, resolved to an absolute path.
    env : Mapping[str, str] | None, optional
        Full environment for the child. ``None`` inherits the parent environment.
    runner : ProcessRunner | None, optional
        Runner to use. Defaults to the module-level runner.

    Returns
    -------
    str
        Captured standard output.

    Raises
    ------
    ValueError
        If ``timeout`` is out of bounds.
    SubprocessTimeoutError
        If the subprocess exceeds ``timeout``.
    SubprocessError
        If the subprocess cannot be started or exits with a non-zero status.
    """
    if timeout is not None and not MIN_TIMEOUT <= timeout <= MAX_TIMEOUT:
        msg = f"Timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT}, got {timeout}"
        raise ValueError(msg)

    if cwd is not None:
        cwd = cwd.resolve()

    command_text = " ".join(cmd)
    logger.debug(
        "Executing subprocess",
        extra={
            "operation": "subprocess",
            "command": command_text,
            "timeout": timeout,
            "cwd": str(cwd) if cwd else None,
        },
    )

    active_runner = runner or _DEFAULT_RUNNER
    try:
        result = active_runner.run(
            cmd,
            cwd=cwd,
            env=env,
            timeout=float(timeout) if timeout is not None else None,
        )
    except SubprocessTimeoutError:
        logger.exception(
            "Subprocess timed out",
            extra={"operation": "subprocess", "command": command_text, "timeout": timeout},
        )
        raise
    except SubprocessError:
        logger.exception(
            "Subprocess could not be executed",
            extra={"operation": "subprocess", "command": command_text},
        )
        raise

    if result.returncode != 0:
        stderr_output = result.stderr.strip() or None
        message = f"Subprocess failed with exit code {result.returncode}: {command_text}"
        logger.error(
            message,
            extra={
                "operation": "subprocess",
                "command": command_text,
                "returncode": result.returncode,
                "stderr": stderr_output,
            },
        )
        raise SubprocessError(
            message,
            command=list(cmd),
            returncode=result.returncode,
            stderr=stderr_output,
        )

    logger.debug(
        "Subprocess completed successfully",
        extra={
            "operation": "subprocess",
            "returncode": result.returncode,
            "duration_ms": result.duration_seconds * 1000.0,
        },
    )
    return result.stdout
