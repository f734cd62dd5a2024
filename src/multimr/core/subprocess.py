"""Subprocess execution with rich error context.

All external commands (git, glab, gh) run through this module so that output
is always captured in full and failures carry the command, exit code and
both output streams. Nothing here writes to the terminal.
"""

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0


class CommandError(RuntimeError):
    """A captured subprocess failed, timed out, or could not be started."""

    def __init__(
        self,
        message: str,
        *,
        cmd: Sequence[str],
        returncode: int | None,
        stdout: str,
        stderr: str,
    ) -> None:
        super().__init__(message)
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def output(self) -> str:
        """Combined stdout and stderr, stripped."""
        parts = [self.stdout.strip(), self.stderr.strip()]
        return "\n".join(part for part in parts if part)


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def run_subprocess_with_context(
    cmd: Sequence[str],
    operation_context: str,
    cwd: Path | None = None,
    check: bool = True,
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
    **kwargs: Any,
) -> subprocess.CompletedProcess[str]:
    """Execute subprocess with captured output and enriched error reporting.

    Wraps subprocess.run() to catch CalledProcessError, TimeoutExpired and
    FileNotFoundError and re-raise them as CommandError with operation
    context, the output streams and command details.

    Args:
        cmd: Command and arguments to execute
        operation_context: Human-readable description of operation
        cwd: Working directory for command execution
        check: Whether to raise on non-zero exit (default: True)
        timeout: Seconds before the command is killed (None for no limit)
        **kwargs: Additional arguments passed to subprocess.run()

    Returns:
        CompletedProcess instance from subprocess.run()

    Raises:
        CommandError: If the command fails, times out or is not installed
    """
    cmd_str = " ".join(str(arg) for arg in cmd)
    logger.debug("Running (%s) in %s: %s", operation_context, cwd, cmd_str)
    try:
        return subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=check,
            timeout=timeout,
            **kwargs,
        )

    except subprocess.CalledProcessError as e:
        stdout = _as_text(e.stdout)
        stderr = _as_text(e.stderr)
        error_msg = f"Failed to {operation_context}"
        error_msg += f"\nCommand: {cmd_str}"
        error_msg += f"\nExit code: {e.returncode}"
        if stdout.strip():
            error_msg += f"\nstdout: {stdout.strip()}"
        if stderr.strip():
            error_msg += f"\nstderr: {stderr.strip()}"
        raise CommandError(
            error_msg, cmd=cmd, returncode=e.returncode, stdout=stdout, stderr=stderr
        ) from e

    except subprocess.TimeoutExpired as e:
        error_msg = f"Timed out after {timeout}s while trying to {operation_context}"
        error_msg += f"\nCommand: {cmd_str}"
        raise CommandError(
            error_msg,
            cmd=cmd,
            returncode=None,
            stdout=_as_text(e.stdout),
            stderr=_as_text(e.stderr),
        ) from e

    except FileNotFoundError as e:
        error_msg = f"Command not found while trying to {operation_context}: {cmd[0]}"
        error_msg += f"\nFull command: {cmd_str}"
        raise CommandError(error_msg, cmd=cmd, returncode=None, stdout="", stderr="") from e
