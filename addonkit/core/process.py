"""
Async Subprocess Runner.

Runs the external tools addonkit delegates to (git, npm, r.js) without
blocking the event loop.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """Raised when an external command cannot run or exits non-zero."""

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode


@dataclass
class CommandResult:
    """
    Finished command.

    Attributes:
        args: Command line that was run
        returncode: Exit code
        stdout: Decoded standard output
        stderr: Decoded standard error
    """

    args: list[str]
    returncode: int
    stdout: str
    stderr: str


async def run_command(
    cmd: list[str],
    cwd: Path | None = None,
    env_vars: dict[str, str] | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """
    Run a command and wait for it to finish.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        env_vars: Additional environment variables to inject
        timeout: Seconds before the process is killed (None waits forever)

    Returns:
        CommandResult of a zero exit

    Raises:
        CommandError: If the command is missing, times out or exits non-zero
    """
    env = None
    if env_vars:
        env = os.environ.copy()
        env.update(env_vars)

    logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise CommandError(f"{cmd[0]} command not found") from e
    except OSError as e:
        raise CommandError(f"Failed to start {cmd[0]}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError as e:
        process.kill()
        await process.wait()
        raise CommandError(f"{cmd[0]} timed out after {timeout} seconds") from e

    result = CommandResult(
        args=list(cmd),
        returncode=process.returncode,
        stdout=stdout.decode(errors="replace") if stdout else "",
        stderr=stderr.decode(errors="replace") if stderr else "",
    )

    if result.returncode != 0:
        raise CommandError(
            f"{cmd[0]} failed with exit code {result.returncode}: "
            f"{(result.stderr or result.stdout).strip()}",
            returncode=result.returncode,
        )

    return result
