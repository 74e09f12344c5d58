"""
Bounded subprocess execution for mount tooling.

Every OS command the remounter runs (mount, umount, osascript, ls, the
post-mount hook) goes through run_command so that a hung command can never
block a share's controller indefinitely.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

# Grace period for a killed process to be reaped
_KILL_WAIT_SECONDS = 2.0


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.timed_out and self.returncode == 0

    @property
    def error_output(self) -> str:
        """Best available description of a failure."""
        if self.timed_out:
            return "timed out"
        return self.stderr.strip() or self.stdout.strip() or f"exit status {self.returncode}"


async def run_command(
    cmd: Sequence[str],
    timeout: float,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """
    Run a command and capture its output, killing it after ``timeout`` seconds.

    Args:
        cmd: Program and arguments; no shell is involved.
        timeout: Upper bound in seconds for the whole run.
        env: Optional full environment for the child process.

    Returns:
        CommandResult. ``timed_out`` is set and ``returncode`` is -1 when the
        bound was exceeded.

    Raises:
        OSError: if the program cannot be started (missing, not executable).
    """
    logging.debug(f"Executing command: {' '.join(cmd)}")

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=dict(env) if env is not None else None,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logging.warning(f"Command timed out after {timeout:g}s: {cmd[0]}")
        process.kill()
        try:
            await asyncio.wait_for(process.wait(), timeout=_KILL_WAIT_SECONDS)
        except asyncio.TimeoutError:
            # Process stuck in uninterruptible I/O; leave it to the OS
            logging.error(f"Killed process {process.pid} did not exit: {cmd[0]}")
        return CommandResult(returncode=-1, stdout="", stderr="", timed_out=True)
    finally:
        # Cancelled mid-run: never leave the child behind
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                logging.debug(f"Process {process.pid} already exited: {cmd[0]}")

    return CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode(errors="replace") if stdout else "",
        stderr=stderr.decode(errors="replace") if stderr else "",
    )
