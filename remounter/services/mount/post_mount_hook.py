"""Post-mount hook - runs the user's script after a successful remount."""

import asyncio
import logging
import os
from typing import Set

from ...core.exceptions import ConfigurationError, HookFailedError
from ...models import ShareDescriptor
from ...utils.process import run_command


class PostMountHook:
    """
    Runs the configured script with `sh -c` as a fresh process per remount,
    so shell syntax (pipes, `&&`, redirects) works.

    Host, share name and mount point are passed as the positional
    parameters $1, $2 and $3 and exported as REMOUNTER_HOST,
    REMOUNTER_SHARE and REMOUNTER_MOUNT_POINT. Use "$@" to forward them
    to an executable.
    """

    def __init__(self, script: str, timeout_seconds: float):
        if not script.strip():
            raise ConfigurationError("Post-mount script is empty")
        self._script = script
        self._timeout_seconds = timeout_seconds
        self._pending: Set[asyncio.Task] = set()

    @property
    def script(self) -> str:
        return self._script

    async def run(self, descriptor: ShareDescriptor) -> None:
        """
        Run the script and wait for it.

        Raises:
            HookFailedError: on start failure, timeout or non-zero exit.
        """
        cmd = [
            "sh", "-c", self._script, "remounter",
            descriptor.host, descriptor.share_name, descriptor.mount_point,
        ]
        env = {
            **os.environ,
            "REMOUNTER_HOST": descriptor.host,
            "REMOUNTER_SHARE": descriptor.share_name,
            "REMOUNTER_MOUNT_POINT": descriptor.mount_point,
        }

        try:
            result = await run_command(cmd, timeout=self._timeout_seconds, env=env)
        except OSError as e:
            raise HookFailedError(self._script, f"cannot start: {e}") from e

        if result.timed_out:
            raise HookFailedError(
                self._script, f"timed out after {self._timeout_seconds:g}s"
            )
        if not result.succeeded:
            raise HookFailedError(
                self._script,
                f"exit status {result.returncode}: {result.error_output}",
            )

        if result.stdout.strip():
            logging.debug(f"Post-mount script output: {result.stdout.strip()}")

    def fire(self, descriptor: ShareDescriptor) -> asyncio.Task:
        """Start the script in the background; the outcome is only logged."""
        task = asyncio.create_task(self._run_logged(descriptor))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def wait_for_pending(self) -> None:
        """Wait for hooks still running, e.g. during shutdown."""
        if self._pending:
            logging.info(f"Waiting for {len(self._pending)} post-mount script(s) to finish")
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _run_logged(self, descriptor: ShareDescriptor) -> None:
        logging.info(f"Executing post-mount script for {descriptor.share_name}: {self._script}")
        try:
            await self.run(descriptor)
        except HookFailedError as e:
            logging.warning(
                str(e),
                extra={
                    "operation": "post_mount_hook",
                    "share": descriptor.share_name,
                    "mount_point": descriptor.mount_point,
                    "error": e.cause,
                },
            )
            return

        logging.info(f"Post-mount script finished for {descriptor.share_name}")
