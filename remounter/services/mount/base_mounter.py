"""Abstract Base Mounter - platform mount primitives behind one interface."""

import logging
import os
from abc import ABC, abstractmethod
from typing import List

from ...core.exceptions import ProbeTimeoutError
from ...models import MountEntry, ShareDescriptor
from ...utils.process import run_command


class BaseMounter(ABC):
    """Abstract base class for platform-specific mount operations."""

    @abstractmethod
    async def list_mounts(self) -> List[MountEntry]:
        """Read the current mount table. Raises MountTableError."""

    @abstractmethod
    async def mount(self, descriptor: ShareDescriptor, timeout: float) -> None:
        """Mount host:share onto the mount point. Raises MountFailedError."""

    @abstractmethod
    async def unmount(self, mount_point: str, timeout: float) -> None:
        """Force-unmount a mount point. Raises UnmountFailedError."""

    @abstractmethod
    def get_platform_name(self) -> str:
        """Get platform name for logging."""

    async def check_responsive(self, mount_point: str, timeout: float) -> bool:
        """
        Bounded liveness check: the mount point must be a listable directory.

        Runs entirely in an `ls` subprocess that is killed on timeout.
        Returns False when the mount answers with an error.

        Raises:
            ProbeTimeoutError: if the listing exceeds ``timeout``.
        """
        # Trailing separator makes ls fail on anything but a directory
        target = os.path.join(mount_point, "")
        try:
            result = await run_command(["ls", "-A", target], timeout=timeout)
        except OSError as e:
            logging.debug(f"Error testing mount accessibility: {e}")
            return False

        if result.timed_out:
            raise ProbeTimeoutError(mount_point, timeout)

        if not result.succeeded:
            logging.debug(f"Mount point not accessible: {mount_point} - {result.error_output}")
            return False

        return True
