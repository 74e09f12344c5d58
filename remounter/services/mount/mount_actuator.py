"""Mount Actuator - unmount/mount cycle for one share plus the post-mount hook."""

import asyncio
import logging
from typing import Optional

from .base_mounter import BaseMounter
from .mount_prober import MountProber
from .post_mount_hook import PostMountHook
from ...config import Settings
from ...core.exceptions import MountFailedError, MountTableError, UnmountFailedError
from ...models import ShareDescriptor


class MountActuator:
    """Performs remounts. SRP: mutating the mount table ONLY."""

    def __init__(
        self,
        settings: Settings,
        mounter: BaseMounter,
        prober: MountProber,
        post_mount_hook: Optional[PostMountHook] = None,
    ):
        self._settings = settings
        self._mounter = mounter
        self._prober = prober
        self._post_mount_hook = post_mount_hook

    @property
    def post_mount_hook(self) -> Optional[PostMountHook]:
        return self._post_mount_hook

    async def remount(self, descriptor: ShareDescriptor) -> None:
        """
        Force-unmount the share if mounted, mount it again and fire the hook.

        An unmount failure is tolerated when the mount point turns out to be
        no longer mounted.

        Raises:
            UnmountFailedError: if an existing mount could not be cleared.
            MountFailedError: if the fresh mount could not be established or
                did not appear at the mount point.
        """
        if await self._is_mounted(descriptor):
            await self._unmount(descriptor)

        if self._settings.check_host_reachability:
            await self._ensure_host_reachable(descriptor)

        await self._mounter.mount(descriptor, timeout=self._settings.mount_timeout_seconds)
        await self._verify_mounted(descriptor)
        logging.info(f"Successfully mounted {descriptor}")

        if self._post_mount_hook:
            self._post_mount_hook.fire(descriptor)

    async def _unmount(self, descriptor: ShareDescriptor) -> None:
        logging.info(f"Force-unmounting {descriptor.mount_point}")
        try:
            await self._mounter.unmount(
                descriptor.mount_point, timeout=self._settings.unmount_timeout_seconds
            )
        except UnmountFailedError as e:
            if await self._is_mounted(descriptor):
                raise
            logging.info(
                f"Unmount of {descriptor.mount_point} reported '{e.cause}' "
                f"but it is no longer mounted, continuing"
            )

    async def _verify_mounted(self, descriptor: ShareDescriptor) -> None:
        # mount can exit 0 yet land elsewhere, e.g. /Volumes/docs-1 on macOS
        try:
            entry = await self._prober.find_mount(descriptor)
        except MountTableError as e:
            raise MountFailedError(
                descriptor.unc_path, f"cannot verify mount: {e}"
            ) from e

        if entry is None or not entry.matches_share(descriptor.host, descriptor.share_name):
            raise MountFailedError(
                descriptor.unc_path, f"mount did not appear at {descriptor.mount_point}"
            )

    async def _is_mounted(self, descriptor: ShareDescriptor) -> bool:
        try:
            return await self._prober.find_mount(descriptor) is not None
        except MountTableError as e:
            raise UnmountFailedError(descriptor.mount_point, str(e)) from e

    async def _ensure_host_reachable(self, descriptor: ShareDescriptor) -> None:
        host, port = descriptor.host, self._settings.smb_port
        timeout = self._settings.reachability_timeout_seconds
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=timeout
            )
        except asyncio.TimeoutError:
            raise MountFailedError(
                descriptor.unc_path,
                f"host unreachable: {host}:{port} did not answer within {timeout:g}s",
            )
        except OSError as e:
            raise MountFailedError(
                descriptor.unc_path, f"host unreachable: {host}:{port} ({e})"
            ) from e

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logging.debug(f"Error closing reachability probe to {host}:{port}: {e}")
