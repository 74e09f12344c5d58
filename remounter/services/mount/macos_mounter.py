"""macOS Network Mounter - osascript/mount_smbfs and diskutil."""

import logging
import re
from pathlib import PurePosixPath
from typing import List

from .base_mounter import BaseMounter
from ...core.exceptions import MountFailedError, MountTableError, UnmountFailedError
from ...models import MountEntry, ShareDescriptor
from ...utils.process import run_command

VOLUMES_ROOT = PurePosixPath("/Volumes")

# "//user@host/share on /Volumes/share (smbfs, nodev, nosuid, mounted by user)"
_MOUNT_LINE = re.compile(r"^(?P<source>.+?) on (?P<mount_point>.+?) \((?P<fstype>[^,)]+)")

_MOUNT_TABLE_TIMEOUT_SECONDS = 10.0


def parse_mount_output(output: str) -> List[MountEntry]:
    entries = []
    for line in output.splitlines():
        match = _MOUNT_LINE.match(line.strip())
        if not match:
            continue
        entries.append(
            MountEntry(
                source=match.group("source"),
                mount_point=match.group("mount_point"),
                fstype=match.group("fstype").strip(),
            )
        )
    return entries


class MacOSMounter(BaseMounter):
    """macOS-specific network mount implementation."""

    async def list_mounts(self) -> List[MountEntry]:
        try:
            result = await run_command(["mount"], timeout=_MOUNT_TABLE_TIMEOUT_SECONDS)
        except OSError as e:
            raise MountTableError(f"Cannot run mount: {e}") from e

        if not result.succeeded:
            raise MountTableError(f"mount listing failed: {result.error_output}")
        return parse_mount_output(result.stdout)

    async def mount(self, descriptor: ShareDescriptor, timeout: float) -> None:
        # Finder-style mounts land in /Volumes/<share> and use the login keychain
        if PurePosixPath(descriptor.mount_point).parent == VOLUMES_ROOT:
            cmd = ["osascript", "-e", f'mount volume "{descriptor.share_url}"']
        else:
            cmd = ["mount_smbfs", descriptor.unc_path, descriptor.mount_point]

        logging.info(f"Attempting macOS mount: {descriptor}")
        try:
            result = await run_command(cmd, timeout=timeout)
        except OSError as e:
            raise MountFailedError(descriptor.unc_path, f"cannot run {cmd[0]}: {e}") from e

        if result.timed_out:
            raise MountFailedError(
                descriptor.unc_path, f"mount timed out after {timeout:g}s"
            )
        if not result.succeeded:
            raise MountFailedError(descriptor.unc_path, result.error_output)

    async def unmount(self, mount_point: str, timeout: float) -> None:
        try:
            result = await run_command(
                ["diskutil", "unmount", "force", mount_point], timeout=timeout
            )
        except OSError as e:
            raise UnmountFailedError(mount_point, f"cannot run diskutil: {e}") from e

        if not result.succeeded:
            raise UnmountFailedError(mount_point, result.error_output)

    def get_platform_name(self) -> str:
        return "macOS"
