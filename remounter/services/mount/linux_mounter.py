"""Linux Network Mounter - mount.cifs and /proc/mounts."""

import asyncio
import logging
import re
from typing import List, Optional

import aiofiles
import aiofiles.os

from .base_mounter import BaseMounter
from ...core.exceptions import MountFailedError, MountTableError, UnmountFailedError
from ...models import MountEntry, ShareDescriptor
from ...utils.process import run_command

PROC_MOUNTS = "/proc/mounts"

_MOUNT_TABLE_TIMEOUT_SECONDS = 10.0

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

# stderr fragment -> readable cause, checked in order
_MOUNT_ERROR_CAUSES = [
    ("mount error(13)", "authentication failed"),
    ("permission denied", "authentication failed"),
    ("mount error(2)", "share not found"),
    ("no such file or directory", "share not found"),
    ("mount error(112)", "host unreachable"),
    ("no route to host", "host unreachable"),
    ("network is unreachable", "host unreachable"),
    ("mount error(115)", "connection timed out"),
    ("connection timed out", "connection timed out"),
    ("connection refused", "SMB service unavailable"),
]


def decode_mount_field(field: str) -> str:
    """Decode the octal escapes /proc/mounts uses for spaces, tabs and backslashes."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def parse_proc_mounts(content: str) -> List[MountEntry]:
    entries = []
    for line in content.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        entries.append(
            MountEntry(
                source=decode_mount_field(parts[0]),
                mount_point=decode_mount_field(parts[1]),
                fstype=parts[2],
            )
        )
    return entries


def classify_mount_error(stderr: str) -> str:
    lowered = stderr.lower()
    for fragment, cause in _MOUNT_ERROR_CAUSES:
        if fragment in lowered:
            return f"{cause}: {stderr.strip()}"
    return stderr.strip() or "unknown error"


class LinuxMounter(BaseMounter):
    """Linux CIFS mount implementation."""

    def __init__(self, mount_options: Optional[str] = None):
        self._mount_options = mount_options or ""

    async def list_mounts(self) -> List[MountEntry]:
        try:
            content = await asyncio.wait_for(
                self._read_proc_mounts(), timeout=_MOUNT_TABLE_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            raise MountTableError(
                f"Reading {PROC_MOUNTS} timed out after {_MOUNT_TABLE_TIMEOUT_SECONDS:g}s"
            )
        except OSError as e:
            raise MountTableError(f"Cannot read {PROC_MOUNTS}: {e}") from e
        return parse_proc_mounts(content)

    async def _read_proc_mounts(self) -> str:
        async with aiofiles.open(PROC_MOUNTS, "r") as f:
            return await f.read()

    async def mount(self, descriptor: ShareDescriptor, timeout: float) -> None:
        try:
            await aiofiles.os.makedirs(descriptor.mount_point, exist_ok=True)
        except OSError as e:
            raise MountFailedError(descriptor.unc_path, f"cannot create mount point: {e}") from e

        cmd = ["mount", "-t", "cifs", descriptor.unc_path, descriptor.mount_point]
        if self._mount_options:
            cmd.extend(["-o", self._mount_options])

        logging.info(f"Attempting Linux mount: {descriptor}")
        try:
            result = await run_command(cmd, timeout=timeout)
        except OSError as e:
            raise MountFailedError(descriptor.unc_path, f"cannot run mount: {e}") from e

        if result.timed_out:
            raise MountFailedError(
                descriptor.unc_path, f"mount timed out after {timeout:g}s"
            )
        if not result.succeeded:
            raise MountFailedError(descriptor.unc_path, classify_mount_error(result.error_output))

    async def unmount(self, mount_point: str, timeout: float) -> None:
        result = await self._run_umount(["umount", "-f", mount_point], mount_point, timeout)
        if result.succeeded:
            return

        error_output = result.error_output
        if "busy" in error_output.lower():
            logging.warning(f"Mount point busy, attempting lazy unmount for {mount_point}")
            result = await self._run_umount(["umount", "-l", mount_point], mount_point, timeout)
            if result.succeeded:
                return
            error_output = result.error_output

        raise UnmountFailedError(mount_point, error_output)

    async def _run_umount(self, cmd: List[str], mount_point: str, timeout: float):
        try:
            return await run_command(cmd, timeout=timeout)
        except OSError as e:
            raise UnmountFailedError(mount_point, f"cannot run umount: {e}") from e

    def get_platform_name(self) -> str:
        return "Linux"
