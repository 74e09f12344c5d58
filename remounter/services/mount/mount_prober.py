"""Mount Prober - classifies the health of one share's mount. Read only."""

import logging
from typing import Optional

from .base_mounter import BaseMounter
from ...core.exceptions import ProbeTimeoutError
from ...models import HealthSignal, MountEntry, ShareDescriptor


class MountProber:
    def __init__(self, mounter: BaseMounter, probe_timeout_seconds: float):
        self._mounter = mounter
        self._probe_timeout_seconds = probe_timeout_seconds

    async def probe(self, descriptor: ShareDescriptor) -> HealthSignal:
        """
        Report whether the share is mounted and responsive.

        A liveness check that times out is reported as MOUNTED_STALE.

        Raises:
            MountTableError: if the mount table cannot be read.
        """
        entry = await self.find_mount(descriptor)

        if entry is None:
            return HealthSignal.NOT_MOUNTED

        if not entry.matches_share(descriptor.host, descriptor.share_name):
            logging.warning(
                f"{descriptor.mount_point} is occupied by {entry.source} ({entry.fstype}), "
                f"expected {descriptor.unc_path}"
            )
            return HealthSignal.NOT_MOUNTED

        try:
            responsive = await self._mounter.check_responsive(
                descriptor.mount_point, self._probe_timeout_seconds
            )
        except ProbeTimeoutError as e:
            logging.warning(f"{descriptor.share_name}: {e}")
            return HealthSignal.MOUNTED_STALE

        return HealthSignal.MOUNTED_HEALTHY if responsive else HealthSignal.MOUNTED_STALE

    async def find_mount(self, descriptor: ShareDescriptor) -> Optional[MountEntry]:
        """Mount table entry for the descriptor's mount point, if any."""
        entries = await self._mounter.list_mounts()
        # Later entries shadow earlier ones on the same path
        for entry in reversed(entries):
            if entry.mount_point == descriptor.mount_point:
                return entry
        return None
