from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthSignal(str, Enum):
    """Result of probing one share's mount point."""

    NOT_MOUNTED = "NotMounted"  # Not an active mount of the expected host/share
    MOUNTED_HEALTHY = "MountedHealthy"  # Mounted and the liveness check passed
    MOUNTED_STALE = "MountedStale"  # Listed as mounted, but the session is dead


class ShareHealth(str, Enum):
    """
    Health state of a share as tracked by its ShareController.

    Workflow: Unknown -> Healthy | Unhealthy | Remounting
    Healthy <-> Unhealthy, Unhealthy -> Remounting -> Healthy | Unhealthy
    """

    UNKNOWN = "Unknown"
    HEALTHY = "Healthy"
    UNHEALTHY = "Unhealthy"
    REMOUNTING = "Remounting"  # Remount in flight; also the per-share mutex


class ShareDescriptor(BaseModel):
    """Immutable configuration for one SMB share."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(..., description="SMB server address or hostname")
    share_name: str = Field(..., description="Name of the exported share")
    mount_point: str = Field(..., description="Local path the share is mounted on")

    @property
    def share_url(self) -> str:
        return f"smb://{self.host}/{self.share_name}"

    @property
    def unc_path(self) -> str:
        return f"//{self.host}/{self.share_name}"

    def __str__(self) -> str:
        return f"{self.unc_path} -> {self.mount_point}"


class ShareState(BaseModel):
    """
    Mutable health bookkeeping for one share.

    Owned exclusively by the share's ShareController.
    """

    health: ShareHealth = Field(default=ShareHealth.UNKNOWN)

    consecutive_failures: int = Field(
        default=0, ge=0, description="Failed remount attempts since the last success"
    )

    next_eligible_attempt: Optional[datetime] = Field(
        default=None, description="Earliest time another remount may be attempted"
    )

    last_mount_succeeded_at: Optional[datetime] = Field(default=None)

    last_signal: Optional[HealthSignal] = Field(
        default=None, description="Result of the most recent probe"
    )

    last_checked_at: Optional[datetime] = Field(default=None)

    last_error: Optional[str] = Field(
        default=None, description="Cause of the most recent failed remount"
    )

    remount_count: int = Field(
        default=0, ge=0, description="Successful remounts since startup"
    )


class ShareStatus(BaseModel):
    """Snapshot of a share for the status API."""

    share: ShareDescriptor
    state: ShareState


@dataclass(frozen=True)
class MountEntry:
    """One line of the OS mount table."""

    source: str
    mount_point: str
    fstype: str

    def matches_share(self, host: str, share_name: str) -> bool:
        """True if source is //[user@]host/share, compared case-insensitively."""
        source = self.source.replace("\\", "/")
        if not source.startswith("//"):
            return False

        authority, _, path = source[2:].partition("/")
        source_host = authority.rpartition("@")[2]
        # smbfs may append ":port" to the host
        source_host = source_host.split(":")[0]

        return (
            source_host.lower() == host.lower()
            and path.strip("/").lower() == share_name.strip("/").lower()
        )
