import platform
from pathlib import Path, PurePosixPath
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.exceptions import ConfigurationError
from .models import ShareDescriptor
from .utils.host_config import get_hostname_settings_file


class Settings(BaseSettings):
    # SMB server and shares
    smb_host: str = ""
    smb_shares: str = ""  # Comma-separated share names, e.g. "docs,media"
    mount_root: str = ""  # Empty = /Volumes on macOS, /mnt elsewhere
    mount_options: str = ""  # Passed as "-o" to mount.cifs on Linux

    # Post-mount hook
    post_mount_script: Optional[str] = None
    post_mount_script_timeout_seconds: float = 60.0

    # Monitoring cadence and timeouts
    poll_interval_seconds: float = 5.0
    probe_timeout_seconds: float = 5.0
    mount_timeout_seconds: float = 30.0
    unmount_timeout_seconds: float = 10.0

    # Remount backoff: min(max, base * 2^(failures - 1))
    remount_base_delay_seconds: float = 5.0
    remount_max_delay_seconds: float = 300.0

    # Host reachability check before mounting
    check_host_reachability: bool = True
    smb_port: int = 445
    reachability_timeout_seconds: float = 5.0

    # Logging
    log_level: str = "INFO"
    log_file_path: str = "logs/remounter.log"
    log_retention_days: int = 14

    # Status API
    status_api_enabled: bool = True
    status_api_host: str = "127.0.0.1"
    status_api_port: int = 8765

    model_config = SettingsConfigDict(env_file=get_hostname_settings_file())

    @property
    def log_directory(self) -> Path:
        return Path(self.log_file_path).parent

    @property
    def share_names(self) -> List[str]:
        """Share names from the comma-separated setting, whitespace trimmed."""
        return [name.strip() for name in self.smb_shares.split(",") if name.strip()]

    @property
    def effective_mount_root(self) -> str:
        return self.mount_root or default_mount_root()

    @property
    def config_file_info(self) -> dict:
        """Return information about which configuration file is being used."""
        from .utils.host_config import get_hostname, list_all_settings_files

        return {
            "hostname": get_hostname(),
            "active_config_file": get_hostname_settings_file(),
            "all_available_configs": list_all_settings_files(),
        }


def default_mount_root() -> str:
    if platform.system().lower() == "darwin":
        return "/Volumes"
    return "/mnt"


def build_share_descriptors(settings: Settings) -> List[ShareDescriptor]:
    """
    Turn settings into the immutable share list the monitor runs on.

    Raises:
        ConfigurationError: on a missing host, no shares, malformed share
            names, duplicate mount points or invalid backoff parameters.
    """
    host = settings.smb_host.strip()
    if not host:
        raise ConfigurationError("No SMB host configured")

    raw_names = settings.smb_shares.split(",")
    names = settings.share_names
    if not names:
        raise ConfigurationError(f"No SMB shares configured for host {host}")
    if len(names) != len(raw_names):
        raise ConfigurationError(f"Empty share name in share list: {settings.smb_shares!r}")

    if settings.remount_base_delay_seconds <= 0:
        raise ConfigurationError("remount_base_delay_seconds must be positive")
    if settings.remount_max_delay_seconds < settings.remount_base_delay_seconds:
        raise ConfigurationError(
            "remount_max_delay_seconds must be >= remount_base_delay_seconds"
        )

    mount_root = PurePosixPath(settings.effective_mount_root)
    descriptors: List[ShareDescriptor] = []
    seen_mount_points = {}

    for name in names:
        # Shares given as "/share" (path style) are accepted
        share_name = name.strip("/")
        if not share_name or "/" in share_name or "\\" in share_name:
            raise ConfigurationError(f"Invalid share name: {name!r}")

        mount_point = str(mount_root / share_name)
        if mount_point in seen_mount_points:
            raise ConfigurationError(
                f"Shares {seen_mount_points[mount_point]!r} and {share_name!r} "
                f"both target mount point {mount_point}"
            )
        seen_mount_points[mount_point] = share_name

        descriptors.append(
            ShareDescriptor(host=host, share_name=share_name, mount_point=mount_point)
        )

    return descriptors
