"""Platform Factory - platform detection and mounter creation."""

import logging
import platform

from .base_mounter import BaseMounter
from ...config import Settings
from ...core.exceptions import UnsupportedPlatformError


class PlatformFactory:
    """Factory for creating platform-specific mount implementations."""

    def detect_platform(self) -> str:
        """Detect current platform. Returns: macos or linux."""
        system = platform.system().lower()

        if system == "darwin":
            return "macos"
        elif system == "linux":
            return "linux"
        else:
            raise UnsupportedPlatformError(f"Platform {system} not supported for SMB remounting")

    def create_mounter(self, settings: Settings) -> BaseMounter:
        """Create platform-specific mounter instance."""
        platform_name = self.detect_platform()

        if platform_name == "macos":
            from .macos_mounter import MacOSMounter
            mounter = MacOSMounter()
        else:
            from .linux_mounter import LinuxMounter
            mounter = LinuxMounter(mount_options=settings.mount_options)

        logging.info(f"Initialized {mounter.get_platform_name()} mounter")
        return mounter
