# remounter/core/exceptions.py


class ConfigurationError(Exception):
    """Raised at startup when the share configuration is unusable."""


class UnsupportedPlatformError(Exception):
    """Raised when no mounter exists for the current platform."""


class InvalidTransitionError(Exception):
    """Raised when a share health transition is not allowed."""
    def __init__(self, share: str, from_health: str, to_health: str):
        self.share = share
        self.from_health = from_health
        self.to_health = to_health
        super().__init__(
            f"Invalid health transition for {share}: "
            f"Cannot move from '{from_health}' to '{to_health}'."
        )


class MountTableError(Exception):
    """Raised when the OS mount table cannot be read."""


class ProbeTimeoutError(Exception):
    """Raised when a liveness check on a mount point exceeds its bound."""
    def __init__(self, mount_point: str, timeout_seconds: float):
        self.mount_point = mount_point
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Liveness check on {mount_point} timed out after {timeout_seconds:g}s"
        )


class MountError(Exception):
    """Base class for failed remount attempts."""
    def __init__(self, message: str, cause: str):
        self.cause = cause
        super().__init__(message)


class UnmountFailedError(MountError):
    """The existing mount could not be cleared; the remount attempt is aborted."""
    def __init__(self, mount_point: str, cause: str):
        self.mount_point = mount_point
        super().__init__(f"Unmount of {mount_point} failed: {cause}", cause)


class MountFailedError(MountError):
    """The share could not be mounted."""
    def __init__(self, share: str, cause: str):
        self.share = share
        super().__init__(f"Mount of {share} failed: {cause}", cause)


class HookFailedError(Exception):
    """The post-mount script failed or timed out. Never affects mount state."""
    def __init__(self, script: str, cause: str):
        self.script = script
        self.cause = cause
        super().__init__(f"Post-mount script {script!r} failed: {cause}")
