"""SMB share remounter - keeps network shares mounted and recovers stale mounts."""

__version__ = "0.1.0"
