"""
Mount Module - OS-facing side of the remounter.

Components:
- BaseMounter: Abstract platform mount primitives
- MacOSMounter / LinuxMounter: Platform implementations
- PlatformFactory: Platform detection and mounter creation
- MountProber: Classifies a share as NotMounted, MountedHealthy or MountedStale
- MountActuator: Unmount/mount cycle for one share
- PostMountHook: Runs the user's script after a successful remount
"""

from .base_mounter import BaseMounter
from .mount_actuator import MountActuator
from .mount_prober import MountProber
from .platform_factory import PlatformFactory
from .post_mount_hook import PostMountHook

__all__ = [
    "BaseMounter",
    "MountActuator",
    "MountProber",
    "PlatformFactory",
    "PostMountHook",
]
