from typing import Any, Dict, Optional

from .config import Settings, build_share_descriptors
from .services.mount import (
    BaseMounter,
    MountActuator,
    MountProber,
    PlatformFactory,
    PostMountHook,
)
from .services.share_monitor import MonitorLoop

# Global singleton instances
_singletons: Dict[str, Any] = {}


def configure_settings(settings: Settings) -> None:
    """Install CLI-built settings before anything else asks for them."""
    _singletons["settings"] = settings


def get_settings() -> Settings:
    if "settings" not in _singletons:
        _singletons["settings"] = Settings()
    return _singletons["settings"]


def get_mounter() -> BaseMounter:
    if "mounter" not in _singletons:
        _singletons["mounter"] = PlatformFactory().create_mounter(get_settings())
    return _singletons["mounter"]


def get_post_mount_hook() -> Optional[PostMountHook]:
    if "post_mount_hook" not in _singletons:
        settings = get_settings()
        _singletons["post_mount_hook"] = (
            PostMountHook(
                script=settings.post_mount_script,
                timeout_seconds=settings.post_mount_script_timeout_seconds,
            )
            if settings.post_mount_script
            else None
        )
    return _singletons["post_mount_hook"]


def get_mount_prober() -> MountProber:
    if "mount_prober" not in _singletons:
        _singletons["mount_prober"] = MountProber(
            mounter=get_mounter(),
            probe_timeout_seconds=get_settings().probe_timeout_seconds,
        )
    return _singletons["mount_prober"]


def get_mount_actuator() -> MountActuator:
    if "mount_actuator" not in _singletons:
        _singletons["mount_actuator"] = MountActuator(
            settings=get_settings(),
            mounter=get_mounter(),
            prober=get_mount_prober(),
            post_mount_hook=get_post_mount_hook(),
        )
    return _singletons["mount_actuator"]


def get_monitor_loop() -> MonitorLoop:
    if "monitor_loop" not in _singletons:
        settings = get_settings()
        _singletons["monitor_loop"] = MonitorLoop(
            settings=settings,
            descriptors=build_share_descriptors(settings),
            prober=get_mount_prober(),
            actuator=get_mount_actuator(),
        )
    return _singletons["monitor_loop"]


def reset_singletons() -> None:
    _singletons.clear()
