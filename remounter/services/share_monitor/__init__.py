"""
Share Monitor Module - health tracking and remount decisions.

Components:
- ShareController: Per-share health state machine and backoff bookkeeping
- MonitorLoop: Periodic tick that fans out to every ShareController
- backoff_delay: Capped exponential backoff between failed remounts
"""

from .backoff import backoff_delay
from .monitor_loop import MonitorLoop, UnknownShareError
from .share_controller import ShareController

__all__ = ["MonitorLoop", "ShareController", "UnknownShareError", "backoff_delay"]
