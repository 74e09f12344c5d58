"""
Command line entry point.

    remounter HOST SHARES [--post-mount-script PATH] [--mount-root DIR]
              [--poll-interval SECONDS] [--no-api]
"""

import argparse
import asyncio
import logging
import signal
from typing import List, Optional

import uvicorn

from . import __version__
from .config import Settings
from .core.exceptions import ConfigurationError, UnsupportedPlatformError
from .dependencies import configure_settings, get_monitor_loop
from .logging_config import build_startup_message, setup_logging
from .services.share_monitor import MonitorLoop


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="remounter",
        description="Keep SMB shares mounted and remount them when the connection dies.",
    )
    parser.add_argument("host", help="The SMB server to monitor (e.g. nas.local)")
    parser.add_argument("smb_shares", help="The SMB shares to keep mounted (comma-separated)")
    parser.add_argument(
        "-p",
        "--post-mount-script",
        help="Shell command run with sh -c after each successful remount "
        "($1..$3 = host, share, mount point)",
    )
    parser.add_argument(
        "--mount-root", help="Directory the shares are mounted under (default: per platform)"
    )
    parser.add_argument(
        "--poll-interval", type=float, help="Seconds between health checks"
    )
    parser.add_argument(
        "--no-api", action="store_true", help="Do not serve the status API"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Settings from env file and environment, overridden by the command line."""
    overrides = {"smb_host": args.host, "smb_shares": args.smb_shares}
    if args.post_mount_script:
        overrides["post_mount_script"] = args.post_mount_script
    if args.mount_root:
        overrides["mount_root"] = args.mount_root
    if args.poll_interval is not None:
        overrides["poll_interval_seconds"] = args.poll_interval
    if args.no_api:
        overrides["status_api_enabled"] = False
    return Settings(**overrides)


async def run_monitor(monitor: MonitorLoop) -> None:
    """Run the monitor until SIGINT/SIGTERM, then shut down gracefully."""
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_requested.set)

    await monitor.start_monitoring()
    await stop_requested.wait()

    logging.info("Termination signal received, exiting...")
    await monitor.stop_monitoring()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = build_settings(args)
    setup_logging(settings)

    configure_settings(settings)
    try:
        monitor = get_monitor_loop()
    except (ConfigurationError, UnsupportedPlatformError) as e:
        logging.error(f"Error creating remounter: {e}")
        return 1

    logging.info(
        build_startup_message(
            settings.smb_host,
            (controller.descriptor for controller in monitor.controllers),
            settings.post_mount_script,
        )
    )

    if settings.status_api_enabled:
        from .main import app

        logging.info(
            f"Status API on http://{settings.status_api_host}:{settings.status_api_port}"
        )
        uvicorn.run(
            app,
            host=settings.status_api_host,
            port=settings.status_api_port,
            log_config=None,
        )
    else:
        asyncio.run(run_monitor(monitor))

    logging.info("Remounter exited normally")
    return 0
