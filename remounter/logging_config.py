import logging
import logging.handlers
from typing import Iterable, Optional

from rich.logging import RichHandler

from . import __version__
from .config import Settings
from .models import ShareDescriptor


def setup_logging(settings: Settings) -> None:
    """Console output through rich plus a daily rotated log file."""
    settings.log_directory.mkdir(parents=True, exist_ok=True)

    console_handler = RichHandler(rich_tracebacks=True)

    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=settings.log_file_path,
        when="midnight",
        backupCount=settings.log_retention_days,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.info(f"Logging to {settings.log_file_path} at level {settings.log_level}")


def build_startup_message(
    host: str,
    descriptors: Iterable[ShareDescriptor],
    post_mount_script: Optional[str],
) -> str:
    lines = [
        f"Starting remounter version {__version__}",
        f"Monitoring SMB shares on {host}:",
    ]
    for descriptor in descriptors:
        lines.append(f" - {descriptor.share_name} -> {descriptor.mount_point}")
    if post_mount_script:
        lines.append(f"Post-mount script: {post_mount_script}")
    return "\n".join(lines)
