"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta

import pytest

from remounter.config import Settings
from remounter.dependencies import reset_singletons
from remounter.models import ShareDescriptor


class FakeClock:
    """Controllable replacement for datetime.now."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before each test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        smb_host="nas.local",
        smb_shares="docs,media",
        mount_root="/mnt/nas",
        poll_interval_seconds=0.01,
        remount_base_delay_seconds=5,
        remount_max_delay_seconds=300,
        check_host_reachability=False,
        log_file_path=str(tmp_path / "logs" / "remounter.log"),
    )


@pytest.fixture
def docs_share():
    return ShareDescriptor(host="nas.local", share_name="docs", mount_point="/mnt/nas/docs")


@pytest.fixture
def media_share():
    return ShareDescriptor(host="nas.local", share_name="media", mount_point="/mnt/nas/media")
