"""
Tests for the platform mounters and their bounded liveness check.

Mount commands are replaced by canned CommandResults; the liveness check
runs a real `ls`.
"""

import asyncio
import os
import threading
from unittest.mock import AsyncMock, patch

import pytest

from remounter.core.exceptions import (
    MountFailedError,
    MountTableError,
    ProbeTimeoutError,
    UnmountFailedError,
)
from remounter.models import MountEntry, ShareDescriptor
from remounter.services.mount.linux_mounter import (
    LinuxMounter,
    classify_mount_error,
    parse_proc_mounts,
)
from remounter.services.mount.macos_mounter import MacOSMounter, parse_mount_output
from remounter.utils.process import CommandResult

OK = CommandResult(returncode=0, stdout="", stderr="")

PROC_MOUNTS = """\
sysfs /sys sysfs rw,nosuid,nodev,noexec,relatime 0 0
/dev/sda1 / ext4 rw,relatime 0 0
//nas.local/docs /mnt/nas/docs cifs rw,relatime,vers=3.1.1 0 0
//nas.local/team\\040files /mnt/nas/team\\040files cifs rw 0 0
"""

MACOS_MOUNT_OUTPUT = """\
/dev/disk3s1s1 on / (apfs, sealed, local, read-only, journaled)
devfs on /dev (devfs, local, nobrowse)
//alice@nas.local/docs on /Volumes/docs (smbfs, nodev, nosuid, mounted by alice)
map auto_home on /System/Volumes/Data/home (autofs, automounted, nobrowse)
"""


class TestMountTableParsing:

    def test_proc_mounts_entries(self):
        entries = parse_proc_mounts(PROC_MOUNTS)

        assert MountEntry("//nas.local/docs", "/mnt/nas/docs", "cifs") in entries
        assert len(entries) == 4

    def test_proc_mounts_octal_escapes_are_decoded(self):
        entries = parse_proc_mounts(PROC_MOUNTS)

        assert entries[-1].mount_point == "/mnt/nas/team files"
        assert entries[-1].matches_share("nas.local", "team files")

    def test_macos_mount_output(self):
        entries = parse_mount_output(MACOS_MOUNT_OUTPUT)

        docs = [e for e in entries if e.mount_point == "/Volumes/docs"]
        assert docs == [MountEntry("//alice@nas.local/docs", "/Volumes/docs", "smbfs")]
        assert docs[0].matches_share("nas.local", "docs")

    def test_non_smb_source_never_matches(self):
        entry = MountEntry("/dev/sda1", "/mnt/nas/docs", "ext4")
        assert not entry.matches_share("nas.local", "docs")


class TestMountErrorClassification:

    @pytest.mark.parametrize(
        "stderr,cause",
        [
            ("mount error(13): Permission denied", "authentication failed"),
            ("mount error(112): Host is down", "host unreachable"),
            ("mount error(2): No such file or directory", "share not found"),
            ("mount error(115): Operation now in progress", "connection timed out"),
        ],
    )
    def test_known_errors(self, stderr, cause):
        assert classify_mount_error(stderr).startswith(cause)

    def test_unknown_error_is_passed_through(self):
        assert classify_mount_error("  something odd  ") == "something odd"


class TestLinuxMounter:

    @pytest.fixture
    def docs_share(self):
        return ShareDescriptor(host="nas.local", share_name="docs", mount_point="/mnt/nas/docs")

    @pytest.mark.asyncio
    async def test_mount_command_includes_options(self, docs_share):
        mounter = LinuxMounter(mount_options="credentials=/etc/nas.cred,vers=3.0")
        run = AsyncMock(return_value=OK)

        with (
            patch("remounter.services.mount.linux_mounter.run_command", new=run),
            patch("aiofiles.os.makedirs", new=AsyncMock()) as makedirs,
        ):
            await mounter.mount(docs_share, timeout=30)

        makedirs.assert_awaited_once_with("/mnt/nas/docs", exist_ok=True)
        run.assert_awaited_once_with(
            [
                "mount", "-t", "cifs", "//nas.local/docs", "/mnt/nas/docs",
                "-o", "credentials=/etc/nas.cred,vers=3.0",
            ],
            timeout=30,
        )

    @pytest.mark.asyncio
    async def test_mount_failure_is_classified(self, docs_share):
        failed = CommandResult(returncode=32, stdout="", stderr="mount error(112): Host is down")

        with (
            patch("remounter.services.mount.linux_mounter.run_command", new=AsyncMock(return_value=failed)),
            patch("aiofiles.os.makedirs", new=AsyncMock()),
        ):
            with pytest.raises(MountFailedError) as exc_info:
                await LinuxMounter().mount(docs_share, timeout=30)

        assert exc_info.value.cause.startswith("host unreachable")

    @pytest.mark.asyncio
    async def test_mount_timeout_is_mount_failure(self, docs_share):
        timed_out = CommandResult(returncode=-1, stdout="", stderr="", timed_out=True)

        with (
            patch("remounter.services.mount.linux_mounter.run_command", new=AsyncMock(return_value=timed_out)),
            patch("aiofiles.os.makedirs", new=AsyncMock()),
        ):
            with pytest.raises(MountFailedError) as exc_info:
                await LinuxMounter().mount(docs_share, timeout=30)

        assert "timed out" in exc_info.value.cause

    @pytest.mark.asyncio
    async def test_busy_mount_falls_back_to_lazy_unmount(self):
        busy = CommandResult(returncode=32, stdout="", stderr="umount: /mnt/nas/docs: target is busy.")
        run = AsyncMock(side_effect=[busy, OK])

        with patch("remounter.services.mount.linux_mounter.run_command", new=run):
            await LinuxMounter().unmount("/mnt/nas/docs", timeout=10)

        assert run.await_args_list[0].args[0] == ["umount", "-f", "/mnt/nas/docs"]
        assert run.await_args_list[1].args[0] == ["umount", "-l", "/mnt/nas/docs"]

    @pytest.mark.asyncio
    async def test_unmount_failure_raises(self):
        denied = CommandResult(returncode=1, stdout="", stderr="umount: only root can do that")

        with patch("remounter.services.mount.linux_mounter.run_command", new=AsyncMock(return_value=denied)):
            with pytest.raises(UnmountFailedError) as exc_info:
                await LinuxMounter().unmount("/mnt/nas/docs", timeout=10)

        assert "only root" in exc_info.value.cause


class TestMacOSMounter:

    @pytest.mark.asyncio
    async def test_volumes_mount_uses_osascript(self):
        share = ShareDescriptor(host="nas.local", share_name="docs", mount_point="/Volumes/docs")
        run = AsyncMock(return_value=OK)

        with patch("remounter.services.mount.macos_mounter.run_command", new=run):
            await MacOSMounter().mount(share, timeout=30)

        run.assert_awaited_once_with(
            ["osascript", "-e", 'mount volume "smb://nas.local/docs"'], timeout=30
        )

    @pytest.mark.asyncio
    async def test_custom_mount_point_uses_mount_smbfs(self):
        share = ShareDescriptor(host="nas.local", share_name="docs", mount_point="/Users/alice/nas/docs")
        run = AsyncMock(return_value=OK)

        with patch("remounter.services.mount.macos_mounter.run_command", new=run):
            await MacOSMounter().mount(share, timeout=30)

        run.assert_awaited_once_with(
            ["mount_smbfs", "//nas.local/docs", "/Users/alice/nas/docs"], timeout=30
        )

    @pytest.mark.asyncio
    async def test_unmount_uses_diskutil_force(self):
        run = AsyncMock(return_value=OK)

        with patch("remounter.services.mount.macos_mounter.run_command", new=run):
            await MacOSMounter().unmount("/Volumes/docs", timeout=10)

        run.assert_awaited_once_with(["diskutil", "unmount", "force", "/Volumes/docs"], timeout=10)

    @pytest.mark.asyncio
    async def test_list_mounts_parses_mount_command(self):
        listing = CommandResult(returncode=0, stdout=MACOS_MOUNT_OUTPUT, stderr="")

        with patch("remounter.services.mount.macos_mounter.run_command", new=AsyncMock(return_value=listing)):
            entries = await MacOSMounter().list_mounts()

        assert any(e.mount_point == "/Volumes/docs" for e in entries)


class TestLivenessCheck:

    @pytest.mark.asyncio
    async def test_listable_directory_is_responsive(self, tmp_path):
        assert await LinuxMounter().check_responsive(str(tmp_path), timeout=5) is True

    @pytest.mark.asyncio
    async def test_missing_directory_is_not_responsive(self, tmp_path):
        assert await LinuxMounter().check_responsive(str(tmp_path / "gone"), timeout=5) is False

    @pytest.mark.asyncio
    async def test_regular_file_is_not_responsive(self, tmp_path):
        path = tmp_path / "not-a-dir"
        path.write_text("x")
        assert await LinuxMounter().check_responsive(str(path), timeout=5) is False

    @pytest.mark.asyncio
    async def test_hung_listing_raises_probe_timeout(self, tmp_path):
        timed_out = CommandResult(returncode=-1, stdout="", stderr="", timed_out=True)

        with patch("remounter.services.mount.base_mounter.run_command", new=AsyncMock(return_value=timed_out)):
            with pytest.raises(ProbeTimeoutError):
                await LinuxMounter().check_responsive(str(tmp_path), timeout=5)

    @pytest.mark.asyncio
    async def test_blocked_stat_thread_does_not_stall_check(self, tmp_path):
        blocked = threading.Event()

        async def blocking_isdir(path):
            return await asyncio.get_running_loop().run_in_executor(None, blocked.wait)

        try:
            with patch("aiofiles.os.path.isdir", new=blocking_isdir):
                responsive = await asyncio.wait_for(
                    LinuxMounter().check_responsive(str(tmp_path), timeout=5), timeout=2
                )
        finally:
            blocked.set()

        assert responsive is True


class TestHungListing:
    """A dead SMB session hangs `ls` itself; simulated with an `ls` that sleeps."""

    @pytest.fixture(autouse=True)
    def hanging_ls(self, tmp_path, monkeypatch):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        ls = bin_dir / "ls"
        ls.write_text("#!/bin/sh\nexec sleep 30\n")
        ls.chmod(0o755)
        monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")

    @pytest.mark.asyncio
    async def test_hung_listing_times_out(self, tmp_path):
        with pytest.raises(ProbeTimeoutError):
            await asyncio.wait_for(
                LinuxMounter().check_responsive(str(tmp_path), timeout=0.2), timeout=5
            )

    @pytest.mark.asyncio
    @pytest.mark.skipif(not os.path.exists("/proc/mounts"), reason="needs /proc/mounts")
    async def test_repeated_timeouts_leave_mount_table_readable(self, tmp_path):
        mounter = LinuxMounter()
        for _ in range(20):
            with pytest.raises(ProbeTimeoutError):
                await mounter.check_responsive(str(tmp_path), timeout=0.05)

        entries = await asyncio.wait_for(mounter.list_mounts(), timeout=2)

        assert entries


class TestMountTableBound:

    @pytest.mark.asyncio
    async def test_hung_mount_table_read_is_an_error(self):
        async def never_returns(self):
            await asyncio.Event().wait()

        with (
            patch.object(LinuxMounter, "_read_proc_mounts", new=never_returns),
            patch("remounter.services.mount.linux_mounter._MOUNT_TABLE_TIMEOUT_SECONDS", 0.05),
        ):
            with pytest.raises(MountTableError):
                await LinuxMounter().list_mounts()
