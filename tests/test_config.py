"""Tests for Settings and turning them into ShareDescriptors."""

from unittest.mock import patch

import pytest

from remounter.config import Settings, build_share_descriptors, default_mount_root
from remounter.core.exceptions import ConfigurationError


def make_settings(**overrides):
    values = {
        "smb_host": "nas.local",
        "smb_shares": "docs,media",
        "mount_root": "/mnt/nas",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestBuildShareDescriptors:

    def test_one_descriptor_per_share(self):
        descriptors = build_share_descriptors(make_settings())

        assert [(d.host, d.share_name, d.mount_point) for d in descriptors] == [
            ("nas.local", "docs", "/mnt/nas/docs"),
            ("nas.local", "media", "/mnt/nas/media"),
        ]

    def test_whitespace_and_path_slashes_are_trimmed(self):
        descriptors = build_share_descriptors(
            make_settings(smb_host=" nas.local ", smb_shares=" docs , /media/ ")
        )

        assert [d.share_name for d in descriptors] == ["docs", "media"]
        assert descriptors[0].host == "nas.local"
        assert descriptors[1].mount_point == "/mnt/nas/media"

    def test_descriptor_paths(self):
        docs = build_share_descriptors(make_settings(smb_shares="docs"))[0]

        assert docs.share_url == "smb://nas.local/docs"
        assert docs.unc_path == "//nas.local/docs"

    def test_platform_default_mount_root(self):
        with patch("remounter.config.platform.system", return_value="Darwin"):
            descriptors = build_share_descriptors(make_settings(mount_root=""))

        assert descriptors[0].mount_point == "/Volumes/docs"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"smb_host": ""},
            {"smb_host": "   "},
            {"smb_shares": ""},
            {"smb_shares": " , "},
            {"smb_shares": "docs,,media"},
            {"smb_shares": "docs/sub"},
            {"smb_shares": "docs\\sub"},
            {"smb_shares": "/"},
            {"smb_shares": "docs,/docs"},
            {"remount_base_delay_seconds": 0},
            {"remount_base_delay_seconds": 10, "remount_max_delay_seconds": 5},
        ],
    )
    def test_invalid_configuration_is_rejected(self, overrides):
        with pytest.raises(ConfigurationError):
            build_share_descriptors(make_settings(**overrides))

    def test_duplicate_mount_point_error_names_both_shares(self):
        with pytest.raises(ConfigurationError) as exc_info:
            build_share_descriptors(make_settings(smb_shares="docs,docs/"))

        assert "both target mount point /mnt/nas/docs" in str(exc_info.value)


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.poll_interval_seconds == 5.0
        assert settings.remount_base_delay_seconds == 5.0
        assert settings.remount_max_delay_seconds == 300.0
        assert settings.post_mount_script is None
        assert settings.smb_port == 445

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SMB_HOST", "files.example.com")
        monkeypatch.setenv("POLL_INTERVAL_SECONDS", "2.5")

        settings = Settings(_env_file=None)

        assert settings.smb_host == "files.example.com"
        assert settings.poll_interval_seconds == 2.5

    def test_share_names_skip_blanks(self):
        assert make_settings(smb_shares=" a, b ,,").share_names == ["a", "b"]

    @pytest.mark.parametrize("system,expected", [("Darwin", "/Volumes"), ("Linux", "/mnt")])
    def test_default_mount_root(self, system, expected):
        with patch("remounter.config.platform.system", return_value=system):
            assert default_mount_root() == expected
