# tests/components/test_prerequisites_installer.py
# -*- coding: utf-8 -*-
from unittest.mock import MagicMock

import pytest

from blitz_installer.components.prerequisites.prerequisites_installer import (
    PrerequisitesInstaller,
    free_log_space,
)
from blitz_installer.errors import DependencyInstallFailure


def test_installs_all_packages_in_one_call(app_settings):
    apt = MagicMock()
    apt.install.return_value = True

    PrerequisitesInstaller(app_settings, MagicMock(), apt_manager=apt).install()

    apt.install.assert_called_once_with(
        app_settings.system_packages, app_settings, update_first=True
    )
    for package in ("jq", "curl", "python3-venv", "gnupg", "lsb-release"):
        assert package in apt.install.call_args.args[0]


def test_install_failure_raises(app_settings):
    apt = MagicMock()
    apt.install.return_value = False
    with pytest.raises(DependencyInstallFailure):
        PrerequisitesInstaller(app_settings, MagicMock(), apt_manager=apt).install()


class TestFreeLogSpace:
    def test_truncates_present_logs(self, app_settings):
        btmp, auth_log = app_settings.log_files_to_truncate
        btmp.write_bytes(b"\0" * 4096)

        assert free_log_space(app_settings, {}) == 1
        assert btmp.stat().st_size == 0
        assert not auth_log.exists()

    def test_disabled(self, app_settings):
        btmp = app_settings.log_files_to_truncate[0]
        btmp.write_bytes(b"data")
        app_settings.free_log_space = False

        assert free_log_space(app_settings, {}) == 0
        assert btmp.read_bytes() == b"data"
