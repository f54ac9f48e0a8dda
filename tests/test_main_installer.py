# tests/test_main_installer.py
# -*- coding: utf-8 -*-
"""
End-to-end runs of the provisioning pipeline against a simulated host.

Every path the installer touches lives under tmp_path. Commands, HTTP and
the final exec are replaced by fakes that record what was asked of them.
"""

import io
import logging
import subprocess
import zipfile
from unittest.mock import MagicMock

import pytest
import requests

from blitz_installer.common.orchestrator import PipelineState
from blitz_installer.common.run_lock import run_locked
from blitz_installer.components.shell.alias_installer import build_alias_line
from blitz_installer.main_installer import (
    build_orchestrator,
    main,
    parse_args,
    run_pipeline,
)

CPUINFO_WITHOUT_AVX = "processor\t: 0\nflags\t\t: fpu vme de pse sse sse2 aes\n"


def _bundle_bytes():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        menu = zipfile.ZipInfo("menu.sh")
        menu.external_attr = 0o100755 << 16
        zf.writestr(menu, "#!/bin/bash\necho menu\n")
        zf.writestr("requirements.txt", "requests\n")
        zf.writestr("core/scripts/auth/user_auth", "#!/bin/sh\n")
    return buffer.getvalue()


class FakeHost:
    """Records commands and serves downloads for one simulated host."""

    def __init__(self):
        self.commands = []
        self.installed = {"apt-get", "gpg", "systemctl", "lsb_release", "python3"}
        self.failing_commands = []
        self.failing_urls = set()
        self.downloads = []
        self.bundle = _bundle_bytes()

    def which(self, name, *args, **kwargs):
        return f"/usr/bin/{name}" if name in self.installed else None

    def run(self, command, **kwargs):
        self.commands.append(list(command))
        for predicate in self.failing_commands:
            if predicate(command):
                raise subprocess.CalledProcessError(1, command, "", "simulated failure")
        if command[0] == "gpg":
            keyring = command[command.index("-o") + 1]
            with open(keyring, "wb") as f:
                f.write(b"dearmored key")
        if command[:2] == ["apt-get", "install"] and "mongodb-org" in command:
            self.installed.add("mongod")
        return subprocess.CompletedProcess(command, 0, "", "")

    def get(self, url, **kwargs):
        self.downloads.append(url)
        if url in self.failing_urls:
            raise requests.exceptions.ConnectionError(f"cannot reach {url}")
        response = MagicMock()
        if url.endswith(".zip"):
            response.iter_content.return_value = [self.bundle]
        elif url.endswith(".asc"):
            response.iter_content.return_value = [b"-----BEGIN PGP PUBLIC KEY BLOCK-----"]
        else:
            response.iter_content.return_value = [b"geo data"]
        return response

    def apt_installs(self):
        return [c for c in self.commands if c[:2] == ["apt-get", "install"]]


@pytest.fixture
def host(mocker, monkeypatch, tmp_path):
    fake = FakeHost()
    monkeypatch.chdir(tmp_path)
    mocker.patch("os.geteuid", return_value=0)
    mocker.patch("shutil.which", side_effect=fake.which)
    mocker.patch(
        "blitz_installer.common.command_utils.subprocess.run", side_effect=fake.run
    )
    mocker.patch(
        "blitz_installer.common.network_utils.requests.get", side_effect=fake.get
    )
    fake.execv = mocker.patch(
        "blitz_installer.components.launcher.menu_launcher.os.execv"
    )
    mocker.patch(
        "blitz_installer.components.release.release_fetcher.get_machine_type",
        return_value="x86_64",
    )
    return fake


def test_fresh_host_is_provisioned(host, app_settings, caplog):
    app_settings.os_release_path.write_text(
        'ID=ubuntu\nVERSION_ID="24.04"\nVERSION_CODENAME=noble\n'
    )

    with caplog.at_level(logging.INFO):
        exit_code = run_pipeline(app_settings)

    assert exit_code == 0
    system_install = host.apt_installs()[0]
    for package in app_settings.system_packages:
        assert package in system_install

    repo_line = app_settings.mongodb.repo_file.read_text()
    assert "repo.mongodb.org/apt/ubuntu noble/mongodb-org/8.0 multiverse" in repo_line
    assert ["systemctl", "enable", "mongod"] in host.commands
    assert ["systemctl", "start", "mongod"] in host.commands

    root = app_settings.install_root
    assert (root / "menu.sh").is_file()
    assert (root / "geoip.dat").is_file()
    assert (root / "geosite.dat").is_file()
    assert ["python3", "-m", "venv", "hysteria2_venv"] in host.commands
    assert ["pip", "install", "--no-cache-dir", "-r", "requirements.txt"] in host.commands

    profile = app_settings.shell.profile_path.read_text()
    assert profile.count(build_alias_line(app_settings)) == 1

    entry = str(root / "menu.sh")
    host.execv.assert_called_once_with(entry, [entry])
    assert "Launching Blitz Menu..." in caplog.text


def test_host_without_avx_is_rejected_before_installing(host, app_settings, caplog):
    app_settings.cpuinfo_path.write_text(CPUINFO_WITHOUT_AVX)

    exit_code = run_pipeline(app_settings)

    assert exit_code == 10
    assert not any(c[0] == "apt-get" for c in host.commands)
    assert not app_settings.install_root.exists()
    assert "CPU DOES NOT support AVX" in caplog.text
    assert app_settings.nodb_install_hint in caplog.text
    host.execv.assert_not_called()


def test_second_run_keeps_mongodb_and_replaces_install_root(host, app_settings):
    assert run_pipeline(app_settings) == 0
    app_settings.mongodb.repo_file.unlink()
    (app_settings.install_root / "sentinel").write_text("left behind")
    installs_before = len(host.apt_installs())

    assert run_pipeline(app_settings) == 0

    assert not app_settings.mongodb.repo_file.exists()
    assert not any("mongodb-org" in c for c in host.apt_installs()[installs_before:])
    assert not (app_settings.install_root / "sentinel").exists()
    assert (app_settings.install_root / "menu.sh").is_file()
    profile = app_settings.shell.profile_path.read_text()
    assert profile.count(build_alias_line(app_settings)) == 1


def test_requirements_failure_stops_before_alias_and_launch(host, app_settings, caplog):
    host.failing_commands.append(lambda command: "-r" in command)

    exit_code = run_pipeline(app_settings)

    assert exit_code == 40
    assert not app_settings.shell.profile_path.exists()
    host.execv.assert_not_called()
    assert "Pip installation failed" in caplog.text
    assert "Halting at stage 'RUNTIME_ENV' (runtime_env_failure)." in caplog.text


def test_bundle_download_failure(host, app_settings):
    host.failing_urls.add(
        "https://github.com/ReturnFI/Blitz/releases/latest/download/Blitz-amd64.zip"
    )
    exit_code = run_pipeline(app_settings)

    assert exit_code == 30
    assert list(app_settings.install_root.iterdir()) == []
    assert not any(c[0] == "pip" for c in host.commands)


def test_damaged_bundle_is_an_artifact_failure(host, app_settings, corrupt_zip_bytes, caplog):
    host.bundle = corrupt_zip_bytes

    assert run_pipeline(app_settings) == 30
    assert "Halting at stage 'ARTIFACT_FETCH' (artifact_fetch_failure)." in caplog.text
    assert not any(c[0] == "pip" for c in host.commands)


def test_system_package_failure(host, app_settings):
    host.failing_commands.append(
        lambda command: command[:2] == ["apt-get", "install"] and "jq" in command
    )
    assert run_pipeline(app_settings) == 20
    assert not app_settings.install_root.exists()


def test_mongodb_service_start_failure(host, app_settings, caplog):
    host.failing_commands.append(lambda command: command[:2] == ["systemctl", "start"])

    assert run_pipeline(app_settings) == 20
    assert "Failed to enable/start service 'mongod'" in caplog.text
    assert "Halting at stage 'DB_ENGINE' (dependency_install_failure)." in caplog.text
    assert not app_settings.install_root.exists()


def test_non_root_is_rejected(host, app_settings, mocker, caplog):
    mocker.patch("os.geteuid", return_value=1000)
    assert run_pipeline(app_settings) == 10
    assert "This script must be run as root." in caplog.text
    assert host.commands == []


def test_unsupported_os(host, app_settings, caplog):
    app_settings.os_release_path.write_text('ID=fedora\nVERSION_ID="40"\n')
    assert run_pipeline(app_settings) == 10
    assert "Unsupported OS: fedora 40" in caplog.text


def test_log_cleanup_failure_is_not_fatal(host, app_settings, mocker):
    mocker.patch(
        "blitz_installer.components.prerequisites.prerequisites_installer.truncate_files",
        side_effect=OSError("read-only file system"),
    )
    assert run_pipeline(app_settings) == 0


def test_concurrent_run_refused(host, app_settings):
    with run_locked(app_settings.lock_file):
        assert run_pipeline(app_settings) == 60
    assert host.commands == []


def test_check_command_only_inspects(host, app_settings):
    assert run_pipeline(app_settings, command="check") == 0
    assert host.commands == []
    assert not app_settings.install_root.exists()


def test_no_launch(host, app_settings):
    app_settings.launch = False
    assert run_pipeline(app_settings) == 0
    host.execv.assert_not_called()


class TestBuildOrchestrator:
    def test_install_stages(self, app_settings, mock_logger):
        orchestrator = build_orchestrator(app_settings, mock_logger)
        stages = [(t["stage"], t["fatal"]) for t in orchestrator.tasks]
        assert stages == [
            (PipelineState.PRECONDITIONS, True),
            (PipelineState.LOG_CLEANUP, False),
            (PipelineState.SYSTEM_DEPS, True),
            (PipelineState.DB_ENGINE, True),
            (PipelineState.ARTIFACT_FETCH, True),
            (PipelineState.RUNTIME_ENV, True),
            (PipelineState.ALIAS, False),
            (PipelineState.LAUNCH, True),
        ]

    def test_check_stages(self, app_settings, mock_logger):
        orchestrator = build_orchestrator(app_settings, mock_logger, "check")
        assert [t["stage"] for t in orchestrator.tasks] == [PipelineState.PRECONDITIONS]


class TestCli:
    def test_default_command_is_install(self):
        args = parse_args([])
        assert args.command == "install"
        assert args.verbose is False

    def test_check_with_options(self):
        args = parse_args(["-v", "--no-launch", "check"])
        assert args.command == "check"
        assert args.verbose and args.no_launch

    def test_main_wires_settings_logging_and_pipeline(self, mocker, app_settings):
        mocker.patch(
            "blitz_installer.main_installer.load_app_settings", return_value=app_settings
        )
        mock_logger = MagicMock()
        mock_setup = mocker.patch(
            "blitz_installer.main_installer.setup_logging", return_value=mock_logger
        )
        mock_run = mocker.patch(
            "blitz_installer.main_installer.run_pipeline", return_value=40
        )

        assert main(["-v", "check"]) == 40

        mock_setup.assert_called_once_with(True, app_settings.log_file)
        mock_run.assert_called_once_with(app_settings, mock_logger, "check")
        banner = mock_logger.info.call_args_list[0].args[0]
        assert "======== Blitz Setup Script" in banner
