# tests/components/test_python_env_builder.py
# -*- coding: utf-8 -*-
import os
import subprocess
from unittest.mock import MagicMock

import pytest

from blitz_installer.components.python_env.python_env_builder import (
    PythonEnvBuilder,
    activated_venv,
    build_python_env,
)
from blitz_installer.errors import RuntimeEnvFailure

MODULE = "blitz_installer.components.python_env.python_env_builder"


class TestActivatedVenv:
    def test_sets_and_restores_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PATH", "/usr/bin")
        monkeypatch.setenv("PYTHONHOME", "/opt/python")
        monkeypatch.delenv("VIRTUAL_ENV", raising=False)
        venv = tmp_path / "venv"

        with activated_venv(venv) as env:
            assert os.environ["VIRTUAL_ENV"] == str(venv)
            assert os.environ["PATH"].split(os.pathsep)[0] == str(venv / "bin")
            assert "PYTHONHOME" not in os.environ
            assert env["VIRTUAL_ENV"] == str(venv)

        assert os.environ["PATH"] == "/usr/bin"
        assert os.environ["PYTHONHOME"] == "/opt/python"
        assert "VIRTUAL_ENV" not in os.environ

    def test_restores_after_error(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PATH", "/usr/bin")
        with pytest.raises(RuntimeError):
            with activated_venv(tmp_path / "venv"):
                raise RuntimeError("pip exploded")
        assert os.environ["PATH"] == "/usr/bin"


@pytest.fixture
def install_root(app_settings):
    root = app_settings.install_root
    root.mkdir(parents=True)
    (root / "requirements.txt").write_text("requests\n")
    return root


def test_build_runs_venv_then_pip(mocker, app_settings, install_root):
    mock_run = mocker.patch(f"{MODULE}.run_command")

    venv_path = PythonEnvBuilder(app_settings, MagicMock()).build()

    assert venv_path == install_root / "hysteria2_venv"
    commands = [c.args[0] for c in mock_run.call_args_list]
    assert commands == [
        ["python3", "-m", "venv", "hysteria2_venv"],
        ["pip", "install", "--no-cache-dir", "--upgrade", "pip"],
        ["pip", "install", "--no-cache-dir", "-r", "requirements.txt"],
    ]
    for c in mock_run.call_args_list:
        assert c.kwargs["cwd"] == install_root
    pip_env = mock_run.call_args_list[2].kwargs["env"]
    assert pip_env["VIRTUAL_ENV"] == str(venv_path)


def test_requirements_failure(mocker, app_settings, install_root):
    def run(command, *args, **kwargs):
        if "-r" in command:
            raise subprocess.CalledProcessError(1, command)
        return MagicMock()

    mocker.patch(f"{MODULE}.run_command", side_effect=run)

    with pytest.raises(RuntimeEnvFailure, match="Pip installation failed"):
        build_python_env(app_settings, {})


def test_missing_requirements_file(mocker, app_settings, install_root):
    (install_root / "requirements.txt").unlink()
    mocker.patch(f"{MODULE}.run_command")

    with pytest.raises(RuntimeEnvFailure, match="not found"):
        build_python_env(app_settings, {})


def test_venv_creation_failure_propagates(mocker, app_settings, install_root):
    mocker.patch(
        f"{MODULE}.run_command",
        side_effect=subprocess.CalledProcessError(1, ["python3", "-m", "venv"]),
    )
    with pytest.raises(subprocess.CalledProcessError):
        build_python_env(app_settings, {})
