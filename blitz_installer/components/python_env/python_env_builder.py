# blitz_installer/components/python_env/python_env_builder.py
# -*- coding: utf-8 -*-
"""
Builds the panel's Python virtual environment inside the install root and
installs the bundle's requirements into it.
"""

import logging
import os
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from blitz_installer.common.command_utils import get_symbols, log_step, run_command
from blitz_installer.config_models import AppSettings
from blitz_installer.errors import RuntimeEnvFailure

_ACTIVATION_VARS = ("VIRTUAL_ENV", "PATH", "PYTHONHOME")


@contextmanager
def activated_venv(venv_path: Path) -> Iterator[Dict[str, str]]:
    """
    Activate a virtual environment for the duration of the block, the way
    its bin/activate script would: VIRTUAL_ENV is set, its bin directory is
    put first on PATH and PYTHONHOME is dropped. The previous values are
    restored on exit, whatever happens inside.

    Yields:
        A copy of the activated environment, for subprocess calls.
    """
    saved = {name: os.environ.get(name) for name in _ACTIVATION_VARS}
    try:
        os.environ["VIRTUAL_ENV"] = str(venv_path)
        os.environ["PATH"] = os.pathsep.join(
            part for part in (str(venv_path / "bin"), saved["PATH"]) if part
        )
        os.environ.pop("PYTHONHOME", None)
        yield dict(os.environ)
    finally:
        for name, value in saved.items():
            if value is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = value


class PythonEnvBuilder:
    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.settings = app_settings.python_env
        self.logger = logger or logging.getLogger(__name__)

    @property
    def install_root(self) -> Path:
        return self.app_settings.install_root

    @property
    def venv_path(self) -> Path:
        return self.app_settings.venv_path

    def create_venv(self) -> None:
        run_command(
            [self.settings.interpreter, "-m", "venv", self.settings.venv_dir_name],
            self.app_settings,
            current_logger=self.logger,
            cwd=self.install_root,
        )

    def build(self) -> Path:
        """
        Create the venv, upgrade its pip and install the requirements.

        Raises:
            RuntimeEnvFailure: The requirements file is missing or pip could
                not install it.
            subprocess.CalledProcessError: venv creation or the pip upgrade
                failed.
        """
        symbols = get_symbols(self.app_settings)
        log_step(
            f"{symbols['info']} Setting up Python venv (this may take a few minutes)...",
            "info",
            self.logger,
            self.app_settings,
        )
        self.create_venv()

        requirements = self.install_root / self.settings.requirements_file
        with activated_venv(self.venv_path) as env:
            run_command(
                ["pip", "install", "--no-cache-dir", "--upgrade", "pip"],
                self.app_settings,
                current_logger=self.logger,
                cwd=self.install_root,
                env=env,
            )
            if not requirements.is_file():
                raise RuntimeEnvFailure(
                    f"Pip installation failed: {requirements} not found."
                )
            try:
                run_command(
                    ["pip", "install", "--no-cache-dir", "-r", self.settings.requirements_file],
                    self.app_settings,
                    current_logger=self.logger,
                    cwd=self.install_root,
                    env=env,
                )
            except subprocess.CalledProcessError as e:
                raise RuntimeEnvFailure(
                    f"Pip installation failed (rc {e.returncode})."
                ) from e

        log_step(
            f"{symbols['success']} Python requirements installed",
            "success",
            self.logger,
            self.app_settings,
        )
        return self.venv_path


def build_python_env(
    app_settings: AppSettings,
    context: Dict[str, Any],
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """RUNTIME_ENV stage."""
    return PythonEnvBuilder(app_settings, current_logger).build()
