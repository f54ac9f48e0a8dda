# blitz_installer/common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions: privilege and host identity checks, OS
release and CPU descriptor parsing, and systemd service control.
"""

import logging
import os
import platform
import subprocess
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Union

from blitz_installer.common.command_utils import (
    command_exists,
    get_symbols,
    log_step,
    run_command,
    run_elevated_command,
)
from blitz_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def is_root() -> bool:
    """Return True when the effective user is root."""
    return os.geteuid() == 0


def get_machine_type() -> str:
    """Raw machine type as reported by uname (e.g. 'x86_64')."""
    return platform.machine()


def parse_os_release(content: str) -> Dict[str, str]:
    """
    Parse os-release KEY=VALUE lines.

    Comments and blank lines are skipped and one level of surrounding single
    or double quotes is stripped from values.
    """
    values: Dict[str, str] = {}
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key.strip()] = value
    return values


def read_os_release(path: Union[str, Path]) -> Dict[str, str]:
    """
    Read and parse an os-release file.

    Raises:
        FileNotFoundError: The file does not exist.
        UnicodeDecodeError: The file is not UTF-8.
    """
    return parse_os_release(Path(path).read_text(encoding="utf-8"))


def parse_cpu_features(content: str) -> FrozenSet[str]:
    """
    Return the CPU flags from cpuinfo text.

    Only the first 'flags' line (x86) or 'Features' line (arm) is used; all
    cores of a host report the same set.
    """
    for line in content.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip().lower() in ("flags", "features"):
            return frozenset(value.split())
    return frozenset()


def read_cpu_features(path: Union[str, Path]) -> FrozenSet[str]:
    return parse_cpu_features(Path(path).read_text(encoding="utf-8", errors="replace"))


def get_os_codename(
    os_release: Dict[str, str],
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    Get the distribution codename (e.g. 'bookworm', 'noble').

    VERSION_CODENAME from os-release is preferred; 'lsb_release -cs' is the
    fallback when the file does not carry one.
    """
    logger_to_use = current_logger if current_logger else module_logger
    codename = os_release.get("VERSION_CODENAME") or os_release.get(
        "UBUNTU_CODENAME"
    )
    if codename:
        return codename

    if not command_exists("lsb_release"):
        return None
    try:
        result = run_command(
            ["lsb_release", "-cs"],
            app_settings,
            capture_output=True,
            current_logger=logger_to_use,
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        symbols = get_symbols(app_settings)
        log_step(
            f"{symbols.get('warning', '!')} Could not determine OS codename: {e}",
            "warning",
            logger_to_use,
            app_settings,
        )
        return None
    return result.stdout.strip() or None


def enable_and_start_service(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Enable a systemd unit at boot and start it now.

    Raises:
        subprocess.CalledProcessError: systemctl failed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    log_step(
        f"{symbols.get('gear', '*')} Enabling and starting service '{service_name}'...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        ["systemctl", "enable", service_name],
        app_settings,
        current_logger=logger_to_use,
    )
    run_elevated_command(
        ["systemctl", "start", service_name],
        app_settings,
        current_logger=logger_to_use,
    )
