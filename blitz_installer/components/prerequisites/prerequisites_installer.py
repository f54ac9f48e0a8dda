# blitz_installer/components/prerequisites/prerequisites_installer.py
# -*- coding: utf-8 -*-
"""
System package prerequisites and pre-install housekeeping.
"""

import logging
from typing import Any, Dict, List, Optional

from blitz_installer.common.command_utils import get_symbols, log_step
from blitz_installer.common.debian.apt_manager import AptManager
from blitz_installer.common.file_utils import truncate_files
from blitz_installer.config_models import AppSettings
from blitz_installer.errors import DependencyInstallFailure


class PrerequisitesInstaller:
    """Installs the fixed list of system packages in one apt call."""

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        apt_manager: Optional[AptManager] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(__name__)
        self.apt_manager = apt_manager or AptManager(logger=self.logger)

    def _get_packages(self) -> List[str]:
        return list(self.app_settings.system_packages)

    def install(self) -> None:
        symbols = get_symbols(self.app_settings)
        packages = self._get_packages()
        log_step(
            f"{symbols['info']} Installing system packages...",
            "info",
            self.logger,
            self.app_settings,
        )
        if not self.apt_manager.install(packages, self.app_settings, update_first=True):
            raise DependencyInstallFailure(
                f"Failed to install system packages: {', '.join(packages)}"
            )
        log_step(
            f"{symbols['success']} System packages installed.",
            "success",
            self.logger,
            self.app_settings,
        )


def install_system_packages(
    app_settings: AppSettings,
    context: Dict[str, Any],
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """SYSTEM_DEPS stage."""
    PrerequisitesInstaller(app_settings, current_logger).install()


def free_log_space(
    app_settings: AppSettings,
    context: Dict[str, Any],
    current_logger: Optional[logging.Logger] = None,
) -> int:
    """LOG_CLEANUP stage: truncate large logs so package installs have room."""
    logger_to_use = current_logger or logging.getLogger(__name__)
    symbols = get_symbols(app_settings)
    if not app_settings.free_log_space:
        log_step("Log cleanup disabled.", "debug", logger_to_use, app_settings)
        return 0
    log_step(
        f"{symbols['info']} Cleaning logs to free up space...",
        "info",
        logger_to_use,
        app_settings,
    )
    return truncate_files(app_settings.log_files_to_truncate, app_settings, logger_to_use)
