# blitz_installer/components/mongodb/mongodb_installer.py
# -*- coding: utf-8 -*-
"""
MongoDB installer.

Registers the vendor apt repository for the validated OS, installs the
server package and enables its service. A mongod binary already on PATH
short-circuits the whole stage.
"""

import logging
import subprocess
from typing import Any, Dict, Optional, Tuple

from blitz_installer.common.command_utils import (
    command_exists,
    get_symbols,
    log_step,
)
from blitz_installer.common.debian.apt_manager import AptManager
from blitz_installer.common.system_utils import enable_and_start_service
from blitz_installer.components.preconditions.preconditions_checker import (
    HOST_PROFILE_KEY,
)
from blitz_installer.config_models import AppSettings
from blitz_installer.errors import (
    DependencyInstallFailure,
    InternalConsistencyError,
)
from blitz_installer.models import HostProfile


class MongoDBInstaller:
    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        apt_manager: Optional[AptManager] = None,
    ):
        self.app_settings = app_settings
        self.settings = app_settings.mongodb
        self.logger = logger or logging.getLogger(__name__)
        self._apt_manager = apt_manager

    @property
    def apt_manager(self) -> AptManager:
        if self._apt_manager is None:
            self._apt_manager = AptManager(logger=self.logger)
        return self._apt_manager

    def is_installed(self) -> bool:
        return command_exists(self.settings.binary)

    def repo_components_for(self, os_id: str) -> Tuple[str, str]:
        """
        (repository base, component) for a validated OS identifier.

        Raises:
            InternalConsistencyError: The OS was not excluded by the
                precondition checks but has no repository mapping.
        """
        try:
            return self.settings.repo_components[os_id]
        except KeyError:
            raise InternalConsistencyError(
                f"No MongoDB repository mapping for OS '{os_id}'; "
                "it should have been rejected by the OS compatibility check."
            ) from None

    def build_repo_line(self, profile: HostProfile) -> str:
        if not profile.os_codename:
            raise DependencyInstallFailure(
                "Cannot determine the OS codename for the MongoDB repository."
            )
        base, component = self.repo_components_for(profile.os_id)
        return (
            f"deb [ arch=amd64,arm64 signed-by={self.settings.keyring_path} ] "
            f"{self.settings.repo_url}/{base} "
            f"{profile.os_codename}/mongodb-org/{self.settings.series} {component}"
        )

    def install(self, profile: HostProfile) -> bool:
        """
        Install and start MongoDB.

        Returns:
            False when MongoDB was already present and nothing was done,
            True after a fresh install.
        """
        symbols = get_symbols(self.app_settings)
        log_step(
            f"{symbols['info']} Installing MongoDB...",
            "info",
            self.logger,
            self.app_settings,
        )
        if self.is_installed():
            log_step(
                f"{symbols['success']} MongoDB already installed",
                "success",
                self.logger,
                self.app_settings,
            )
            return False

        repo_line = self.build_repo_line(profile)
        if not self.apt_manager.add_gpg_key_from_url(
            self.settings.key_url, self.settings.keyring_path, self.app_settings
        ):
            raise DependencyInstallFailure(
                f"Failed to import MongoDB signing key from {self.settings.key_url}"
            )
        if not self.apt_manager.add_repository_line(
            self.settings.repo_file, repo_line, self.app_settings, update_after=True
        ):
            raise DependencyInstallFailure("Failed to register the MongoDB repository.")
        if not self.apt_manager.install(
            [self.settings.package], self.app_settings, update_first=False
        ):
            raise DependencyInstallFailure(
                f"Failed to install package '{self.settings.package}'."
            )
        try:
            enable_and_start_service(self.settings.service, self.app_settings, self.logger)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise DependencyInstallFailure(
                f"Failed to enable/start service '{self.settings.service}'."
            ) from e
        log_step(
            f"{symbols['success']} MongoDB installed and '{self.settings.service}' started.",
            "success",
            self.logger,
            self.app_settings,
        )
        return True


def install_mongodb(
    app_settings: AppSettings,
    context: Dict[str, Any],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """DB_ENGINE stage."""
    profile = context.get(HOST_PROFILE_KEY)
    if profile is None:
        raise InternalConsistencyError(
            "DB_ENGINE stage reached without a host profile."
        )
    return MongoDBInstaller(app_settings, current_logger).install(profile)
