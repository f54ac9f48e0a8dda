# blitz_installer/common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from blitz_installer.common.command_utils import (
    command_exists,
    run_elevated_command,
)
from blitz_installer.common.network_utils import download_file
from blitz_installer.config_models import AppSettings


class AptManager:
    """
    A small manager for Debian apt packages and sources using the
    command-line tools. Methods return False on failure and log the cause;
    callers decide whether that is fatal.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initializes the AptManager.
        Args:
            logger: An optional logging object.
        """
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("apt-get"):
            self.logger.critical(
                "'apt-get' command not found. This manager cannot function."
            )
            raise FileNotFoundError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    @staticmethod
    def _noninteractive_env() -> Dict[str, str]:
        env = dict(os.environ)
        env["DEBIAN_FRONTEND"] = "noninteractive"
        return env

    def update(self, app_settings: AppSettings) -> bool:
        """
        Refreshes the package index using 'apt-get update'.

        Returns:
            True if successful, False otherwise.
        """
        self.logger.info("Updating apt package lists...")
        try:
            run_elevated_command(
                ["apt-get", "update", "-qq"],
                app_settings,
                current_logger=self.logger,
                env=self._noninteractive_env(),
            )
            return True
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to update apt cache: {e}")
            return False

    def install(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        update_first: bool = True,
    ) -> bool:
        """
        Installs one or more packages in a single 'apt-get install' call.
        Already installed packages are left to apt to skip.

        Args:
            packages: A single package name or a list of package names.
            app_settings: The application settings.
            update_first: Whether to refresh the package index first.

        Returns:
            True if successful, False otherwise.
        """
        if not isinstance(packages, list):
            packages = [packages]
        if not packages:
            self.logger.debug("No packages requested.")
            return True

        if update_first and not self.update(app_settings):
            return False

        self.logger.info(f"Installing packages: {', '.join(packages)}")
        try:
            run_elevated_command(
                ["apt-get", "install", "-y", "-qq"] + packages,
                app_settings,
                current_logger=self.logger,
                env=self._noninteractive_env(),
            )
            return True
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            self.logger.error(f"Failed to install packages: {e}")
            return False

    def add_repository_line(
        self,
        repo_file: Union[str, Path],
        repo_line: str,
        app_settings: AppSettings,
        update_after: bool = True,
    ) -> bool:
        """
        Writes a one-line-style apt source file, replacing any previous
        content of that file.

        Args:
            repo_file: Destination under /etc/apt/sources.list.d.
            repo_line: The 'deb ...' line.
            app_settings: The application settings.
            update_after: Whether to refresh the package index afterwards.

        Returns:
            True if successful, False otherwise.
        """
        repo_path = Path(repo_file)
        self.logger.info(f"Adding apt source {repo_path}")
        try:
            repo_path.parent.mkdir(parents=True, exist_ok=True)
            repo_path.write_text(repo_line.rstrip("\n") + "\n", encoding="utf-8")
            repo_path.chmod(0o644)
        except OSError as e:
            self.logger.error(f"Failed to write repository file '{repo_path}': {e}")
            return False

        if update_after:
            return self.update(app_settings)
        return True

    def add_gpg_key_from_url(
        self,
        key_url: str,
        keyring_path: Union[str, Path],
        app_settings: AppSettings,
    ) -> bool:
        """
        Downloads an ASCII-armored key and stores it dearmored in a keyring
        file readable by apt.

        Args:
            key_url: The URL of the GPG key.
            keyring_path: The path to save the keyring file.
            app_settings: The application settings.

        Returns:
            True if successful, False otherwise.
        """
        keyring = Path(keyring_path)
        self.logger.info(f"Adding GPG key from {key_url} to {keyring}")

        fd, temp_key_path = tempfile.mkstemp(suffix=".asc")
        os.close(fd)
        try:
            if not download_file(
                key_url,
                temp_key_path,
                timeout=app_settings.download_timeout_seconds,
                current_logger=self.logger,
            ):
                return False
            keyring.parent.mkdir(parents=True, exist_ok=True)
            run_elevated_command(
                ["gpg", "--batch", "--yes", "--dearmor", "-o", str(keyring), temp_key_path],
                app_settings,
                current_logger=self.logger,
            )
            keyring.chmod(0o644)
            self.logger.info("GPG key added and permissions set.")
            return True
        except (subprocess.CalledProcessError, OSError) as e:
            self.logger.error(f"Failed to add GPG key: {e}")
            return False
        finally:
            if os.path.exists(temp_key_path):
                os.unlink(temp_key_path)
