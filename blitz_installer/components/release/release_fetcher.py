# blitz_installer/components/release/release_fetcher.py
# -*- coding: utf-8 -*-
"""
Release bundle retrieval.

The install root is replaced wholesale on every run: it is deleted,
recreated, and filled from the platform bundle plus the geo data files,
which are fetched from their own sources rather than taken from the bundle.
"""

import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from blitz_installer.common.command_utils import get_symbols, log_step
from blitz_installer.common.file_utils import make_executable, recreate_directory
from blitz_installer.common.network_utils import download_file, extract_zip_archive
from blitz_installer.common.system_utils import get_machine_type
from blitz_installer.config_models import AppSettings
from blitz_installer.errors import ArtifactFetchFailure
from blitz_installer.models import InstallTarget

INSTALL_TARGET_KEY = "install_target"


class ReleaseFetcher:
    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.settings = app_settings.release
        self.logger = logger or logging.getLogger(__name__)
        self.symbols = get_symbols(app_settings)

    def resolve_arch_tag(self, machine_type: str) -> str:
        """
        Map a raw machine type to the release architecture tag. Unknown
        machine types are passed through unchanged.
        """
        arch_tag = self.settings.arch_map.get(machine_type)
        if arch_tag is None:
            log_step(
                f"{self.symbols['warning']} Unrecognized machine type '{machine_type}'; "
                "using it as the release architecture unchanged.",
                "warning",
                self.logger,
                self.app_settings,
            )
            return machine_type
        return arch_tag

    def build_target(self, machine_type: Optional[str] = None) -> InstallTarget:
        arch_tag = self.resolve_arch_tag(machine_type or get_machine_type())
        return InstallTarget(
            install_root=self.app_settings.install_root,
            arch_tag=arch_tag,
            artifact_url=self.settings.url_template.format(arch=arch_tag),
        )

    def _download_bundle(self, target: InstallTarget) -> None:
        temp_dir = Path(tempfile.mkdtemp(prefix="blitz-release-"))
        archive_path = temp_dir / target.archive_name
        try:
            if not download_file(
                target.artifact_url,
                archive_path,
                timeout=self.app_settings.download_timeout_seconds,
                current_logger=self.logger,
            ):
                raise ArtifactFetchFailure(
                    f"Failed to download release bundle from {target.artifact_url}"
                )
            if not extract_zip_archive(archive_path, target.install_root, self.logger):
                raise ArtifactFetchFailure(
                    f"Failed to extract {target.archive_name} into {target.install_root}"
                )
        finally:
            if archive_path.is_file():
                archive_path.unlink()
            temp_dir.rmdir()

    def _download_geo_data(self, target: InstallTarget) -> List[str]:
        log_step(
            f"{self.symbols['info']} Downloading Geo-data files...",
            "info",
            self.logger,
            self.app_settings,
        )
        fetched = []
        for file_name, url in self.settings.geo_files.items():
            if download_file(
                url,
                target.install_root / file_name,
                timeout=self.app_settings.download_timeout_seconds,
                current_logger=self.logger,
            ):
                fetched.append(file_name)
                continue
            if self.settings.geo_data_required:
                raise ArtifactFetchFailure(f"Failed to download {file_name} from {url}")
            log_step(
                f"{self.symbols['warning']} Continuing without {file_name}.",
                "warning",
                self.logger,
                self.app_settings,
            )
        return fetched

    def _fix_permissions(self, target: InstallTarget) -> None:
        for relative_path in self.settings.executable_paths:
            path = target.install_root / relative_path
            if path.is_file():
                make_executable(path)
                log_step(f"Marked {path} executable", "debug", self.logger, self.app_settings)

    def fetch_and_place(self, machine_type: Optional[str] = None) -> InstallTarget:
        """
        Replace the install root with a fresh copy of the release.

        Raises:
            ArtifactFetchFailure: The bundle (or required geo data) could
                not be downloaded or extracted. The install root is left as
                it was at that point, possibly empty.
        """
        target = self.build_target(machine_type)
        log_step(
            f"{self.symbols['info']} Downloading Blitz panel ({target.arch_tag})...",
            "info",
            self.logger,
            self.app_settings,
        )
        recreate_directory(target.install_root, self.app_settings, self.logger)
        self._download_bundle(target)
        self._download_geo_data(target)
        self._fix_permissions(target)
        log_step(
            f"{self.symbols['success']} Release placed in {target.install_root}",
            "success",
            self.logger,
            self.app_settings,
        )
        return target


def fetch_release(
    app_settings: AppSettings,
    context: Dict[str, Any],
    current_logger: Optional[logging.Logger] = None,
) -> InstallTarget:
    """ARTIFACT_FETCH stage."""
    target = ReleaseFetcher(app_settings, current_logger).fetch_and_place()
    context[INSTALL_TARGET_KEY] = target
    return target
