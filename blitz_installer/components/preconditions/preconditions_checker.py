# blitz_installer/components/preconditions/preconditions_checker.py
# -*- coding: utf-8 -*-
"""
Execution context checks: root privilege, supported OS release and the CPU
features MongoDB needs. Every failure here is fatal and names the unmet
condition. The checks only read the host; the one side effect is installing
a missing helper command, and that happens only after all checks pass.
"""

import logging
from typing import Any, Dict, Optional

from packaging.version import InvalidVersion, Version

from blitz_installer.common.command_utils import (
    command_exists,
    get_symbols,
    log_step,
)
from blitz_installer.common.debian.apt_manager import AptManager
from blitz_installer.common.system_utils import (
    get_os_codename,
    is_root,
    read_cpu_features,
    read_os_release,
)
from blitz_installer.config_models import AppSettings
from blitz_installer.errors import DependencyInstallFailure, PreconditionFailure
from blitz_installer.models import HostProfile

HOST_PROFILE_KEY = "host_profile"


def cpu_feature_present(cpu_features, required_tokens) -> bool:
    """
    True when any CPU flag equals or starts with one of the tokens, so the
    token 'avx512' is satisfied by 'avx512f'.
    """
    return any(
        flag == token or flag.startswith(token)
        for flag in cpu_features
        for token in required_tokens
    )


class PreconditionsChecker:
    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(__name__)
        self.symbols = get_symbols(app_settings)

    def check_privilege(self) -> None:
        """Fail unless running as root."""
        if not is_root():
            raise PreconditionFailure("This script must be run as root.")
        log_step(
            f"{self.symbols['info']} Running with root privileges",
            "info",
            self.logger,
            self.app_settings,
        )

    def read_host_profile(self) -> HostProfile:
        os_release_path = self.app_settings.os_release_path
        try:
            os_release = read_os_release(os_release_path)
        except FileNotFoundError:
            raise PreconditionFailure(
                f"Unsupported OS: {os_release_path} not found."
            ) from None
        except (OSError, UnicodeDecodeError) as e:
            raise PreconditionFailure(
                f"Unsupported OS: cannot read {os_release_path} ({e})."
            ) from e
        try:
            cpu_features = read_cpu_features(self.app_settings.cpuinfo_path)
        except (OSError, UnicodeDecodeError):
            cpu_features = frozenset()

        return HostProfile(
            os_id=os_release.get("ID", "").lower(),
            os_version=os_release.get("VERSION_ID", ""),
            os_codename=os_release.get("VERSION_CODENAME")
            or os_release.get("UBUNTU_CODENAME")
            or None,
            cpu_features=cpu_features,
        )

    def _supported_description(self) -> str:
        return " or ".join(
            f"{os_id.capitalize()} {minimum}+"
            for os_id, minimum in self.app_settings.supported_os.items()
        )

    def check_os(self, profile: HostProfile) -> None:
        """Accept only the configured OS identifiers at or above their minimum version."""
        log_step(
            f"{self.symbols['info']} Checking OS compatibility...",
            "info",
            self.logger,
            self.app_settings,
        )
        unsupported = PreconditionFailure(
            f"Unsupported OS: {profile.os_id or 'unknown'} {profile.os_version or 'unknown'}. "
            f"Supported only on {self._supported_description()}."
        )
        minimum = self.app_settings.supported_os.get(profile.os_id)
        if minimum is None:
            raise unsupported
        try:
            if Version(profile.os_version) < Version(minimum):
                raise unsupported
        except InvalidVersion:
            raise unsupported from None
        log_step(
            f"{self.symbols['success']} OS check passed: {profile.os_id} {profile.os_version}",
            "success",
            self.logger,
            self.app_settings,
        )

    def check_cpu(self, profile: HostProfile) -> None:
        """Require at least one of the configured CPU feature tokens."""
        log_step(
            f"{self.symbols['info']} Checking CPU for AVX support...",
            "info",
            self.logger,
            self.app_settings,
        )
        required = self.app_settings.required_cpu_features
        if not cpu_feature_present(profile.cpu_features, required):
            raise PreconditionFailure(
                f"CPU DOES NOT support AVX (one of {', '.join(required)} is "
                f"required for MongoDB {self.app_settings.mongodb.series}). "
                f"Use the 'nodb' version: {self.app_settings.nodb_install_hint}"
            )
        log_step(
            f"{self.symbols['success']} CPU supports AVX.",
            "success",
            self.logger,
            self.app_settings,
        )

    def ensure_helper_commands(self) -> None:
        missing = {
            command: package
            for command, package in self.app_settings.helper_commands.items()
            if not command_exists(command)
        }
        if not missing:
            return
        packages = sorted(set(missing.values()))
        log_step(
            f"{self.symbols['info']} Installing {', '.join(packages)} package...",
            "info",
            self.logger,
            self.app_settings,
        )
        if not AptManager(logger=self.logger).install(packages, self.app_settings):
            raise DependencyInstallFailure(
                f"Failed to install helper packages: {', '.join(packages)}"
            )

    def check_compatibility(self) -> HostProfile:
        """
        Validate the OS release and CPU features, then make sure helper
        commands exist. Returns the host profile, with the codename filled
        in from lsb_release when os-release did not carry one.
        """
        profile = self.read_host_profile()
        self.check_os(profile)
        self.check_cpu(profile)
        self.ensure_helper_commands()
        if profile.os_codename is None:
            codename = get_os_codename({}, self.app_settings, self.logger)
            profile = profile.model_copy(update={"os_codename": codename})
        return profile


def check_preconditions(
    app_settings: AppSettings,
    context: Dict[str, Any],
    current_logger: Optional[logging.Logger] = None,
) -> HostProfile:
    """PRECONDITIONS stage: privilege, then OS and CPU compatibility."""
    checker = PreconditionsChecker(app_settings, current_logger)
    checker.check_privilege()
    profile = checker.check_compatibility()
    context[HOST_PROFILE_KEY] = profile
    return profile
