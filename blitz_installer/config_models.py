# blitz_installer/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for installer configuration.

This module defines the structured settings for the installer, including
defaults, type annotations, and descriptions. Defaults come from the static
constants in 'blitz_installer/config.py'; environment variables prefixed with
'BLITZ_' override them (nested fields use '__', e.g. 'BLITZ_SHELL__ALIAS_NAME').
"""

from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blitz_installer import config as static_config

SYMBOLS_DEFAULT: Dict[str, str] = dict(static_config.SYMBOLS)


class MongoDBSettings(BaseModel):
    """MongoDB package repository and service settings."""

    binary: str = Field(
        default="mongod",
        description="Binary whose presence on PATH marks MongoDB as installed.",
    )
    package: str = Field(default="mongodb-org", description="Apt package to install.")
    service: str = Field(default="mongod", description="systemd service to enable and start.")
    series: str = Field(default=static_config.MONGODB_SERIES, description="MongoDB release series.")
    key_url: str = Field(default=static_config.MONGODB_KEY_URL, description="Repository signing key URL.")
    keyring_path: Path = Field(
        default=static_config.MONGODB_KEYRING_PATH,
        description="Destination of the dearmored signing key.",
    )
    repo_file: Path = Field(
        default=static_config.MONGODB_REPO_FILE,
        description="Apt source file holding the single repository line.",
    )
    repo_url: str = Field(default=static_config.MONGODB_REPO_URL, description="Repository base URL.")
    repo_components: Dict[str, Tuple[str, str]] = Field(
        default_factory=lambda: dict(static_config.MONGODB_REPO_COMPONENTS),
        description="OS identifier -> (repository base, component).",
    )


class ReleaseSettings(BaseModel):
    """Release bundle and auxiliary data download settings."""

    url_template: str = Field(
        default=static_config.RELEASE_URL_TEMPLATE,
        description="Bundle URL; '{arch}' is replaced by the architecture tag.",
    )
    arch_map: Dict[str, str] = Field(
        default_factory=lambda: dict(static_config.ARCH_MAP),
        description="Raw machine type -> architecture tag.",
    )
    geo_files: Dict[str, str] = Field(
        default_factory=lambda: dict(static_config.GEO_FILES),
        description="Geo data file name (in the install root) -> source URL.",
    )
    geo_data_required: bool = Field(
        default=True,
        description="Abort the run when a geo data download fails.",
    )
    executable_paths: List[str] = Field(
        default_factory=lambda: list(static_config.EXECUTABLE_PATHS),
        description="Paths relative to the install root made executable when present.",
    )

    @field_validator("url_template")
    @classmethod
    def _template_has_arch(cls, value: str) -> str:
        if "{arch}" not in value:
            raise ValueError("url_template must contain '{arch}'")
        return value


class PythonEnvSettings(BaseModel):
    """Virtual environment settings for the panel runtime."""

    interpreter: str = Field(default="python3", description="Interpreter used to create the venv.")
    venv_dir_name: str = Field(
        default=static_config.VENV_DIR_NAME,
        description="Venv directory name inside the install root.",
    )
    requirements_file: str = Field(
        default=static_config.REQUIREMENTS_FILE,
        description="Dependency manifest relative to the install root.",
    )


class ShellSettings(BaseModel):
    """Shell profile alias settings."""

    alias_name: str = Field(default=static_config.ALIAS_NAME, description="Alias added to the profile.")
    profile_path: Path = Field(
        default_factory=lambda: Path.home() / ".bashrc",
        description="Shell profile the alias is appended to.",
    )
    match_mode: Literal["substring", "exact"] = Field(
        default="substring",
        description="How an existing alias is detected in the profile.",
    )


class AppSettings(BaseSettings):
    """Main installer settings."""

    model_config = SettingsConfigDict(
        env_prefix="BLITZ_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    install_root: Path = Field(default=static_config.INSTALL_ROOT, description="Install root directory.")
    os_release_path: Path = Field(default=static_config.OS_RELEASE_PATH, description="OS release metadata file.")
    cpuinfo_path: Path = Field(default=static_config.CPUINFO_PATH, description="CPU feature descriptor.")
    supported_os: Dict[str, str] = Field(
        default_factory=lambda: dict(static_config.SUPPORTED_OS),
        description="OS identifier -> minimum version.",
    )
    required_cpu_features: List[str] = Field(
        default_factory=lambda: list(static_config.REQUIRED_CPU_FEATURES),
        description="At least one of these CPU feature tokens must be present.",
    )
    nodb_install_hint: str = Field(
        default=static_config.NODB_INSTALL_HINT,
        description="Alternative install command suggested when the CPU check fails.",
    )
    system_packages: List[str] = Field(
        default_factory=lambda: list(static_config.SYSTEM_PACKAGES),
        description="System packages installed in one batch.",
    )
    helper_commands: Dict[str, str] = Field(
        default_factory=lambda: dict(static_config.HELPER_COMMANDS),
        description="Commands needed by the precondition checker -> providing package.",
    )

    mongodb: MongoDBSettings = Field(default_factory=MongoDBSettings)
    release: ReleaseSettings = Field(default_factory=ReleaseSettings)
    python_env: PythonEnvSettings = Field(default_factory=PythonEnvSettings)
    shell: ShellSettings = Field(default_factory=ShellSettings)

    entry_point: str = Field(default=static_config.ENTRY_POINT, description="Menu script in the install root.")
    launch_delay_seconds: float = Field(default=3.0, ge=0, description="Pause before the menu starts.")
    launch: bool = Field(default=True, description="Hand control to the menu at the end of the run.")
    download_timeout_seconds: float = Field(default=120.0, gt=0, description="Per-request HTTP timeout.")

    free_log_space: bool = Field(default=True, description="Truncate large logs before installing.")
    log_files_to_truncate: List[Path] = Field(
        default_factory=lambda: list(static_config.LOG_FILES_TO_TRUNCATE),
        description="Log files truncated to zero bytes when free_log_space is set.",
    )

    lock_file: Path = Field(default=static_config.DEFAULT_LOCK_FILE, description="Run lock file.")
    log_file: Optional[Path] = Field(default=None, description="Optional JSON log file.")

    symbols: Dict[str, str] = Field(default_factory=lambda: dict(SYMBOLS_DEFAULT))

    @property
    def venv_path(self) -> Path:
        return self.install_root / self.python_env.venv_dir_name

    @property
    def entry_point_path(self) -> Path:
        return self.install_root / self.entry_point
