# blitz_installer/models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for the facts gathered while provisioning.

HostProfile is read once by the precondition checker; InstallTarget is
derived once by the release fetcher. Both are immutable for the run.
"""

from pathlib import Path
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field


class HostProfile(BaseModel):
    """Identity and capabilities of the host being provisioned."""

    model_config = ConfigDict(frozen=True)

    os_id: str = Field(description="ID from the os-release file, lower case.")
    os_version: str = Field(description="VERSION_ID from the os-release file.")
    os_codename: Optional[str] = Field(
        default=None, description="VERSION_CODENAME, when known."
    )
    cpu_features: FrozenSet[str] = Field(
        default_factory=frozenset, description="CPU flags of the first processor."
    )


class InstallTarget(BaseModel):
    """Where and what the release fetcher installs."""

    model_config = ConfigDict(frozen=True)

    install_root: Path
    arch_tag: str
    artifact_url: str

    @property
    def archive_name(self) -> str:
        return self.artifact_url.rsplit("/", 1)[-1]
