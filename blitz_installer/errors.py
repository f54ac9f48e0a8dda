# blitz_installer/errors.py
# -*- coding: utf-8 -*-
"""
Exception taxonomy for provisioning failures.

Stages raise one of the ProvisioningError subclasses for conditions they
anticipate. Anything else escaping a stage is wrapped by the orchestrator
into UnexpectedCommandFailure. Each class carries the process exit code used
when it ends the run.
"""

from typing import Optional


class ProvisioningError(Exception):
    """Base class for every failure that ends a provisioning run."""

    exit_code: int = 1
    kind: str = "provisioning_failure"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        return self.message


class PreconditionFailure(ProvisioningError):
    """Wrong privilege, unsupported OS or missing CPU feature."""

    exit_code = 10
    kind = "precondition_failure"


class DependencyInstallFailure(ProvisioningError):
    """Package manager, repository or service setup failed."""

    exit_code = 20
    kind = "dependency_install_failure"


class ArtifactFetchFailure(ProvisioningError):
    """Download or extraction of the release bundle failed."""

    exit_code = 30
    kind = "artifact_fetch_failure"


class RuntimeEnvFailure(ProvisioningError):
    """The runtime dependency manifest could not be installed."""

    exit_code = 40
    kind = "runtime_env_failure"


class InternalConsistencyError(ProvisioningError):
    """A value that earlier validation should have excluded reached a later stage."""

    exit_code = 50
    kind = "internal_consistency_error"


class RunLockError(ProvisioningError):
    """Another provisioning run holds the run lock."""

    exit_code = 60
    kind = "run_lock_error"


class UnexpectedCommandFailure(ProvisioningError):
    """Wraps an unanticipated exception raised inside a stage."""

    exit_code = 1
    kind = "unexpected_command_failure"

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, stage)
        self.cause = cause
