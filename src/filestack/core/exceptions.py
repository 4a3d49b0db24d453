"""Deployer exception hierarchy and process exit-code mapping."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from filestack.models.deployment import TeardownReport


class ExitCode(IntEnum):
    OK = 0
    INVALID = 2
    PROVISIONING = 3
    TEARDOWN = 4
    STATE = 5
    UNEXPECTED = 1


class FileStackError(Exception):
    """Base exception for all deployer errors."""

    exit_code: ExitCode = ExitCode.UNEXPECTED


class ConfigValidationError(FileStackError):
    """Deployment input failed validation before any resource was touched."""

    exit_code = ExitCode.INVALID


class DependencyError(FileStackError):
    """The reference graph among resource specs is cyclic or incomplete."""

    exit_code = ExitCode.INVALID


class UnresolvedReferenceError(FileStackError):
    """A resource needed an output its source resource never produced."""

    exit_code = ExitCode.INVALID

    def __init__(self, resource: str, source: str, key: str) -> None:
        self.resource = resource
        self.source = source
        self.key = key
        super().__init__(
            f"Resource {resource!r} references {source}.{key}, which has not been produced"
        )


class AdapterError(FileStackError):
    """A provisioner adapter call failed."""

    exit_code = ExitCode.PROVISIONING

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"[{kind}] {message}")


class ProvisioningError(FileStackError):
    """Applying a resource failed; the deployment pass stopped there."""

    exit_code = ExitCode.PROVISIONING

    def __init__(self, resource: str, cause: BaseException | str) -> None:
        self.resource = resource
        self.cause = cause
        super().__init__(f"Provisioning {resource!r} failed: {cause}")


class TeardownError(FileStackError):
    """One or more resources could not be removed."""

    exit_code = ExitCode.TEARDOWN

    def __init__(self, failures: dict[str, str], report: TeardownReport | None = None) -> None:
        self.failures = failures
        self.report = report
        listed = ", ".join(f"{name}: {cause}" for name, cause in failures.items())
        super().__init__(f"Teardown failed for {len(failures)} resource(s): {listed}")


class StateStoreError(FileStackError):
    """Deployment state could not be read or written."""

    exit_code = ExitCode.STATE


class StateConflictError(StateStoreError):
    """Another pass saved the deployment state first."""

    def __init__(self, deployment_id: str, expected_version: int) -> None:
        self.deployment_id = deployment_id
        self.expected_version = expected_version
        super().__init__(
            f"State for {deployment_id!r} changed concurrently (expected version {expected_version})"
        )


class LockError(FileStackError):
    """The deployment lock could not be acquired or released."""

    exit_code = ExitCode.STATE


def exit_code_for(exc: BaseException | None) -> int:
    """Map the outcome of a deploy/teardown call to a process exit code."""
    if exc is None:
        return int(ExitCode.OK)
    if isinstance(exc, FileStackError):
        return int(exc.exit_code)
    return int(ExitCode.UNEXPECTED)
