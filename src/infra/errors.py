"""Error types shared by the infrastructure collaborators and the CLI."""

from __future__ import annotations


class DeploymentError(Exception):
    """Raised when a deployment operation fails.

    Attributes:
        message: Short, user-facing description of the failure
        details: Optional longer output (command stderr, recovery hints)
        exit_code: Process exit code the CLI should use for this error
    """

    exit_code: int = 1

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NoInfrastructureChangesError(DeploymentError):
    """A deployment finished without changing any infrastructure.

    Carries the deployer's original failure so callers can report it while
    still treating the run as successful.
    """

    exit_code = 0

    def __init__(self, cause: Exception, details: str | None = None):
        self.cause = cause
        super().__init__(str(cause), details)


class StoreError(DeploymentError):
    """Raised when the configuration store cannot be read or written."""


class NoSuchApplicationError(StoreError):
    def __init__(self, app: str):
        self.app = app
        super().__init__(f"couldn't find an application named {app}")


class NoSuchEnvironmentError(StoreError):
    def __init__(self, app: str, env: str):
        self.app = app
        self.env = env
        super().__init__(
            f"couldn't find environment {env} in the application {app}"
        )


class NoSuchWorkloadError(StoreError):
    def __init__(self, app: str, name: str):
        self.app = app
        self.name = name
        super().__init__(f"couldn't find workload {name} in the application {app}")


class WorkspaceError(DeploymentError):
    """Raised when the local workspace cannot be read."""


class ManifestNotFoundError(WorkspaceError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"manifest file {path} does not exist")
