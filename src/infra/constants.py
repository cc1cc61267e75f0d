"""Deployment constants and configuration.

This module centralizes all magic strings, paths, and configuration values
used throughout the deployment process.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DeploymentConstants:
    """Constants for workspace layout, the config store and deployment.

    This class provides a centralized location for all deployment-related
    constants, making them easy to find, update, and test.

    All attributes are class-level and immutable.
    """

    # Project files
    SETTINGS_FILENAME: str = "stackpilot.yaml"
    ENV_FILENAME: str = ".env"

    # Workspace layout
    WORKSPACE_DIR: str = "stackpilot"
    ENVIRONMENTS_DIR: str = "environments"
    MANIFEST_FILENAME: str = "manifest.yml"

    # Configuration store
    STORE_PATH: str = ".stackpilot/store.yaml"

    # Deployment ordering
    ORDER_SEPARATOR: str = "/"
    MAX_DEPLOY_ORDER: int = 1000

    # Environment variables
    APP_ENV_VAR: str = "STACKPILOT_APP"
    CONFIG_ENV_VAR: str = "STACKPILOT_CONFIG"

    # Default deploy command templates
    WORKLOAD_DEPLOY_COMMAND: tuple[str, ...] = (
        "helm",
        "upgrade",
        "--install",
        "{name}",
        "{manifest_dir}",
        "--namespace",
        "{app}-{env}",
        "--create-namespace",
    )
    ENVIRONMENT_DEPLOY_COMMAND: tuple[str, ...] = (
        "kubectl",
        "apply",
        "-f",
        "{manifest}",
    )


class DeploymentPaths:
    """Path resolver for workspace and store files.

    This class constructs and provides access to all paths needed during
    deployment, derived from the project root.
    """

    def __init__(
        self,
        project_root: Path,
        *,
        workspace_dir: str | None = None,
        store_path: str | None = None,
    ) -> None:
        """Initialize deployment paths.

        Args:
            project_root: Path to the project root directory
            workspace_dir: Workspace directory relative to the project root
            store_path: Store file, relative to the project root unless absolute
        """
        self._project_root = project_root
        self._constants = DEFAULT_CONSTANTS

        self.workspace = project_root / (workspace_dir or self._constants.WORKSPACE_DIR)
        self.environments = self.workspace / self._constants.ENVIRONMENTS_DIR

        store = Path(store_path or self._constants.STORE_PATH)
        self.store = store if store.is_absolute() else project_root / store

    @property
    def project_root(self) -> Path:
        """Get path to project root."""
        return self._project_root

    @property
    def settings_yaml(self) -> Path:
        """Get path to stackpilot.yaml."""
        return self.project_root / self._constants.SETTINGS_FILENAME

    @property
    def env_file(self) -> Path:
        """Get path to .env file."""
        return self.project_root / self._constants.ENV_FILENAME

    def workload_manifest(self, name: str) -> Path:
        """Get path to a workload's manifest."""
        return self.workspace / name / self._constants.MANIFEST_FILENAME

    def environment_manifest(self, name: str) -> Path:
        """Get path to an environment's manifest."""
        return self.environments / name / self._constants.MANIFEST_FILENAME


DEFAULT_CONSTANTS = DeploymentConstants()
