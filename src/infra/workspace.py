"""Local workspace reader.

A workspace is a directory of manifests checked in next to the application
source:

    stackpilot/
      environments/
        test/manifest.yml
      fe/manifest.yml
      worker/manifest.yml
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import yaml
from loguru import logger

from src.infra.constants import DeploymentPaths
from src.infra.errors import ManifestNotFoundError, WorkspaceError


class WorkspaceReader(Protocol):
    def list_workloads(self) -> list[str]: ...

    def list_environments(self) -> list[str]: ...

    def read_workload_manifest(self, name: str) -> dict[str, Any]: ...

    def workload_manifest_path(self, name: str) -> Path: ...

    def environment_manifest_path(self, name: str) -> Path: ...


class Workspace:
    """Discovers and parses manifests under the workspace directory."""

    def __init__(self, paths: DeploymentPaths) -> None:
        self.paths = paths

    def list_workloads(self) -> list[str]:
        """Names of directories holding a workload manifest, sorted."""
        if not self.paths.workspace.is_dir():
            logger.debug(f"Workspace directory {self.paths.workspace} not found")
            return []
        names = [
            entry.name
            for entry in self.paths.workspace.iterdir()
            if entry.is_dir()
            and entry != self.paths.environments
            and self.paths.workload_manifest(entry.name).is_file()
        ]
        return sorted(names)

    def list_environments(self) -> list[str]:
        if not self.paths.environments.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.paths.environments.iterdir()
            if entry.is_dir() and self.paths.environment_manifest(entry.name).is_file()
        )

    def workload_manifest_path(self, name: str) -> Path:
        return self.paths.workload_manifest(name)

    def environment_manifest_path(self, name: str) -> Path:
        return self.paths.environment_manifest(name)

    def read_workload_manifest(self, name: str) -> dict[str, Any]:
        """Parse a workload manifest.

        Raises:
            ManifestNotFoundError: If the workload has no manifest
            WorkspaceError: If the manifest is unreadable or not a mapping
        """
        path = self.workload_manifest_path(name)
        if not path.is_file():
            raise ManifestNotFoundError(str(path))
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise WorkspaceError(f"read manifest for workload {name}", details=str(e)) from e
        if not isinstance(loaded, dict):
            raise WorkspaceError(f"manifest for workload {name} must be a mapping")
        return loaded
