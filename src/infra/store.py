"""Configuration store for applications, environments and workloads.

The store is the source of truth for what has been initialized in an
application. It is backed by a single YAML document:

    applications:
      my-app:
        environments:
          test: {}
        workloads:
          fe:
            type: Load Balanced Web Service
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import yaml
from loguru import logger

from src.infra.errors import (
    NoSuchApplicationError,
    NoSuchEnvironmentError,
    NoSuchWorkloadError,
    StoreError,
)


@dataclass(frozen=True)
class Application:
    """A named group of environments and workloads."""

    name: str


@dataclass(frozen=True)
class Workload:
    """A deployable service or job registered in an application."""

    app: str
    name: str
    type: str


@dataclass(frozen=True)
class Environment:
    """A deployment environment registered in an application."""

    app: str
    name: str


class WorkloadCatalog(Protocol):
    """Read-only registry of the workloads known to an application."""

    def list_workloads(self, app: str) -> list[Workload]: ...


class ConfigStore(WorkloadCatalog, Protocol):
    def get_application(self, name: str) -> Application: ...

    def list_applications(self) -> list[Application]: ...

    def create_application(self, app: Application) -> None: ...

    def delete_application(self, name: str) -> None: ...

    def get_environment(self, app: str, name: str) -> Environment: ...

    def list_environments(self, app: str) -> list[Environment]: ...

    def create_environment(self, env: Environment) -> None: ...

    def delete_environment(self, app: str, name: str) -> None: ...

    def get_workload(self, app: str, name: str) -> Workload: ...

    def create_workload(self, workload: Workload) -> None: ...

    def delete_workload(self, app: str, name: str) -> None: ...


class LocalConfigStore:
    """YAML file backed implementation of ConfigStore.

    Every call re-reads the file so that separate CLI invocations (and
    separate store instances) always observe each other's writes.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    # =========================================================================
    # Applications
    # =========================================================================

    def get_application(self, name: str) -> Application:
        if name not in self._applications(self._read()):
            raise NoSuchApplicationError(name)
        return Application(name=name)

    def list_applications(self) -> list[Application]:
        return [Application(name=name) for name in sorted(self._applications(self._read()))]

    def create_application(self, app: Application) -> None:
        """Register an application; a no-op if it already exists."""
        data = self._read()
        if app.name in self._applications(data):
            logger.debug(f"Application {app.name} already exists")
            return
        self._editable_app_section(data, app.name)
        self._write(data)
        logger.info(f"Created application {app.name}")

    def delete_application(self, name: str) -> None:
        """Remove an application together with its environments and workloads.

        Raises:
            NoSuchApplicationError: If the application is not registered
        """
        data = self._read()
        apps = self._applications(data)
        if name not in apps:
            raise NoSuchApplicationError(name)
        del apps[name]
        self._write(data)
        logger.info(f"Deleted application {name}")

    # =========================================================================
    # Environments
    # =========================================================================

    def get_environment(self, app: str, name: str) -> Environment:
        envs = self._entries(self._read(), app, "environments")
        if name not in envs:
            raise NoSuchEnvironmentError(app, name)
        return Environment(app=app, name=name)

    def list_environments(self, app: str) -> list[Environment]:
        envs = self._entries(self._read(), app, "environments")
        return [Environment(app=app, name=name) for name in sorted(envs)]

    def create_environment(self, env: Environment) -> None:
        """Register an environment; a no-op if it already exists."""
        data = self._read()
        envs = self._editable_entries(data, env.app, "environments")
        if env.name in envs:
            logger.debug(f"Environment {env.name} already exists in {env.app}")
            return
        envs[env.name] = {}
        self._write(data)
        logger.info(f"Created environment {env.name} in application {env.app}")

    def delete_environment(self, app: str, name: str) -> None:
        data = self._read()
        envs = self._entries(data, app, "environments")
        if name not in envs:
            raise NoSuchEnvironmentError(app, name)
        del envs[name]
        self._write(data)
        logger.info(f"Deleted environment {name} from application {app}")

    # =========================================================================
    # Workloads
    # =========================================================================

    def get_workload(self, app: str, name: str) -> Workload:
        workloads = self._entries(self._read(), app, "workloads")
        if name not in workloads:
            raise NoSuchWorkloadError(app, name)
        return self._to_workload(app, name, workloads[name])

    def list_workloads(self, app: str) -> list[Workload]:
        workloads = self._entries(self._read(), app, "workloads")
        return [
            self._to_workload(app, name, workloads[name]) for name in sorted(workloads)
        ]

    def create_workload(self, workload: Workload) -> None:
        """Register a workload; a no-op if it already exists."""
        data = self._read()
        workloads = self._editable_entries(data, workload.app, "workloads")
        if workload.name in workloads:
            logger.debug(f"Workload {workload.name} already exists in {workload.app}")
            return
        workloads[workload.name] = {"type": workload.type}
        self._write(data)
        logger.info(
            f"Created {workload.type} {workload.name} in application {workload.app}"
        )

    def delete_workload(self, app: str, name: str) -> None:
        data = self._read()
        workloads = self._entries(data, app, "workloads")
        if name not in workloads:
            raise NoSuchWorkloadError(app, name)
        del workloads[name]
        self._write(data)
        logger.info(f"Deleted workload {name} from application {app}")

    # =========================================================================
    # File access
    # =========================================================================

    def _applications(self, data: dict[str, Any]) -> dict[str, Any]:
        apps = data.get("applications")
        if apps is None:
            apps = data["applications"] = {}
        if not isinstance(apps, dict):
            raise StoreError(f"parse store {self.path}: 'applications' is not a mapping")
        return apps

    def _app_section(self, data: dict[str, Any], app: str) -> dict[str, Any]:
        section = self._applications(data).get(app)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise StoreError(f"parse store {self.path}: application {app} is not a mapping")
        return section

    def _entries(self, data: dict[str, Any], app: str, key: str) -> dict[str, Any]:
        entries = self._app_section(data, app).get(key)
        if entries is None:
            return {}
        if not isinstance(entries, dict):
            raise StoreError(f"parse store {self.path}: {app}.{key} is not a mapping")
        return entries

    def _editable_app_section(self, data: dict[str, Any], app: str) -> dict[str, Any]:
        apps = self._applications(data)
        if apps.get(app) is None:
            apps[app] = {}
        return self._app_section(data, app)

    def _editable_entries(self, data: dict[str, Any], app: str, key: str) -> dict[str, Any]:
        section = self._editable_app_section(data, app)
        if section.get(key) is None:
            section[key] = {}
        return self._entries(data, app, key)

    @staticmethod
    def _to_workload(app: str, name: str, raw: Any) -> Workload:
        wkld_type = raw.get("type", "") if isinstance(raw, dict) else ""
        return Workload(app=app, name=name, type=wkld_type)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.debug(f"Store file {self.path} does not exist yet")
            return {}
        try:
            loaded = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise StoreError(f"read store {self.path}: {e}") from e
        except yaml.YAMLError as e:
            raise StoreError(f"parse store {self.path}", details=str(e)) from e
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise StoreError(f"parse store {self.path}: expected a mapping")
        return loaded

    def _write(self, data: dict[str, Any]) -> None:
        # Replace atomically; the store is never left half written
        temp_path = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)
            temp_path.replace(self.path)
        except OSError as e:
            raise StoreError(f"write store {self.path}: {e}") from e
