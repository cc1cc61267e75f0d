"""Multi-workload deploy orchestration.

The DeployOrchestrator drives ``stackpilot deploy`` through the
validate → ask → execute lifecycle:

1. Parse and validate the requested workloads (no I/O)
2. Select the environment and, if needed, the workload to deploy
3. Resolve the deployment groups before touching any infrastructure
4. Initialize and deploy the environment when requested
5. Deploy each group in order, one workload at a time

A failed workload lets the rest of its group finish, after which no further
groups are started.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger
from rich.table import Table

from src.infra.constants import DEFAULT_CONSTANTS
from src.infra.errors import (
    DeploymentError,
    NoInfrastructureChangesError,
    NoSuchEnvironmentError,
    NoSuchWorkloadError,
    StoreError,
    WorkspaceError,
)
from src.infra.store import ConfigStore, Environment, Workload

from .order import (
    DeploymentGroup,
    EmptyWorkloadSetError,
    WorkloadToken,
    group_workloads,
    parse_workload_tokens,
    validate_workload_tokens,
)

if TYPE_CHECKING:
    from src.cli.shared.console import CLIConsole
    from src.infra.deployer import Deployer
    from src.infra.workspace import WorkspaceReader


# =============================================================================
# Data Types
# =============================================================================


@dataclass(frozen=True)
class DeployOptions:
    """Flag values for a single ``deploy`` invocation.

    Attributes:
        app: Application name
        env: Environment name, prompted for when None
        workloads: Raw workload tokens (``name`` or ``name/N``)
        deploy_all: Also deploy every other workload in the application
        yes_init_workload: Initialize unregistered workloads (None prompts)
        yes_init_env: Initialize an unregistered environment (None prompts)
        deploy_env: Deploy the environment first (None prompts)
        max_order: Largest accepted order value
    """

    app: str
    env: str | None = None
    workloads: tuple[str, ...] = ()
    deploy_all: bool = False
    yes_init_workload: bool | None = None
    yes_init_env: bool | None = None
    deploy_env: bool | None = None
    max_order: int = DEFAULT_CONSTANTS.MAX_DEPLOY_ORDER


class DeployStatus(str, Enum):
    DEPLOYED = "deployed"
    NO_CHANGES = "no changes"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class WorkloadDeployResult:
    name: str
    group: str
    status: DeployStatus
    message: str = ""


@dataclass
class _EnvState:
    name: str = ""
    exists_in_app: bool = False
    exists_in_ws: bool = False


# =============================================================================
# Orchestrator
# =============================================================================


class DeployOrchestrator:
    """Deploys an environment and an ordered set of workloads.

    Attributes:
        options: Flag values for this invocation
        store: Configuration store, also used as the workload catalog
        workspace: Local manifest reader
        deployer: Executes environment and workload deployments
        console: Output and prompts
    """

    def __init__(
        self,
        options: DeployOptions,
        *,
        store: ConfigStore,
        workspace: WorkspaceReader,
        deployer: Deployer,
        console: CLIConsole,
    ) -> None:
        self.options = options
        self.store = store
        self.workspace = workspace
        self.deployer = deployer
        self.console = console

        self.tokens: list[WorkloadToken] = []
        self.groups: list[DeploymentGroup] = []
        self.env = _EnvState(name=options.env or "")
        self.deploy_env = options.deploy_env
        self.results: list[WorkloadDeployResult] = []

    def run(self) -> list[WorkloadDeployResult]:
        """Validate, ask, then deploy.

        Returns:
            One result per deployed, unchanged, failed or skipped workload

        Raises:
            DeploymentError: On invalid input, a declined prompt, or the
                first workload that failed to deploy
        """
        self.validate()
        self.ask()
        return self.execute()

    # =========================================================================
    # Validate
    # =========================================================================

    def validate(self) -> None:
        if not self.options.app.strip():
            raise DeploymentError("application name is required")
        self.tokens = validate_workload_tokens(
            parse_workload_tokens(self.options.workloads),
            self.options.max_order,
        )

    # =========================================================================
    # Ask
    # =========================================================================

    def ask(self) -> None:
        if not self.env.name:
            self.env.name = self._select_environment()
        if not self.tokens and not self.options.deploy_all:
            self.tokens = [WorkloadToken(name=self._select_workload())]

        self._check_env_exists()
        self.groups = group_workloads(
            self.tokens, self.options.deploy_all, self.store, self.options.app
        )

    def _select_environment(self) -> str:
        app = self.options.app
        try:
            in_app = [env.name for env in self.store.list_environments(app)]
        except StoreError as e:
            raise StoreError(f"get environment name: {e.message}", e.details) from e
        uninitialized = [
            name for name in self.workspace.list_environments() if name not in in_app
        ]

        choices = [(name, "") for name in in_app]
        choices += [(name, "uninitialized") for name in uninitialized]
        if not choices:
            raise DeploymentError(
                f"no environments found in application {app} or the workspace",
                details="Run `stackpilot env init <name>` to create one",
            )
        if len(choices) == 1:
            self.console.info(f"Only found one environment, defaulting to: {choices[0][0]}")
            return choices[0][0]

        choice = self.console.prompt_choice(
            "Select an environment to deploy to", choices
        )
        if choice == 0:
            raise DeploymentError("get environment name: selection cancelled")
        return choices[choice - 1][0]

    def _select_workload(self) -> str:
        names = self.workspace.list_workloads()
        if not names:
            raise EmptyWorkloadSetError()
        if len(names) == 1:
            self.console.info(f"Only found one workload, defaulting to: {names[0]}")
            return names[0]

        choice = self.console.prompt_choice(
            "Select a service or job in your workspace",
            [(name, "") for name in names],
        )
        if choice == 0:
            raise EmptyWorkloadSetError()
        return names[choice - 1]

    def _check_env_exists(self) -> None:
        app, env = self.options.app, self.env.name
        try:
            self.store.get_environment(app, env)
            self.env.exists_in_app = True
        except NoSuchEnvironmentError:
            self.env.exists_in_app = False
        except StoreError as e:
            raise StoreError(
                f"get environment from config store: {e.message}", e.details
            ) from e

        try:
            self.env.exists_in_ws = env in self.workspace.list_environments()
        except OSError as e:
            raise WorkspaceError(f"list environments in workspace: {e}") from e

        if not self.env.exists_in_app and not self.env.exists_in_ws:
            raise DeploymentError(f'environment "{env}" does not exist in the workspace')

    # =========================================================================
    # Execute
    # =========================================================================

    def execute(self) -> list[WorkloadDeployResult]:
        self._print_plan()
        self._maybe_init_env()
        self._maybe_deploy_env()

        failure: DeploymentError | None = None
        for group in self.groups:
            if failure is not None:
                self.results.extend(
                    WorkloadDeployResult(name, group.label, DeployStatus.SKIPPED)
                    for name in group
                )
                continue
            failure = self._deploy_group(group)

        self._print_summary()
        if failure is not None:
            raise failure
        return self.results

    def _maybe_init_env(self) -> None:
        app, env = self.options.app, self.env.name
        if self.env.exists_in_app:
            return

        should_init = self.options.yes_init_env
        if should_init is None:
            should_init = self.console.confirm(
                f'Environment "{env}" does not exist in app "{app}". Initialize it?'
            )
        if not should_init:
            raise DeploymentError(f"env {env} does not exist in app {app}")

        self.store.create_environment(Environment(app=app, name=env))
        self.env.exists_in_app = True
        self.console.ok(f"Initialized environment {env} in app {app}")

        if self.deploy_env is False:
            raise DeploymentError(
                f"environment {env} was initialized but has not been deployed"
            )
        self.deploy_env = True

    def _maybe_deploy_env(self) -> None:
        env = self.env.name
        if not self.env.exists_in_ws:
            return

        if self.deploy_env is None:
            self.deploy_env = self.console.confirm(
                f'Would you like to deploy the environment "{env}" first?'
            )
        if not self.deploy_env:
            return

        self.console.info(f"Deploying environment {env}")
        try:
            self.deployer.deploy_environment(self.options.app, env)
        except NoInfrastructureChangesError as e:
            self.console.info(e.message)
            return
        self.console.ok(f"Deployed environment {env}")

    def _deploy_group(self, group: DeploymentGroup) -> DeploymentError | None:
        """Deploy every member of a group, returning the first failure."""
        failure: DeploymentError | None = None
        logger.info(f"Deploying group {group.label}: {', '.join(group)}")

        for name in group:
            try:
                workload = self._ensure_workload(name)
                self.console.info(f"Deploying {name} to {self.env.name}")
                self.deployer.deploy_workload(self.options.app, self.env.name, workload)
            except NoInfrastructureChangesError as e:
                self.results.append(
                    WorkloadDeployResult(name, group.label, DeployStatus.NO_CHANGES, e.message)
                )
                continue
            except (DeploymentError, OSError) as e:
                error = (
                    e
                    if isinstance(e, DeploymentError)
                    else DeploymentError(f"deploy workload {name}: {e}")
                )
                self.console.error(error.message)
                self.results.append(
                    WorkloadDeployResult(name, group.label, DeployStatus.FAILED, error.message)
                )
                if failure is None:
                    failure = error
                continue

            self.console.ok(f"Deployed {name}")
            self.results.append(
                WorkloadDeployResult(name, group.label, DeployStatus.DEPLOYED)
            )

        return failure

    def _ensure_workload(self, name: str) -> Workload:
        """Return the registered workload, initializing it from its manifest."""
        app = self.options.app
        try:
            return self.store.get_workload(app, name)
        except NoSuchWorkloadError:
            pass

        if name not in self.workspace.list_workloads():
            raise DeploymentError(
                f"workload {name} does not exist in the workspace or in app {app}"
            )

        should_init = self.options.yes_init_workload
        if should_init is None:
            should_init = self.console.confirm(
                f'Workload "{name}" is not initialized in app "{app}". Initialize it?'
            )
        if not should_init:
            raise DeploymentError(f"workload {name} is not initialized in app {app}")

        manifest = self.workspace.read_workload_manifest(name)
        wkld_type = manifest.get("type")
        if not wkld_type:
            raise WorkspaceError(f"manifest for workload {name} is missing 'type'")

        workload = Workload(app=app, name=name, type=str(wkld_type))
        self.store.create_workload(workload)
        self.console.ok(f"Initialized {workload.type} {name} in app {app}")
        return workload

    # =========================================================================
    # Output
    # =========================================================================

    def _print_plan(self) -> None:
        table = Table(title=f"Deployment plan for {self.options.app} → {self.env.name}")
        table.add_column("Step", justify="right")
        table.add_column("Order")
        table.add_column("Workloads")
        for step, group in enumerate(self.groups, 1):
            table.add_row(str(step), group.label, ", ".join(group))
        self.console.print(table)

    def _print_summary(self) -> None:
        table = Table(title="Deployment summary")
        table.add_column("Workload")
        table.add_column("Order")
        table.add_column("Status")
        styles = {
            DeployStatus.DEPLOYED: "green",
            DeployStatus.NO_CHANGES: "cyan",
            DeployStatus.FAILED: "red",
            DeployStatus.SKIPPED: "dim",
        }
        for result in self.results:
            style = styles[result.status]
            table.add_row(
                result.name,
                result.group,
                f"[{style}]{result.status.value}[/{style}]",
            )
        self.console.print(table)
