"""Shell deployer.

Delegates environment and workload deployments to external tools by
rendering the command templates configured in stackpilot.yaml and running
them from the project root.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from loguru import logger

from src.infra.errors import DeploymentError, NoInfrastructureChangesError
from src.infra.settings import DeployerSettings
from src.infra.shell import CommandRunner
from src.infra.store import Workload
from src.infra.workspace import WorkspaceReader
from src.utils.console_like import ConsoleLike, coalesce_console


class Deployer(Protocol):
    def deploy_environment(self, app: str, env: str) -> None: ...

    def deploy_workload(self, app: str, env: str, workload: Workload) -> None: ...


class ShellDeployer:
    """Runs the configured deploy commands for environments and workloads.

    Template placeholders: {app}, {env}, {name}, {type}, {manifest},
    {manifest_dir}.
    """

    def __init__(
        self,
        runner: CommandRunner,
        workspace: WorkspaceReader,
        settings: DeployerSettings,
        console: ConsoleLike | None = None,
    ) -> None:
        self.runner = runner
        self.workspace = workspace
        self.settings = settings
        self.console = coalesce_console(console)

    def deploy_environment(self, app: str, env: str) -> None:
        manifest = self.workspace.environment_manifest_path(env)
        cmd = self._render(
            self.settings.environment_command,
            app=app,
            env=env,
            name=env,
            type="Environment",
            manifest=str(manifest),
            manifest_dir=str(manifest.parent),
        )
        self._execute(cmd, f"deploy environment {env}")

    def deploy_workload(self, app: str, env: str, workload: Workload) -> None:
        manifest = self.workspace.workload_manifest_path(workload.name)
        cmd = self._render(
            self.settings.workload_command,
            app=app,
            env=env,
            name=workload.name,
            type=workload.type,
            manifest=str(manifest),
            manifest_dir=str(manifest.parent),
        )
        self._execute(cmd, f"deploy workload {workload.name}")

    @staticmethod
    def _render(template: Sequence[str], **values: str) -> list[str]:
        try:
            return [part.format(**values) for part in template]
        except (KeyError, IndexError, ValueError) as e:
            raise DeploymentError(
                f"invalid deploy command template: {' '.join(template)}",
                details=f"Supported placeholders: {', '.join(sorted(values))}",
            ) from e

    def _execute(self, cmd: list[str], action: str) -> None:
        self.console.print(f"[dim]$ {' '.join(cmd)}[/dim]")
        try:
            result = self.runner.run(cmd)
        except FileNotFoundError as e:
            raise DeploymentError(f"{action}: command not found: {cmd[0]}") from e
        except OSError as e:
            raise DeploymentError(f"{action}: run {cmd[0]}: {e.strerror or e}") from e

        if result.success:
            logger.info(f"{action} succeeded")
            return

        no_changes_code = self.settings.no_changes_exit_code
        if no_changes_code is not None and result.returncode == no_changes_code:
            logger.info(f"{action}: no infrastructure changes")
            raise NoInfrastructureChangesError(
                DeploymentError(f"{action}: no infrastructure changes")
            )

        logger.warning(f"{action} failed with exit code {result.returncode}")
        raise DeploymentError(
            f"{action}: command exited with code {result.returncode}",
            details=(result.stderr or result.stdout).strip() or None,
        )
