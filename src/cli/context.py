"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click
import typer

from src.cli.shared.console import CLIConsole, console
from src.infra.constants import DeploymentConstants, DeploymentPaths
from src.infra.deployer import Deployer, ShellDeployer
from src.infra.settings import Settings, load_settings
from src.infra.shell import CommandRunner
from src.infra.store import ConfigStore, LocalConfigStore
from src.infra.workspace import Workspace, WorkspaceReader
from src.utils.paths import get_project_root


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    project_root: Path
    settings: Settings
    constants: DeploymentConstants
    paths: DeploymentPaths
    store: ConfigStore
    workspace: WorkspaceReader
    deployer: Deployer


def build_cli_context(config_path: Path | None = None) -> CLIContext:
    """Build a fresh CLIContext.

    Args:
        config_path: Settings file to load instead of <project root>/stackpilot.yaml
    """
    project_root = get_project_root()
    constants = DeploymentConstants()
    default_paths = DeploymentPaths(project_root)

    settings = load_settings(
        config_path or default_paths.settings_yaml,
        env_file=default_paths.env_file,
    )
    paths = DeploymentPaths(
        project_root,
        workspace_dir=settings.workspace_dir,
        store_path=settings.store_path,
    )
    workspace = Workspace(paths)

    return CLIContext(
        console=console,
        project_root=project_root,
        settings=settings,
        constants=constants,
        paths=paths,
        store=LocalConfigStore(paths.store),
        workspace=workspace,
        deployer=ShellDeployer(
            CommandRunner(project_root),
            workspace,
            settings.deployer,
            console=console,
        ),
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext from Typer, falling back to a new instance."""
    context = ctx or click.get_current_context(silent=True)
    if context and isinstance(context.obj, CLIContext):
        return context.obj
    return build_cli_context()


def resolve_app_name(cli_ctx: CLIContext, app: str | None) -> str:
    """Pick the application from the --app flag or the project settings.

    Raises:
        ValueError: If no application name is available
    """
    name = (app or cli_ctx.settings.app or "").strip()
    if not name:
        raise ValueError(
            "Application name is required: pass --app or set 'app' in "
            f"{cli_ctx.constants.SETTINGS_FILENAME}"
        )
    return name
