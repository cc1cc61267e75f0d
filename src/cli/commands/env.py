"""Environment commands: list, register and deploy environments."""

from typing import Annotated

import typer
from rich.table import Table

from src.cli.context import get_cli_context, resolve_app_name
from src.cli.shared.console import with_error_handling
from src.infra.errors import DeploymentError, ManifestNotFoundError
from src.infra.store import Environment

env_app = typer.Typer(
    name="env",
    help="Environment commands.",
    no_args_is_help=True,
)


@env_app.command("ls")
@with_error_handling
def list_environments(
    ctx: typer.Context,
    app_name: Annotated[
        str | None,
        typer.Option("--app", "-a", help="Application name"),
    ] = None,
) -> None:
    """List environments in the application and the workspace."""
    cli_ctx = get_cli_context(ctx)
    app = resolve_app_name(cli_ctx, app_name)
    in_app = {env.name for env in cli_ctx.store.list_environments(app)}
    in_ws = set(cli_ctx.workspace.list_environments())

    if not in_app and not in_ws:
        cli_ctx.console.info(f"No environments found for application {app}")
        return

    table = Table(title=f"Environments for {app}")
    table.add_column("Name")
    table.add_column("Initialized", justify="center")
    table.add_column("Local", justify="center")
    for name in sorted(in_app | in_ws):
        table.add_row(
            name,
            "[green]✓[/green]" if name in in_app else "",
            "[green]✓[/green]" if name in in_ws else "",
        )
    cli_ctx.console.print(table)


@env_app.command("init")
@with_error_handling
def init_environment(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Environment name")],
    app_name: Annotated[
        str | None,
        typer.Option("--app", "-a", help="Application name"),
    ] = None,
) -> None:
    """Register an environment in the application.

    Examples:
        stackpilot env init test
    """
    cli_ctx = get_cli_context(ctx)
    app = resolve_app_name(cli_ctx, app_name)
    cli_ctx.store.create_environment(Environment(app=app, name=name))
    cli_ctx.console.ok(f"Environment {name} is registered in {app}")


@env_app.command("deploy")
@with_error_handling
def deploy_environment(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Environment name")],
    app_name: Annotated[
        str | None,
        typer.Option("--app", "-a", help="Application name"),
    ] = None,
) -> None:
    """Deploy an environment from its workspace manifest.

    Examples:
        stackpilot env deploy test
    """
    cli_ctx = get_cli_context(ctx)
    app = resolve_app_name(cli_ctx, app_name)

    # Raises NoSuchEnvironmentError when the environment was never initialized
    cli_ctx.store.get_environment(app, name)
    if name not in cli_ctx.workspace.list_environments():
        manifest = cli_ctx.workspace.environment_manifest_path(name)
        raise ManifestNotFoundError(str(manifest))

    with cli_ctx.console.status(f"Deploying environment {name}..."):
        cli_ctx.deployer.deploy_environment(app, name)
    cli_ctx.console.ok(f"Deployed environment {name}")


@env_app.command("delete")
@with_error_handling
def delete_environment(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Environment name")],
    app_name: Annotated[
        str | None,
        typer.Option("--app", "-a", help="Application name"),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt"),
    ] = False,
) -> None:
    """Remove an environment from the application.

    The workspace manifest and any deployed resources are left in place.

    Examples:
        stackpilot env delete test --yes
    """
    cli_ctx = get_cli_context(ctx)
    app = resolve_app_name(cli_ctx, app_name)
    cli_ctx.store.get_environment(app, name)

    if not yes and not cli_ctx.console.confirm(
        f'Delete environment "{name}" from app "{app}"?'
    ):
        raise DeploymentError(f"delete environment {name}: operation cancelled")

    cli_ctx.store.delete_environment(app, name)
    cli_ctx.console.ok(f"Deleted environment {name} from {app}")
