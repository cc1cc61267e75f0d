"""Application commands: register, list, show and delete applications."""

import json
from typing import Annotated

import typer
from rich.table import Table

from src.cli.context import get_cli_context, resolve_app_name
from src.cli.shared.console import with_error_handling
from src.infra.errors import DeploymentError
from src.infra.store import Application

app_app = typer.Typer(
    name="app",
    help="Application commands.",
    no_args_is_help=True,
)


@app_app.command("init")
@with_error_handling
def init_application(
    ctx: typer.Context,
    name: Annotated[
        str | None,
        typer.Argument(help="Application name (defaults to 'app' in stackpilot.yaml)"),
    ] = None,
) -> None:
    """Register an application in the configuration store.

    Examples:
        stackpilot app init shop
    """
    cli_ctx = get_cli_context(ctx)
    app = resolve_app_name(cli_ctx, name)
    cli_ctx.store.create_application(Application(name=app))
    cli_ctx.console.ok(f"Application {app} is registered")


@app_app.command("ls")
@with_error_handling
def list_applications(
    ctx: typer.Context,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Output in JSON format"),
    ] = False,
) -> None:
    """List registered applications."""
    cli_ctx = get_cli_context(ctx)
    apps = cli_ctx.store.list_applications()

    if as_json:
        typer.echo(json.dumps({"applications": [{"name": a.name} for a in apps]}))
        return

    if not apps:
        cli_ctx.console.info("No applications found. Run `stackpilot app init` first")
        return

    for app in apps:
        cli_ctx.console.print(app.name)


@app_app.command("show")
@with_error_handling
def show_application(
    ctx: typer.Context,
    name: Annotated[
        str | None,
        typer.Argument(help="Application name (defaults to 'app' in stackpilot.yaml)"),
    ] = None,
) -> None:
    """Show the environments and workloads of an application."""
    cli_ctx = get_cli_context(ctx)
    app = resolve_app_name(cli_ctx, name)
    cli_ctx.store.get_application(app)

    cli_ctx.console.print_header(f"Application {app}")

    cli_ctx.console.print_subheader("Environments")
    envs = cli_ctx.store.list_environments(app)
    for env in envs:
        cli_ctx.console.print(f"  {env.name}")
    if not envs:
        cli_ctx.console.print("  [dim]none[/dim]")

    cli_ctx.console.print_subheader("Workloads")
    workloads = cli_ctx.store.list_workloads(app)
    if not workloads:
        cli_ctx.console.print("  [dim]none[/dim]")
        return
    table = Table()
    table.add_column("Name")
    table.add_column("Type")
    for workload in workloads:
        table.add_row(workload.name, workload.type)
    cli_ctx.console.print(table)


@app_app.command("delete")
@with_error_handling
def delete_application(
    ctx: typer.Context,
    name: Annotated[
        str | None,
        typer.Argument(help="Application name (defaults to 'app' in stackpilot.yaml)"),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt"),
    ] = False,
) -> None:
    """Delete an application with all of its environments and workloads.

    Deployed infrastructure is left running; only the registration is removed.

    Examples:
        stackpilot app delete shop --yes
    """
    cli_ctx = get_cli_context(ctx)
    app = resolve_app_name(cli_ctx, name)
    cli_ctx.store.get_application(app)

    cli_ctx.console.warn(
        f"Deleting {app} removes every environment and workload registered in it"
    )
    if not yes and not cli_ctx.console.confirm(f'Delete application "{app}"?'):
        raise DeploymentError(f"delete application {app}: operation cancelled")

    cli_ctx.store.delete_application(app)
    cli_ctx.console.ok(f"Deleted application {app}")
