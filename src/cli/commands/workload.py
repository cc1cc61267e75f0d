"""Workload commands: list and register services and jobs."""

import json
from typing import Annotated

import typer
from rich.table import Table

from src.cli.context import get_cli_context, resolve_app_name
from src.cli.shared.console import with_error_handling
from src.infra.errors import DeploymentError, WorkspaceError
from src.infra.store import Workload

workload_app = typer.Typer(
    name="workload",
    help="Service and job commands.",
    no_args_is_help=True,
)


@workload_app.command("ls")
@with_error_handling
def list_workloads(
    ctx: typer.Context,
    app_name: Annotated[
        str | None,
        typer.Option("--app", "-a", help="Application name"),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Output in JSON format"),
    ] = False,
) -> None:
    """List the workloads registered in an application.

    Examples:
        stackpilot workload ls
        stackpilot workload ls --app my-app --json
    """
    cli_ctx = get_cli_context(ctx)
    app = resolve_app_name(cli_ctx, app_name)
    workloads = cli_ctx.store.list_workloads(app)
    local = set(cli_ctx.workspace.list_workloads())

    if as_json:
        payload = {
            "workloads": [
                {"app": w.app, "name": w.name, "type": w.type} for w in workloads
            ]
        }
        typer.echo(json.dumps(payload))
        return

    if not workloads:
        cli_ctx.console.info(f"No workloads found in application {app}")
        return

    table = Table(title=f"Workloads in {app}")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Local", justify="center")
    for workload in workloads:
        table.add_row(
            workload.name,
            workload.type,
            "[green]✓[/green]" if workload.name in local else "",
        )
    cli_ctx.console.print(table)


@workload_app.command("init")
@with_error_handling
def init_workload(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Workload name")],
    wkld_type: Annotated[
        str | None,
        typer.Option(
            "--type",
            "-t",
            help="Workload type (read from the manifest when omitted)",
        ),
    ] = None,
    app_name: Annotated[
        str | None,
        typer.Option("--app", "-a", help="Application name"),
    ] = None,
) -> None:
    """Register a workload in the application.

    Examples:
        stackpilot workload init api
        stackpilot workload init mailer --type "Scheduled Job"
    """
    cli_ctx = get_cli_context(ctx)
    app = resolve_app_name(cli_ctx, app_name)

    if not wkld_type:
        manifest = cli_ctx.workspace.read_workload_manifest(name)
        wkld_type = manifest.get("type")
        if not wkld_type:
            raise WorkspaceError(
                f"manifest for workload {name} is missing 'type'",
                details="Pass --type or add a 'type' field to the manifest",
            )

    cli_ctx.store.create_workload(Workload(app=app, name=name, type=str(wkld_type)))
    cli_ctx.console.ok(f"Workload {name} ({wkld_type}) is registered in {app}")


@workload_app.command("delete")
@with_error_handling
def delete_workload(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Workload name")],
    app_name: Annotated[
        str | None,
        typer.Option("--app", "-a", help="Application name"),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt"),
    ] = False,
) -> None:
    """Remove a workload from the application.

    Examples:
        stackpilot workload delete api --yes
    """
    cli_ctx = get_cli_context(ctx)
    app = resolve_app_name(cli_ctx, app_name)
    cli_ctx.store.get_workload(app, name)

    if not yes and not cli_ctx.console.confirm(
        f'Delete workload "{name}" from app "{app}"?'
    ):
        raise DeploymentError(f"delete workload {name}: operation cancelled")

    cli_ctx.store.delete_workload(app, name)
    cli_ctx.console.ok(f"Deleted workload {name} from {app}")
