"""Multi-workload deploy command.

Deploys one or more workloads to an environment, optionally initializing
and deploying the environment first. Workloads may carry an order suffix
(``name/N``); lower orders deploy first and untagged workloads deploy last.
"""

from typing import Annotated

import typer

from src.cli.context import get_cli_context, resolve_app_name
from src.cli.deployment.orchestrator import DeployOptions, DeployOrchestrator, DeployStatus
from src.cli.shared.console import with_error_handling


@with_error_handling
def deploy(
    ctx: typer.Context,
    workloads: Annotated[
        list[str] | None,
        typer.Argument(
            help="Workloads to deploy, as NAME or NAME/ORDER (e.g. db/1 api/2 worker)",
            show_default=False,
        ),
    ] = None,
    names: Annotated[
        list[str] | None,
        typer.Option(
            "--name",
            "-n",
            help="Workload to deploy, as NAME or NAME/ORDER. Repeatable.",
            show_default=False,
        ),
    ] = None,
    app_name: Annotated[
        str | None,
        typer.Option("--app", "-a", help="Application name"),
    ] = None,
    env: Annotated[
        str | None,
        typer.Option("--env", "-e", help="Environment to deploy to"),
    ] = None,
    deploy_all: Annotated[
        bool,
        typer.Option(
            "--all",
            help="Deploy every workload in the application",
        ),
    ] = False,
    init_wkld: Annotated[
        bool | None,
        typer.Option(
            "--init-wkld/--no-init-wkld",
            help="Initialize workloads that are not registered in the application",
            show_default=False,
        ),
    ] = None,
    init_env: Annotated[
        bool | None,
        typer.Option(
            "--init-env/--no-init-env",
            help="Initialize the environment if it is not registered in the application",
            show_default=False,
        ),
    ] = None,
    deploy_env: Annotated[
        bool | None,
        typer.Option(
            "--deploy-env/--no-deploy-env",
            help="Deploy the environment before its workloads",
            show_default=False,
        ),
    ] = None,
) -> None:
    """Deploy workloads to an environment.

    Workloads tagged with an order are deployed group by group in ascending
    order. Each group finishes before the next one starts. Untagged workloads,
    and with --all every other workload in the application, deploy last.

    Examples:
        stackpilot deploy api -e test
        stackpilot deploy db/1 api/2 worker -e prod --deploy-env
        stackpilot deploy --all -n db/1 -e prod --no-deploy-env
    """
    cli_ctx = get_cli_context(ctx)
    options = DeployOptions(
        app=resolve_app_name(cli_ctx, app_name),
        env=env,
        workloads=tuple([*(workloads or []), *(names or [])]),
        deploy_all=deploy_all,
        yes_init_workload=init_wkld,
        yes_init_env=init_env,
        deploy_env=deploy_env,
        max_order=cli_ctx.settings.max_deploy_order,
    )

    cli_ctx.console.print_header(f"Deploying {options.app}")
    orchestrator = DeployOrchestrator(
        options,
        store=cli_ctx.store,
        workspace=cli_ctx.workspace,
        deployer=cli_ctx.deployer,
        console=cli_ctx.console,
    )
    results = orchestrator.run()

    deployed = sum(1 for result in results if result.status is DeployStatus.DEPLOYED)
    unchanged = len(results) - deployed
    cli_ctx.console.ok(
        f"Deployment to {orchestrator.env.name} complete: "
        f"{deployed} deployed, {unchanged} unchanged"
    )
