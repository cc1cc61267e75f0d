"""Main CLI application module.

This module provides the main entry point for the stackpilot CLI.

Commands:
- deploy: Deploy workloads (in order groups) to an environment
- app: Application commands
- workload: Service and job commands
- env: Environment commands
"""

import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from .commands import app_app, deploy, env_app, workload_app
from .context import build_cli_context
from .shared.console import console

# Create the main CLI application
app = typer.Typer(
    help="🚀 stackpilot - Deploy containerized applications, environments and workloads",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            envvar="STACKPILOT_CONFIG",
            help="Path to the settings file (defaults to stackpilot.yaml)",
        ),
    ] = None,
) -> None:
    """Configure logging and build the command context."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")

    try:
        ctx.obj = build_cli_context(config)
    except ValueError as e:
        console.handle_error("Failed to load settings", str(e))


# Register commands
app.command("deploy")(deploy)
app.add_typer(app_app, name="app")
app.add_typer(workload_app, name="workload")
app.add_typer(env_app, name="env")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
