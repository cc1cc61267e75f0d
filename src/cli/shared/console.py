"""Shared console output and prompting for CLI commands.

This module provides the Rich console wrapper used by every command,
including status messages, prompts, and the standard error handler.
"""

from collections.abc import Callable

import typer
from rich.console import Console, ConsoleRenderable
from rich.panel import Panel
from rich.status import Status


class CLIConsole:
    """Rich console wrapper for consistent CLI output."""

    def __init__(self) -> None:
        """Initialize the CLI console."""
        self.console = Console()

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self.console.print(msg)

    def status(self, status: str) -> Status:
        return self.console.status(status)

    def info(self, msg: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan]  {msg}")

    def ok(self, msg: str) -> None:
        self.console.print(f"[green]✅[/green] {msg}")

    def error(self, msg: str) -> None:
        self.console.print(f"[red]❌[/red] {msg}")

    def warn(self, msg: str) -> None:
        self.console.print(f"[yellow]⚠️[/yellow]  {msg}")

    def confirm(self, question: str, *, default: bool = False) -> bool:
        """Ask a yes/no question.

        Args:
            question: Question to display
            default: Answer used when the user just presses enter

        Returns:
            True if the user answered yes, False otherwise
        """
        hint = "\\[Y/n]" if default else "\\[y/N]"
        try:
            response = self.console.input(f"\n[bold]{question}[/bold] {hint}: ")
        except (KeyboardInterrupt, EOFError):
            self.console.print("\n[dim]Cancelled.[/dim]")
            return False

        answer = response.strip().lower()
        if not answer:
            return default
        return answer in ("y", "yes")

    def handle_error(
        self, message: str, details: str | None = None, exit_code: int = 1
    ) -> None:
        """Handle an error by printing a message and exiting.

        Args:
            message: Error message to display
            details: Optional additional details
            exit_code: Exit code to use
        """
        self.error(f"[bold red]{message}[/bold red]")
        if details:
            self.console.print(Panel(details, title="Details", border_style="red"))
        raise typer.Exit(exit_code)

    def prompt_choice(
        self,
        title: str,
        choices: list[tuple[str, str]],
        *,
        default: int = 1,
        cancel_option: bool = True,
    ) -> int:
        """Prompt user to select from numbered choices.

        Args:
            title: Title/question to display
            choices: List of (short_name, description) tuples
            default: Default choice (1-indexed)
            cancel_option: Whether to add a cancel option

        Returns:
            Selected choice number (1-indexed), or 0 if cancelled
        """
        self.console.print(f"\n[yellow]{title}[/yellow]\n")

        # Display numbered options
        for i, (name, description) in enumerate(choices, 1):
            marker = "[bold cyan]→[/bold cyan]" if i == default else " "
            self.console.print(f"  {marker} [bold]{i}.[/bold] {name}")
            if description:
                self.console.print(f"       [dim]{description}[/dim]")

        if cancel_option:
            self.console.print("  [bold]0.[/bold] Cancel")

        try:
            while True:
                response = self.console.input(f"\nEnter choice [{default}]: ").strip()

                if not response:
                    return default

                if response == "0" and cancel_option:
                    self.console.print("[dim]Cancelled.[/dim]")
                    return 0

                try:
                    choice = int(response)
                    if 1 <= choice <= len(choices):
                        return choice
                    self.console.print(
                        f"[red]Please enter a number between 1 and {len(choices)}[/red]"
                    )
                except ValueError:
                    self.console.print("[red]Please enter a valid number[/red]")

        except (KeyboardInterrupt, EOFError):
            self.console.print("\n[dim]Cancelled.[/dim]")
            return 0

    def print_header(self, title: str, style: str = "blue") -> None:
        """Print a styled header panel.

        Args:
            title: Header title text
            style: Border style color
        """
        self.console.print(
            Panel.fit(
                f"[bold {style}]{title}[/bold {style}]",
                border_style=style,
            )
        )

    def print_subheader(self, title: str) -> None:
        """Print a subheader.

        Args:
            title: Subheader title text
        """
        self.console.print(f"\n[bold underline]{title}[/bold underline]\n")


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Decorator to wrap command functions with standard error handling.

    Catches deployment errors and formats them consistently. Errors that
    only report unchanged infrastructure exit successfully.

    Args:
        func: The command function to wrap

    Returns:
        Wrapped function with error handling
    """
    from functools import wraps

    from src.infra.errors import DeploymentError, NoInfrastructureChangesError

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except NoInfrastructureChangesError as e:
            console.info(e.message)
            raise typer.Exit(e.exit_code) from None
        except DeploymentError as e:
            console.handle_error(e.message, e.details, e.exit_code)
        except ValueError as e:
            console.handle_error(str(e))
        except KeyboardInterrupt:
            console.print("\n[dim]Operation cancelled by user.[/dim]")
            raise typer.Exit(130) from None

    return wrapper


# Shared console instance for consistent output
console = CLIConsole()
