from .runner import CommandResult, CommandRunner

__all__ = ["CommandResult", "CommandRunner"]
