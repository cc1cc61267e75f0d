from __future__ import annotations

from typing import Protocol

from loguru import logger
from rich.console import ConsoleRenderable


class ConsoleLike(Protocol):
    def print(self, msg: ConsoleRenderable | str | None = None) -> None: ...

    def info(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...


class LogConsole:
    """Console fallback that writes through loguru.

    Lets infrastructure code run outside the CLI without a terminal.
    """

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        if msg is not None:
            logger.info(str(msg))

    def info(self, msg: str) -> None:
        logger.info(msg)

    def warn(self, msg: str) -> None:
        logger.warning(msg)


def coalesce_console(console: ConsoleLike | None) -> ConsoleLike:
    return console if console is not None else LogConsole()
