"""Environment variable substitution for settings files."""

import os
import re

from loguru import logger

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _resolve(expr: str) -> str:
    if ":-" in expr:
        name, _, default = expr.partition(":-")
        value = os.getenv(name)
        if value is None:
            logger.debug(f"{name} is unset, using default")
            return default
        return value

    name, sep, hint = expr.partition(":?")
    value = os.getenv(name)
    if value is None:
        reason = hint if sep else "not set"
        raise ValueError(f"Required environment variable {name}: {reason}")
    return value


def substitute_env_vars(text: str) -> str:
    """Replace ``${VAR}`` placeholders with values from the environment.

    Supported forms:
    - ``${VAR}``: required, raises if unset
    - ``${VAR:-default}``: falls back to ``default``
    - ``${VAR:?message}``: required, ``message`` is included in the error

    Raises:
        ValueError: If a required variable is not set
    """
    return _ENV_PATTERN.sub(lambda match: _resolve(match.group(1)), text)
