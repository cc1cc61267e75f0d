"""Project settings loading.

Settings live in stackpilot.yaml at the project root under a top-level
``config:`` key. Environment variables are substituted before parsing and
a project ``.env`` file is loaded first without overriding the process
environment.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from src.infra.config_utils import substitute_env_vars
from src.infra.constants import DEFAULT_CONSTANTS


class DeployerSettings(BaseModel):
    """Command templates used by the shell deployer."""

    workload_command: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CONSTANTS.WORKLOAD_DEPLOY_COMMAND),
        min_length=1,
    )
    environment_command: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CONSTANTS.ENVIRONMENT_DEPLOY_COMMAND),
        min_length=1,
    )
    # Exit code the deploy command uses to report "nothing to change"
    no_changes_exit_code: int | None = None


class Settings(BaseModel):
    """Validated contents of stackpilot.yaml."""

    app: str | None = None
    workspace_dir: str = DEFAULT_CONSTANTS.WORKSPACE_DIR
    store_path: str = DEFAULT_CONSTANTS.STORE_PATH
    max_deploy_order: int = Field(default=DEFAULT_CONSTANTS.MAX_DEPLOY_ORDER, ge=0)
    deployer: DeployerSettings = Field(default_factory=DeployerSettings)


def load_settings(file_path: Path, env_file: Path | None = None) -> Settings:
    """Load and validate project settings.

    Args:
        file_path: Path to stackpilot.yaml
        env_file: Optional .env file loaded before substitution

    Returns:
        Validated Settings. Defaults are returned when the file does not exist.

    Raises:
        ValueError: If required environment variables are missing, the YAML
            is malformed, the 'config' key is missing, or validation fails
    """
    if env_file is not None and env_file.exists():
        logger.debug(f"Loading environment from {env_file}")
        load_dotenv(env_file, override=False)

    if not file_path.exists():
        logger.info(f"No settings file at {file_path}, using defaults")
        settings = Settings()
    else:
        logger.info(f"Loading settings from {file_path}")
        content = substitute_env_vars(file_path.read_text(encoding="utf-8"))

        try:
            loaded: dict[str, Any] | None = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing YAML in {file_path}: {e}") from e

        if not isinstance(loaded, dict) or "config" not in loaded:
            raise ValueError(
                f"Invalid settings structure in {file_path}: missing 'config' key"
            )

        try:
            settings = Settings(**(loaded["config"] or {}))
        except ValidationError as e:
            raise ValueError(f"Invalid settings in {file_path}: {e}") from e

    app_override = os.getenv(DEFAULT_CONSTANTS.APP_ENV_VAR)
    if app_override:
        logger.debug(f"Application overridden by {DEFAULT_CONSTANTS.APP_ENV_VAR}")
        settings.app = app_override

    return settings
