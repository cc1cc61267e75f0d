"""CLI command modules.

Command Groups:
- deploy: Multi-workload deployment to an environment
- app: Application registration, listing and deletion
- workload: Service and job registration, listing and deletion
- env: Environment registration, listing, deployment and deletion
"""

from .app import app_app
from .deploy import deploy
from .env import env_app
from .workload import workload_app

__all__ = [
    "app_app",
    "deploy",
    "env_app",
    "workload_app",
]
