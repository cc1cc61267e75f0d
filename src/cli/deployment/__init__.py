"""Deployment ordering and orchestration for the deploy command.

- order: workload token parsing, validation and grouping
- orchestrator: the environment-then-workloads deploy flow
"""

from .order import (
    CatalogUnavailableError,
    ConflictingOrderTagError,
    DeploymentGroup,
    EmptyWorkloadSetError,
    InvalidOrderTagError,
    WorkloadToken,
    group_workloads,
    parse_workload_token,
    validate_workload_tokens,
)
from .orchestrator import DeployOptions, DeployOrchestrator, DeployStatus

__all__ = [
    "CatalogUnavailableError",
    "ConflictingOrderTagError",
    "DeploymentGroup",
    "DeployOptions",
    "DeployOrchestrator",
    "DeployStatus",
    "EmptyWorkloadSetError",
    "InvalidOrderTagError",
    "WorkloadToken",
    "group_workloads",
    "parse_workload_token",
    "validate_workload_tokens",
]
