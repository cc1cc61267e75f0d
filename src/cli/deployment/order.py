"""Deployment order resolution for multi-workload deploys.

Workloads are passed on the command line as ``name`` or ``name/N``. Tagged
workloads are grouped by their order value and deployed in ascending order;
untagged workloads (and, with ``--all``, every other workload in the
application) form the final group.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from loguru import logger

from src.infra.constants import DEFAULT_CONSTANTS
from src.infra.errors import DeploymentError
from src.infra.store import WorkloadCatalog

_ORDER_PATTERN = re.compile(r"^[0-9]+$")


# =============================================================================
# Errors
# =============================================================================


class InvalidOrderTagError(DeploymentError):
    """A workload token carries a malformed or out-of-range order tag."""

    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(
            f"invalid workload {token!r}: {reason}",
            details="Workloads are specified as NAME or NAME/ORDER, e.g. fe/1",
        )


class ConflictingOrderTagError(DeploymentError):
    """The same workload was given more than one order value."""

    def __init__(self, name: str, orders: Sequence[int]):
        self.name = name
        self.orders = tuple(orders)
        super().__init__(
            f"workload {name!r} has conflicting orders: "
            + ", ".join(str(order) for order in self.orders)
        )


class EmptyWorkloadSetError(DeploymentError):
    """No workloads were selected for deployment."""

    def __init__(self) -> None:
        super().__init__(
            "no workloads selected for deployment",
            details="Name one or more workloads or pass --all",
        )


class CatalogUnavailableError(DeploymentError):
    """The workload catalog could not be queried."""

    def __init__(self, app: str, cause: Exception):
        self.app = app
        self.cause = cause
        super().__init__(
            f"retrieve store workloads: {cause}",
            details=getattr(cause, "details", None),
        )


# =============================================================================
# Data Types
# =============================================================================


@dataclass(frozen=True)
class WorkloadToken:
    """A workload requested on the command line.

    Attributes:
        name: Workload name
        order: Order group, or None to deploy with the final group
    """

    name: str
    order: int | None = None

    def __str__(self) -> str:
        if self.order is None:
            return self.name
        return f"{self.name}{DEFAULT_CONSTANTS.ORDER_SEPARATOR}{self.order}"


@dataclass(frozen=True)
class DeploymentGroup:
    """Workloads that may be deployed together.

    A group must not start until every workload of the previous group has
    finished.

    Attributes:
        order: Order value shared by the members, None for the final group
        names: Members in the order they were discovered
    """

    order: int | None
    names: tuple[str, ...]
    members: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", frozenset(self.names))

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    @property
    def label(self) -> str:
        return "unordered" if self.order is None else str(self.order)


# =============================================================================
# Parsing and Validation
# =============================================================================


def parse_workload_token(token: str) -> WorkloadToken:
    """Split ``name`` or ``name/N`` into a WorkloadToken.

    Raises:
        InvalidOrderTagError: If the name is empty, there is more than one
            separator, or the order is not a non-negative base-10 integer
    """
    raw = token.strip()
    if not raw:
        raise InvalidOrderTagError(token, "workload name is empty")

    separator = DEFAULT_CONSTANTS.ORDER_SEPARATOR
    if separator not in raw:
        return WorkloadToken(name=raw)

    name, _, suffix = raw.partition(separator)
    if not name:
        raise InvalidOrderTagError(token, "workload name is empty")
    if separator in suffix:
        raise InvalidOrderTagError(token, f"only one {separator!r} is allowed")
    if not _ORDER_PATTERN.match(suffix):
        raise InvalidOrderTagError(
            token, f"order {suffix!r} is not a non-negative integer"
        )
    try:
        order = int(suffix)
    except ValueError as e:
        # Digit strings past the interpreter's int conversion limit
        raise InvalidOrderTagError(token, f"order {suffix[:20]}... is too large") from e
    return WorkloadToken(name=name, order=order)


def parse_workload_tokens(tokens: Iterable[str]) -> list[WorkloadToken]:
    return [parse_workload_token(token) for token in tokens]


def validate_workload_tokens(
    tokens: Sequence[WorkloadToken],
    max_order: int = DEFAULT_CONSTANTS.MAX_DEPLOY_ORDER,
) -> list[WorkloadToken]:
    """Check order ranges and resolve repeated workloads.

    A workload named both with and without an order keeps the order; exact
    repeats collapse into one entry.

    Returns:
        De-duplicated tokens in first-seen order

    Raises:
        InvalidOrderTagError: If an order is negative or above max_order
        ConflictingOrderTagError: If a workload is given two different orders
    """
    orders: dict[str, int | None] = {}
    for token in tokens:
        if token.order is not None and not 0 <= token.order <= max_order:
            raise InvalidOrderTagError(
                str(token), f"order must be between 0 and {max_order}"
            )

        if token.name not in orders:
            orders[token.name] = token.order
            continue

        previous = orders[token.name]
        if previous is None:
            orders[token.name] = token.order
        elif token.order is not None and token.order != previous:
            raise ConflictingOrderTagError(token.name, [previous, token.order])

    return [WorkloadToken(name=name, order=order) for name, order in orders.items()]


# =============================================================================
# Grouping
# =============================================================================


def group_workloads(
    tokens: Sequence[WorkloadToken],
    deploy_all: bool,
    catalog: WorkloadCatalog,
    app: str,
) -> list[DeploymentGroup]:
    """Partition workloads into ordered deployment groups.

    Groups are sorted by ascending order value. Untagged workloads, followed
    by any catalog workloads not named explicitly when deploy_all is set,
    form the final group. The catalog is queried at most once.

    Args:
        tokens: Validated workload tokens
        deploy_all: Whether to include every workload in the catalog
        catalog: Registry of the application's workloads
        app: Application name

    Returns:
        Non-empty groups, ordered for deployment

    Raises:
        EmptyWorkloadSetError: If no workloads are selected
        CatalogUnavailableError: If the catalog lookup fails
    """
    if not tokens and not deploy_all:
        raise EmptyWorkloadSetError()

    buckets: dict[int, list[str]] = {}
    unordered: list[str] = []
    placed: set[str] = set()

    for token in tokens:
        if token.name in placed:
            continue
        placed.add(token.name)
        if token.order is None:
            unordered.append(token.name)
        else:
            buckets.setdefault(token.order, []).append(token.name)

    if deploy_all:
        try:
            workloads = catalog.list_workloads(app)
        except (DeploymentError, OSError) as e:
            raise CatalogUnavailableError(app, e) from e

        for workload in workloads:
            if workload.name not in placed:
                placed.add(workload.name)
                unordered.append(workload.name)

    groups = [
        DeploymentGroup(order=order, names=tuple(buckets[order]))
        for order in sorted(buckets)
    ]
    if unordered:
        groups.append(DeploymentGroup(order=None, names=tuple(unordered)))

    if not groups:
        raise EmptyWorkloadSetError()

    plan = " -> ".join(f"[{', '.join(group.names)}]" for group in groups)
    logger.debug(f"Deployment order for {app}: {plan}")
    return groups
