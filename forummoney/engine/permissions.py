"""
forummoney.engine.permissions — Permission oracle interface
============================================================

The engine never evaluates permissions itself; it asks an oracle.
:class:`~forummoney.services.permission_service.SqlPermissionOracle` is the
database-backed implementation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from forummoney.database.models import Account


class PermissionDeniedError(Exception):
    """Raised when an actor attempts an action it is not allowed to perform."""

    def __init__(self, ability: str, actor_id: int | None = None, target_id: int | None = None) -> None:
        self.ability = ability
        self.actor_id = actor_id
        self.target_id = target_id
        super().__init__(
            f"Actor {actor_id} is not allowed to {ability} on account {target_id}"
        )


class PermissionOracle(Protocol):
    def has_permission(self, account: Account, permission: str) -> bool:
        """Return True if *account* holds *permission*."""
        ...

    def assert_can(self, actor: Account | None, ability: str, target: Account) -> None:
        """Raise :class:`PermissionDeniedError` unless *actor* may *ability* on *target*."""
        ...
