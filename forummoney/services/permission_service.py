"""
forummoney.services.permission_service — Group-based permission oracle
=======================================================================

Permissions are granted to groups; an account holds a permission when any
of its groups has a ``group_permissions`` row for it.

``has_permission`` is a literal grant lookup with no administrator
shortcut, so tag opt-outs apply to every account alike.  ``assert_can``
(abilities over another account) passes for members of the administrator
group or holders of ``user.<ability>``.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from forummoney.constants import ADMIN_GROUP_ID, ability_permission
from forummoney.database.models import Account, Group, GroupPermission, account_groups
from forummoney.engine.permissions import PermissionDeniedError

logger = logging.getLogger(__name__)


class SqlPermissionOracle:
    """PermissionOracle backed by the groups tables of an open session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def has_permission(self, account: Account, permission: str) -> bool:
        if account is None or account.id is None:
            return False
        stmt = (
            select(GroupPermission.permission)
            .join(account_groups, account_groups.c.group_id == GroupPermission.group_id)
            .where(
                account_groups.c.account_id == account.id,
                GroupPermission.permission == permission,
            )
            .limit(1)
        )
        return self._session.scalar(stmt) is not None

    def is_admin(self, account: Account) -> bool:
        if account is None or account.id is None:
            return False
        stmt = (
            select(account_groups.c.group_id)
            .where(
                account_groups.c.account_id == account.id,
                account_groups.c.group_id == ADMIN_GROUP_ID,
            )
            .limit(1)
        )
        return self._session.scalar(stmt) is not None

    def assert_can(self, actor: Account | None, ability: str, target: Account) -> None:
        target_id = target.id if target is not None else None
        if actor is not None and (
            self.is_admin(actor) or self.has_permission(actor, ability_permission(ability))
        ):
            return
        actor_id = actor.id if actor is not None else None
        logger.warning(
            "Denied %s: actor %s on account %s", ability, actor_id, target_id,
        )
        raise PermissionDeniedError(ability, actor_id, target_id)


# ---------------------------------------------------------------------------
# Grant helpers
# ---------------------------------------------------------------------------
def get_or_create_group(session: Session, group_id: int, name: str) -> Group:
    """Fetch or insert a Group row."""
    group = session.get(Group, group_id)
    if group is None:
        group = Group(id=group_id, name=name)
        session.add(group)
        session.flush()
    return group


def grant_permission(session: Session, group_id: int, permission: str) -> bool:
    """Grant *permission* to a group.  Returns False if already granted."""
    existing = session.get(GroupPermission, (group_id, permission))
    if existing is not None:
        return False
    session.add(GroupPermission(group_id=group_id, permission=permission))
    session.flush()
    logger.info("Granted %s to group %d", permission, group_id)
    return True


def add_to_group(session: Session, account: Account, group: Group) -> None:
    if group not in account.groups:
        account.groups.append(group)
        session.flush()
