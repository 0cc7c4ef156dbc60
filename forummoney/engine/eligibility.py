"""
forummoney.engine.eligibility — Tag-based earning opt-out
==========================================================

A member earns or loses money in a discussion unless one of the
discussion's tags grants them the ``disable_money`` permission.  The rule
is the same for every account, administrators included.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from forummoney.database.models import Account, Discussion
    from forummoney.engine.permissions import PermissionOracle

logger = logging.getLogger(__name__)


def can_earn(
    account: Account | None,
    discussion: Discussion | None,
    permissions: PermissionOracle,
) -> bool:
    """Return True if *account* may earn or lose money in *discussion*.

    False when either side is missing.  A discussion without tags is always
    eligible.
    """
    if account is None or discussion is None:
        return False

    for tag in discussion.tags:
        if permissions.has_permission(account, tag.disable_money_permission):
            logger.debug(
                "Account %s opted out of money by tag %s", account.id, tag.id,
            )
            return False
    return True
