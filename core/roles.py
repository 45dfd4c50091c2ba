"""
core/roles.py — Actor & Role Gate
===================================
Every workflow call carries an explicit Actor: the ledger account that signs
the transaction plus the role it acts in. Nothing is taken from ambient
process state.

Roles:
    user  — owners and buyers: register, request sale, request purchase
    admin — registry officers: accept or reject pending requests
"""

import logging
from dataclasses import dataclass
from enum import Enum

from config import settings
from core.errors import NotAuthorized

logger = logging.getLogger("landledger.roles")


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    account_id: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def resolve_role(account_id: str, claimed: str) -> Role:
    """
    Decide the role an account may act in.
    An admin claim is honoured only for accounts on ADMIN_ACCOUNTS when that
    list is configured; otherwise the claim from the (signed) token stands.
    """
    try:
        role = Role(str(claimed).lower())
    except ValueError:
        return Role.USER

    if role is Role.ADMIN and settings.ADMIN_ACCOUNTS:
        allowed = {a.lower() for a in settings.ADMIN_ACCOUNTS}
        if account_id.lower() not in allowed:
            logger.warning(f"Admin claim DENIED for {account_id} (not in ADMIN_ACCOUNTS)")
            return Role.USER
    return role


def require_admin(actor: Actor, action: str):
    """
    Guard placed in front of every accept/reject dispatch:

        require_admin(actor, "accept registration")
        # execution continues only for administrators
    """
    if not actor.is_admin:
        logger.warning(f"DENIED: {actor.account_id} ({actor.role.value}) attempted '{action}'")
        raise NotAuthorized(
            f"'{action}' requires the admin role.",
            {"account": actor.account_id, "role": actor.role.value},
        )
    logger.info(f"ADMIN action '{action}' by {actor.account_id}")
