"""
Authorization policy evaluation.

One parameterized check decides every role-gated or resource-scoped
operation in the portal:

1. The caller's role must be in the operation's required role-set.
2. If the resource has an owner, the caller must be that owner, unless the
   caller is an Admin and the operation allows the Admin bypass.

Job and User operations allow the bypass; Notification operations do not.
"""

import logging
from typing import Iterable, Optional

from jobportal.core.errors import Forbidden
from jobportal.core.security import Principal
from jobportal.models.user import Role

logger = logging.getLogger(__name__)

ANY_ROLE = frozenset(Role)
ADMIN_ONLY = frozenset({Role.ADMIN})
MANAGER_ONLY = frozenset({Role.MANAGER})
APPLICANT_ONLY = frozenset({Role.APPLICANT})
MANAGER_OR_ADMIN = frozenset({Role.MANAGER, Role.ADMIN})
MANAGER_OR_APPLICANT = frozenset({Role.MANAGER, Role.APPLICANT})


def is_owner(principal: Principal, owner_id: Optional[int]) -> bool:
    return owner_id is not None and owner_id == principal.user_id


def authorize(
    principal: Principal,
    required_roles: Iterable[Role],
    owner_id: Optional[int] = None,
    *,
    admin_bypass: bool = True,
    message: Optional[str] = None,
) -> None:
    """
    Allow or deny an operation for the given caller.

    Args:
        principal: The validated caller
        required_roles: Roles permitted to invoke the operation
        owner_id: Owner reference of the target resource, if ownership applies
        admin_bypass: Whether an Admin may act on resources they do not own
        message: Client-facing denial message

    Raises:
        Forbidden: If the role or ownership check fails
    """
    allowed = frozenset(required_roles)

    if principal.role not in allowed:
        logger.warning(
            f"User {principal.user_id} with role {principal.role.value} denied; "
            f"required roles: {sorted(r.value for r in allowed)}"
        )
        raise Forbidden(message)

    if owner_id is None or is_owner(principal, owner_id):
        return

    if admin_bypass and principal.role is Role.ADMIN:
        logger.info(
            f"Admin {principal.user_id} acting on resource owned by user {owner_id}"
        )
        return

    logger.warning(
        f"User {principal.user_id} denied access to resource owned by user {owner_id}"
    )
    raise Forbidden(message)
