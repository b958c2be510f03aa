"""
Role-based permission checks for portal actions.
"""
from typing import Iterable, Optional, Union

from claims_portal.core.models import User
from claims_portal.core.states import ClaimStatus, UserRole

MANAGER_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPERVISOR})

# Roles that can be handed a claim to work on
ASSIGNABLE_ROLES = frozenset({UserRole.ADJUSTER, UserRole.SUPERVISOR})


def has_role(user: Optional[User], role: Union[UserRole, str]) -> bool:
    return user is not None and user.role == role


def has_any_role(user: Optional[User], roles: Iterable[Union[UserRole, str]]) -> bool:
    if user is None:
        return False
    return user.role.value in {getattr(r, "value", r) for r in roles}


def can_view_claim(user: Optional[User], claimant_id: Optional[str] = None) -> bool:
    if user is None:
        return False
    if user.role in MANAGER_ROLES or user.role == UserRole.ADJUSTER:
        return True
    return user.id == claimant_id


def can_edit_claim(
    user: Optional[User],
    claimant_id: Optional[str] = None,
    status: Optional[Union[ClaimStatus, str]] = None
) -> bool:
    if user is None:
        return False
    if user.role in MANAGER_ROLES:
        return True
    if user.role == UserRole.ADJUSTER:
        return status != ClaimStatus.DRAFT
    return user.id == claimant_id and status == ClaimStatus.DRAFT


def can_approve_claim(user: Optional[User]) -> bool:
    return user is not None and user.role in MANAGER_ROLES


def can_assign_claim(user: Optional[User]) -> bool:
    return user is not None and user.role in MANAGER_ROLES


def can_receive_assignments(user: Optional[User]) -> bool:
    return user is not None and user.role in ASSIGNABLE_ROLES


def can_view_internal_notes(user: Optional[User]) -> bool:
    return user is not None and user.role != UserRole.POLICYHOLDER


def can_manage_users(user: Optional[User]) -> bool:
    return has_role(user, UserRole.ADMIN)
