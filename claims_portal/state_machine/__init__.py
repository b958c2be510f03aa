# State machine module - status transitions and role permissions
from .machine import ClaimStatusMachine, status_machine, can_transition_status, get_available_transitions
from .permissions import (
    has_role,
    has_any_role,
    can_view_claim,
    can_edit_claim,
    can_approve_claim,
    can_assign_claim,
    can_receive_assignments,
    can_view_internal_notes,
    can_manage_users,
)

__all__ = [
    "ClaimStatusMachine",
    "status_machine",
    "can_transition_status",
    "get_available_transitions",
    "has_role",
    "has_any_role",
    "can_view_claim",
    "can_edit_claim",
    "can_approve_claim",
    "can_assign_claim",
    "can_receive_assignments",
    "can_view_internal_notes",
    "can_manage_users",
]
