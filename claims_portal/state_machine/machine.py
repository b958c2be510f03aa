"""
Claim Status State Machine

Decides who may move a claim from which status to which status.
"""
import logging
from typing import Dict, FrozenSet, List, Optional, Union

from claims_portal.core.exceptions import TransitionNotPermitted
from claims_portal.core.models import Claim
from claims_portal.core.states import ClaimStatus, UserRole

logger = logging.getLogger(__name__)

StatusLike = Union[ClaimStatus, str]
RoleLike = Union[UserRole, str]


def _coerce_status(value: StatusLike) -> Optional[ClaimStatus]:
    try:
        return ClaimStatus(value)
    except ValueError:
        return None


def _coerce_role(value: RoleLike) -> Optional[UserRole]:
    try:
        return UserRole(value)
    except ValueError:
        return None


class ClaimStatusMachine:
    """
    Status transition table plus role gating.

    Policyholders may only submit their drafts, adjusters may do anything the
    table allows except approving or paying, supervisors and admins may do
    anything the table allows.
    """

    # Valid transitions (from_status -> set of valid to_statuses)
    TRANSITIONS: Dict[ClaimStatus, FrozenSet[ClaimStatus]] = {
        ClaimStatus.DRAFT: frozenset({ClaimStatus.SUBMITTED}),
        ClaimStatus.SUBMITTED: frozenset({ClaimStatus.IN_REVIEW, ClaimStatus.REJECTED}),
        ClaimStatus.IN_REVIEW: frozenset({
            ClaimStatus.INFO_REQUESTED,
            ClaimStatus.APPROVED,
            ClaimStatus.REJECTED,
        }),
        ClaimStatus.INFO_REQUESTED: frozenset({ClaimStatus.IN_REVIEW, ClaimStatus.REJECTED}),
        ClaimStatus.APPROVED: frozenset({ClaimStatus.PAID, ClaimStatus.REJECTED}),
        ClaimStatus.REJECTED: frozenset({ClaimStatus.IN_REVIEW}),
        ClaimStatus.PAID: frozenset({ClaimStatus.CLOSED}),
        ClaimStatus.CLOSED: frozenset(),  # Terminal
    }

    # Targets an adjuster may never move a claim into
    ADJUSTER_FORBIDDEN_TARGETS: FrozenSet[ClaimStatus] = frozenset({
        ClaimStatus.APPROVED,
        ClaimStatus.PAID,
    })

    def get_valid_transitions(self, current: StatusLike) -> List[ClaimStatus]:
        """Statuses reachable from ``current`` per the table, in canonical order."""
        status = _coerce_status(current)
        allowed = self.TRANSITIONS.get(status, frozenset())
        return [s for s in ClaimStatus if s in allowed]

    def can_transition(self, current: StatusLike, target: StatusLike, role: RoleLike) -> bool:
        """
        Check whether ``role`` may move a claim from ``current`` to ``target``.

        Pure function of its arguments. Unknown statuses or roles are never
        permitted.
        """
        current_status = _coerce_status(current)
        target_status = _coerce_status(target)
        user_role = _coerce_role(role)
        if current_status is None or target_status is None or user_role is None:
            return False

        if target_status not in self.TRANSITIONS.get(current_status, frozenset()):
            return False

        if user_role == UserRole.POLICYHOLDER:
            return current_status == ClaimStatus.DRAFT and target_status == ClaimStatus.SUBMITTED

        if user_role == UserRole.ADJUSTER:
            return target_status not in self.ADJUSTER_FORBIDDEN_TARGETS

        return True

    def get_available_transitions(self, current: StatusLike, role: RoleLike) -> List[ClaimStatus]:
        """Statuses ``role`` may move a claim in ``current`` to."""
        return [
            target for target in self.get_valid_transitions(current)
            if self.can_transition(current, target, role)
        ]

    def transition(
        self,
        claim: Claim,
        target: StatusLike,
        role: RoleLike,
        actor_id: str,
        reason: Optional[str] = None
    ) -> Claim:
        """
        Execute a status change on ``claim``.

        Records a STATUS_CHANGED audit event. Entering APPROVED fills in the
        approved amount from the claimed amount when it is not set yet.

        Raises:
            TransitionNotPermitted: If the table or the role forbids it
        """
        if not self.can_transition(claim.status, target, role):
            raise TransitionNotPermitted(
                getattr(claim.status, "value", str(claim.status)),
                getattr(target, "value", str(target)),
                getattr(role, "value", str(role)),
            )

        previous = claim.status
        new_status = ClaimStatus(target)
        claim.record_status_change(new_status)

        if new_status == ClaimStatus.APPROVED and claim.amount_approved is None:
            claim.amount_approved = claim.amount_claimed

        claim.add_audit_event(
            actor_id=actor_id,
            event_type="STATUS_CHANGED",
            payload={"from": previous.value, "to": new_status.value, "reason": reason}
        )
        logger.info(f"Claim {claim.id} moved from {previous.value} to {new_status.value}")
        return claim


# Default machine shared by the portal and the mock API
status_machine = ClaimStatusMachine()


def can_transition_status(current: StatusLike, target: StatusLike, role: RoleLike) -> bool:
    """Module-level shortcut for :meth:`ClaimStatusMachine.can_transition`."""
    return status_machine.can_transition(current, target, role)


def get_available_transitions(current: StatusLike, role: RoleLike) -> List[ClaimStatus]:
    return status_machine.get_available_transitions(current, role)
