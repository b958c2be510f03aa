"""
Workbench Queues

Classifies the claims visible to an adjuster or supervisor into work queues
and orders them so the most pressing claims come first.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple, Union

from claims_portal.core.models import Claim, ClaimFilters, User
from claims_portal.core.states import ClaimStatus, Priority, UserRole

logger = logging.getLogger(__name__)

PENDING_REVIEW_STATUSES = frozenset({ClaimStatus.SUBMITTED, ClaimStatus.IN_REVIEW})
RECENT_SIZE = 5

# Statuses offered in the workbench status selector
WORKBENCH_STATUS_OPTIONS = [
    ClaimStatus.SUBMITTED,
    ClaimStatus.IN_REVIEW,
    ClaimStatus.INFO_REQUESTED,
    ClaimStatus.APPROVED,
    ClaimStatus.REJECTED,
]


def _now_like(moment: datetime, now: Optional[datetime]) -> datetime:
    """Current time comparable with ``moment`` (aware or naive)."""
    if now is None:
        return datetime.now(moment.tzinfo)
    if moment.tzinfo is not None and now.tzinfo is None:
        return now.replace(tzinfo=moment.tzinfo)
    if moment.tzinfo is None and now.tzinfo is not None:
        return now.replace(tzinfo=None)
    return now


def workbench_filters(
    user: User,
    priority: Optional[Union[Priority, str]] = None,
    status: Optional[Union[ClaimStatus, str]] = None
) -> ClaimFilters:
    """
    Filters for the workbench claim fetch.

    Supervisors see every claim; everyone else only the claims assigned to
    them, whatever the selectors say.
    """
    filters = ClaimFilters()
    if priority:
        filters.priority = [Priority(priority)]
    if status:
        filters.status = [ClaimStatus(status)]
    if user.role != UserRole.SUPERVISOR:
        filters.assigned_to = user.id
    return filters


def is_overdue(claim: Claim, now: Optional[datetime] = None) -> bool:
    """True if the claim's assignment is past its due date."""
    assignment = claim.assignment
    if assignment is None or assignment.due_at is None:
        return False
    return assignment.due_at < _now_like(assignment.due_at, now)


def is_urgent(claim: Claim, now: Optional[datetime] = None) -> bool:
    assignment = claim.assignment
    if assignment is not None and assignment.priority == Priority.URGENT:
        return True
    return is_overdue(claim, now)


def priority_sort_key(claim: Claim, now: Optional[datetime] = None) -> Tuple:
    """
    Sort key: overdue first, then priority (URGENT first, unassigned last),
    then earliest due date, then oldest claim.
    """
    assignment = claim.assignment
    rank = assignment.priority.rank if assignment is not None else -1
    due = assignment.due_at.timestamp() if assignment is not None else float("inf")
    return (
        0 if is_overdue(claim, now) else 1,
        -rank,
        due,
        claim.created_at.timestamp(),
    )


def prioritize(claims: Iterable[Claim], now: Optional[datetime] = None) -> List[Claim]:
    return sorted(claims, key=lambda claim: priority_sort_key(claim, now))


@dataclass
class WorkbenchQueues:
    """Claims split into the workbench queues, each already prioritized."""
    all_claims: List[Claim] = field(default_factory=list)
    urgent: List[Claim] = field(default_factory=list)
    pending_review: List[Claim] = field(default_factory=list)
    awaiting_info: List[Claim] = field(default_factory=list)
    recent: List[Claim] = field(default_factory=list)

    @property
    def counts(self) -> Dict[str, int]:
        return {
            "total": len(self.all_claims),
            "urgent": len(self.urgent),
            "pending_review": len(self.pending_review),
            "awaiting_info": len(self.awaiting_info),
        }

    def preview(self, queue: str, size: int = 5) -> List[Claim]:
        """First ``size`` claims of a queue, for the queue cards."""
        return list(getattr(self, queue))[:size]


def build_queues(claims: Iterable[Claim], now: Optional[datetime] = None) -> WorkbenchQueues:
    """
    Classify claims into urgent, pending review and awaiting info queues,
    plus the newest RECENT_SIZE claims.

    A claim may sit in more than one queue: an overdue IN_REVIEW claim is both
    urgent and pending review.
    """
    claims = list(claims)
    queues = WorkbenchQueues(
        all_claims=prioritize(claims, now),
        urgent=prioritize((c for c in claims if is_urgent(c, now)), now),
        pending_review=prioritize((c for c in claims if c.status in PENDING_REVIEW_STATUSES), now),
        awaiting_info=prioritize((c for c in claims if c.status == ClaimStatus.INFO_REQUESTED), now),
        recent=sorted(claims, key=lambda c: c.created_at.timestamp(), reverse=True)[:RECENT_SIZE],
    )
    logger.debug(f"Workbench queues built: {queues.counts}")
    return queues


@dataclass
class StatusSummary:
    total_claims: int
    status_counts: Dict[ClaimStatus, int]
    total_claimed: float
    total_approved: float
    overdue: int


def summarize_claims(claims: Iterable[Claim], now: Optional[datetime] = None) -> StatusSummary:
    """Counts per status (canonical order) and money totals for a claim list."""
    claims = list(claims)
    status_counts = {status: 0 for status in ClaimStatus}
    for claim in claims:
        status_counts[claim.status] += 1
    return StatusSummary(
        total_claims=len(claims),
        status_counts=status_counts,
        total_claimed=sum(c.amount_claimed or 0.0 for c in claims),
        total_approved=sum(c.amount_approved or 0.0 for c in claims),
        overdue=sum(1 for c in claims if is_overdue(c, now)),
    )
