"""
Claims Store

Client-side state behind the claims list, claim detail and workbench pages.
Every operation updates the state first and re-raises failures so the page
can show a notification.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from claims_portal.api.client import ApiClient
from claims_portal.core.exceptions import ApiError, TransitionNotPermitted
from claims_portal.core.forms import ClaimFormData
from claims_portal.core.models import (
    Assignment,
    AssignmentRequest,
    Claim,
    ClaimFilters,
    StatusChangeRequest,
    User,
)
from claims_portal.core.states import ClaimStatus, Priority
from claims_portal.state_machine.machine import can_transition_status

logger = logging.getLogger(__name__)

TRANSITION_DENIED_MESSAGE = "You cannot perform this status transition"


@dataclass
class Pagination:
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 0

    @property
    def first_index(self) -> int:
        """1-based index of the first claim on the page (0 when empty)."""
        return 0 if self.total == 0 else (self.page - 1) * self.limit + 1

    @property
    def last_index(self) -> int:
        return min(self.page * self.limit, self.total)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


@dataclass
class ClaimsState:
    claims: List[Claim] = field(default_factory=list)
    current_claim: Optional[Claim] = None
    filters: ClaimFilters = field(default_factory=ClaimFilters)
    pagination: Pagination = field(default_factory=Pagination)
    is_loading: bool = False
    is_submitting: bool = False
    error: Optional[str] = None


class ClaimsStore:
    """Claims state plus the API calls that change it."""

    def __init__(self, client: ApiClient, page_size: int = 10):
        self.client = client
        self.state = ClaimsState(pagination=Pagination(limit=page_size))

    # ----------------------------------------
    # Async-style operations
    # ----------------------------------------

    def fetch_claims(
        self,
        filters: Optional[ClaimFilters] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[Claim]:
        state = self.state
        state.is_loading = True
        state.error = None
        try:
            result = self.client.claims.get_claims(
                filters=filters if filters is not None else state.filters,
                page=page or state.pagination.page,
                limit=limit or state.pagination.limit
            )
        except ApiError as e:
            state.error = e.message or "Failed to fetch claims"
            raise
        finally:
            state.is_loading = False

        state.claims = list(result.data)
        state.pagination = Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages
        )
        return state.claims

    def fetch_claim_by_id(self, claim_id: str) -> Claim:
        state = self.state
        state.is_loading = True
        state.error = None
        try:
            claim = self.client.claims.get_claim_by_id(claim_id)
        except ApiError as e:
            state.error = e.message or "Failed to fetch claim"
            raise
        finally:
            state.is_loading = False

        state.current_claim = claim
        return claim

    def create_claim(self, claim_data: ClaimFormData) -> Claim:
        state = self.state
        state.is_submitting = True
        state.error = None
        try:
            claim = self.client.claims.create_claim(claim_data)
        except ApiError as e:
            state.error = e.message or "Failed to create claim"
            raise
        finally:
            state.is_submitting = False

        state.claims.insert(0, claim)
        return claim

    def update_claim_status(
        self,
        claim_id: str,
        target_status: Union[ClaimStatus, str],
        user: User,
        reason: Optional[str] = None
    ) -> Claim:
        """
        Move a claim to ``target_status`` on behalf of ``user``.

        The transition is checked locally before anything is sent.

        Raises:
            TransitionNotPermitted: If the user's role may not perform it
            ApiError: If the backend refuses the change
        """
        state = self.state
        current = self._find(claim_id)
        if current is not None and not can_transition_status(current.status, target_status, user.role):
            state.error = TRANSITION_DENIED_MESSAGE
            raise TransitionNotPermitted(
                current.status.value,
                getattr(target_status, "value", str(target_status)),
                user.role.value
            )

        state.is_submitting = True
        state.error = None
        try:
            claim = self.client.claims.update_claim_status(
                claim_id,
                StatusChangeRequest(target_status=target_status, reason=reason or None)
            )
        except ApiError as e:
            state.error = e.message or "Failed to update claim status"
            raise
        finally:
            state.is_submitting = False

        logger.info(f"Claim {claim_id} is now {claim.status.value}")
        if state.current_claim is not None and state.current_claim.id == claim.id:
            state.current_claim = claim
        self.update_claim_in_list(claim)
        return claim

    def assign_claim(
        self,
        claim_id: str,
        adjuster_id: str,
        priority: Union[Priority, str]
    ) -> Assignment:
        assignment = self.client.claims.assign_claim(
            AssignmentRequest(claim_id=claim_id, adjuster_id=adjuster_id, priority=priority)
        )
        current = self.state.current_claim
        if current is not None and current.id == assignment.claim_id:
            current.assignment = assignment
        return assignment

    # ----------------------------------------
    # Plain state updates
    # ----------------------------------------

    def set_filters(self, filters: ClaimFilters) -> None:
        self.state.filters = filters

    def clear_filters(self) -> None:
        self.state.filters = ClaimFilters()

    def set_page(self, page: int) -> None:
        self.state.pagination.page = max(page, 1)

    def set_current_claim(self, claim: Optional[Claim]) -> None:
        self.state.current_claim = claim

    def clear_error(self) -> None:
        self.state.error = None

    def update_claim_in_list(self, claim: Claim) -> None:
        for index, existing in enumerate(self.state.claims):
            if existing.id == claim.id:
                self.state.claims[index] = claim
                return

    def _find(self, claim_id: str) -> Optional[Claim]:
        current = self.state.current_claim
        if current is not None and current.id == claim_id:
            return current
        return next((c for c in self.state.claims if c.id == claim_id), None)
