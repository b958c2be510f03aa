# tests/test_services.py
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from claims_portal.core.exceptions import ApiError, TransitionNotPermitted, UnauthorizedError
from claims_portal.core.models import Assignment, Claim, ClaimFilters, LoginResult, PaginatedResponse
from claims_portal.core.states import ClaimStatus, Priority, UserRole
from claims_portal.services.auth import AuthSession
from claims_portal.services.claims_store import TRANSITION_DENIED_MESSAGE, ClaimsStore, Pagination
from tests.factories import NOW, make_claim, make_user


@pytest.fixture
def client():
    client = MagicMock()
    client.token = None
    return client


# ============================================
# AUTH SESSION
# ============================================

def test_login_stores_user_and_token(client):
    user = make_user()
    client.auth.login.return_value = LoginResult(user=user, token="tok-1")
    session = AuthSession(client)

    assert session.login("user@example.com", "password123") == user
    assert session.is_authenticated
    assert client.token == "tok-1"
    assert session.has_role(UserRole.POLICYHOLDER)
    assert not session.has_any_role([UserRole.ADMIN, UserRole.SUPERVISOR])


def test_login_rejects_malformed_credentials_without_calling_backend(client):
    session = AuthSession(client)
    with pytest.raises(ValidationError):
        session.login("not-an-email", "pw")
    client.auth.login.assert_not_called()


def test_login_failure_sets_error(client):
    client.auth.login.side_effect = UnauthorizedError("Invalid email or password", status_code=401)
    session = AuthSession(client)

    with pytest.raises(UnauthorizedError):
        session.login("user@example.com", "wrong-password")

    assert session.error == "Invalid email or password"
    assert not session.is_loading
    assert not session.is_authenticated


def test_logout_clears_session_even_when_backend_fails(client):
    session = AuthSession(client)
    session.user = make_user()
    client.token = "tok-1"
    client.auth.logout.side_effect = ApiError("Server error", status_code=500)

    session.logout()

    assert session.user is None
    assert client.token is None


def test_unauthorized_hook_is_registered(client):
    session = AuthSession(client)
    session.user = make_user()
    client.token = "tok-1"

    client.on_unauthorized()

    assert session.user is None
    assert client.token is None


def test_refresh_swaps_token(client):
    client.token = "old"
    client.auth.refresh_token.return_value = "new"
    assert AuthSession(client).refresh() == "new"
    assert client.token == "new"


# ============================================
# CLAIMS STORE
# ============================================

def page_of(claims, page=1, limit=10, total=None):
    total = len(claims) if total is None else total
    return PaginatedResponse[Claim](
        data=claims, total=total, page=page, limit=limit, total_pages=(total + limit - 1) // limit
    )


def test_fetch_claims_replaces_list_and_pagination(client):
    claims = [make_claim(), make_claim()]
    client.claims.get_claims.return_value = page_of(claims, page=2, limit=2, total=5)
    store = ClaimsStore(client)
    filters = ClaimFilters(status=[ClaimStatus.SUBMITTED])
    store.set_filters(filters)

    assert store.fetch_claims(page=2, limit=2) == claims

    client.claims.get_claims.assert_called_once_with(filters=filters, page=2, limit=2)
    assert store.state.pagination == Pagination(page=2, limit=2, total=5, total_pages=3)
    assert store.state.pagination.first_index == 3
    assert store.state.pagination.last_index == 4
    assert store.state.pagination.has_previous and store.state.pagination.has_next
    assert not store.state.is_loading


def test_fetch_claims_failure_uses_message_and_reraises(client):
    client.claims.get_claims.side_effect = ApiError("", status_code=500)
    store = ClaimsStore(client)

    with pytest.raises(ApiError):
        store.fetch_claims()

    assert store.state.error == "Failed to fetch claims"
    assert not store.state.is_loading


def test_create_claim_is_prepended(client):
    existing = make_claim()
    created = make_claim(status=ClaimStatus.DRAFT)
    client.claims.create_claim.return_value = created
    store = ClaimsStore(client)
    store.state.claims = [existing]

    store.create_claim(MagicMock())

    assert store.state.claims == [created, existing]
    assert not store.state.is_submitting


def test_update_status_replaces_claim_in_list_and_current(client):
    claim = make_claim(status=ClaimStatus.SUBMITTED)
    updated = claim.model_copy(update={"status": ClaimStatus.IN_REVIEW})
    client.claims.update_claim_status.return_value = updated
    store = ClaimsStore(client)
    store.state.claims = [make_claim(), claim]
    store.set_current_claim(claim)

    store.update_claim_status(claim.id, ClaimStatus.IN_REVIEW, make_user(UserRole.ADJUSTER), reason="")

    assert store.state.current_claim.status == ClaimStatus.IN_REVIEW
    assert store.state.claims[1].status == ClaimStatus.IN_REVIEW
    request = client.claims.update_claim_status.call_args.args[1]
    assert request.target_status == ClaimStatus.IN_REVIEW
    assert request.reason is None


def test_update_status_denied_locally(client):
    claim = make_claim(status=ClaimStatus.IN_REVIEW)
    store = ClaimsStore(client)
    store.state.claims = [claim]

    with pytest.raises(TransitionNotPermitted):
        store.update_claim_status(claim.id, ClaimStatus.APPROVED, make_user(UserRole.ADJUSTER))

    assert store.state.error == TRANSITION_DENIED_MESSAGE
    client.claims.update_claim_status.assert_not_called()


def test_update_status_backend_error(client):
    claim = make_claim(status=ClaimStatus.IN_REVIEW)
    client.claims.update_claim_status.side_effect = ApiError("Invalid transition", status_code=400)
    store = ClaimsStore(client)
    store.set_current_claim(claim)

    with pytest.raises(ApiError):
        store.update_claim_status(claim.id, ClaimStatus.APPROVED, make_user(UserRole.SUPERVISOR))

    assert store.state.error == "Invalid transition"
    assert not store.state.is_submitting
    assert store.state.current_claim.status == ClaimStatus.IN_REVIEW


def test_assign_sets_current_claim_assignment(client):
    claim = make_claim()
    assignment = Assignment(claim_id=claim.id, adjuster_id="adj-9", due_at=NOW, priority=Priority.HIGH)
    client.claims.assign_claim.return_value = assignment
    store = ClaimsStore(client)
    store.set_current_claim(claim)

    store.assign_claim(claim.id, "adj-9", Priority.HIGH)

    assert store.state.current_claim.assignment == assignment


def test_plain_state_updates(client):
    store = ClaimsStore(client, page_size=25)
    assert store.state.pagination.limit == 25

    store.set_filters(ClaimFilters(search="roof"))
    store.clear_filters()
    assert store.state.filters == ClaimFilters()

    store.set_page(0)
    assert store.state.pagination.page == 1

    store.state.error = "boom"
    store.clear_error()
    assert store.state.error is None

    empty = Pagination()
    assert empty.first_index == 0 and empty.last_index == 0
