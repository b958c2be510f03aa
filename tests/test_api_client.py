# tests/test_api_client.py
from unittest.mock import MagicMock

import pytest
import requests

from claims_portal.api.client import ApiClient, extract_error_message
from claims_portal.core.exceptions import ApiError, NetworkError, UnauthorizedError
from claims_portal.core.models import AssignmentRequest, ClaimFilters
from claims_portal.core.states import ClaimStatus, Priority
from tests.factories import envelope, make_claim, make_response, make_user


def test_request_sends_bearer_token_and_unwraps_envelope(api_client, mock_session):
    user = make_user()
    mock_session.request.return_value = make_response(200, envelope(user.to_wire()))
    api_client.token = "abc"

    result = api_client.auth.get_current_user()

    assert result.email == user.email
    method, url = mock_session.request.call_args.args
    kwargs = mock_session.request.call_args.kwargs
    assert (method, url) == ("GET", "http://api.test/auth/me")
    assert kwargs["headers"]["Authorization"] == "Bearer abc"
    assert kwargs["timeout"] == 5


def test_no_authorization_header_without_token(api_client, mock_session):
    mock_session.request.return_value = make_response(200, envelope([]))
    api_client.users.get_users()
    assert "Authorization" not in mock_session.request.call_args.kwargs["headers"]


def test_401_clears_token_and_calls_hook(api_client, mock_session):
    hook = MagicMock()
    api_client.token = "expired"
    api_client.on_unauthorized = hook
    mock_session.request.return_value = make_response(401, {"detail": "Invalid or expired token"})

    with pytest.raises(UnauthorizedError) as exc_info:
        api_client.claims.get_claim_by_id("c-1")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid or expired token"
    assert api_client.token is None
    hook.assert_called_once()


def test_error_status_raises_api_error_with_backend_message(api_client, mock_session):
    mock_session.request.return_value = make_response(403, {"message": "Not allowed", "code": "FORBIDDEN"})

    with pytest.raises(ApiError) as exc_info:
        api_client.claims.delete_claim("c-1")

    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "Not allowed"
    assert exc_info.value.payload["code"] == "FORBIDDEN"


def test_connection_failure_becomes_network_error(api_client, mock_session):
    mock_session.request.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(NetworkError):
        api_client.auth.logout()


def test_empty_response_returns_none(api_client, mock_session):
    mock_session.request.return_value = make_response(204)
    assert api_client.delete("/notes/n-1") is None


def test_extract_error_message_variants():
    assert extract_error_message(make_response(400, {"message": "Bad claim"}), "x") == "Bad claim"
    assert extract_error_message(make_response(404, {"detail": "Claim c-1 not found"}), "x") == "Claim c-1 not found"
    validation = {"detail": [{"loc": ["body", "policyId"], "msg": "Field required", "type": "missing"}]}
    assert extract_error_message(make_response(422, validation), "x") == "Field required"
    assert extract_error_message(make_response(500), "fallback") == "fallback"


def test_get_claims_sends_pagination_and_repeated_filters(api_client, mock_session):
    claim = make_claim()
    page = {"data": [claim.to_wire()], "total": 1, "page": 2, "limit": 5, "totalPages": 1}
    mock_session.request.return_value = make_response(200, envelope(page))

    result = api_client.claims.get_claims(
        ClaimFilters(status=[ClaimStatus.SUBMITTED, ClaimStatus.IN_REVIEW], priority=[Priority.HIGH]),
        page=2,
        limit=5
    )

    assert result.total == 1
    assert result.data[0].id == claim.id
    assert mock_session.request.call_args.kwargs["params"] == [
        ("page", "2"),
        ("limit", "5"),
        ("status", "SUBMITTED"),
        ("status", "IN_REVIEW"),
        ("priority", "HIGH"),
    ]


def test_update_claim_status_payload(api_client, mock_session):
    claim = make_claim(status=ClaimStatus.IN_REVIEW)
    mock_session.request.return_value = make_response(200, envelope(claim.to_wire()))

    api_client.claims.update_claim_status("c-1", ClaimStatus.IN_REVIEW, reason="Starting review")

    args = mock_session.request.call_args
    assert args.args == ("PATCH", "http://api.test/claims/c-1/status")
    assert args.kwargs["json"] == {"targetStatus": "IN_REVIEW", "reason": "Starting review"}


def test_update_claim_converts_field_names(api_client, mock_session):
    claim = make_claim()
    mock_session.request.return_value = make_response(200, envelope(claim.to_wire()))

    api_client.claims.update_claim("c-1", {"amount_claimed": 99.0, "description": "New text here"})

    assert mock_session.request.call_args.kwargs["json"] == {
        "amountClaimed": 99.0,
        "description": "New text here",
    }


def test_assign_claim_omits_unset_due_date(api_client, mock_session):
    claim = make_claim(priority=Priority.HIGH)
    mock_session.request.return_value = make_response(201, envelope(claim.assignment.to_wire()))

    assignment = api_client.claims.assign_claim(
        AssignmentRequest(claim_id="c-1", adjuster_id="adjuster-1", priority=Priority.HIGH)
    )

    assert assignment.priority == Priority.HIGH
    assert mock_session.request.call_args.kwargs["json"] == {
        "claimId": "c-1",
        "adjusterId": "adjuster-1",
        "priority": "HIGH",
    }


def test_upload_file_presigns_posts_and_confirms(api_client, mock_session):
    presign = {"url": "https://uploads.test/bucket", "fields": {"key": "claims/k/photo.png"}, "s3Key": "claims/k/photo.png"}
    attachment = {
        "id": "att-1",
        "claimId": "c-1",
        "s3Key": "claims/k/photo.png",
        "fileName": "photo.png",
        "mimeType": "image/png",
        "size": 3,
        "checksum": "x",
        "uploadedBy": "u-1",
        "createdAt": "2024-06-02T10:00:00",
    }
    mock_session.request.side_effect = [
        make_response(200, envelope(presign)),
        make_response(201, envelope(attachment)),
    ]
    mock_session.post.return_value = make_response(204)

    result = api_client.attachments.upload_file("c-1", "photo.png", b"abc", "image/png")

    assert result.id == "att-1"
    post = mock_session.post.call_args
    assert post.args == ("https://uploads.test/bucket",)
    assert post.kwargs["data"] == {"key": "claims/k/photo.png"}
    assert post.kwargs["files"]["file"] == ("photo.png", b"abc", "image/png")

    presign_body = mock_session.request.call_args_list[0].kwargs["json"]
    assert presign_body["checksum"] == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    confirm_body = mock_session.request.call_args_list[1].kwargs["json"]
    assert confirm_body["claimId"] == "c-1"
    assert confirm_body["s3Key"] == "claims/k/photo.png"


def test_upload_failure_raises_api_error(api_client, mock_session):
    presign = {"url": "https://uploads.test/bucket", "fields": {}, "s3Key": "k"}
    mock_session.request.return_value = make_response(200, envelope(presign))
    mock_session.post.return_value = make_response(403)

    with pytest.raises(ApiError) as exc_info:
        api_client.attachments.upload_file("c-1", "photo.png", b"abc", "image/png")
    assert exc_info.value.status_code == 403


def test_url_for_keeps_absolute_urls():
    client = ApiClient(base_url="http://api.test/", session=MagicMock())
    assert client.url_for("/claims") == "http://api.test/claims"
    assert client.url_for("https://elsewhere.test/x") == "https://elsewhere.test/x"
