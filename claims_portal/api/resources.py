"""
Resource groups of the claims REST API (auth, claims, attachments, notes,
reports, users).
"""
import hashlib
import logging
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

import requests
from pydantic_core import to_jsonable_python
from pydantic.alias_generators import to_camel

from claims_portal.core.exceptions import ApiError, NetworkError
from claims_portal.core.forms import ClaimFormData, NoteForm, UserForm
from claims_portal.core.models import (
    Assignment,
    AssignmentRequest,
    Attachment,
    AttachmentConfirm,
    Claim,
    ClaimFilters,
    DashboardStats,
    LoginResult,
    Note,
    NoteUpdate,
    PaginatedResponse,
    PresignedUploadResponse,
    PresignRequest,
    SLAReport,
    StatusChangeRequest,
    TokenResult,
    User,
    UserUpdate,
)
from claims_portal.core.states import ClaimStatus, UserRole

if TYPE_CHECKING:
    from .client import ApiClient

logger = logging.getLogger(__name__)


def sha256_checksum(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


class _Resource:
    def __init__(self, client: "ApiClient"):
        self.client = client


class AuthApi(_Resource):
    def login(self, email: str, password: str) -> LoginResult:
        body = self.client.post("/auth/login", json={"email": email, "password": password})
        return self.client.unwrap(body, LoginResult)

    def logout(self) -> None:
        self.client.post("/auth/logout")

    def get_current_user(self) -> User:
        return self.client.unwrap(self.client.get("/auth/me"), User)

    def refresh_token(self) -> str:
        return self.client.unwrap(self.client.post("/auth/refresh"), TokenResult).token


class ClaimsApi(_Resource):
    def get_claims(
        self,
        filters: Optional[ClaimFilters] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None
    ) -> PaginatedResponse[Claim]:
        params = []
        if page:
            params.append(("page", str(page)))
        if limit:
            params.append(("limit", str(limit)))
        if filters:
            params.extend(filters.to_query_params())
        body = self.client.get("/claims", params=params)
        return self.client.unwrap(body, PaginatedResponse[Claim])

    def get_claim_by_id(self, claim_id: str) -> Claim:
        return self.client.unwrap(self.client.get(f"/claims/{claim_id}"), Claim)

    def create_claim(self, claim_data: ClaimFormData) -> Claim:
        body = self.client.post("/claims", json=claim_data.to_wire())
        return self.client.unwrap(body, Claim)

    def update_claim(self, claim_id: str, changes: Dict[str, Any]) -> Claim:
        """Partially update a claim; ``changes`` uses snake_case field names."""
        payload = {to_camel(key): to_jsonable_python(value) for key, value in changes.items()}
        body = self.client.patch(f"/claims/{claim_id}", json=payload)
        return self.client.unwrap(body, Claim)

    def update_claim_status(
        self,
        claim_id: str,
        status_change: Union[StatusChangeRequest, ClaimStatus, str],
        reason: Optional[str] = None
    ) -> Claim:
        if not isinstance(status_change, StatusChangeRequest):
            status_change = StatusChangeRequest(target_status=status_change, reason=reason)
        body = self.client.patch(
            f"/claims/{claim_id}/status",
            json=status_change.to_wire(exclude_none=True)
        )
        return self.client.unwrap(body, Claim)

    def delete_claim(self, claim_id: str) -> None:
        self.client.delete(f"/claims/{claim_id}")

    def assign_claim(self, assignment: AssignmentRequest) -> Assignment:
        body = self.client.post("/assignments", json=assignment.to_wire(exclude_none=True))
        return self.client.unwrap(body, Assignment)


class AttachmentsApi(_Resource):
    def get_presigned_upload_url(self, request: PresignRequest) -> PresignedUploadResponse:
        body = self.client.post("/attachments/presign", json=request.to_wire())
        return self.client.unwrap(body, PresignedUploadResponse)

    def confirm_upload(self, confirm: AttachmentConfirm) -> Attachment:
        body = self.client.post("/attachments", json=confirm.to_wire())
        return self.client.unwrap(body, Attachment)

    def delete_attachment(self, attachment_id: str) -> None:
        self.client.delete(f"/attachments/{attachment_id}")

    def upload_file(
        self,
        claim_id: str,
        file_name: str,
        content: bytes,
        mime_type: str
    ) -> Attachment:
        """
        Upload a document for a claim.

        Three steps: ask the backend for a presigned form upload, post the
        bytes to the returned URL with its form fields, then confirm the
        upload so the attachment is linked to the claim.
        """
        presign = PresignRequest(
            file_name=file_name,
            mime_type=mime_type,
            size=len(content),
            checksum=sha256_checksum(content)
        )
        target = self.get_presigned_upload_url(presign)
        url = self.client.url_for(target.url)

        logger.info(f"Uploading {file_name} ({len(content)} bytes) for claim {claim_id}")
        try:
            response = self.client.session.post(
                url,
                data=target.fields,
                files={"file": (file_name, content, mime_type)},
                timeout=self.client.timeout
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Upload of {file_name} failed: {e}") from e
        if response.status_code >= 400:
            raise ApiError(
                f"Upload of {file_name} failed with status {response.status_code}",
                status_code=response.status_code
            )

        return self.confirm_upload(AttachmentConfirm(
            s3_key=target.s3_key,
            file_name=file_name,
            mime_type=mime_type,
            size=presign.size,
            checksum=presign.checksum,
            claim_id=claim_id
        ))


class NotesApi(_Resource):
    def add_note(self, claim_id: str, note: NoteForm) -> Note:
        body = self.client.post(f"/claims/{claim_id}/notes", json=note.to_wire())
        return self.client.unwrap(body, Note)

    def update_note(self, note_id: str, body: str) -> Note:
        response = self.client.patch(f"/notes/{note_id}", json=NoteUpdate(body=body).to_wire())
        return self.client.unwrap(response, Note)

    def delete_note(self, note_id: str) -> None:
        self.client.delete(f"/notes/{note_id}")


class ReportsApi(_Resource):
    def get_sla_report(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> SLAReport:
        params = []
        if date_from:
            params.append(("dateFrom", date_from.isoformat()))
        if date_to:
            params.append(("dateTo", date_to.isoformat()))
        return self.client.unwrap(self.client.get("/reports/sla", params=params), SLAReport)

    def get_dashboard_stats(self) -> DashboardStats:
        return self.client.unwrap(self.client.get("/reports/dashboard"), DashboardStats)


class UsersApi(_Resource):
    def get_users(self, role: Optional[Union[UserRole, str]] = None) -> List[User]:
        params = [("role", UserRole(role).value)] if role else None
        return self.client.unwrap_list(self.client.get("/users", params=params), User)

    def get_user_by_id(self, user_id: str) -> User:
        return self.client.unwrap(self.client.get(f"/users/{user_id}"), User)

    def create_user(self, user: UserForm) -> User:
        body = self.client.post("/users", json=user.to_wire(exclude_none=True))
        return self.client.unwrap(body, User)

    def update_user(self, user_id: str, changes: UserUpdate) -> User:
        body = self.client.patch(f"/users/{user_id}", json=changes.to_wire(exclude_none=True))
        return self.client.unwrap(body, User)

    def delete_user(self, user_id: str) -> None:
        self.client.delete(f"/users/{user_id}")
