"""
Claim Pydantic Models

Defines the records exchanged with the claims REST backend. Field names are
snake_case in Python and camelCase on the wire.
"""
from datetime import date, datetime
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .states import ClaimStatus, NoteVisibility, Priority, UserRole

T = TypeVar("T")


def new_id() -> str:
    return str(uuid4())


class WireModel(BaseModel):
    """Base model serialized with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        loc_by_alias=False,
    )

    def to_wire(self, **kwargs: Any) -> Dict[str, Any]:
        """Dump to a JSON-ready dict using wire (camelCase) names."""
        return self.model_dump(by_alias=True, mode="json", **kwargs)


# ============================================
# ENTITIES
# ============================================

class User(WireModel):
    id: str = Field(default_factory=new_id)
    email: str
    role: UserRole
    display_name: str
    created_at: datetime = Field(default_factory=datetime.now)


class Policy(WireModel):
    id: str = Field(default_factory=new_id)
    policy_number: str
    holder_id: str
    product: str
    start_date: date
    end_date: date
    status: str = "ACTIVE"


class ClaimItem(WireModel):
    id: str = Field(default_factory=new_id)
    claim_id: str
    category: str
    description: str
    estimated_cost: float


class Attachment(WireModel):
    id: str = Field(default_factory=new_id)
    claim_id: str
    s3_key: str
    file_name: str
    mime_type: str
    size: int
    checksum: str
    uploaded_by: str
    created_at: datetime = Field(default_factory=datetime.now)


class Note(WireModel):
    id: str = Field(default_factory=new_id)
    claim_id: str
    author_id: str
    author: Optional[User] = None
    body: str
    visibility: NoteVisibility = NoteVisibility.PUBLIC
    created_at: datetime = Field(default_factory=datetime.now)


class Assignment(WireModel):
    """The adjuster, priority and due date bound to a claim during review."""
    id: str = Field(default_factory=new_id)
    claim_id: str
    adjuster_id: str
    adjuster: Optional[User] = None
    assigned_at: datetime = Field(default_factory=datetime.now)
    due_at: datetime
    priority: Priority = Priority.MEDIUM


class AuditEvent(WireModel):
    id: str = Field(default_factory=new_id)
    claim_id: str
    actor_id: str
    actor: Optional[User] = None
    event_type: str
    payload_json: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)


class Claim(WireModel):
    """
    Insurance Claim Model

    The status is owned by the backend; the client only reads it and asks for
    transitions through the status endpoint.
    """
    id: str = Field(default_factory=new_id)
    policy_id: str
    policy: Optional[Policy] = None
    claimant_id: str
    claimant: Optional[User] = None
    incident_date: date
    incident_type: str
    description: str = ""
    status: ClaimStatus = ClaimStatus.DRAFT
    amount_claimed: Optional[float] = None
    amount_approved: Optional[float] = None
    currency: str = "USD"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    items: List[ClaimItem] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    assignment: Optional[Assignment] = None
    events: List[AuditEvent] = Field(default_factory=list)

    def record_status_change(self, new_status: ClaimStatus) -> None:
        """Set a new status and bump the update timestamp."""
        self.status = new_status
        self.updated_at = datetime.now()

    def add_audit_event(
        self,
        actor_id: str,
        event_type: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> AuditEvent:
        """Append an entry to the claim's audit trail."""
        event = AuditEvent(
            claim_id=self.id,
            actor_id=actor_id,
            event_type=event_type,
            payload_json=payload or {}
        )
        self.events.append(event)
        self.updated_at = datetime.now()
        return event


# ============================================
# REQUEST BODIES
# ============================================

class StatusChangeRequest(WireModel):
    target_status: ClaimStatus
    reason: Optional[str] = None


class AssignmentRequest(WireModel):
    claim_id: str
    adjuster_id: str
    priority: Priority = Priority.MEDIUM
    due_at: Optional[datetime] = None


class NoteUpdate(WireModel):
    body: str = Field(min_length=1)


class PresignRequest(WireModel):
    file_name: str
    mime_type: str
    size: int = Field(ge=0)
    checksum: str


class AttachmentConfirm(PresignRequest):
    s3_key: str
    claim_id: str


class UserUpdate(WireModel):
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: Optional[UserRole] = None


# ============================================
# RESPONSE ENVELOPES
# ============================================

class ApiResponse(WireModel, Generic[T]):
    """Envelope wrapping every backend response."""
    data: T
    message: Optional[str] = None
    success: bool = True


class PaginatedResponse(WireModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


class LoginResult(WireModel):
    user: User
    token: str


class TokenResult(WireModel):
    token: str


class PresignedUploadResponse(WireModel):
    url: str
    fields: Dict[str, str] = Field(default_factory=dict)
    s3_key: str


class ClaimFilters(WireModel):
    """Worklist filters; unset values are not sent to the backend."""
    status: Optional[List[ClaimStatus]] = None
    product: Optional[List[str]] = None
    priority: Optional[List[Priority]] = None
    assigned_to: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None

    def to_query_params(self) -> List[Tuple[str, str]]:
        """Flatten to query parameters, repeating keys for list values."""
        params: List[Tuple[str, str]] = []
        for key, value in self.to_wire(exclude_none=True).items():
            if isinstance(value, list):
                params.extend((key, str(item)) for item in value)
            elif value != "":
                params.append((key, str(value)))
        return params


class SLAReport(WireModel):
    total_claims: int = 0
    on_time: int = 0
    overdue: int = 0
    average_cycle_time: float = 0.0
    breaches_by_product: Dict[str, int] = Field(default_factory=dict)


class DashboardStats(WireModel):
    total_claims: int = 0
    pending_review: int = 0
    approved_today: int = 0
    overdue_assignments: int = 0
    average_processing_time: float = 0.0
