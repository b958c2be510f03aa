"""
FastAPI Endpoints of the Mock Claims Backend

Implements the REST contract the portal consumes, backed by the in-memory
store. Every JSON response is wrapped in ``{data, message, success}``.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, Response, UploadFile, status
from pydantic_core import to_jsonable_python

from claims_portal.config import get_settings
from claims_portal.core.forms import ClaimFormData, NoteForm, UserForm
from claims_portal.core.models import (
    Assignment,
    AssignmentRequest,
    Attachment,
    AttachmentConfirm,
    Claim,
    ClaimItem,
    DashboardStats,
    Note,
    NoteUpdate,
    PaginatedResponse,
    PresignedUploadResponse,
    PresignRequest,
    SLAReport,
    StatusChangeRequest,
    User,
    UserUpdate,
    WireModel,
    new_id,
)
from claims_portal.core.states import ClaimStatus, NoteVisibility, Priority, UserRole
from claims_portal.services.wizard import ACCEPTED_UPLOADS
from claims_portal.services.workbench import PENDING_REVIEW_STATUSES, is_overdue
from claims_portal.state_machine import permissions
from claims_portal.state_machine.machine import status_machine

from .dependencies import get_current_user, get_store, get_token, require_roles
from .store import DEFAULT_PASSWORD, MockStore, PendingUpload

logger = logging.getLogger(__name__)

DECISION_STATUSES = frozenset({ClaimStatus.APPROVED.value, ClaimStatus.REJECTED.value})


def envelope(data: Any, message: Optional[str] = None) -> Dict[str, Any]:
    return {
        "data": to_jsonable_python(data, by_alias=True),
        "message": message,
        "success": True,
    }


def _not_found(kind: str, item_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{kind} {item_id} not found"
    )


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _visible_claim(store: MockStore, claim_id: str, user: User) -> Claim:
    """The claim, if it exists and ``user`` may see it (404 otherwise)."""
    claim = store.claims.get(claim_id)
    if claim is None or not permissions.can_view_claim(user, claim.claimant_id):
        raise _not_found("Claim", claim_id)
    return claim


def claim_view(claim: Claim, user: User) -> Claim:
    """Copy of the claim as ``user`` may see it (internal notes hidden from policyholders)."""
    if permissions.can_view_internal_notes(user):
        return claim
    public_notes = [n for n in claim.notes if n.visibility == NoteVisibility.PUBLIC]
    return claim.model_copy(update={"notes": public_notes})


def _naive(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def decision_time(claim: Claim) -> Optional[datetime]:
    """When the claim was first approved or rejected, if ever."""
    for event in claim.events:
        if event.event_type == "STATUS_CHANGED" and event.payload_json.get("to") in DECISION_STATUSES:
            return event.created_at
    return None


def cycle_days(claim: Claim) -> Optional[float]:
    decided = decision_time(claim)
    if decided is None:
        return None
    return (decided - claim.created_at).total_seconds() / 86400


# ============================================
# AUTH
# ============================================

auth_router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(WireModel):
    email: str
    password: str


@auth_router.post("/login")
async def login(credentials: LoginRequest, store: MockStore = Depends(get_store)) -> Dict[str, Any]:
    user = store.authenticate(credentials.email, credentials.password)
    if user is None:
        logger.info(f"Failed login for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )
    token = store.issue_token(user)
    logger.info(f"User {user.email} logged in")
    return envelope({"user": user, "token": token}, "Login successful")


@auth_router.post("/logout")
async def logout(token: str = Depends(get_token), store: MockStore = Depends(get_store)) -> Dict[str, Any]:
    store.revoke_token(token)
    return envelope(None, "Logged out")


@auth_router.get("/me")
async def me(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return envelope(user)


@auth_router.post("/refresh")
async def refresh(
    token: str = Depends(get_token),
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    store.revoke_token(token)
    return envelope({"token": store.issue_token(user)})


# ============================================
# CLAIMS
# ============================================

claims_router = APIRouter(prefix="/claims", tags=["claims"])


class ClaimUpdate(WireModel):
    description: Optional[str] = None
    incident_date: Optional[date] = None
    incident_type: Optional[str] = None
    amount_claimed: Optional[float] = None
    amount_approved: Optional[float] = None
    currency: Optional[str] = None


def _matches(claim: Claim, search: str) -> bool:
    needle = search.strip().lower()
    haystack = [claim.id, claim.description, claim.policy_id, claim.incident_type]
    if claim.claimant is not None:
        haystack.append(claim.claimant.display_name)
    return any(needle in value.lower() for value in haystack if value)


@claims_router.get("")
async def list_claims(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[List[ClaimStatus]] = Query(None, alias="status"),
    product: Optional[List[str]] = Query(None),
    priority: Optional[List[Priority]] = Query(None),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    search: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    """
    List claims visible to the caller, newest first.

    Policyholders only ever see their own claims.
    """
    claims = store.claims_newest_first()
    if user.role == UserRole.POLICYHOLDER:
        claims = [c for c in claims if c.claimant_id == user.id]
    if status_filter:
        claims = [c for c in claims if c.status in status_filter]
    if product:
        claims = [c for c in claims if c.policy is not None and c.policy.product in product]
    if priority:
        claims = [c for c in claims if c.assignment is not None and c.assignment.priority in priority]
    if assigned_to:
        claims = [c for c in claims if c.assignment is not None and c.assignment.adjuster_id == assigned_to]
    if date_from:
        claims = [c for c in claims if c.incident_date >= date_from]
    if date_to:
        claims = [c for c in claims if c.incident_date <= date_to]
    if search:
        claims = [c for c in claims if _matches(c, search)]

    total = len(claims)
    start = (page - 1) * limit
    page_claims = [claim_view(c, user) for c in claims[start:start + limit]]
    result = PaginatedResponse[Claim](
        data=page_claims,
        total=total,
        page=page,
        limit=limit,
        total_pages=(total + limit - 1) // limit
    )
    return envelope(result)


@claims_router.get("/{claim_id}")
async def get_claim(
    claim_id: str,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    return envelope(claim_view(_visible_claim(store, claim_id, user), user))


@claims_router.post("", status_code=status.HTTP_201_CREATED)
async def create_claim(
    claim_data: ClaimFormData,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    """
    Create a claim in DRAFT status for the caller.

    The claimed amount is the sum of the items' estimated costs.
    """
    policy = store.policies.get(claim_data.policy_id)
    if policy is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Policy {claim_data.policy_id} not found"
        )
    if user.role == UserRole.POLICYHOLDER and policy.holder_id != user.id:
        raise _forbidden("You can only file claims on your own policies")

    claim = Claim(
        policy_id=policy.id,
        policy=policy,
        claimant_id=user.id,
        claimant=user,
        incident_date=claim_data.incident_date,
        incident_type=claim_data.incident_type.value,
        description=claim_data.description,
        amount_claimed=claim_data.total_estimated_cost,
        currency=claim_data.currency,
    )
    claim.items = [
        ClaimItem(
            claim_id=claim.id,
            category=item.category.value,
            description=item.description,
            estimated_cost=item.estimated_cost
        )
        for item in claim_data.items
    ]
    claim.add_audit_event(user.id, "CLAIM_CREATED", {"policyId": policy.id})
    store.claims[claim.id] = claim

    logger.info(f"Created claim {claim.id} for {user.email} on policy {policy.id}")
    return envelope(claim, f"Claim created successfully with ID {claim.id}")


@claims_router.patch("/{claim_id}")
async def update_claim(
    claim_id: str,
    changes: ClaimUpdate,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    claim = _visible_claim(store, claim_id, user)
    if not permissions.can_edit_claim(user, claim.claimant_id, claim.status):
        raise _forbidden("You cannot edit this claim")

    updates = changes.model_dump(exclude_unset=True)
    if "amount_approved" in updates and not permissions.can_approve_claim(user):
        raise _forbidden("Only supervisors can set the approved amount")
    for key, value in updates.items():
        setattr(claim, key, value)
    claim.add_audit_event(user.id, "CLAIM_UPDATED", {"fields": sorted(updates)})

    logger.info(f"Claim {claim_id} updated by {user.email}: {sorted(updates)}")
    return envelope(claim_view(claim, user))


@claims_router.patch("/{claim_id}/status")
async def change_claim_status(
    claim_id: str,
    request: StatusChangeRequest,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    """
    Move a claim to a new status.

    400 if the transition is not in the table, 403 if the caller's role may
    not perform it.
    """
    claim = _visible_claim(store, claim_id, user)
    target = request.target_status

    if target not in status_machine.get_valid_transitions(claim.status):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid transition from {claim.status.value} to {target.value}"
        )
    if not status_machine.can_transition(claim.status, target, user.role):
        raise _forbidden(f"Role {user.role.value} cannot move a claim to {target.value}")

    status_machine.transition(claim, target, user.role, user.id, request.reason)
    return envelope(claim_view(claim, user), f"Claim moved to {target.value}")


@claims_router.delete("/{claim_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_claim(
    claim_id: str,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Response:
    claim = _visible_claim(store, claim_id, user)
    owns_draft = claim.claimant_id == user.id and claim.status == ClaimStatus.DRAFT
    if not (owns_draft or user.role == UserRole.ADMIN):
        raise _forbidden("Only draft claims can be deleted by their claimant")

    del store.claims[claim_id]
    logger.info(f"Claim {claim_id} deleted by {user.email}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================
# ASSIGNMENTS
# ============================================

assignments_router = APIRouter(prefix="/assignments", tags=["assignments"])


@assignments_router.post("", status_code=status.HTTP_201_CREATED)
async def assign_claim(
    request: AssignmentRequest,
    user: User = Depends(require_roles(UserRole.SUPERVISOR, UserRole.ADMIN)),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    """
    Assign a claim to an adjuster.

    Without an explicit due date the assignment is due after the SLA days of
    its priority.
    """
    claim = store.claims.get(request.claim_id)
    if claim is None:
        raise _not_found("Claim", request.claim_id)
    adjuster = store.users.get(request.adjuster_id)
    if not permissions.can_receive_assignments(adjuster):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User {request.adjuster_id} cannot be assigned claims"
        )

    assigned_at = datetime.now()
    if request.due_at is not None:
        due_at = _naive(request.due_at)
    else:
        due_at = assigned_at + timedelta(days=get_settings().sla_days[request.priority])

    assignment = Assignment(
        claim_id=claim.id,
        adjuster_id=adjuster.id,
        adjuster=adjuster,
        assigned_at=assigned_at,
        due_at=due_at,
        priority=request.priority
    )
    claim.assignment = assignment
    claim.add_audit_event(user.id, "ASSIGNED", {
        "adjusterId": adjuster.id,
        "priority": request.priority.value,
    })

    logger.info(f"Claim {claim.id} assigned to {adjuster.email} ({request.priority.value})")
    return envelope(assignment, "Claim assigned")


# ============================================
# ATTACHMENTS
# ============================================

attachments_router = APIRouter(prefix="/attachments", tags=["attachments"])


@attachments_router.post("/presign")
async def presign_upload(
    request: PresignRequest,
    http_request: Request,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    if request.mime_type not in ACCEPTED_UPLOADS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type {request.mime_type} is not allowed"
        )
    if request.size > get_settings().MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File {request.file_name} is too large"
        )

    s3_key = f"claims/{new_id()}/{request.file_name}"
    store.uploads[s3_key] = PendingUpload(request=request)
    response = PresignedUploadResponse(
        url=str(http_request.url_for("receive_upload")),
        fields={"key": s3_key, "Content-Type": request.mime_type},
        s3_key=s3_key
    )
    return envelope(response)


@attachments_router.post("/upload", name="receive_upload", status_code=status.HTTP_204_NO_CONTENT)
async def receive_upload(
    key: str = Form(...),
    file: UploadFile = File(...),
    store: MockStore = Depends(get_store)
) -> Response:
    """Stand-in for the object store's presigned form upload."""
    pending = store.uploads.get(key)
    if pending is None:
        raise _forbidden("Unknown upload key")
    pending.content = await file.read()
    logger.info(f"Received {len(pending.content)} bytes for {key}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@attachments_router.post("", status_code=status.HTTP_201_CREATED)
async def confirm_upload(
    confirm: AttachmentConfirm,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    claim = _visible_claim(store, confirm.claim_id, user)
    pending = store.uploads.get(confirm.s3_key)
    if pending is None or pending.content is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"No upload found for {confirm.s3_key}"
        )
    if pending.checksum != confirm.checksum:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Checksum mismatch"
        )

    attachment = Attachment(
        claim_id=claim.id,
        s3_key=confirm.s3_key,
        file_name=confirm.file_name,
        mime_type=confirm.mime_type,
        size=len(pending.content),
        checksum=confirm.checksum,
        uploaded_by=user.id
    )
    claim.attachments.append(attachment)
    claim.add_audit_event(user.id, "ATTACHMENT_ADDED", {"fileName": attachment.file_name})
    del store.uploads[confirm.s3_key]
    return envelope(attachment, "Attachment uploaded")


@attachments_router.delete("/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    attachment_id: str,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Response:
    claim, attachment = store.find_attachment(attachment_id)
    if attachment is None or not permissions.can_view_claim(user, claim.claimant_id):
        raise _not_found("Attachment", attachment_id)
    if attachment.uploaded_by != user.id and user.role not in permissions.MANAGER_ROLES:
        raise _forbidden("You cannot delete this attachment")

    claim.attachments.remove(attachment)
    claim.add_audit_event(user.id, "ATTACHMENT_REMOVED", {"fileName": attachment.file_name})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================
# NOTES
# ============================================

notes_router = APIRouter(tags=["notes"])


def _editable_note(store: MockStore, note_id: str, user: User) -> tuple:
    claim, note = store.find_note(note_id)
    if note is None or not permissions.can_view_claim(user, claim.claimant_id):
        raise _not_found("Note", note_id)
    if note.author_id != user.id and user.role != UserRole.ADMIN:
        raise _forbidden("Only the author can change this note")
    return claim, note


@notes_router.post("/claims/{claim_id}/notes", status_code=status.HTTP_201_CREATED)
async def add_note(
    claim_id: str,
    note_form: NoteForm,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    claim = _visible_claim(store, claim_id, user)
    if note_form.visibility == NoteVisibility.INTERNAL and not permissions.can_view_internal_notes(user):
        raise _forbidden("Policyholders cannot add internal notes")

    note = Note(
        claim_id=claim.id,
        author_id=user.id,
        author=user,
        body=note_form.body,
        visibility=note_form.visibility
    )
    claim.notes.append(note)
    return envelope(note, "Note added")


@notes_router.patch("/notes/{note_id}")
async def update_note(
    note_id: str,
    update: NoteUpdate,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    _, note = _editable_note(store, note_id, user)
    note.body = update.body
    return envelope(note)


@notes_router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Response:
    claim, note = _editable_note(store, note_id, user)
    claim.notes.remove(note)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================
# REPORTS
# ============================================

reports_router = APIRouter(prefix="/reports", tags=["reports"])


def build_sla_report(
    claims: List[Claim],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    now: Optional[datetime] = None
) -> SLAReport:
    """
    SLA figures over assigned claims created in the date range.

    A claim is on time when it was decided by its due date, and overdue when
    it was decided late or is still undecided past its due date.
    """
    now = now or datetime.now()
    report = SLAReport()
    cycle_times: List[float] = []

    for claim in claims:
        created = claim.created_at.date()
        if claim.assignment is None:
            continue
        if (date_from and created < date_from) or (date_to and created > date_to):
            continue

        report.total_claims += 1
        due_at = _naive(claim.assignment.due_at)
        decided = decision_time(claim)
        if decided is not None:
            cycle_times.append(cycle_days(claim))

        if decided is not None and decided <= due_at:
            report.on_time += 1
        elif (decided or now) > due_at:
            report.overdue += 1
            product = claim.policy.product if claim.policy is not None else "Unknown"
            report.breaches_by_product[product] = report.breaches_by_product.get(product, 0) + 1

    if cycle_times:
        report.average_cycle_time = round(sum(cycle_times) / len(cycle_times), 1)
    return report


@reports_router.get("/sla")
async def sla_report(
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    user: User = Depends(require_roles(UserRole.SUPERVISOR, UserRole.ADMIN)),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    return envelope(build_sla_report(list(store.claims.values()), date_from, date_to))


@reports_router.get("/dashboard")
async def dashboard_stats(
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    claims = list(store.claims.values())
    if user.role == UserRole.POLICYHOLDER:
        claims = [c for c in claims if c.claimant_id == user.id]

    today = date.today()
    approved_today = sum(
        1 for c in claims for e in c.events
        if e.event_type == "STATUS_CHANGED"
        and e.payload_json.get("to") == ClaimStatus.APPROVED.value
        and e.created_at.date() == today
    )
    cycle_times = [d for d in (cycle_days(c) for c in claims) if d is not None]

    stats = DashboardStats(
        total_claims=len(claims),
        pending_review=sum(1 for c in claims if c.status in PENDING_REVIEW_STATUSES),
        approved_today=approved_today,
        overdue_assignments=sum(1 for c in claims if is_overdue(c)),
        average_processing_time=round(sum(cycle_times) / len(cycle_times), 1) if cycle_times else 0.0
    )
    return envelope(stats)


# ============================================
# USERS
# ============================================

users_router = APIRouter(prefix="/users", tags=["users"])


@users_router.get("")
async def list_users(
    role: Optional[UserRole] = Query(None),
    user: User = Depends(require_roles(UserRole.SUPERVISOR, UserRole.ADMIN)),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    users = sorted(store.users.values(), key=lambda u: u.display_name)
    if role:
        users = [u for u in users if u.role == role]
    return envelope(users)


@users_router.get("/{user_id}")
async def get_user(
    user_id: str,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    if user.id != user_id and user.role not in permissions.MANAGER_ROLES:
        raise _forbidden("You cannot view this user")
    found = store.users.get(user_id)
    if found is None:
        raise _not_found("User", user_id)
    return envelope(found)


@users_router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    form: UserForm,
    user: User = Depends(require_roles(UserRole.ADMIN)),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    """Create a user; without a password the demo default is used."""
    if store.find_user_by_email(form.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A user with email {form.email} already exists"
        )
    created = store.add_user(form.email, form.display_name, form.role, form.password or DEFAULT_PASSWORD)
    logger.info(f"User {created.email} created by {user.email}")
    return envelope(created, "User created")


@users_router.patch("/{user_id}")
async def update_user(
    user_id: str,
    changes: UserUpdate,
    user: User = Depends(get_current_user),
    store: MockStore = Depends(get_store)
) -> Dict[str, Any]:
    """Admins may edit anyone; other users only their own name and email."""
    is_admin = user.role == UserRole.ADMIN
    if user.id != user_id and not is_admin:
        raise _forbidden("You cannot edit this user")
    target = store.users.get(user_id)
    if target is None:
        raise _not_found("User", user_id)
    if changes.role is not None and not is_admin:
        raise _forbidden("Only admins can change roles")
    if changes.email is not None:
        existing = store.find_user_by_email(changes.email)
        if existing is not None and existing.id != user_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"A user with email {changes.email} already exists"
            )

    for key, value in changes.model_dump(exclude_none=True).items():
        setattr(target, key, value)
    return envelope(target, "User updated")


@users_router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    user: User = Depends(require_roles(UserRole.ADMIN)),
    store: MockStore = Depends(get_store)
) -> Response:
    if user_id == user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )
    if user_id not in store.users:
        raise _not_found("User", user_id)
    store.remove_user(user_id)
    logger.info(f"User {user_id} deleted by {user.email}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


routers = [
    auth_router,
    claims_router,
    assignments_router,
    attachments_router,
    notes_router,
    reports_router,
    users_router,
]
