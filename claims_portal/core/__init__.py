# Core module - states, models, forms and errors
from .states import ClaimStatus, UserRole, Priority, NoteVisibility, IncidentType, ItemCategory
from .models import Claim, User, Assignment, AuditEvent, Note, Attachment, ClaimFilters
from .exceptions import ApiError, UnauthorizedError, TransitionNotPermitted

__all__ = [
    "ClaimStatus",
    "UserRole",
    "Priority",
    "NoteVisibility",
    "IncidentType",
    "ItemCategory",
    "Claim",
    "User",
    "Assignment",
    "AuditEvent",
    "Note",
    "Attachment",
    "ClaimFilters",
    "ApiError",
    "UnauthorizedError",
    "TransitionNotPermitted",
]
