"""
Form Schemas

Validated payloads entered by users on the portal pages. Each form carries a
table of user-facing messages keyed by field path (list indices as ``*``).
"""
from datetime import date
from typing import ClassVar, Dict, List, Mapping, Optional, Type

from pydantic import Field, ValidationError, field_validator

from claims_portal.utils.helpers import is_valid_email

from .models import WireModel
from .states import IncidentType, ItemCategory, NoteVisibility, UserRole


def collect_errors(exc: ValidationError, messages: Mapping[str, str]) -> Dict[str, str]:
    """
    Turn a pydantic ValidationError into ``{field path: message}``.

    Messages raised by custom validators are kept verbatim; other errors are
    looked up in ``messages`` and fall back to pydantic's own text. Only the
    first error per field is kept.
    """
    errors: Dict[str, str] = {}
    for error in exc.errors():
        loc = error["loc"]
        path = ".".join(str(part) for part in loc)
        if path in errors:
            continue
        pattern = ".".join("*" if isinstance(part, int) else str(part) for part in loc)
        if error["type"] == "value_error":
            message = error["msg"].removeprefix("Value error, ")
        else:
            message = messages.get(pattern, error["msg"])
        errors[path] = message
    return errors


class FormModel(WireModel):
    MESSAGES: ClassVar[Dict[str, str]] = {}

    @classmethod
    def validate_form(cls, data: Mapping) -> "FormModel":
        """Validate raw form values; raises ValidationError."""
        return cls.model_validate(dict(data))

    @classmethod
    def form_errors(cls: Type["FormModel"], data: Mapping) -> Dict[str, str]:
        """Return field errors for raw form values (empty when valid)."""
        try:
            cls.model_validate(dict(data))
        except ValidationError as e:
            return collect_errors(e, cls.MESSAGES)
        return {}


class LoginForm(FormModel):
    MESSAGES: ClassVar[Dict[str, str]] = {
        "email": "Please enter a valid email address",
        "password": "Password must be at least 6 characters",
    }

    email: str
    password: str = Field(min_length=6)

    @field_validator("email")
    @classmethod
    def _valid_email(cls, value: str) -> str:
        if not is_valid_email(value):
            raise ValueError("Please enter a valid email address")
        return value


class ClaimItemInput(FormModel):
    category: ItemCategory
    description: str = Field(min_length=1)
    estimated_cost: float = Field(ge=0)


class ClaimFormData(FormModel):
    """Payload of the claim submission wizard (``POST /claims``)."""
    MESSAGES: ClassVar[Dict[str, str]] = {
        "policy_id": "Policy is required",
        "incident_date": "Incident date is required",
        "incident_type": "Incident type is required",
        "description": "Description must be at least 10 characters",
        "items": "At least one item is required",
        "items.*.category": "Category is required",
        "items.*.description": "Description is required",
        "items.*.estimated_cost": "Cost must be positive",
    }

    policy_id: str = Field(min_length=1)
    incident_date: date
    incident_type: IncidentType
    description: str = Field(min_length=10)
    items: List[ClaimItemInput] = Field(min_length=1)
    currency: str = "USD"

    @property
    def total_estimated_cost(self) -> float:
        return sum(item.estimated_cost for item in self.items)


class ProfileForm(FormModel):
    MESSAGES: ClassVar[Dict[str, str]] = {
        "display_name": "Display name must be at least 2 characters",
        "email": "Please enter a valid email address",
    }

    display_name: str = Field(min_length=2)
    email: str

    @field_validator("email")
    @classmethod
    def _valid_email(cls, value: str) -> str:
        if not is_valid_email(value):
            raise ValueError("Please enter a valid email address")
        return value


class PasswordChangeForm(FormModel):
    MESSAGES: ClassVar[Dict[str, str]] = {
        "current_password": "Current password is required",
        "new_password": "Password must be at least 8 characters",
        "confirm_password": "Please confirm your password",
    }

    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)
    confirm_password: str = Field(min_length=1)

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, value: str, info) -> str:
        new_password = info.data.get("new_password")
        if new_password is not None and value != new_password:
            raise ValueError("Passwords don't match")
        return value


class UserForm(FormModel):
    """User administration form (create and edit)."""
    MESSAGES: ClassVar[Dict[str, str]] = {
        "email": "Please enter a valid email address",
        "display_name": "Display name is required",
        "role": "Role is required",
    }

    email: str
    display_name: str = Field(min_length=1)
    role: UserRole = UserRole.POLICYHOLDER
    password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _valid_email(cls, value: str) -> str:
        if not is_valid_email(value):
            raise ValueError("Please enter a valid email address")
        return value


class NoteForm(FormModel):
    MESSAGES: ClassVar[Dict[str, str]] = {"body": "Note cannot be empty"}

    body: str = Field(min_length=1)
    visibility: NoteVisibility = NoteVisibility.PUBLIC
