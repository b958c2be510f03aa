"""
Claim Submission Wizard

Five-step flow a policyholder walks through to file a claim: policy,
incident details, claim items, documents, review. Each step only validates
its own fields; the final submit validates everything.
"""
import logging
import mimetypes
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from claims_portal.api.client import ApiClient
from claims_portal.core.exceptions import ApiError, WizardValidationError
from claims_portal.core.forms import ClaimFormData
from claims_portal.core.models import Attachment, Claim
from claims_portal.core.states import ClaimStatus, IncidentType, ItemCategory
from claims_portal.utils.helpers import format_file_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WizardStep:
    id: int
    name: str
    description: str
    fields: Tuple[str, ...] = ()


STEPS = [
    WizardStep(1, "Policy Information", "Select your policy", ("policy_id",)),
    WizardStep(2, "Incident Details", "Describe what happened",
               ("incident_date", "incident_type", "description")),
    WizardStep(3, "Claim Items", "List damaged items", ("items",)),
    WizardStep(4, "Documents", "Upload supporting documents"),
    WizardStep(5, "Review", "Review and submit"),
]

POLICY_OPTIONS = {
    "POL-001": "Auto Insurance - POL-001",
    "POL-002": "Home Insurance - POL-002",
    "POL-003": "Renters Insurance - POL-003",
}

INCIDENT_TYPE_LABELS = {
    IncidentType.AUTO_ACCIDENT: "Auto Accident",
    IncidentType.PROPERTY_DAMAGE: "Property Damage",
    IncidentType.THEFT: "Theft",
    IncidentType.FIRE: "Fire",
    IncidentType.WATER_DAMAGE: "Water Damage",
    IncidentType.VANDALISM: "Vandalism",
    IncidentType.OTHER: "Other",
}

ITEM_CATEGORY_LABELS = {
    ItemCategory.VEHICLE: "Vehicle",
    ItemCategory.ELECTRONICS: "Electronics",
    ItemCategory.FURNITURE: "Furniture",
    ItemCategory.JEWELRY: "Jewelry",
    ItemCategory.CLOTHING: "Clothing",
    ItemCategory.OTHER: "Other",
}

# Accepted upload types: mime type -> extensions
ACCEPTED_UPLOADS = {
    "image/jpeg": (".jpeg", ".jpg"),
    "image/png": (".png",),
    "image/gif": (".gif",),
    "application/pdf": (".pdf",),
    "application/msword": (".doc",),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (".docx",),
}

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def empty_item() -> Dict[str, Any]:
    return {"category": "", "description": "", "estimated_cost": 0.0}


@dataclass
class PendingUpload:
    """A document picked in step 4, uploaded once the claim exists."""
    file_name: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class SubmissionResult:
    claim: Claim
    attachments: List[Attachment] = field(default_factory=list)
    failed_uploads: List[str] = field(default_factory=list)


class ClaimWizard:
    """
    State of one claim submission.

    ``values`` holds the raw form values keyed by snake_case field name;
    ``errors`` holds the messages of the last validation, keyed by field path.
    """

    def __init__(self, max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES):
        self.current_step = 1
        self.values: Dict[str, Any] = {
            "policy_id": "",
            "incident_date": None,
            "incident_type": "",
            "description": "",
            "items": [empty_item()],
        }
        self.attachments: List[PendingUpload] = []
        self.errors: Dict[str, str] = {}
        self.max_upload_bytes = max_upload_bytes

    @property
    def step(self) -> WizardStep:
        return STEPS[self.current_step - 1]

    @property
    def is_last_step(self) -> bool:
        return self.current_step == len(STEPS)

    # ----------------------------------------
    # Form values
    # ----------------------------------------

    def update(self, **values: Any) -> None:
        self.values.update(values)

    def add_item(self) -> None:
        self.values["items"].append(empty_item())

    def remove_item(self, index: int) -> None:
        items = self.values["items"]
        if 0 <= index < len(items):
            items.pop(index)

    def update_item(self, index: int, **values: Any) -> None:
        self.values["items"][index].update(values)

    # ----------------------------------------
    # Attachments
    # ----------------------------------------

    def accepts(self, file_name: str, mime_type: Optional[str] = None) -> bool:
        mime = mime_type or mimetypes.guess_type(file_name)[0] or ""
        extensions = ACCEPTED_UPLOADS.get(mime)
        return extensions is not None and file_name.lower().endswith(extensions)

    def add_attachment(self, file_name: str, content: bytes, mime_type: Optional[str] = None) -> Optional[str]:
        """
        Queue a document for upload.

        Returns:
            None if accepted, otherwise the reason it was rejected
        """
        mime = mime_type or mimetypes.guess_type(file_name)[0] or "application/octet-stream"
        if not self.accepts(file_name, mime):
            return f"{file_name}: unsupported file type"
        if len(content) > self.max_upload_bytes:
            return f"{file_name}: file is larger than {format_file_size(self.max_upload_bytes)}"
        self.attachments.append(PendingUpload(file_name, content, mime))
        return None

    def remove_attachment(self, index: int) -> None:
        if 0 <= index < len(self.attachments):
            self.attachments.pop(index)

    # ----------------------------------------
    # Navigation & validation
    # ----------------------------------------

    def validate_fields(self, fields: Tuple[str, ...]) -> Dict[str, str]:
        """Validate the form and keep only errors for ``fields`` (and their children)."""
        all_errors = ClaimFormData.form_errors(self.values)
        return {
            path: message for path, message in all_errors.items()
            if path.split(".")[0] in fields
        }

    def next_step(self) -> bool:
        """Advance if the current step is valid; returns whether it moved."""
        self.errors = self.validate_fields(self.step.fields)
        if self.errors:
            return False
        self.current_step = min(self.current_step + 1, len(STEPS))
        return True

    def prev_step(self) -> None:
        self.errors = {}
        self.current_step = max(self.current_step - 1, 1)

    def form_data(self) -> ClaimFormData:
        """
        Validate the whole form.

        Raises:
            WizardValidationError: With every field error
        """
        errors = ClaimFormData.form_errors(self.values)
        if errors:
            self.errors = errors
            raise WizardValidationError(errors)
        return ClaimFormData.validate_form(self.values)

    # ----------------------------------------
    # Submission
    # ----------------------------------------

    def submit(self, client: ApiClient, save_as_draft: bool = False) -> SubmissionResult:
        """
        Create the claim, upload its documents and submit it.

        The claim is created as a DRAFT; unless ``save_as_draft`` is set it
        is then moved to SUBMITTED. Failed uploads are reported in the result
        without aborting the submission.
        """
        claim_data = self.form_data()
        claim = client.claims.create_claim(claim_data)
        logger.info(f"Created draft claim {claim.id} on policy {claim_data.policy_id}")

        result = SubmissionResult(claim=claim)
        for upload in self.attachments:
            try:
                attachment = client.attachments.upload_file(
                    claim.id, upload.file_name, upload.content, upload.mime_type
                )
                result.attachments.append(attachment)
            except ApiError as e:
                logger.warning(f"Upload of {upload.file_name} for claim {claim.id} failed: {e.message}")
                result.failed_uploads.append(upload.file_name)

        if not save_as_draft:
            result.claim = client.claims.update_claim_status(claim.id, ClaimStatus.SUBMITTED)
            logger.info(f"Claim {claim.id} submitted")
        return result
