"""
Portal Exceptions

Errors raised by the API client, the state machine and the claim wizard.
"""
from typing import Any, Dict, Optional


class ClaimsPortalError(Exception):
    """Base class for all portal errors."""


class ApiError(ClaimsPortalError):
    """A non-2xx response from the claims backend."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}


class UnauthorizedError(ApiError):
    """The bearer token is missing, expired or was rejected (HTTP 401)."""


class NetworkError(ApiError):
    """The backend could not be reached at all."""


class TransitionNotPermitted(ClaimsPortalError, ValueError):
    """A status change is not in the transition table or not allowed for the role."""

    def __init__(self, current_status: str, target_status: str, role: str):
        super().__init__(
            f"Role {role} cannot move a claim from {current_status} to {target_status}"
        )
        self.current_status = current_status
        self.target_status = target_status
        self.role = role


class WizardValidationError(ClaimsPortalError):
    """The claim form failed validation; ``errors`` maps field path to message."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{field}: {msg}" for field, msg in errors.items()))
        self.errors = errors
