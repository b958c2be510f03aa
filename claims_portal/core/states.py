"""
Claim Status and Role Definitions

Defines the enumerations shared by the portal, the API client and the mock API.
"""
from enum import Enum


class ClaimStatus(str, Enum):
    """
    Enum representing the lifecycle status of an insurance claim.

    Happy path: DRAFT -> SUBMITTED -> IN_REVIEW -> APPROVED -> PAID -> CLOSED
    Side branches: INFO_REQUESTED (back to IN_REVIEW) and REJECTED (reopenable)
    """
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    IN_REVIEW = "IN_REVIEW"
    INFO_REQUESTED = "INFO_REQUESTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"
    CLOSED = "CLOSED"


class UserRole(str, Enum):
    """Roles gating UI actions and status transitions."""
    POLICYHOLDER = "POLICYHOLDER"
    ADJUSTER = "ADJUSTER"
    SUPERVISOR = "SUPERVISOR"
    ADMIN = "ADMIN"


class Priority(str, Enum):
    """Assignment priority, declared from lowest to highest."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def rank(self) -> int:
        return list(Priority).index(self)


class NoteVisibility(str, Enum):
    PUBLIC = "PUBLIC"
    INTERNAL = "INTERNAL"


class IncidentType(str, Enum):
    AUTO_ACCIDENT = "AUTO_ACCIDENT"
    PROPERTY_DAMAGE = "PROPERTY_DAMAGE"
    THEFT = "THEFT"
    FIRE = "FIRE"
    WATER_DAMAGE = "WATER_DAMAGE"
    VANDALISM = "VANDALISM"
    OTHER = "OTHER"


class ItemCategory(str, Enum):
    VEHICLE = "VEHICLE"
    ELECTRONICS = "ELECTRONICS"
    FURNITURE = "FURNITURE"
    JEWELRY = "JEWELRY"
    CLOTHING = "CLOTHING"
    OTHER = "OTHER"
