"""
In-Memory Backend Store

Holds users, tokens, policies, claims and pending uploads for the mock claims
API. Nothing is persisted; every app instance starts from the seed data.
"""
import hashlib
import logging
import secrets
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from claims_portal.core.models import Attachment, Claim, Note, Policy, PresignRequest, User
from claims_portal.core.states import UserRole

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = "password123"

# (email, display name, role)
SEED_USERS = [
    ("user@example.com", "Pat Holder", UserRole.POLICYHOLDER),
    ("adjuster@example.com", "Alex Adjuster", UserRole.ADJUSTER),
    ("supervisor@example.com", "Sam Supervisor", UserRole.SUPERVISOR),
    ("admin@example.com", "Ada Admin", UserRole.ADMIN),
]

# (id, product)
SEED_POLICIES = [
    ("POL-001", "Auto Insurance"),
    ("POL-002", "Home Insurance"),
    ("POL-003", "Renters Insurance"),
]


@dataclass
class PendingUpload:
    request: PresignRequest
    content: Optional[bytes] = None

    @property
    def checksum(self) -> Optional[str]:
        if self.content is None:
            return None
        return hashlib.sha256(self.content).hexdigest()


@dataclass
class MockStore:
    users: Dict[str, User] = field(default_factory=dict)
    passwords: Dict[str, str] = field(default_factory=dict)
    tokens: Dict[str, str] = field(default_factory=dict)
    policies: Dict[str, Policy] = field(default_factory=dict)
    claims: Dict[str, Claim] = field(default_factory=dict)
    uploads: Dict[str, PendingUpload] = field(default_factory=dict)

    # ----------------------------------------
    # Users & tokens
    # ----------------------------------------

    def add_user(
        self,
        email: str,
        display_name: str,
        role: UserRole,
        password: Optional[str] = None
    ) -> User:
        user = User(email=email, display_name=display_name, role=role)
        self.users[user.id] = user
        if password:
            self.passwords[user.id] = password
        return user

    def find_user_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        return next((u for u in self.users.values() if u.email.lower() == email), None)

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.find_user_by_email(email)
        if user is None or self.passwords.get(user.id) != password:
            return None
        return user

    def issue_token(self, user: User) -> str:
        token = secrets.token_urlsafe(32)
        self.tokens[token] = user.id
        return token

    def revoke_token(self, token: str) -> None:
        self.tokens.pop(token, None)

    def user_for_token(self, token: str) -> Optional[User]:
        user_id = self.tokens.get(token)
        return self.users.get(user_id) if user_id else None

    def remove_user(self, user_id: str) -> None:
        self.users.pop(user_id, None)
        self.passwords.pop(user_id, None)
        for token in [t for t, uid in self.tokens.items() if uid == user_id]:
            del self.tokens[token]

    # ----------------------------------------
    # Claims
    # ----------------------------------------

    def find_attachment(self, attachment_id: str) -> Tuple[Optional[Claim], Optional[Attachment]]:
        for claim in self.claims.values():
            for attachment in claim.attachments:
                if attachment.id == attachment_id:
                    return claim, attachment
        return None, None

    def find_note(self, note_id: str) -> Tuple[Optional[Claim], Optional[Note]]:
        for claim in self.claims.values():
            for note in claim.notes:
                if note.id == note_id:
                    return claim, note
        return None, None

    def claims_newest_first(self) -> List[Claim]:
        return sorted(self.claims.values(), key=lambda c: c.created_at, reverse=True)


def seeded_store() -> MockStore:
    """A store with the demo users (all with the default password) and policies."""
    store = MockStore()
    for email, display_name, role in SEED_USERS:
        store.add_user(email, display_name, role, DEFAULT_PASSWORD)

    holder = store.find_user_by_email("user@example.com")
    today = date.today()
    for policy_id, product in SEED_POLICIES:
        store.policies[policy_id] = Policy(
            id=policy_id,
            policy_number=policy_id,
            holder_id=holder.id,
            product=product,
            start_date=date(today.year - 1, 1, 1),
            end_date=date(today.year + 1, 12, 31),
        )

    logger.info(f"Seeded mock store with {len(store.users)} users and {len(store.policies)} policies")
    return store
