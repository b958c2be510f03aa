"""
Auth Session

Holds the logged-in user and bearer token for one portal session.
"""
import logging
from typing import Iterable, Optional, Union

from claims_portal.api.client import ApiClient
from claims_portal.core.exceptions import ApiError
from claims_portal.core.forms import LoginForm
from claims_portal.core.models import User
from claims_portal.core.states import UserRole
from claims_portal.state_machine import permissions

logger = logging.getLogger(__name__)


class AuthSession:
    """Login state of a single user, bound to an API client."""

    def __init__(self, client: ApiClient):
        self.client = client
        self.user: Optional[User] = None
        self.is_loading = False
        self.error: Optional[str] = None
        # Expired tokens reset the session
        client.on_unauthorized = self.clear

    @property
    def token(self) -> Optional[str]:
        return self.client.token

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.client.token is not None

    def login(self, email: str, password: str) -> User:
        """
        Validate credentials locally, then log in against the backend.

        Raises:
            pydantic.ValidationError: If the email or password is malformed
            ApiError: If the backend rejects the credentials
        """
        credentials = LoginForm.validate_form({"email": email, "password": password})
        self.is_loading = True
        self.error = None
        try:
            result = self.client.auth.login(credentials.email, credentials.password)
        except ApiError as e:
            self.error = e.message or "Login failed"
            raise
        finally:
            self.is_loading = False

        self.client.token = result.token
        self.user = result.user
        logger.info(f"User {result.user.email} logged in as {result.user.role.value}")
        return result.user

    def logout(self) -> None:
        """Log out; the local session is cleared even if the backend call fails."""
        try:
            if self.client.token:
                self.client.auth.logout()
        except ApiError as e:
            logger.warning(f"Logout request failed: {e.message}")
        finally:
            self.clear()

    def load_current_user(self) -> Optional[User]:
        """Restore the user from the stored token, if there is one."""
        if not self.client.token:
            return None
        self.user = self.client.auth.get_current_user()
        return self.user

    def refresh(self) -> str:
        token = self.client.auth.refresh_token()
        self.client.token = token
        return token

    def clear(self) -> None:
        self.user = None
        self.client.token = None

    def clear_error(self) -> None:
        self.error = None

    def has_role(self, role: Union[UserRole, str]) -> bool:
        return permissions.has_role(self.user, role)

    def has_any_role(self, roles: Iterable[Union[UserRole, str]]) -> bool:
        return permissions.has_any_role(self.user, roles)
