"""
Request dependencies of the mock API: store access and bearer-token auth.
"""
import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from claims_portal.core.models import User
from claims_portal.core.states import UserRole

from .store import MockStore

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(request: Request) -> MockStore:
    return request.app.state.store


def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_token),
    store: MockStore = Depends(get_store)
) -> User:
    user = store.user_for_token(token)
    if user is None:
        logger.info("Rejected request with unknown or revoked token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )
    return user


def require_roles(*roles: UserRole) -> Callable[..., User]:
    """Dependency factory: the current user, if their role is one of ``roles``."""
    allowed = frozenset(roles)

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role {user.role.value} is not allowed to do this"
            )
        return user

    return dependency
