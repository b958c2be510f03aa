"""
Per-browser-session objects (API client, auth session, claims store) kept in
``st.session_state``.
"""
import logging
from typing import Any, Optional

import streamlit as st

from claims_portal.api.client import ApiClient
from claims_portal.config import get_settings
from claims_portal.core.models import User
from claims_portal.services.auth import AuthSession
from claims_portal.services.claims_store import ClaimsStore

logger = logging.getLogger(__name__)


def init_session() -> None:
    """Create the session objects on the first run of the script."""
    settings = get_settings()
    if "api_url" not in st.session_state:
        st.session_state.api_url = settings.API_URL
    if "client" not in st.session_state:
        client = ApiClient(base_url=st.session_state.api_url)
        st.session_state.client = client
        st.session_state.auth = AuthSession(client)
        st.session_state.claims_store = ClaimsStore(client, page_size=settings.PAGE_SIZE)
    if "page" not in st.session_state:
        st.session_state.page = "dashboard"
    if "page_params" not in st.session_state:
        st.session_state.page_params = {}


def set_api_url(url: str) -> None:
    """Point the session's client at another backend."""
    url = url.strip().rstrip("/")
    if url and url != st.session_state.api_url:
        logger.info(f"Switching API URL to {url}")
        st.session_state.api_url = url
        st.session_state.client.base_url = url


def get_client() -> ApiClient:
    return st.session_state.client


def get_auth() -> AuthSession:
    return st.session_state.auth


def get_claims_store() -> ClaimsStore:
    return st.session_state.claims_store


def current_user() -> Optional[User]:
    return st.session_state.auth.user


def navigate(page: str, **params: Any) -> None:
    """Switch page and rerun the script."""
    st.session_state.page = page
    st.session_state.page_params = params
    st.rerun()


def page_param(name: str, default: Any = None) -> Any:
    return st.session_state.page_params.get(name, default)
