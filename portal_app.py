"""
Claims Portal - Streamlit entry point

Run with: streamlit run portal_app.py
Requires a claims backend; for local work start the mock one with
``uvicorn claims_portal.mock_api.main:app --reload``.
"""
import logging

import requests
import streamlit as st

from claims_portal.config import configure_logging
from claims_portal.core.exceptions import ApiError
from claims_portal.ui import components
from claims_portal.ui.navigation import can_open, visible_pages
from claims_portal.ui.pages import (
    claim_detail,
    claims_list,
    dashboard,
    login,
    new_claim,
    profile,
    reports,
    users,
    workbench,
)
from claims_portal.ui.session import current_user, get_auth, get_client, init_session, navigate, set_api_url
from claims_portal.utils.helpers import get_role_label

configure_logging()
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Claims Portal",
    page_icon="🛡️",
    layout="wide",
    initial_sidebar_state="expanded"
)

PAGES = {
    "dashboard": dashboard.render,
    "claims": lambda: claims_list.render(show_all=False),
    "all_claims": lambda: claims_list.render(show_all=True),
    "new_claim": new_claim.render,
    "workbench": workbench.render,
    "users": users.render,
    "reports": reports.render,
    "claim_detail": claim_detail.render,
    "profile": profile.render,
}


def render_connection_settings():
    """Backend URL override and health check."""
    with st.expander("⚙️ Connection"):
        api_url = st.text_input(
            "API Server URL",
            value=st.session_state.api_url,
            help="URL of the claims backend"
        )
        set_api_url(api_url)
        if st.button("Test Connection"):
            try:
                response = requests.get(f"{st.session_state.api_url}/health", timeout=5)
                if response.status_code == 200:
                    st.success("✅ Connected!")
                else:
                    st.error("❌ Connection failed")
            except requests.exceptions.RequestException:
                st.error("❌ Cannot reach server")


def render_sidebar():
    user = current_user()
    with st.sidebar:
        st.header("🛡️ Claims Portal")
        if user is not None:
            st.caption(f"{user.display_name} · {get_role_label(user.role)}")
            for item in visible_pages(user.role):
                active = st.session_state.page == item.key
                if st.button(
                    f"{item.icon} {item.label}",
                    key=f"nav_{item.key}",
                    use_container_width=True,
                    type="primary" if active else "secondary"
                ):
                    navigate(item.key)

            st.divider()
            if st.button("👤 Profile", use_container_width=True):
                navigate("profile")
            if st.button("🚪 Log out", use_container_width=True):
                get_auth().logout()
                navigate("dashboard")

        st.divider()
        render_connection_settings()


def restore_session():
    """Reload the user if only the token survived (e.g. after a refresh)."""
    auth = get_auth()
    if auth.user is None and get_client().token:
        try:
            auth.load_current_user()
        except ApiError as e:
            logger.info(f"Could not restore session: {e.message}")
            auth.clear()


def main():
    """Main application entry point."""
    init_session()
    components.apply_styles()
    restore_session()
    render_sidebar()

    user = current_user()
    if user is None:
        login.render()
        return

    page = st.session_state.page
    if not can_open(page, user.role):
        st.warning("You do not have access to that page")
        page = "dashboard"
        st.session_state.page = page
    PAGES[page]()
    if current_user() is None:
        # Session expired while rendering the page
        st.rerun()


if __name__ == "__main__":
    main()
