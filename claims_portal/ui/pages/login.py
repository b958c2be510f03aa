"""
Login page.
"""
import streamlit as st
from pydantic import ValidationError

from claims_portal.core.exceptions import ApiError
from claims_portal.core.forms import LoginForm, collect_errors
from claims_portal.ui.components import render_header, show_error
from claims_portal.ui.session import get_auth, navigate


def render():
    render_header("🛡️ Claims Portal", "Sign in to manage your claims")

    auth = get_auth()
    with st.form("login_form"):
        email = st.text_input("Email", placeholder="you@example.com")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary", use_container_width=True)

    if not submitted:
        return

    try:
        auth.login(email, password)
    except ValidationError as e:
        for message in collect_errors(e, LoginForm.MESSAGES).values():
            st.error(message)
        return
    except ApiError as e:
        show_error(e, "Login failed: ")
        return

    navigate("dashboard")
