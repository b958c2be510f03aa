"""
Profile page: the logged-in user's own details and password form.
"""
import streamlit as st

from claims_portal.core.exceptions import ApiError
from claims_portal.core.forms import PasswordChangeForm, ProfileForm
from claims_portal.core.models import UserUpdate
from claims_portal.ui.components import render_header, show_error, show_success
from claims_portal.ui.session import current_user, get_auth, get_client
from claims_portal.utils.helpers import format_date, get_role_label


def render_profile_form():
    user = current_user()
    with st.form("profile_form"):
        display_name = st.text_input("Display name", value=user.display_name)
        email = st.text_input("Email", value=user.email)
        submitted = st.form_submit_button("Save profile", type="primary")

    if not submitted:
        return

    values = {"display_name": display_name.strip(), "email": email.strip()}
    errors = ProfileForm.form_errors(values)
    if errors:
        for message in errors.values():
            st.error(message)
        return
    form = ProfileForm.validate_form(values)
    try:
        updated = get_client().users.update_user(
            user.id, UserUpdate(display_name=form.display_name, email=form.email)
        )
    except ApiError as e:
        show_error(e)
        return
    get_auth().user = updated
    show_success("Profile updated")


def render_password_form():
    with st.form("password_form", clear_on_submit=True):
        current_password = st.text_input("Current password", type="password")
        new_password = st.text_input("New password", type="password")
        confirm_password = st.text_input("Confirm new password", type="password")
        submitted = st.form_submit_button("Change password")

    if not submitted:
        return

    errors = PasswordChangeForm.form_errors({
        "current_password": current_password,
        "new_password": new_password,
        "confirm_password": confirm_password,
    })
    if errors:
        for message in errors.values():
            st.error(message)
        return
    st.info("Password changes are not available yet. Contact your administrator.")


def render():
    user = current_user()
    render_header("👤 Profile", f"{get_role_label(user.role)} · member since {format_date(user.created_at)}")
    render_profile_form()
    st.subheader("🔑 Password")
    render_password_form()
