"""
User administration page (admins only).
"""
import streamlit as st

from claims_portal.core.exceptions import ApiError
from claims_portal.core.forms import UserForm
from claims_portal.core.models import UserUpdate
from claims_portal.core.states import UserRole
from claims_portal.ui.components import render_header, show_error, show_success
from claims_portal.ui.session import current_user, get_client
from claims_portal.utils.helpers import format_date, get_role_label


def render_create_form():
    with st.expander("➕ Add user"):
        with st.form("create_user_form", clear_on_submit=True):
            email = st.text_input("Email")
            display_name = st.text_input("Display name")
            role = st.selectbox("Role", list(UserRole), format_func=get_role_label)
            password = st.text_input("Initial password (optional)", type="password")
            submitted = st.form_submit_button("Create user", type="primary")

    if not submitted:
        return

    values = {"email": email, "display_name": display_name, "role": role, "password": password or None}
    errors = UserForm.form_errors(values)
    if errors:
        for message in errors.values():
            st.error(message)
        return
    try:
        created = get_client().users.create_user(UserForm.validate_form(values))
    except ApiError as e:
        show_error(e)
        return
    show_success(f"Created {created.email}")


def render():
    render_header("👥 Users", "Manage portal accounts and roles")
    me = current_user()
    client = get_client()

    render_create_form()

    role_filter = st.selectbox(
        "Show", [None] + list(UserRole),
        format_func=lambda r: get_role_label(r) if r else "All roles"
    )
    try:
        users = client.users.get_users(role_filter)
    except ApiError as e:
        show_error(e)
        return

    st.dataframe(
        [
            {
                "Name": u.display_name,
                "Email": u.email,
                "Role": get_role_label(u.role),
                "Created": format_date(u.created_at),
            }
            for u in users
        ],
        use_container_width=True,
        hide_index=True
    )

    if not users:
        return

    st.subheader("✏️ Edit user")
    by_id = {u.id: u for u in users}
    user_id = st.selectbox("User", list(by_id), format_func=lambda i: f"{by_id[i].display_name} ({by_id[i].email})")
    selected = by_id[user_id]
    roles = list(UserRole)
    with st.form("edit_user_form"):
        display_name = st.text_input("Display name", value=selected.display_name)
        role = st.selectbox("Role", roles, index=roles.index(selected.role), format_func=get_role_label)
        col1, col2 = st.columns(2)
        with col1:
            save = st.form_submit_button("Save changes", type="primary")
        with col2:
            delete = st.form_submit_button("Delete user", disabled=selected.id == me.id)

    try:
        if save:
            client.users.update_user(selected.id, UserUpdate(display_name=display_name.strip(), role=role))
            show_success(f"Updated {selected.email}")
        elif delete:
            client.users.delete_user(selected.id)
            show_success(f"Deleted {selected.email}")
    except ApiError as e:
        show_error(e)
