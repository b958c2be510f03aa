"""
Claims list page ("My Claims" and "All Claims").
"""
import streamlit as st

from claims_portal.core.exceptions import ApiError
from claims_portal.core.models import ClaimFilters
from claims_portal.core.states import ClaimStatus, Priority, UserRole
from claims_portal.ui.components import render_claim_table, render_header, show_error
from claims_portal.ui.session import current_user, get_claims_store, navigate
from claims_portal.utils.helpers import get_priority_label, get_status_label

PRODUCTS = ["Auto Insurance", "Home Insurance", "Renters Insurance"]


def render_filters(show_all: bool) -> ClaimFilters:
    """Filter widgets; returns the filters they describe."""
    user = current_user()
    with st.expander("🔎 Filters", expanded=False):
        search = st.text_input("Search", placeholder="Claim id, description, policy...")
        col1, col2 = st.columns(2)
        with col1:
            statuses = st.multiselect("Status", list(ClaimStatus), format_func=get_status_label)
            date_from = st.date_input("Incident from", value=None)
        with col2:
            products = st.multiselect("Product", PRODUCTS)
            date_to = st.date_input("Incident to", value=None)
        priorities = []
        if user.role != UserRole.POLICYHOLDER:
            priorities = st.multiselect("Priority", list(Priority), format_func=get_priority_label)

    filters = ClaimFilters(
        status=statuses or None,
        product=products or None,
        priority=priorities or None,
        date_from=date_from,
        date_to=date_to,
        search=search.strip() or None,
    )
    # Staff "My Claims" means claims assigned to them
    if not show_all and user.role != UserRole.POLICYHOLDER:
        filters.assigned_to = user.id
    return filters


def render(show_all: bool = False):
    title = "🗂️ All Claims" if show_all else "📋 My Claims"
    render_header(title)

    store = get_claims_store()
    filters = render_filters(show_all)
    if filters != store.state.filters:
        store.set_filters(filters)
        store.set_page(1)

    try:
        claims = store.fetch_claims()
    except ApiError as e:
        show_error(e)
        return

    pagination = store.state.pagination
    st.caption(f"Showing {pagination.first_index}-{pagination.last_index} of {pagination.total} claims")

    claim_id = render_claim_table(claims, key="claims_list")
    if claim_id:
        navigate("claim_detail", claim_id=claim_id)

    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        if st.button("← Previous", disabled=not pagination.has_previous, use_container_width=True):
            store.set_page(pagination.page - 1)
            st.rerun()
    with col2:
        st.markdown(
            f"<div style='text-align:center'>Page {pagination.page} of {max(pagination.total_pages, 1)}</div>",
            unsafe_allow_html=True
        )
    with col3:
        if st.button("Next →", disabled=not pagination.has_next, use_container_width=True):
            store.set_page(pagination.page + 1)
            st.rerun()
