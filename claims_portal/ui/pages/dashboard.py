"""
Dashboard page: headline figures and the most recent claims.
"""
import streamlit as st

from claims_portal.core.exceptions import ApiError
from claims_portal.core.models import ClaimFilters
from claims_portal.core.states import ClaimStatus, UserRole
from claims_portal.services.workbench import build_queues, summarize_claims
from claims_portal.ui.components import render_claim_table, render_header, show_error
from claims_portal.ui.session import current_user, get_claims_store, get_client, navigate
from claims_portal.utils.helpers import format_currency, get_role_label, get_status_label


def render():
    user = current_user()
    render_header(f"👋 Welcome, {user.display_name}", get_role_label(user.role))

    client = get_client()
    store = get_claims_store()
    try:
        stats = client.reports.get_dashboard_stats()
        claims = store.fetch_claims(filters=ClaimFilters(), page=1)
    except ApiError as e:
        show_error(e)
        return

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Total Claims", stats.total_claims)
    with col2:
        st.metric("Pending Review", stats.pending_review)
    with col3:
        st.metric("Approved Today", stats.approved_today)
    with col4:
        st.metric("Overdue", stats.overdue_assignments)

    if stats.average_processing_time:
        st.caption(f"Average processing time: {stats.average_processing_time:.1f} days")

    summary = summarize_claims(claims)
    with st.expander("📊 Status breakdown (latest claims)"):
        cols = st.columns(4)
        for index, status in enumerate(ClaimStatus):
            with cols[index % 4]:
                st.metric(get_status_label(status), summary.status_counts[status])
        st.caption(f"Total claimed: {format_currency(summary.total_claimed)}")

    st.subheader("🕒 Recent Claims")
    claim_id = render_claim_table(build_queues(claims).recent, key="dashboard")
    if claim_id:
        navigate("claim_detail", claim_id=claim_id)

    if user.role == UserRole.POLICYHOLDER:
        if st.button("➕ File a new claim", type="primary"):
            navigate("new_claim")
