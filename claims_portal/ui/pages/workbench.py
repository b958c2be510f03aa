"""
Workbench page: work queues of the claims an adjuster (or supervisor) handles.
"""
import streamlit as st

from claims_portal.config import get_settings
from claims_portal.core.exceptions import ApiError
from claims_portal.core.states import Priority
from claims_portal.services.workbench import WORKBENCH_STATUS_OPTIONS, build_queues, workbench_filters
from claims_portal.ui.components import render_claim_table, render_header, show_error
from claims_portal.ui.session import current_user, get_client, navigate
from claims_portal.utils.helpers import get_priority_label, get_status_label

QUEUES = [
    ("urgent", "🔥 Urgent"),
    ("pending_review", "🕵️ Pending Review"),
    ("awaiting_info", "📨 Awaiting Info"),
    ("all_claims", "📋 All Assigned"),
]


def render():
    user = current_user()
    render_header("🧰 Workbench", "Claims that need your attention")

    col1, col2 = st.columns(2)
    with col1:
        priority = st.selectbox(
            "Priority", [None] + list(Priority),
            format_func=lambda p: get_priority_label(p) if p else "All priorities"
        )
    with col2:
        status = st.selectbox(
            "Status", [None] + WORKBENCH_STATUS_OPTIONS,
            format_func=lambda s: get_status_label(s) if s else "All statuses"
        )

    filters = workbench_filters(user, priority, status)
    settings = get_settings()
    try:
        # Queues are built from one large page of the scoped claims
        result = get_client().claims.get_claims(filters=filters, page=1, limit=100)
    except ApiError as e:
        show_error(e)
        return

    queues = build_queues(result.data)
    counts = queues.counts
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Total", counts["total"])
    with col2:
        st.metric("Urgent", counts["urgent"])
    with col3:
        st.metric("Pending Review", counts["pending_review"])
    with col4:
        st.metric("Awaiting Info", counts["awaiting_info"])

    tabs = st.tabs([label for _, label in QUEUES])
    for tab, (queue, label) in zip(tabs, QUEUES):
        with tab:
            claims = queues.preview(queue, settings.QUEUE_PREVIEW_SIZE) if queue != "all_claims" else queues.all_claims
            claim_id = render_claim_table(claims, key=f"workbench_{queue}")
            if claim_id:
                navigate("claim_detail", claim_id=claim_id)
