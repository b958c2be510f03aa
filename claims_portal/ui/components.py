"""
Shared Streamlit widgets: styling, badges, claim tables and notifications.
"""
import logging
from html import escape
from typing import Iterable, List, Optional

import streamlit as st

from claims_portal.core.models import Claim
from claims_portal.core.states import ClaimStatus, Priority
from claims_portal.utils.helpers import (
    format_currency,
    format_date,
    get_error_message,
    get_priority_color,
    get_priority_label,
    get_status_color,
    get_status_label,
    truncate_text,
)

logger = logging.getLogger(__name__)

# Badge colours: name -> (background, text)
BADGE_STYLES = {
    "gray": ("#f1f3f5", "#495057"),
    "blue": ("#e3f2fd", "#1565c0"),
    "yellow": ("#fff8e1", "#b7791f"),
    "orange": ("#fff3e0", "#ef6c00"),
    "green": ("#e8f5e9", "#2e7d32"),
    "red": ("#ffebee", "#c62828"),
    "emerald": ("#e6fffa", "#047857"),
}

PORTAL_CSS = """
<style>
    .portal-header {
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        padding: 1.25rem 1.5rem;
        border-radius: 12px;
        color: white;
        margin-bottom: 1.5rem;
    }
    .portal-header h1 {margin: 0; font-size: 1.6rem; font-weight: 700;}
    .portal-header p {margin: 0.25rem 0 0 0; opacity: 0.9;}
    .badge {
        display: inline-block;
        padding: 2px 10px;
        border-radius: 12px;
        font-size: 0.8rem;
        font-weight: 600;
    }
    .timeline-item {
        padding: 8px 14px;
        border-left: 3px solid #667eea;
        margin-left: 12px;
        margin-bottom: 8px;
        background: #f8f9fa;
        border-radius: 0 8px 8px 0;
    }
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
"""


def apply_styles():
    st.markdown(PORTAL_CSS, unsafe_allow_html=True)


def header_html(title: str, subtitle: str = "") -> str:
    sub = f"<p>{escape(subtitle)}</p>" if subtitle else ""
    return f'<div class="portal-header"><h1>{escape(title)}</h1>{sub}</div>'


def render_header(title: str, subtitle: str = ""):
    """Render the gradient page header."""
    st.markdown(header_html(title, subtitle), unsafe_allow_html=True)


def badge(text: str, color: str) -> str:
    background, foreground = BADGE_STYLES.get(color, BADGE_STYLES["gray"])
    return f'<span class="badge" style="background:{background};color:{foreground}">{escape(text)}</span>'


def status_badge(status: ClaimStatus) -> str:
    return badge(get_status_label(status), get_status_color(status))


def priority_badge(priority: Optional[Priority]) -> str:
    if priority is None:
        return badge("Unassigned", "gray")
    return badge(get_priority_label(priority), get_priority_color(priority))


def show_error(error: Exception, prefix: str = ""):
    """Surface an API failure as an error box and a toast."""
    message = get_error_message(error)
    logger.debug(f"Showing error: {message}")
    st.error(f"❌ {prefix}{message}")
    st.toast(message, icon="⚠️")


def show_success(message: str):
    st.success(f"✅ {message}")
    st.toast(message, icon="✅")


def claim_rows(claims: Iterable[Claim]) -> List[dict]:
    """Table rows for a list of claims."""
    rows = []
    for claim in claims:
        assignment = claim.assignment
        rows.append({
            "Claim": claim.id[:8],
            "Status": get_status_label(claim.status),
            "Incident": format_date(claim.incident_date),
            "Type": claim.incident_type.replace("_", " ").title(),
            "Description": truncate_text(claim.description, 50),
            "Amount": format_currency(claim.amount_claimed or 0.0, claim.currency),
            "Priority": get_priority_label(assignment.priority) if assignment else "",
            "Due": format_date(assignment.due_at) if assignment else "",
        })
    return rows


def render_claim_table(claims: List[Claim], key: str, open_label: str = "Open claim"):
    """
    Show claims as a table plus a selector to open one.

    Returns:
        The id of the claim the user chose to open, or None
    """
    if not claims:
        st.info("No claims found")
        return None

    st.dataframe(claim_rows(claims), use_container_width=True, hide_index=True)

    options = {f"{c.id[:8]} · {get_status_label(c.status)} · {truncate_text(c.description, 40)}": c.id for c in claims}
    col1, col2 = st.columns([4, 1])
    with col1:
        choice = st.selectbox("Claim", list(options), key=f"{key}_select", label_visibility="collapsed")
    with col2:
        if st.button(open_label, key=f"{key}_open", use_container_width=True):
            return options[choice]
    return None
