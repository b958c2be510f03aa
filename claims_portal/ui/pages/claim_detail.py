"""
Claim detail page: claim data, documents, notes, audit trail and the
status/assignment controls allowed for the current role.
"""
from html import escape

import streamlit as st

from claims_portal.core.exceptions import ApiError, TransitionNotPermitted
from claims_portal.core.forms import NoteForm
from claims_portal.core.models import AuditEvent, Claim, User
from claims_portal.core.states import NoteVisibility, Priority
from claims_portal.services.wizard import ACCEPTED_UPLOADS
from claims_portal.state_machine import permissions
from claims_portal.state_machine.machine import get_available_transitions
from claims_portal.ui.components import priority_badge, render_header, show_error, show_success, status_badge
from claims_portal.ui.session import current_user, get_claims_store, get_client, navigate, page_param
from claims_portal.utils.helpers import (
    format_currency,
    format_date,
    format_datetime,
    format_file_size,
    format_relative_time,
    get_file_icon,
    get_priority_label,
    get_status_label,
)

UPLOAD_TYPES = sorted({ext.lstrip(".") for exts in ACCEPTED_UPLOADS.values() for ext in exts})


def render_summary(claim: Claim):
    st.markdown(
        f"{status_badge(claim.status)} &nbsp; "
        f"{priority_badge(claim.assignment.priority if claim.assignment else None)}",
        unsafe_allow_html=True
    )
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Claimed", format_currency(claim.amount_claimed or 0.0, claim.currency))
    with col2:
        approved = claim.amount_approved
        st.metric("Approved", format_currency(approved, claim.currency) if approved is not None else "-")
    with col3:
        st.metric("Incident", format_date(claim.incident_date))

    st.markdown(f"**Type:** {claim.incident_type.replace('_', ' ').title()}")
    st.markdown(f"**Policy:** {claim.policy.product + ' - ' if claim.policy else ''}{claim.policy_id}")
    if claim.claimant:
        st.markdown(f"**Claimant:** {claim.claimant.display_name} ({claim.claimant.email})")
    st.markdown(f"**Description:** {claim.description}")

    if claim.assignment:
        assignment = claim.assignment
        adjuster = assignment.adjuster.display_name if assignment.adjuster else assignment.adjuster_id
        st.markdown(
            f"**Assigned to:** {adjuster} · due {format_datetime(assignment.due_at)} "
            f"({format_relative_time(assignment.due_at)})"
        )

    if claim.items:
        st.subheader("🧾 Items")
        st.dataframe(
            [
                {
                    "Category": item.category.title(),
                    "Description": item.description,
                    "Estimated Cost": format_currency(item.estimated_cost, claim.currency),
                }
                for item in claim.items
            ],
            use_container_width=True,
            hide_index=True
        )


def render_status_controls(claim: Claim, user: User):
    """Status selector limited to the transitions the user's role allows."""
    targets = get_available_transitions(claim.status, user.role)
    if not targets:
        return

    st.subheader("🔄 Change Status")
    with st.form("status_form"):
        target = st.selectbox("New status", targets, format_func=get_status_label)
        reason = st.text_area("Reason (optional)", height=80)
        submitted = st.form_submit_button("Update status", type="primary")

    if submitted:
        try:
            get_claims_store().update_claim_status(claim.id, target, user, reason.strip() or None)
        except (ApiError, TransitionNotPermitted) as e:
            show_error(e)
            return
        show_success(f"Claim moved to {get_status_label(target)}")
        st.rerun()


def render_assignment_controls(claim: Claim, user: User):
    if not permissions.can_assign_claim(user):
        return

    st.subheader("👤 Assignment")
    try:
        adjusters = [u for u in get_client().users.get_users() if permissions.can_receive_assignments(u)]
    except ApiError as e:
        show_error(e)
        return
    if not adjusters:
        st.info("No adjusters or supervisors available")
        return

    current = claim.assignment
    ids = [a.id for a in adjusters]
    names = {a.id: f"{a.display_name} ({a.role.value.title()})" for a in adjusters}
    priorities = list(Priority)
    with st.form("assignment_form"):
        adjuster_id = st.selectbox(
            "Assignee", ids,
            index=ids.index(current.adjuster_id) if current and current.adjuster_id in ids else 0,
            format_func=lambda i: names[i]
        )
        priority = st.selectbox(
            "Priority", priorities,
            index=priorities.index(current.priority) if current else priorities.index(Priority.MEDIUM),
            format_func=get_priority_label
        )
        submitted = st.form_submit_button("Assign")

    if submitted:
        try:
            get_claims_store().assign_claim(claim.id, adjuster_id, priority)
        except ApiError as e:
            show_error(e)
            return
        show_success(f"Assigned to {names[adjuster_id]}")
        st.rerun()


def render_attachments(claim: Claim, user: User):
    st.subheader("📎 Documents")
    client = get_client()
    for attachment in claim.attachments:
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(
                f"{get_file_icon(attachment.mime_type)} {attachment.file_name} "
                f"· {format_file_size(attachment.size)} · {format_date(attachment.created_at)}"
            )
        with col2:
            removable = attachment.uploaded_by == user.id or user.role in permissions.MANAGER_ROLES
            if removable and st.button("🗑️", key=f"delete_{attachment.id}"):
                try:
                    client.attachments.delete_attachment(attachment.id)
                except ApiError as e:
                    show_error(e)
                    return
                st.rerun()
    if not claim.attachments:
        st.caption("No documents uploaded")

    upload = st.file_uploader("Add a document", type=UPLOAD_TYPES, key="detail_upload")
    if upload is not None and st.button("Upload document"):
        try:
            client.attachments.upload_file(claim.id, upload.name, upload.getvalue(), upload.type)
        except ApiError as e:
            show_error(e)
            return
        show_success(f"Uploaded {upload.name}")
        st.rerun()


def render_notes(claim: Claim, user: User):
    st.subheader("💬 Notes")
    for note in claim.notes:
        author = note.author.display_name if note.author else "Unknown"
        internal = " · 🔒 internal" if note.visibility == NoteVisibility.INTERNAL else ""
        st.markdown(f"**{author}** · {format_relative_time(note.created_at)}{internal}")
        st.write(note.body)
    if not claim.notes:
        st.caption("No notes yet")

    with st.form("note_form", clear_on_submit=True):
        body = st.text_area("Add a note", height=80)
        visibility = NoteVisibility.PUBLIC
        if permissions.can_view_internal_notes(user):
            if st.checkbox("Internal note (hidden from the policyholder)"):
                visibility = NoteVisibility.INTERNAL
        submitted = st.form_submit_button("Add note")

    if submitted:
        errors = NoteForm.form_errors({"body": body.strip(), "visibility": visibility})
        if errors:
            st.error(errors["body"])
            return
        try:
            get_client().notes.add_note(claim.id, NoteForm(body=body.strip(), visibility=visibility))
        except ApiError as e:
            show_error(e)
            return
        st.rerun()


def timeline_entry_html(event: AuditEvent) -> str:
    """One audit event as a timeline card; every interpolated value is escaped."""
    actor = event.actor.display_name if event.actor else event.actor_id[:8]
    detail = ""
    if event.event_type == "STATUS_CHANGED":
        payload = event.payload_json
        detail = f"{get_status_label(payload.get('from', ''))} → {get_status_label(payload.get('to', ''))}"
        if payload.get("reason"):
            detail += f" ({payload['reason']})"
    elif event.event_type == "ASSIGNED":
        detail = f"priority {get_priority_label(event.payload_json.get('priority', ''))}"
    title = event.event_type.replace("_", " ").title()
    return (
        f'<div class="timeline-item"><strong>{escape(title)}</strong> {escape(detail)}'
        f"<br><small>{escape(format_datetime(event.created_at))} · {escape(actor)}</small></div>"
    )


def render_timeline(claim: Claim):
    with st.expander("📜 Audit trail"):
        for event in reversed(claim.events):
            st.markdown(timeline_entry_html(event), unsafe_allow_html=True)


def render():
    user = current_user()
    claim_id = page_param("claim_id")
    if not claim_id:
        navigate("claims")

    store = get_claims_store()
    try:
        claim = store.fetch_claim_by_id(claim_id)
    except ApiError as e:
        show_error(e)
        if st.button("← Back to claims"):
            navigate("claims")
        return

    render_header(f"Claim {claim.id[:8]}", f"Filed {format_date(claim.created_at)}")
    if st.button("← Back"):
        navigate("claims")

    render_summary(claim)
    render_status_controls(claim, user)
    render_assignment_controls(claim, user)
    render_attachments(claim, user)
    render_notes(claim, user)
    render_timeline(claim)
