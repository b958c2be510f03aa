"""
New claim page: the five-step submission wizard.
"""
import streamlit as st

from claims_portal.config import get_settings
from claims_portal.core.exceptions import ApiError, WizardValidationError
from claims_portal.services.wizard import (
    ACCEPTED_UPLOADS,
    INCIDENT_TYPE_LABELS,
    ITEM_CATEGORY_LABELS,
    POLICY_OPTIONS,
    STEPS,
    ClaimWizard,
)
from claims_portal.ui.components import render_header, show_error, show_success
from claims_portal.ui.session import get_claims_store, get_client, navigate
from claims_portal.utils.helpers import format_currency, format_date, format_file_size, get_file_icon

UPLOAD_TYPES = sorted({ext.lstrip(".") for exts in ACCEPTED_UPLOADS.values() for ext in exts})


def get_wizard() -> ClaimWizard:
    if "wizard" not in st.session_state:
        st.session_state.wizard = ClaimWizard(max_upload_bytes=get_settings().MAX_UPLOAD_BYTES)
    return st.session_state.wizard


def reset_wizard():
    st.session_state.pop("wizard", None)


def field_error(wizard: ClaimWizard, path: str):
    if path in wizard.errors:
        st.caption(f":red[{wizard.errors[path]}]")


def render_progress(wizard: ClaimWizard):
    cols = st.columns(len(STEPS))
    for col, step in zip(cols, STEPS):
        with col:
            if step.id < wizard.current_step:
                st.markdown(f"✅ **{step.name}**")
            elif step.id == wizard.current_step:
                st.markdown(f"🔄 **{step.name}**")
            else:
                st.markdown(f"⬜ {step.name}")
    st.progress(wizard.current_step / len(STEPS))


def render_policy_step(wizard: ClaimWizard):
    options = [""] + list(POLICY_OPTIONS)
    current = wizard.values["policy_id"]
    policy_id = st.selectbox(
        "Policy *", options,
        index=options.index(current) if current in options else 0,
        format_func=lambda p: POLICY_OPTIONS.get(p, "Select a policy")
    )
    wizard.update(policy_id=policy_id)
    field_error(wizard, "policy_id")


def render_incident_step(wizard: ClaimWizard):
    wizard.update(incident_date=st.date_input("Incident date *", value=wizard.values["incident_date"]))
    field_error(wizard, "incident_date")

    options = [""] + [t.value for t in INCIDENT_TYPE_LABELS]
    current = wizard.values["incident_type"]
    incident_type = st.selectbox(
        "Incident type *", options,
        index=options.index(current) if current in options else 0,
        format_func=lambda t: INCIDENT_TYPE_LABELS.get(t, "Select a type") if t else "Select a type"
    )
    wizard.update(incident_type=incident_type)
    field_error(wizard, "incident_type")

    wizard.update(description=st.text_area(
        "What happened? *",
        value=wizard.values["description"],
        height=150,
        placeholder="Describe the incident: when, where and how the damage occurred"
    ))
    field_error(wizard, "description")


def clear_item_widgets():
    """Drop item widget state; widget keys are positional and shift on removal."""
    for key in [k for k in st.session_state if str(k).startswith("item_")]:
        del st.session_state[key]


def render_items_step(wizard: ClaimWizard):
    categories = [""] + [c.value for c in ITEM_CATEGORY_LABELS]
    for index, item in enumerate(wizard.values["items"]):
        st.markdown(f"**Item {index + 1}**")
        col1, col2, col3, col4 = st.columns([2, 3, 2, 1])
        with col1:
            category = st.selectbox(
                "Category", categories,
                index=categories.index(item["category"]) if item["category"] in categories else 0,
                format_func=lambda c: ITEM_CATEGORY_LABELS.get(c, "Select") if c else "Select",
                key=f"item_category_{index}"
            )
        with col2:
            description = st.text_input("Description", value=item["description"], key=f"item_description_{index}")
        with col3:
            cost = st.number_input(
                "Estimated cost", value=float(item["estimated_cost"]), step=50.0, key=f"item_cost_{index}"
            )
        wizard.update_item(index, category=category, description=description, estimated_cost=cost)
        with col4:
            st.write("")
            if len(wizard.values["items"]) > 1 and st.button("🗑️", key=f"item_remove_{index}"):
                wizard.remove_item(index)
                clear_item_widgets()
                st.rerun()
        for field in ("category", "description", "estimated_cost"):
            field_error(wizard, f"items.{index}.{field}")

    field_error(wizard, "items")
    if st.button("➕ Add item"):
        wizard.add_item()
        st.rerun()


def render_documents_step(wizard: ClaimWizard):
    st.caption(f"Images, PDF or Word documents up to {format_file_size(wizard.max_upload_bytes)} each.")
    files = st.file_uploader("Supporting documents", type=UPLOAD_TYPES, accept_multiple_files=True)
    if files and st.button("Add selected files"):
        for upload in files:
            rejection = wizard.add_attachment(upload.name, upload.getvalue(), upload.type)
            if rejection:
                st.warning(rejection)

    for index, pending in enumerate(wizard.attachments):
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(f"{get_file_icon(pending.mime_type)} {pending.file_name} · {format_file_size(pending.size)}")
        with col2:
            if st.button("Remove", key=f"attachment_remove_{index}"):
                wizard.remove_attachment(index)
                st.rerun()


def render_review_step(wizard: ClaimWizard):
    values = wizard.values
    st.markdown(f"**Policy:** {POLICY_OPTIONS.get(values['policy_id'], values['policy_id'])}")
    if values["incident_date"]:
        st.markdown(f"**Incident date:** {format_date(values['incident_date'])}")
    st.markdown(f"**Incident type:** {values['incident_type'].replace('_', ' ').title()}")
    st.markdown(f"**Description:** {values['description']}")

    total = 0.0
    for item in values["items"]:
        total += float(item["estimated_cost"] or 0)
        st.markdown(f"- {item['category'].title()}: {item['description']} ({format_currency(item['estimated_cost'])})")
    st.metric("Total estimated cost", format_currency(total))
    st.markdown(f"**Documents:** {len(wizard.attachments)}")

    for path, message in wizard.errors.items():
        st.error(f"{path}: {message}")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("💾 Save as draft", use_container_width=True):
            submit(wizard, save_as_draft=True)
    with col2:
        if st.button("🚀 Submit claim", type="primary", use_container_width=True):
            submit(wizard, save_as_draft=False)


def submit(wizard: ClaimWizard, save_as_draft: bool):
    try:
        result = wizard.submit(get_client(), save_as_draft=save_as_draft)
    except WizardValidationError:
        st.error("Please fix the errors above before submitting")
        return
    except ApiError as e:
        show_error(e, "Failed to create claim: ")
        return

    for file_name in result.failed_uploads:
        st.toast(f"{file_name} could not be uploaded", icon="⚠️")
    get_claims_store().state.claims.insert(0, result.claim)
    show_success("Claim saved as draft" if save_as_draft else "Claim submitted")
    reset_wizard()
    navigate("claim_detail", claim_id=result.claim.id)


STEP_RENDERERS = {
    1: render_policy_step,
    2: render_incident_step,
    3: render_items_step,
    4: render_documents_step,
    5: render_review_step,
}


def render():
    render_header("➕ New Claim", "File a claim in five steps")
    wizard = get_wizard()
    render_progress(wizard)

    step = wizard.step
    st.subheader(f"Step {step.id}: {step.name}")
    st.caption(step.description)
    STEP_RENDERERS[step.id](wizard)

    st.divider()
    col1, col2 = st.columns(2)
    with col1:
        if wizard.current_step > 1 and st.button("← Back", use_container_width=True):
            wizard.prev_step()
            st.rerun()
    with col2:
        if not wizard.is_last_step and st.button("Next →", type="primary", use_container_width=True):
            wizard.next_step()
            st.rerun()
