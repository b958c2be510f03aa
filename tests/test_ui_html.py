# tests/test_ui_html.py
from unittest.mock import MagicMock

import pytest

from claims_portal.core.states import UserRole
from claims_portal.ui import components
from claims_portal.ui.pages import claim_detail
from tests.factories import make_claim, make_user

PAYLOAD = "<img src=x onerror=alert(1)>"
ESCAPED = "&lt;img src=x onerror=alert(1)&gt;"


@pytest.fixture
def fake_st(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr(components, "st", fake)
    monkeypatch.setattr(claim_detail, "st", fake)
    return fake


def test_header_escapes_title_and_subtitle(fake_st):
    components.render_header(f"Welcome back, {PAYLOAD}", "<b>staff</b>")

    html = fake_st.markdown.call_args.args[0]
    assert "<img" not in html
    assert ESCAPED in html
    assert "&lt;b&gt;staff&lt;/b&gt;" in html
    assert fake_st.markdown.call_args.kwargs == {"unsafe_allow_html": True}


def test_badge_escapes_text():
    html = components.badge("<script>alert(1)</script>", "red")

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert components.badge("Submitted", "blue").endswith(">Submitted</span>")


def test_timeline_escapes_reason_and_actor(fake_st):
    claim = make_claim()
    claim.add_audit_event("supervisor-1", "STATUS_CHANGED", {
        "from": "IN_REVIEW", "to": "REJECTED", "reason": PAYLOAD,
    })
    claim.events[-1].actor = make_user(UserRole.SUPERVISOR, display_name="<i>Sam</i>")

    claim_detail.render_timeline(claim)

    html = fake_st.markdown.call_args_list[0].args[0]
    assert "<img" not in html
    assert "<i>" not in html
    assert ESCAPED in html
    assert "In Review → Rejected" in html
    assert fake_st.markdown.call_args_list[0].kwargs == {"unsafe_allow_html": True}


def test_timeline_entry_without_actor_uses_id_prefix():
    claim = make_claim()
    event = claim.add_audit_event("adjuster-1234567", "ASSIGNED", {"priority": "HIGH"})

    html = claim_detail.timeline_entry_html(event)

    assert "<strong>Assigned</strong>" in html
    assert "adjuster" in html


def test_assignment_lists_adjusters_and_supervisors(fake_st, monkeypatch):
    supervisor = make_user(UserRole.SUPERVISOR)
    adjuster = make_user(UserRole.ADJUSTER)
    client = MagicMock()
    client.users.get_users.return_value = [
        make_user(UserRole.POLICYHOLDER), adjuster, supervisor, make_user(UserRole.ADMIN),
    ]
    monkeypatch.setattr(claim_detail, "get_client", lambda: client)
    fake_st.form_submit_button.return_value = False

    claim_detail.render_assignment_controls(make_claim(), supervisor)

    label, options = fake_st.selectbox.call_args_list[0].args
    assert label == "Assignee"
    assert options == [adjuster.id, supervisor.id]
    format_func = fake_st.selectbox.call_args_list[0].kwargs["format_func"]
    assert format_func(supervisor.id) == "Supervisor (Supervisor)"
