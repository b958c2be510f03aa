# tests/test_navigation.py
import pytest

from claims_portal.core.states import UserRole
from claims_portal.ui.navigation import can_open, visible_pages


@pytest.mark.parametrize("role,expected", [
    (UserRole.POLICYHOLDER, ["dashboard", "claims", "new_claim"]),
    (UserRole.ADJUSTER, ["dashboard", "claims", "workbench"]),
    (UserRole.SUPERVISOR, ["dashboard", "claims", "workbench", "all_claims", "reports"]),
    (UserRole.ADMIN, ["dashboard", "claims", "all_claims", "users", "reports"]),
])
def test_visible_pages_per_role(role, expected):
    assert [item.key for item in visible_pages(role)] == expected


def test_logged_out_sees_nothing():
    assert visible_pages(None) == []
    assert not can_open("dashboard", None)


def test_can_open():
    assert can_open("claim_detail", UserRole.POLICYHOLDER)
    assert can_open("profile", UserRole.ADJUSTER)
    assert can_open("users", UserRole.ADMIN)
    assert not can_open("users", UserRole.SUPERVISOR)
    assert not can_open("reports", UserRole.ADJUSTER)
    assert not can_open("settings", UserRole.ADMIN)
