"""
Sidebar navigation: which pages each role can open.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from claims_portal.core.states import UserRole


@dataclass(frozen=True)
class NavItem:
    key: str
    label: str
    icon: str
    # None means every logged-in user
    roles: Optional[Tuple[UserRole, ...]] = None

    def allows(self, role: Optional[UserRole]) -> bool:
        if role is None:
            return False
        return self.roles is None or role in self.roles


NAV_ITEMS = [
    NavItem("dashboard", "Dashboard", "🏠"),
    NavItem("claims", "My Claims", "📋"),
    NavItem("new_claim", "New Claim", "➕", (UserRole.POLICYHOLDER,)),
    NavItem("workbench", "Workbench", "🧰", (UserRole.ADJUSTER, UserRole.SUPERVISOR)),
    NavItem("all_claims", "All Claims", "🗂️", (UserRole.SUPERVISOR, UserRole.ADMIN)),
    NavItem("users", "Users", "👥", (UserRole.ADMIN,)),
    NavItem("reports", "Reports", "📊", (UserRole.SUPERVISOR, UserRole.ADMIN)),
]

# Pages reachable by link only (not listed in the sidebar)
HIDDEN_PAGES = {"claim_detail", "profile"}


def visible_pages(role: Optional[UserRole]) -> List[NavItem]:
    return [item for item in NAV_ITEMS if item.allows(role)]


def can_open(page: str, role: Optional[UserRole]) -> bool:
    """Whether ``role`` may open ``page``; unknown pages are refused."""
    if role is None:
        return False
    if page in HIDDEN_PAGES:
        return True
    return any(item.key == page for item in visible_pages(role))
