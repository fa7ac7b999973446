"""
Route classification table, the route guard and role-gated navigation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from portal.models import Role, Session
from portal.rbac import resolve_capability


class RouteAccess(Enum):
    PUBLIC = "public"
    GUEST_ONLY = "guest_only"
    AUTHENTICATED = "authenticated"
    ADMIN_ONLY = "admin_only"


class Outcome(Enum):
    ADMITTED = "admitted"
    REDIRECT_TO_LOGIN = "redirect_to_login"
    REDIRECT_TO_UNAUTHORIZED = "redirect_to_unauthorized"
    REDIRECT_TO_DASHBOARD = "redirect_to_dashboard"


LOGIN_PATH = "/login"
ADMIN_LOGIN_PATH = "/admin-login"
STAFF_DASHBOARD_PATH = "/dashboard"
ADMIN_DASHBOARD_PATH = "/admin-dashboard"
UNAUTHORIZED_PATH = "/unauthorized"
CHANGE_PASSWORD_PATH = "/change-password"


@dataclass(frozen=True)
class Decision:
    outcome: Outcome
    location: Optional[str] = None

    @property
    def admitted(self) -> bool:
        return self.outcome is Outcome.ADMITTED


# Flask endpoint name -> access class. Every registered view must appear here.
ROUTE_TABLE: Dict[str, RouteAccess] = {
    # public
    "static": RouteAccess.PUBLIC,
    "health": RouteAccess.PUBLIC,
    "unauthorized": RouteAccess.PUBLIC,
    "change_password_page": RouteAccess.PUBLIC,
    "change_password": RouteAccess.PUBLIC,
    # guests only
    "index": RouteAccess.GUEST_ONLY,
    "login_page": RouteAccess.GUEST_ONLY,
    "login": RouteAccess.GUEST_ONLY,
    "admin_login_page": RouteAccess.GUEST_ONLY,
    "admin_login": RouteAccess.GUEST_ONLY,
    "register": RouteAccess.GUEST_ONLY,
    "admin_register": RouteAccess.GUEST_ONLY,
    "forgot_password": RouteAccess.GUEST_ONLY,
    # any signed-in staff member
    "logout": RouteAccess.AUTHENTICATED,
    "session_info": RouteAccess.AUTHENTICATED,
    "dashboard": RouteAccess.AUTHENTICATED,
    "list_patients": RouteAccess.AUTHENTICATED,
    "create_patient": RouteAccess.AUTHENTICATED,
    "patient_detail": RouteAccess.AUTHENTICATED,
    "patient_tab": RouteAccess.AUTHENTICATED,
    "save_patient_tab": RouteAccess.AUTHENTICATED,
    "patient_log": RouteAccess.AUTHENTICATED,
    "add_patient_log": RouteAccess.AUTHENTICATED,
    "notifications": RouteAccess.AUTHENTICATED,
    "mark_notification_read": RouteAccess.AUTHENTICATED,
    "request_lost_book": RouteAccess.AUTHENTICATED,
    # administrators
    "admin_dashboard": RouteAccess.ADMIN_ONLY,
    "staff_verification": RouteAccess.ADMIN_ONLY,
    "pending_staff": RouteAccess.ADMIN_ONLY,
    "approve_staff": RouteAccess.ADMIN_ONLY,
    "reject_staff": RouteAccess.ADMIN_ONLY,
    "add_staff": RouteAccess.ADMIN_ONLY,
    "password_requests": RouteAccess.ADMIN_ONLY,
    "password_request_history": RouteAccess.ADMIN_ONLY,
    "accept_password_request": RouteAccess.ADMIN_ONLY,
    "reject_password_request": RouteAccess.ADMIN_ONLY,
    "audit_logs": RouteAccess.ADMIN_ONLY,
    "audit_stats": RouteAccess.ADMIN_ONLY,
    "reports": RouteAccess.ADMIN_ONLY,
    "staff_report": RouteAccess.ADMIN_ONLY,
    "patient_report": RouteAccess.ADMIN_ONLY,
}


def dashboard_for(session: Session) -> str:
    return ADMIN_DASHBOARD_PATH if session.role is Role.ADMIN else STAFF_DASHBOARD_PATH


def guard(access: RouteAccess, session: Session) -> Decision:
    """Decide whether *session* may reach a route of class *access*."""
    if access is RouteAccess.PUBLIC:
        return Decision(Outcome.ADMITTED)

    if access is RouteAccess.GUEST_ONLY:
        if session.authenticated:
            return Decision(Outcome.REDIRECT_TO_DASHBOARD, dashboard_for(session))
        return Decision(Outcome.ADMITTED)

    if not session.authenticated:
        login_path = ADMIN_LOGIN_PATH if access is RouteAccess.ADMIN_ONLY else LOGIN_PATH
        return Decision(Outcome.REDIRECT_TO_LOGIN, login_path)

    if access is RouteAccess.ADMIN_ONLY and session.role is not Role.ADMIN:
        return Decision(Outcome.REDIRECT_TO_UNAUTHORIZED, UNAUTHORIZED_PATH)

    return Decision(Outcome.ADMITTED)


def classify(endpoint: str) -> RouteAccess:
    """Look up the access class of an endpoint."""
    try:
        return ROUTE_TABLE[endpoint]
    except KeyError:
        raise ValueError(f"Route '{endpoint}' has no access classification.") from None


def unclassified(endpoints) -> List[str]:
    """Return the endpoints missing from ROUTE_TABLE."""
    return sorted(e for e in endpoints if e not in ROUTE_TABLE)


# ── Navigation ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class NavItem:
    label: str
    path: str
    access: RouteAccess
    requires_edit: bool = False


STAFF_NAV = (
    NavItem("Home", STAFF_DASHBOARD_PATH, RouteAccess.AUTHENTICATED),
    NavItem("Patient Records", "/patients", RouteAccess.AUTHENTICATED),
    NavItem("Register Patient", "/patients/new", RouteAccess.AUTHENTICATED, requires_edit=True),
    NavItem("Notifications", "/notifications", RouteAccess.AUTHENTICATED),
    NavItem("Request Lost Book", "/lost-book", RouteAccess.AUTHENTICATED),
    NavItem("Change Password", CHANGE_PASSWORD_PATH, RouteAccess.PUBLIC),
)

ADMIN_NAV = (
    NavItem("Dashboard", ADMIN_DASHBOARD_PATH, RouteAccess.ADMIN_ONLY),
    NavItem("Staff Verification", "/admin/staff", RouteAccess.ADMIN_ONLY),
    NavItem("Pending Staff", "/admin/staff/pending", RouteAccess.ADMIN_ONLY),
    NavItem("Password Requests", "/admin/password-requests", RouteAccess.ADMIN_ONLY),
    NavItem("Password History", "/admin/password-requests/history", RouteAccess.ADMIN_ONLY),
    NavItem("Audit Logs", "/admin/audit-logs", RouteAccess.ADMIN_ONLY),
    NavItem("Reports", "/reports", RouteAccess.ADMIN_ONLY),
    NavItem("Patient Records", "/patients", RouteAccess.AUTHENTICATED),
    NavItem("Change Password", CHANGE_PASSWORD_PATH, RouteAccess.PUBLIC),
)


def navigation_for(session: Session) -> List[Dict[str, str]]:
    """Menu entries the session may follow; empty when signed out."""
    if not session.authenticated:
        return []

    items = ADMIN_NAV if session.role is Role.ADMIN else STAFF_NAV
    can_edit = resolve_capability(session).can_edit_clinical_record
    return [
        {"label": item.label, "path": item.path}
        for item in items
        if guard(item.access, session).admitted and (can_edit or not item.requires_edit)
    ]
