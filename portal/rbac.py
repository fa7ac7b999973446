"""
Role-Based Access Control – building sessions from logins and resolving capabilities.
"""

from typing import Any, Dict

from portal.config import ADMIN_POSITIONS
from portal.models import Capability, Role, Session, StaffLogin

# Roles allowed to create or change clinical-history entries.
CLINICAL_EDITORS = frozenset({Role.DOCTOR, Role.NURSE})


def parse_position(position: str, is_admin: bool = False) -> Role:
    """Map a staff position to a Role by exact match."""
    normalised = str(position or "").strip().lower()
    if is_admin or normalised in ADMIN_POSITIONS:
        return Role.ADMIN
    return Role.from_value(normalised)


def parse_login_response(payload: Dict[str, Any]) -> StaffLogin:
    """Read the staff block out of a backend login response."""
    staff = payload.get("staff") if isinstance(payload, dict) else None
    if not isinstance(staff, dict) or not staff.get("username"):
        raise ValueError("Login response did not include staff details.")

    employee_number = staff.get("employeeNumber")
    return StaffLogin(
        username=str(staff["username"]),
        position=str(staff.get("position") or ""),
        employee_number=str(employee_number) if employee_number is not None else None,
        is_admin=staff.get("isAdmin") is True,
        is_password_temporary=staff.get("isPasswordTemporary") is True,
        token=payload.get("token") or None,
    )


def build_session(login: StaffLogin) -> Session:
    """Turn a successful login into a Session, rejecting unsupported positions."""
    role = parse_position(login.position, login.is_admin)
    if role is Role.UNKNOWN:
        raise ValueError(f"Unsupported position '{login.position}' for portal access.")

    return Session(
        principal_id=login.employee_number or login.username,
        username=login.username,
        role=role,
        must_change_password=login.is_password_temporary,
        position=login.position,
        token=login.token,
    )


def resolve_capability(session: Session) -> Capability:
    """Derive the capability set for *session*; unknown roles fail closed."""
    role = session.role if session.authenticated else Role.UNKNOWN
    return Capability(
        can_edit_clinical_record=role in CLINICAL_EDITORS,
        role=role,
    )


class CapabilityResolver:
    """Resolves capabilities against the live session on every call."""

    def __init__(self, store):
        self._store = store

    def resolve(self) -> Capability:
        return resolve_capability(self._store.get())
