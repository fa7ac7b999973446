"""
Domain dataclasses used across the application.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Role(Enum):
    """Closed set of staff roles."""
    ADMIN = "admin"
    DOCTOR = "doctor"
    NURSE = "nurse"
    PHARMACIST = "pharmacist"
    LABORATORIST = "laboratorist"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value) -> "Role":
        """Exact lookup by stored value; anything unrecognised is UNKNOWN."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class Session:
    """The authenticated principal for the current browser session."""
    principal_id: str
    username: str
    role: Role
    must_change_password: bool = False
    position: str = ""
    token: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.principal_id) and self.role is not Role.UNKNOWN


UNAUTHENTICATED = Session(principal_id="", username="", role=Role.UNKNOWN)


@dataclass(frozen=True)
class Capability:
    """UI affordances derived from a session's role."""
    can_edit_clinical_record: bool
    role: Role

    def to_dict(self):
        return {
            "can_edit_clinical_record": self.can_edit_clinical_record,
            "role": self.role.value,
        }


@dataclass
class StaffLogin:
    """Staff record as returned by the backend login endpoint."""
    username: str
    position: str
    employee_number: Optional[str]
    is_admin: bool
    is_password_temporary: bool
    token: Optional[str]
