"""
Form validation for the password workflows.
"""

from typing import Any, Dict

from portal.config import MIN_PASSWORD_LENGTH

USER_TYPES = {"staff", "admin"}


def validate_password_change(form: Dict[str, Any]) -> None:
    """Raise ValueError with a user-facing message if the form is invalid."""
    username = str(form.get("username") or "").strip()
    current = form.get("currentPassword") or ""
    new = form.get("newPassword") or ""
    confirm = form.get("confirmPassword") or ""

    if not username:
        raise ValueError("Username is required.")
    if not current:
        raise ValueError("Current password is required.")
    if not new:
        raise ValueError("New password is required.")
    if len(new) < MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"New password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )
    if new != confirm:
        raise ValueError("New passwords do not match.")
    if current == new:
        raise ValueError("New password must be different from current password.")


def validate_reset_request(form: Dict[str, Any]) -> str:
    """Check a forgot-password form and return the normalised user type."""
    username = str(form.get("username") or "").strip()
    employee_number = str(form.get("employeeNumber") or "").strip()
    if not username or not employee_number:
        raise ValueError("Please fill in all fields.")

    user_type = str(form.get("userType") or "staff").strip().lower()
    if user_type not in USER_TYPES:
        raise ValueError(f"Unknown user type '{user_type}'.")
    return user_type


def validate_credentials(form: Dict[str, Any]) -> None:
    if not str(form.get("username") or "").strip() or not str(form.get("password") or "").strip():
        raise ValueError("Please enter both username and password")
