"""
Session Store – the single owner of the browser session's identity state.

Backed by any string key-value mapping: Flask's signed ``session`` cookie in
the portal, a plain ``dict`` in tests. Nothing else reads these keys.
"""

import json
from typing import MutableMapping, Optional

from portal.models import UNAUTHENTICATED, Role, Session

USER_KEY = "user"
ROLE_KEY = "userRole"
PASSWORD_CHANGE_KEY = "needsPasswordChange"
TOKEN_KEY = "authToken"

SESSION_KEYS = (USER_KEY, ROLE_KEY, PASSWORD_CHANGE_KEY, TOKEN_KEY)


class SessionStore:
    """Atomic get/set/clear over the per-browser storage."""

    def __init__(self, storage: MutableMapping[str, str]):
        self._storage = storage

    def get(self) -> Session:
        """Return the stored Session, or UNAUTHENTICATED if absent or corrupt."""
        try:
            return self._load() or UNAUTHENTICATED
        except (TypeError, ValueError, KeyError, AttributeError):
            return UNAUTHENTICATED

    def set(self, session: Session) -> None:
        """Replace the stored session entirely."""
        if not session.authenticated:
            raise ValueError("Refusing to store an unauthenticated session.")

        values = {
            USER_KEY: json.dumps({
                "principalId": session.principal_id,
                "username": session.username,
                "role": session.role.value,
                "position": session.position,
            }),
            ROLE_KEY: session.role.value,
        }
        if session.must_change_password:
            values[PASSWORD_CHANGE_KEY] = "true"
        if session.token:
            values[TOKEN_KEY] = session.token

        for key in SESSION_KEYS:
            if key not in values:
                self._storage.pop(key, None)
        self._storage.update(values)

    def clear(self) -> None:
        for key in SESSION_KEYS:
            self._storage.pop(key, None)

    def mark_password_changed(self) -> None:
        """Drop the temporary-password flag of the current session, if any."""
        if self.get().authenticated:
            self._storage.pop(PASSWORD_CHANGE_KEY, None)

    # ── internals ────────────────────────────────────────────────────

    def _load(self) -> Optional[Session]:
        raw_user = self._storage.get(USER_KEY)
        if not raw_user:
            return None

        user = json.loads(raw_user)
        if not isinstance(user, dict):
            return None

        principal_id = str(user.get("principalId") or "").strip()
        username = user.get("username")
        if not principal_id or not isinstance(username, str):
            return None

        role = Role.from_value(self._storage.get(ROLE_KEY))
        if role is Role.UNKNOWN or Role.from_value(user.get("role")) is not role:
            return None

        return Session(
            principal_id=principal_id,
            username=username,
            role=role,
            must_change_password=self._storage.get(PASSWORD_CHANGE_KEY) == "true",
            position=str(user.get("position") or ""),
            token=self._storage.get(TOKEN_KEY) or None,
        )
