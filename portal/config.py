"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Record Store backend ─────────────────────────────────────────────
RECORD_STORE_URL = os.getenv("RECORD_STORE_URL", "http://localhost:3000").rstrip("/")
RECORD_STORE_TIMEOUT = float(os.getenv("RECORD_STORE_TIMEOUT", "10"))

HOSPITAL_NAME = "Base Hospital - Avissawella"

# ── Roles ────────────────────────────────────────────────────────────
# Staff positions the backend treats as administrators.
ADMIN_POSITIONS = {"admin", "administrator", "system admin", "admin user"}

# ── Passwords ────────────────────────────────────────────────────────
MIN_PASSWORD_LENGTH = 6

# ── Reports ──────────────────────────────────────────────────────────
REPORT_PERIODS = ("daily", "weekly", "monthly", "annually")
REPORT_TYPES = ("patient", "staff", "book", "summary")

# ── Portal server ────────────────────────────────────────────────────
SECRET_KEY = os.getenv("PORTAL_SECRET_KEY", "dev-secret-key-change-in-production")

# Browser origins allowed to call the portal with the session cookie.
ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("PORTAL_ALLOWED_ORIGINS", "http://localhost:5173").split(",")
    if o.strip()
]


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
