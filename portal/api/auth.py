"""
Session binding, route protection and the account workflows
(login, logout, registration, password change and reset).
"""

import sys
import traceback
from datetime import datetime, timezone
from functools import wraps
from numbers import Number
from typing import Any, Dict, Optional

import jwt
from flask import jsonify, redirect, request

from portal.models import Role
from portal.passwords import validate_credentials, validate_password_change, validate_reset_request
from portal.rbac import build_session, parse_login_response, resolve_capability
from portal.record_store import RecordStoreError, RecordStoreUnavailable
from portal.routing import (
    CHANGE_PASSWORD_PATH,
    LOGIN_PATH,
    classify,
    dashboard_for,
    guard,
    navigation_for,
)

# Backend statuses passed straight through to the browser.
PASSTHROUGH_STATUSES = {400, 401, 403, 404, 409, 422}


def form_data() -> Dict[str, Any]:
    """Submitted fields from a JSON body or a classic form post."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def error_status(e: RecordStoreError) -> int:
    if isinstance(e, RecordStoreUnavailable):
        return 503
    return e.status if e.status in PASSTHROUGH_STATUSES else 502


def token_expired(token: Optional[str], now: Optional[datetime] = None) -> bool:
    """True if *token* is a JWT whose ``exp`` claim has passed.

    The backend owns the signing key, so only the claims are read here.
    Opaque or unreadable tokens are left for the backend to judge.
    """
    if not token:
        return False
    try:
        claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.InvalidTokenError:
        return False

    exp = claims.get("exp")
    if not isinstance(exp, Number):
        return False
    now = now or datetime.now(timezone.utc)
    return exp <= now.timestamp()


def install_guard(app, store):
    """Re-run the route guard before every request."""

    @app.before_request
    def enforce_route_access():
        if request.endpoint is None:
            return None

        session = store.get()
        if session.authenticated and token_expired(session.token):
            print(f"[auth] Session for {session.username} expired; signing out", file=sys.stderr)
            store.clear()
            session = store.get()

        decision = guard(classify(request.endpoint), session)
        if decision.admitted:
            return None

        print(
            f"[guard] {request.method} {request.path} -> {decision.outcome.value}",
            file=sys.stderr,
        )
        return redirect(decision.location)


def edit_capability_required(resolver):
    """Refuse clinical-record writes for roles without edit capability."""
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if not resolver.resolve().can_edit_clinical_record:
                return jsonify({
                    "error": "Access Denied: Only Doctors and Nurses can add or edit patient records.",
                }), 403
            return f(*args, **kwargs)
        return decorated
    return decorator


def register_auth_routes(app, store, record_store):
    """Register the account workflow routes on the Flask *app*."""

    # ── Login ────────────────────────────────────────────────────────

    def login_page_model(page, title):
        return {"page": page, "title": title, "fields": ["username", "password"]}

    def sign_in(admin_only: bool):
        data = form_data()
        try:
            validate_credentials(data)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        username = str(data["username"]).strip()
        try:
            payload = record_store.login(username, data["password"])
            session = build_session(parse_login_response(payload))
        except RecordStoreError as e:
            return jsonify({"error": e.message or "Login failed. Please check your credentials."}), error_status(e)
        except ValueError as e:
            return jsonify({"error": str(e)}), 403
        except Exception as e:
            print(f"[ERROR] Login error: {e}", file=sys.stderr)
            traceback.print_exc()
            return jsonify({"error": "Internal server error during login"}), 500

        if admin_only and session.role is not Role.ADMIN:
            return jsonify({"error": "Access denied. Admin privileges required."}), 403

        store.set(session)
        print(f"[auth] {session.username} signed in (role={session.role.value})", file=sys.stderr)

        next_path = CHANGE_PASSWORD_PATH if session.must_change_password else dashboard_for(session)
        return jsonify({
            "success": True,
            "message": "Login successful.",
            "user": {
                "username": session.username,
                "role": session.role.value,
                "position": session.position,
                "must_change_password": session.must_change_password,
            },
            "capability": resolve_capability(session).to_dict(),
            "redirect": next_path,
        }), 200

    @app.route("/", methods=["GET"])
    def index():
        return jsonify(login_page_model("login", "Staff Login"))

    @app.route("/login", methods=["GET"])
    def login_page():
        return jsonify(login_page_model("login", "Staff Login"))

    @app.route("/login", methods=["POST"])
    def login():
        return sign_in(admin_only=False)

    @app.route("/admin-login", methods=["GET"])
    def admin_login_page():
        return jsonify(login_page_model("admin_login", "Administrator Login"))

    @app.route("/admin-login", methods=["POST"])
    def admin_login():
        return sign_in(admin_only=True)

    @app.route("/logout", methods=["POST"])
    def logout():
        username = store.get().username
        store.clear()
        print(f"[auth] {username} signed out", file=sys.stderr)
        return redirect(LOGIN_PATH)

    @app.route("/session", methods=["GET"])
    def session_info():
        session = store.get()
        return jsonify({
            "user": {
                "username": session.username,
                "role": session.role.value,
                "position": session.position,
                "must_change_password": session.must_change_password,
            },
            "capability": resolve_capability(session).to_dict(),
            "nav": navigation_for(session),
        }), 200

    # ── Registration ─────────────────────────────────────────────────

    @app.route("/register", methods=["GET", "POST"])
    def register():
        if request.method == "GET":
            return jsonify({
                "page": "register",
                "title": "Staff Registration",
                "fields": ["username", "password", "employee_number", "position"],
                "positions": [r.label for r in Role if r is not Role.UNKNOWN],
            })

        data = form_data()
        missing = [f for f in ("username", "password", "employee_number", "position")
                   if not str(data.get(f) or "").strip()]
        if missing:
            return jsonify({"error": "Please fill in all fields.", "missing": missing}), 400
        if Role.from_value(data["position"]) is Role.UNKNOWN:
            return jsonify({"error": f"Unknown position '{data['position']}'."}), 400

        try:
            result = record_store.register_staff({
                "username": str(data["username"]).strip(),
                "password": data["password"],
                "employee_number": str(data["employee_number"]).strip(),
                "position": Role.from_value(data["position"]).label,
            })
        except RecordStoreError as e:
            return jsonify({"error": e.message}), error_status(e)

        return jsonify({
            "success": True,
            "message": (result or {}).get("message")
            or "Registration submitted. Please wait for admin approval.",
        }), 201

    @app.route("/admin-register", methods=["GET", "POST"])
    def admin_register():
        if request.method == "GET":
            return jsonify({
                "page": "admin_register",
                "title": "Create Initial Administrator",
                "fields": ["username", "password", "employee_number"],
            })

        data = form_data()
        if not all(str(data.get(f) or "").strip() for f in ("username", "password", "employee_number")):
            return jsonify({"error": "Please fill in all fields."}), 400

        try:
            result = record_store.create_initial_admin({
                "username": str(data["username"]).strip(),
                "password": data["password"],
                "employee_number": str(data["employee_number"]).strip(),
            })
        except RecordStoreError as e:
            return jsonify({"error": e.message}), error_status(e)

        return jsonify({
            "success": True,
            "message": (result or {}).get("message") or "Administrator account created.",
        }), 201

    # ── Passwords ────────────────────────────────────────────────────

    @app.route("/forgot-password", methods=["GET", "POST"])
    def forgot_password():
        if request.method == "GET":
            return jsonify({
                "page": "forgot_password",
                "title": "Forgot Password",
                "fields": ["username", "employeeNumber", "userType"],
            })

        data = form_data()
        try:
            user_type = validate_reset_request(data)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        try:
            record_store.request_password_reset(
                str(data["username"]).strip(), str(data["employeeNumber"]).strip(), user_type,
            )
        except RecordStoreError as e:
            return jsonify({"error": e.message or "Error submitting request."}), error_status(e)

        return jsonify({
            "success": True,
            "message": (
                "Password reset request submitted successfully! "
                "Please wait for admin approval."
            ),
        }), 200

    @app.route("/change-password", methods=["GET"])
    def change_password_page():
        session = store.get()
        username = session.username if session.must_change_password else ""
        return jsonify({
            "page": "change_password",
            "title": "Change Password",
            "fields": ["username", "currentPassword", "newPassword", "confirmPassword"],
            "username": username,
            "temporary_password": session.must_change_password,
        })

    @app.route("/change-password", methods=["POST"])
    def change_password():
        data = form_data()
        try:
            validate_password_change(data)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        username = str(data["username"]).strip()
        try:
            record_store.change_password(username, data["currentPassword"], data["newPassword"])
        except RecordStoreError as e:
            return jsonify({"error": e.message or "Error changing password."}), error_status(e)

        session = store.get()
        if session.authenticated and session.username == username:
            store.mark_password_changed()
            next_path = dashboard_for(session)
        else:
            next_path = LOGIN_PATH

        return jsonify({
            "success": True,
            "message": "Password changed successfully!",
            "redirect": next_path,
        }), 200
