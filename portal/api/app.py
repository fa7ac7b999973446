"""
Flask application factory and server entry-point.
"""

import os
import secrets

from flask import Flask, session as browser_session
from flask_cors import CORS

from portal.config import ALLOWED_ORIGINS, RECORD_STORE_URL, SECRET_KEY, get_env
from portal.rbac import CapabilityResolver
from portal.record_store import RecordStoreClient
from portal.routing import unclassified
from portal.session_store import SessionStore
from portal.api.auth import install_guard, register_auth_routes
from portal.api.routes import register_routes


def create_app(record_store=None, config=None):
    """Build and return a fully configured Flask application."""
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=SECRET_KEY,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        ALLOWED_ORIGINS=ALLOWED_ORIGINS,
    )
    if config:
        app.config.update(config)
    CORS(app, origins=list(app.config["ALLOWED_ORIGINS"]), supports_credentials=True)

    # ── Shared services ──────────────────────────────────────────────
    if record_store is None:
        print(f"[init] Using record store at {RECORD_STORE_URL}")
        record_store = RecordStoreClient()

    store = SessionStore(browser_session)
    resolver = CapabilityResolver(store)
    app.extensions["session_store"] = store
    app.extensions["record_store"] = record_store

    # ── Routes and protection ────────────────────────────────────────
    install_guard(app, store)
    register_auth_routes(app, store, record_store)
    register_routes(app, store, record_store, resolver)

    missing = unclassified(app.view_functions)
    if missing:
        raise RuntimeError(f"Routes without an access classification: {', '.join(missing)}")

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("Hospital Records Portal")
    print("=" * 60)

    host = os.getenv("PORTAL_HOST", "0.0.0.0")
    port = int(os.getenv("PORTAL_PORT", "5000"))
    debug = os.getenv("FLASK_ENV") == "development"

    # The session cookie is only as safe as its signing key.
    if not debug and not os.getenv("PORTAL_SECRET_KEY"):
        print("\n[init] PORTAL_SECRET_KEY signs every session cookie and must be set.")
        print("[init] Add a line like this one to your .env file:")
        print(f"\n  PORTAL_SECRET_KEY={secrets.token_hex(32)}\n")
        print("[init] Changing the key later signs every open browser session out.")
    config = None if debug else {"SECRET_KEY": get_env("PORTAL_SECRET_KEY")}
    app = create_app(config=config)

    print(f"\n[server] Starting portal on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] Record store: {RECORD_STORE_URL}")
    print("\nEntry points:")
    print(f"  - GET  http://{host}:{port}/login")
    print(f"  - GET  http://{host}:{port}/admin-login")
    print(f"  - GET  http://{host}:{port}/dashboard")
    print(f"  - GET  http://{host}:{port}/admin-dashboard")
    print(f"  - GET  http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
