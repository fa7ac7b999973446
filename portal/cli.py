"""
Interactive access checker for the Hospital Records Portal.
Pick a role, then type portal paths to see whether the guard admits them
and which editing affordances the role gets.
"""

from werkzeug.exceptions import HTTPException

from portal.models import UNAUTHENTICATED, Role, Session
from portal.rbac import resolve_capability
from portal.record_store import RecordStoreClient
from portal.routing import ROUTE_TABLE, classify, guard, navigation_for
from portal.api.app import create_app


def session_for(role_name: str) -> Session:
    """A sample session for *role_name*; 'none' means signed out."""
    role = Role.from_value(role_name)
    if role is Role.UNKNOWN:
        return UNAUTHENTICATED
    return Session(principal_id=f"cli-{role.value}", username=f"{role.value}-cli", role=role)


def check_path(url_map, session: Session, path: str, method: str = "GET") -> str:
    """Describe how the guard treats *method path* for *session*."""
    adapter = url_map.bind("localhost")
    try:
        endpoint, _args = adapter.match(path, method=method)
    except HTTPException as e:
        return f"{method} {path}: no such page ({e.code})"

    access = classify(endpoint)
    decision = guard(access, session)
    line = f"{method} {path} -> {endpoint} [{access.value}] : {decision.outcome.value}"
    if decision.location:
        line += f" ({decision.location})"
    return line


def main():
    print("=== Hospital Records Portal: access checker ===\n")

    app = create_app(record_store=RecordStoreClient())

    print("[routes]")
    for endpoint, access in sorted(ROUTE_TABLE.items(), key=lambda kv: (kv[1].value, kv[0])):
        print(f"  {access.value:<14} {endpoint}")

    roles = ", ".join(r.value for r in Role if r is not Role.UNKNOWN)
    try:
        role_name = input(f"\nRole to check ({roles}, or 'none'): ").strip()
    except (EOFError, KeyboardInterrupt):
        print("\nExiting.")
        return

    session = session_for(role_name)
    capability = resolve_capability(session)
    print(f"\n[session] authenticated={session.authenticated} role={capability.role.value}")
    print(f"[capability] can_edit_clinical_record={capability.can_edit_clinical_record}")
    print("[nav] " + (", ".join(item["path"] for item in navigation_for(session)) or "(none)"))

    while True:
        try:
            raw = input("\nPath to check, optionally prefixed by a method (or 'quit'): ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if not raw:
            continue
        if raw.lower() in {"quit", "exit"}:
            print("Goodbye.")
            break

        parts = raw.split()
        method, path = (parts[0].upper(), parts[1]) if len(parts) > 1 else ("GET", parts[0])
        print(check_path(app.url_map, session, path, method))


if __name__ == "__main__":
    main()
