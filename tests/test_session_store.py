"""
Unit tests for the Session Store – round trips, corruption and clearing.
"""

import json

import pytest

from portal.models import UNAUTHENTICATED, Role, Session
from portal.session_store import (
    PASSWORD_CHANGE_KEY,
    ROLE_KEY,
    TOKEN_KEY,
    USER_KEY,
    SessionStore,
)


def nurse(must_change=False, token="tok-1"):
    return Session(principal_id="EMP-9", username="nimal", role=Role.NURSE,
                   must_change_password=must_change, position="Nurse", token=token)


# ── Tests: get / set ─────────────────────────────────────────────────

def test_empty_storage_is_unauthenticated():
    assert SessionStore({}).get() == UNAUTHENTICATED


def test_set_then_get_returns_same_session():
    storage = {}
    store = SessionStore(storage)
    store.set(nurse(must_change=True))

    assert store.get() == nurse(must_change=True)
    assert storage[ROLE_KEY] == "nurse"
    assert json.loads(storage[USER_KEY])["username"] == "nimal"
    assert storage[PASSWORD_CHANGE_KEY] == "true"


def test_set_replaces_previous_session_entirely():
    storage = {}
    store = SessionStore(storage)
    store.set(nurse(must_change=True, token="old"))
    store.set(Session(principal_id="ADM-1", username="root", role=Role.ADMIN))

    session = store.get()
    assert session.role is Role.ADMIN
    assert session.must_change_password is False
    assert PASSWORD_CHANGE_KEY not in storage
    assert TOKEN_KEY not in storage


def test_set_refuses_unauthenticated_session():
    storage = {}
    with pytest.raises(ValueError):
        SessionStore(storage).set(UNAUTHENTICATED)
    assert storage == {}


# ── Tests: corruption degrades to signed out ─────────────────────────

@pytest.mark.parametrize("user_value", [
    "{not json",
    "[1, 2, 3]",
    "null",
    json.dumps({"username": "x", "role": "nurse"}),
    json.dumps({"principalId": "E1", "username": 5, "role": "nurse"}),
])
def test_corrupt_user_value_is_unauthenticated(user_value):
    storage = {USER_KEY: user_value, ROLE_KEY: "nurse"}
    assert SessionStore(storage).get() == UNAUTHENTICATED


def test_role_outside_enumeration_is_unauthenticated():
    storage = {}
    store = SessionStore(storage)
    store.set(nurse())
    storage[ROLE_KEY] = "superuser"
    assert store.get() == UNAUTHENTICATED


def test_role_mismatch_between_keys_is_unauthenticated():
    storage = {}
    store = SessionStore(storage)
    store.set(nurse())
    storage[ROLE_KEY] = "admin"
    assert store.get() == UNAUTHENTICATED


def test_get_has_no_side_effects():
    storage = {USER_KEY: "{broken", ROLE_KEY: "doctor"}
    SessionStore(storage).get()
    assert storage == {USER_KEY: "{broken", ROLE_KEY: "doctor"}


# ── Tests: clear / password change ───────────────────────────────────

def test_clear_is_idempotent():
    storage = {"unrelated": "kept"}
    store = SessionStore(storage)
    store.set(nurse(must_change=True))

    store.clear()
    once = dict(storage)
    store.clear()

    assert storage == once == {"unrelated": "kept"}
    assert store.get() == UNAUTHENTICATED


def test_mark_password_changed_clears_only_the_flag():
    storage = {}
    store = SessionStore(storage)
    store.set(nurse(must_change=True))

    store.mark_password_changed()

    session = store.get()
    assert session.authenticated
    assert session.must_change_password is False
    assert session.token == "tok-1"


def test_mark_password_changed_when_signed_out_is_noop():
    storage = {PASSWORD_CHANGE_KEY: "true"}
    SessionStore(storage).mark_password_changed()
    assert storage == {PASSWORD_CHANGE_KEY: "true"}
