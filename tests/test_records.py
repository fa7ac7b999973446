"""
Unit tests for patient record helpers and password form validation.
"""

import re

import pytest

from portal.passwords import validate_credentials, validate_password_change, validate_reset_request
from portal.records import (
    CLINICAL_TABS,
    filled_fields,
    filter_patients,
    generate_patient_id,
    tab_records,
)

PATIENTS = [
    {"patientId": "REG199001011234", "tab1": {"name": "Saman Perera", "nic": "901234567V"}},
    {"patientId": "REG198505054321", "tab1": {"name": "Kumari Silva", "nic": "855554321V"}},
    {"patientId": "PAT1"},
]


# ── Tests: record helpers ────────────────────────────────────────────

def test_tab_records_list_and_single():
    patient = {
        "tab5": {"surgicalRecords": [{"name": "Appendectomy"}]},
        "tab6": {"gynHistory": {"parity": "2"}},
    }
    assert tab_records(patient, CLINICAL_TABS["surgical"]) == [{"name": "Appendectomy"}]
    assert tab_records(patient, CLINICAL_TABS["gyn"]) == {"parity": "2"}
    assert tab_records(patient, CLINICAL_TABS["referral"]) == []
    assert tab_records({}, CLINICAL_TABS["gyn"]) is None


def test_filter_patients_matches_name_id_and_nic():
    assert len(filter_patients(PATIENTS, "")) == 3
    assert [p["patientId"] for p in filter_patients(PATIENTS, "saman")] == ["REG199001011234"]
    assert [p["patientId"] for p in filter_patients(PATIENTS, "855554")] == ["REG198505054321"]
    assert [p["patientId"] for p in filter_patients(PATIENTS, "pat1")] == ["PAT1"]


def test_filled_fields_drops_blanks():
    form = {
        "menarche": "12",
        "notes": "  ",
        "complications": ["", "Anaemia", None],
        "symptoms": [],
        "pregnancies": 2,
        "other": None,
    }
    assert filled_fields(form) == {"menarche": "12", "complications": ["Anaemia"], "pregnancies": 2}


def test_generate_patient_id_from_nic_and_dob():
    assert generate_patient_id("901234567V", "1990-01-01") == "REG199001014567"
    assert generate_patient_id("12", "2024-12-15") == "REG202412150012"


def test_generate_patient_id_fallback():
    assert re.fullmatch(r"PAT\d+[A-Z0-9]{6}", generate_patient_id(None, None))
    assert generate_patient_id(None, "1990-01-01").startswith("PAT")
    assert generate_patient_id("901234567V", "").startswith("PAT")


@pytest.mark.parametrize("dob", ["05/06/1999", "garbage", "1999-13-40"])
def test_generate_patient_id_rejects_non_iso_dob(dob):
    with pytest.raises(ValueError, match="YYYY-MM-DD"):
        generate_patient_id("901234567V", dob)


# ── Tests: password forms ────────────────────────────────────────────

GOOD_CHANGE = {
    "username": "nimal",
    "currentPassword": "Temp123",
    "newPassword": "better-pw",
    "confirmPassword": "better-pw",
}


def test_valid_password_change_passes():
    validate_password_change(GOOD_CHANGE)


@pytest.mark.parametrize("override,message", [
    ({"username": " "}, "Username is required"),
    ({"currentPassword": ""}, "Current password is required"),
    ({"newPassword": "", "confirmPassword": ""}, "New password is required"),
    ({"newPassword": "abc", "confirmPassword": "abc"}, "at least 6 characters"),
    ({"confirmPassword": "different"}, "do not match"),
    ({"newPassword": "Temp123", "confirmPassword": "Temp123"}, "must be different"),
])
def test_invalid_password_change(override, message):
    with pytest.raises(ValueError, match=message):
        validate_password_change({**GOOD_CHANGE, **override})


def test_reset_request_requires_username_and_employee_number():
    with pytest.raises(ValueError, match="fill in all fields"):
        validate_reset_request({"username": "nimal"})
    assert validate_reset_request({"username": "nimal", "employeeNumber": "E1"}) == "staff"
    assert validate_reset_request({"username": "a", "employeeNumber": "E1", "userType": "Admin"}) == "admin"


def test_reset_request_rejects_unknown_user_type():
    with pytest.raises(ValueError, match="Unknown user type"):
        validate_reset_request({"username": "a", "employeeNumber": "E1", "userType": "guest"})


def test_credentials_required():
    with pytest.raises(ValueError, match="both username and password"):
        validate_credentials({"username": "a", "password": "  "})
