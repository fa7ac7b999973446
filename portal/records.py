"""
Patient record helpers – clinical tab layout, search, IDs and form cleanup.
"""

import re
import secrets
import string
import time
from datetime import date, datetime
from typing import Any, Dict, List, NamedTuple, Optional


class ClinicalTab(NamedTuple):
    tab_key: str          # backend tab holding the data, e.g. "tab5"
    field: str            # field inside that tab
    title: str
    single: bool = False  # one history object rather than a list of entries
    read_only: bool = False


CLINICAL_TABS: Dict[str, ClinicalTab] = {
    "surgical": ClinicalTab("tab5", "surgicalRecords", "Surgical History"),
    "immunization": ClinicalTab("tab4", "immunizationRecords", "Immunization History"),
    "occupational": ClinicalTab("tab4", "occupationalRecords", "Occupational History"),
    "psychological": ClinicalTab("tab4", "psychologicalRecords", "Psychological History"),
    "gyn": ClinicalTab("tab6", "gynHistory", "Gynecological History", single=True),
    "referral": ClinicalTab("tab6", "referralRecords", "Referral History"),
    "lifestyles": ClinicalTab("tab3", "lifestyleRecords", "Lifestyles", read_only=True),
}

# Visit logs kept in their own backend collections.
PATIENT_LOGS = {
    "opd": "OPD Records",
    "hospitalization": "Hospitalization",
    "medication": "Current Medication",
}


def tab_records(patient: Dict[str, Any], tab: ClinicalTab):
    """Pull a tab's data out of a patient document."""
    section = (patient or {}).get(tab.tab_key) or {}
    value = section.get(tab.field) if isinstance(section, dict) else None
    if tab.single:
        return value or None
    return list(value or [])


def patient_summary(patient: Dict[str, Any]) -> Dict[str, Any]:
    patient = patient or {}
    personal = patient.get("tab1") or {}
    return {
        "id": patient.get("patientId"),
        "name": personal.get("name", ""),
        "nic": personal.get("nic", ""),
        "dob": personal.get("dob", ""),
    }


def filter_patients(patients: List[Dict[str, Any]], query: Optional[str]) -> List[Dict[str, Any]]:
    """Case-insensitive match on name, patient ID or NIC."""
    q = (query or "").strip().lower()
    if not q:
        return list(patients)

    def matches(p):
        personal = p.get("tab1") or {}
        haystack = (personal.get("name"), p.get("patientId"), personal.get("nic"))
        return any(isinstance(v, str) and q in v.lower() for v in haystack)

    return [p for p in patients if matches(p)]


def filled_fields(form: Dict[str, Any]) -> Dict[str, Any]:
    """Drop blank strings and empty list items so only entered values are saved."""
    filled = {}
    for key, value in form.items():
        if isinstance(value, list):
            items = [v for v in value if v not in ("", None)]
            if items:
                filled[key] = items
        elif isinstance(value, str):
            if value.strip():
                filled[key] = value
        elif value is not None:
            filled[key] = value
    return filled


def parse_date_of_birth(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD date of birth; blank means not given."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).strip()[:10]).date()
    except ValueError:
        raise ValueError(
            f"Date of birth '{value}' is not a valid date. Use YYYY-MM-DD."
        ) from None


def generate_patient_id(nic: Optional[str], date_of_birth: Optional[str]) -> str:
    """REG + YYYYMMDD of birth + last four NIC digits; random PAT id when either is missing.

    Raises ValueError for a date of birth that is not YYYY-MM-DD.
    """
    born = parse_date_of_birth(date_of_birth)
    if nic and born is not None:
        digits = re.sub(r"\D", "", nic)[-4:].rjust(4, "0")
        return f"REG{born:%Y%m%d}{digits}"

    alphabet = string.ascii_uppercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(6))
    return f"PAT{int(time.time() * 1000)}{suffix}"


def today() -> str:
    return date.today().isoformat()
