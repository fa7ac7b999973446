"""
HTTP client for the Record Store / Auth backend.
"""

import sys
from typing import Any, Dict, Optional

import requests

from portal.config import RECORD_STORE_TIMEOUT, RECORD_STORE_URL


class RecordStoreError(Exception):
    """The backend answered with a non-success status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class RecordStoreUnavailable(RecordStoreError):
    """The backend could not be reached at all."""

    def __init__(self, message: str = "Network error. Please try again."):
        super().__init__(message, status=None)


# Backend collections for the per-visit record logs.
LOG_PATHS = {
    "opd": ("/patient/{patient_id}/opd", "/patient/{patient_id}/opd"),
    "hospitalization": (
        "/hospitalization-records/getAll/{patient_id}",
        "/hospitalization-records/add/{patient_id}",
    ),
    "medication": (
        "/medication-records/getAll/{patient_id}",
        "/medication-records/add/{patient_id}",
    ),
}


class RecordStoreClient:
    """Thin JSON client; one method per backend operation the portal uses."""

    def __init__(self, base_url: str = RECORD_STORE_URL, timeout: float = RECORD_STORE_TIMEOUT,
                 http=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    def request(self, method: str, path: str, token: Optional[str] = None,
                json: Optional[Dict[str, Any]] = None,
                params: Optional[Dict[str, Any]] = None) -> Any:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self.http.request(
                method, f"{self.base_url}{path}",
                headers=headers, json=json, params=params, timeout=self.timeout,
            )
        except requests.RequestException as e:
            print(f"[WARN] Record store unreachable ({method} {path}): {e}", file=sys.stderr)
            raise RecordStoreUnavailable() from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.ok:
            message = None
            if isinstance(body, dict):
                message = body.get("message") or body.get("error")
            raise RecordStoreError(
                message or f"HTTP error! status: {response.status_code}",
                status=response.status_code,
            )
        return body

    # ── Auth / accounts ──────────────────────────────────────────────

    def login(self, username: str, password: str) -> Dict[str, Any]:
        return self.request("POST", "/login", json={"username": username, "password": password})

    def register_staff(self, staff: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", "/register", json=staff)

    def create_initial_admin(self, admin: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", "/admin/create-initial", json=admin)

    def request_password_reset(self, username: str, employee_number: str,
                               user_type: str = "staff") -> Dict[str, Any]:
        return self.request("POST", "/forgot-password", json={
            "username": username,
            "employeeNumber": employee_number,
            "userType": user_type,
        })

    def change_password(self, username: str, current_password: str,
                        new_password: str) -> Dict[str, Any]:
        return self.request("PATCH", "/forgot-password/change-password", json={
            "username": username,
            "currentPassword": current_password,
            "newPassword": new_password,
        })

    def list_password_requests(self, token):
        return self.request("GET", "/forgot-password", token=token)

    def accept_password_request(self, token, username):
        return self.request("PATCH", "/forgot-password/accept", token=token,
                            json={"username": username})

    def reject_password_request(self, token, username, reason=""):
        return self.request("PATCH", "/forgot-password/reject", token=token,
                            json={"username": username, "reason": reason})

    # ── Patients ─────────────────────────────────────────────────────

    def list_patients(self, token):
        return self.request("GET", "/patients", token=token)

    def get_patient(self, token, patient_id):
        return self.request("GET", f"/patient/{patient_id}", token=token)

    def save_patient(self, token, patient_id, tabs: Dict[str, Any]):
        return self.request("POST", "/patient/save", token=token,
                            json={"patientId": patient_id, "tabs": tabs})

    def list_log(self, token, kind: str, patient_id):
        path = LOG_PATHS[kind][0].format(patient_id=patient_id)
        data = self.request("GET", path, token=token)
        if isinstance(data, dict):
            return data.get("patientRecords", [])
        return data or []

    def add_log(self, token, kind: str, patient_id, record: Dict[str, Any]):
        path = LOG_PATHS[kind][1].format(patient_id=patient_id)
        return self.request("POST", path, token=token, json=record)

    # ── Staff administration ─────────────────────────────────────────

    def stats(self, token):
        return self.request("GET", "/stats", token=token)

    def list_staff(self, token):
        return self.request("GET", "/admin/staff", token=token)

    def pending_staff(self, token):
        return self.request("GET", "/admin/staff/pending", token=token)

    def approve_staff(self, token, staff_id):
        return self.request("PUT", f"/admin/staff/{staff_id}/approve", token=token)

    def reject_staff(self, token, staff_id):
        return self.request("PUT", f"/admin/staff/{staff_id}/reject", token=token)

    def add_staff(self, token, staff: Dict[str, Any]):
        return self.request("POST", "/admin/staff", token=token, json=staff)

    # ── Notifications ────────────────────────────────────────────────

    def notifications(self, token):
        return self.request("GET", "/notifications", token=token)

    def mark_notification_read(self, token, notification_id):
        return self.request("PUT", f"/notifications/{notification_id}/read", token=token, json={})

    def create_notification(self, token, message: str, kind: str):
        return self.request("POST", "/notifications", token=token,
                            json={"message": message, "type": kind})

    # ── Audit / reports ──────────────────────────────────────────────

    def audit_logs(self, token, params: Dict[str, Any]):
        return self.request("GET", "/audit/logs", token=token, params=params)

    def audit_stats(self, token, hours: int = 24):
        return self.request("GET", "/audit/stats", token=token, params={"hours": hours})

    def staff_report(self, token):
        return self.request("GET", "/reports/staff", token=token)

    def patient_report(self, token):
        return self.request("GET", "/reports/patient", token=token)

    def download_url(self, report_type: str, period: str) -> str:
        return f"{self.base_url}/reports/{report_type}/download?period={period}"
