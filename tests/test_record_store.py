"""
Unit tests for the Record Store HTTP client.
"""

import pytest
import requests

from portal.record_store import RecordStoreClient, RecordStoreError, RecordStoreUnavailable


# ── Helpers / Fakes ──────────────────────────────────────────────────

class FakeResponse:
    """Mimic requests.Response for .ok / .json()."""
    def __init__(self, status_code=200, body=None, raw=False):
        self.status_code = status_code
        self._body = body
        self._raw = raw

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._raw:
            raise ValueError("not json")
        return self._body


class FakeHTTP:
    """Mimic requests.Session.request, recording every call."""
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error:
            raise self.error
        return self.response


def client(http):
    return RecordStoreClient(base_url="http://backend:3000/", timeout=5, http=http)


# ── Tests ────────────────────────────────────────────────────────────

def test_login_posts_credentials_as_json():
    http = FakeHTTP(FakeResponse(200, {"staff": {"username": "a"}}))
    body = client(http).login("a", "pw")

    method, url, kwargs = http.calls[0]
    assert method == "POST"
    assert url == "http://backend:3000/login"
    assert kwargs["json"] == {"username": "a", "password": "pw"}
    assert kwargs["timeout"] == 5
    assert "Authorization" not in kwargs["headers"]
    assert body == {"staff": {"username": "a"}}


def test_token_is_sent_as_bearer_header():
    http = FakeHTTP(FakeResponse(200, {"patientId": "P1"}))
    client(http).get_patient("tok", "P1")

    method, url, kwargs = http.calls[0]
    assert (method, url) == ("GET", "http://backend:3000/patient/P1")
    assert kwargs["headers"]["Authorization"] == "Bearer tok"


def test_error_status_raises_with_backend_message():
    http = FakeHTTP(FakeResponse(403, {"message": "Your registration is pending admin approval."}))
    with pytest.raises(RecordStoreError) as e:
        client(http).login("a", "pw")
    assert e.value.status == 403
    assert "pending" in e.value.message


def test_error_without_json_body_uses_status_text():
    http = FakeHTTP(FakeResponse(500, raw=True))
    with pytest.raises(RecordStoreError, match="status: 500"):
        client(http).stats("tok")


def test_network_failure_raises_unavailable():
    http = FakeHTTP(error=requests.ConnectionError("refused"))
    with pytest.raises(RecordStoreUnavailable) as e:
        client(http).login("a", "pw")
    assert e.value.status is None
    assert "Network error" in e.value.message


def test_list_log_unwraps_patient_records():
    http = FakeHTTP(FakeResponse(200, {"patientRecords": [{"diagnosis": "flu"}]}))
    records = client(http).list_log("tok", "hospitalization", "P7")

    assert http.calls[0][1] == "http://backend:3000/hospitalization-records/getAll/P7"
    assert records == [{"diagnosis": "flu"}]


def test_add_opd_targets_patient_collection():
    http = FakeHTTP(FakeResponse(201, []))
    client(http).add_log("tok", "opd", "P7", {"symptoms": "fever"})

    method, url, kwargs = http.calls[0]
    assert (method, url) == ("POST", "http://backend:3000/patient/P7/opd")
    assert kwargs["json"] == {"symptoms": "fever"}


def test_save_patient_wraps_tabs():
    http = FakeHTTP(FakeResponse(200, {}))
    client(http).save_patient("tok", "P1", {"tab5": {"surgicalRecords": []}})
    assert http.calls[0][2]["json"] == {"patientId": "P1", "tabs": {"tab5": {"surgicalRecords": []}}}


def test_change_password_uses_patch():
    http = FakeHTTP(FakeResponse(200, {"message": "ok"}))
    client(http).change_password("nimal", "old-pw", "new-pw")

    method, url, kwargs = http.calls[0]
    assert (method, url) == ("PATCH", "http://backend:3000/forgot-password/change-password")
    assert kwargs["json"]["newPassword"] == "new-pw"


def test_download_url():
    c = client(FakeHTTP())
    assert c.download_url("staff", "weekly") == "http://backend:3000/reports/staff/download?period=weekly"
