# tests/test_routes.py
import json
from typing import Optional

import pytest
from fastapi import Header
from fastapi.testclient import TestClient

from clinic_console.api.deps import get_backend
from clinic_console.clients import make_backend
from clinic_console.core.token_store import MemoryTokenStore
from clinic_console.main import app
from tests.conftest import FakeResponse, FakeSession

HISTORY = {
    "id": 40,
    "type": "opd",
    "patient_id": 12,
    "created_at": "2025-03-07T10:15:00Z",
    "json_data": json.dumps({
        "patient": {"name": "Sok Dara"},
        "prescriptions": [{"name": "ORS", "price": 1, "qty": 2}],
        "totalAmount": 2,
    }),
}


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def client(fake_session):
    def _backend_override(authorization: Optional[str] = Header(None)):
        token = authorization.split()[-1] if authorization else None
        return make_backend("http://backend.test/api", token_store=MemoryTokenStore(token),
                            session=fake_session)

    app.dependency_overrides[get_backend] = _backend_override
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health():
    r = TestClient(app).get("/")
    assert r.status_code == 200
    assert "running" in r.json()["message"]


def test_proxy_passes_backend_json_and_token(client, fake_session):
    fake_session.add("GET", "/patient-histories", FakeResponse(200, [HISTORY]))
    r = client.get("/api/patient-histories", headers={"Authorization": "Bearer abc"})
    assert r.status_code == 200
    assert r.json()[0]["id"] == 40
    assert fake_session.calls[-1]["headers"]["Authorization"] == "Bearer abc"


def test_proxy_forwards_backend_status_and_text(client, fake_session):
    fake_session.add("GET", "/patient-histories", FakeResponse(401, None, text="Unauthenticated."))
    r = client.get("/api/patient-histories")
    assert r.status_code == 401
    assert r.text == "Unauthenticated."


def test_proxy_network_failure_is_502(client, fake_session, connection_refused):
    fake_session.add("GET", "/patient-histories", connection_refused())
    r = client.get("/api/patient-histories")
    assert r.status_code == 502
    assert r.json() == {"message": "Could not connect to the backend service."}


def test_per_patient_404_is_empty_list(client, fake_session):
    fake_session.add("GET", "/patient-histories/patient/12", FakeResponse(404, {"message": "none"}))
    r = client.get("/api/patient-histories/patient/12")
    assert r.status_code == 200
    assert r.json() == []


def test_pdf_from_body(client):
    r = client.post("/api/prescriptions/pdf", json={
        "data": {"patient": {"name": "Sok Dara"}, "prescriptions": []},
        "created_at": "2025-03-07T10:15:00Z",
    })
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert "prescription-Sok_Dara-07032025.pdf" in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")


def test_pdf_for_stored_history(client, fake_session):
    fake_session.add("GET", "/patient-histories/patient/12", FakeResponse(200, [HISTORY]))
    r = client.get("/api/patient-histories/patient/12/40/pdf")
    assert r.status_code == 200
    assert r.content.startswith(b"%PDF")


def test_pdf_for_unknown_history_is_404(client, fake_session):
    fake_session.add("GET", "/patient-histories/patient/12", FakeResponse(200, [HISTORY]))
    r = client.get("/api/patient-histories/patient/12/99/pdf")
    assert r.status_code == 404
    assert r.json()["ok"] is False


def test_pdf_route_backend_down_uses_error_envelope(client, fake_session, connection_refused):
    fake_session.add("GET", "/patient-histories/patient/12", connection_refused())
    r = client.get("/api/patient-histories/patient/12/40/pdf")
    assert r.status_code == 502
    assert r.json()["error"]["code"] == "BACKEND_UNREACHABLE"


def test_pdf_body_validation_error(client):
    r = client.post("/api/prescriptions/pdf", json={"created_at": "2025-01-01"})
    assert r.status_code == 422
    assert r.json()["error"]["msg"] == "Validation error"


def test_pdf_body_with_malformed_data_is_422(client):
    r = client.post("/api/prescriptions/pdf", json={"data": {"patient": "Dara"}})
    assert r.status_code == 422
    body = r.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "VALIDATION"
    assert body["error"]["details"]


def test_stored_history_with_null_line_fields_renders(client, fake_session):
    legacy = dict(HISTORY, json_data=json.dumps({
        "patient_info": {"name": "Sok Dara"},
        "prescription": [{"name": None, "price": 1, "qty": 1, "afterMeal": None}],
    }))
    fake_session.add("GET", "/patient-histories/patient/12", FakeResponse(200, [legacy]))
    r = client.get("/api/patient-histories/patient/12/40/pdf")
    assert r.status_code == 200
    assert r.content.startswith(b"%PDF")
