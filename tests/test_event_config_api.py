from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from checkin_admin.main import app
from checkin_admin.database import Base, engine, session_scope
from checkin_admin.deps import get_clock
from checkin_admin.models import SystemLog


API_TOKEN = "dev-token"


def _auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {API_TOKEN}"}


def _pin_clock(now: datetime) -> None:
    app.dependency_overrides[get_clock] = lambda: (lambda: now)


@pytest.fixture()
def client() -> TestClient:
    Base.metadata.create_all(bind=engine)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _set(client: TestClient, pre_reg: str, event: str):
    return client.post(
        "/api/event_config.set",
        json={"pre_reg_start_date": pre_reg, "event_date": event},
        headers=_auth_headers(),
    )


def test_set_and_get_schedule(client: TestClient) -> None:
    r = _set(client, "2024-05-28", "2024-06-02")
    assert r.status_code == 200, r.text
    assert r.json()["event_start"] == "2024-06-02T09:00:00"

    _pin_clock(datetime(2024, 5, 30, 12, 0))
    g = client.get("/api/event_config.get", headers=_auth_headers())
    assert g.status_code == 200
    data = g.json()
    assert data["pre_reg_start_date"] == "2024-05-28"
    assert data["event_date"] == "2024-06-02"
    assert data["rolled"] is False


def test_invalid_manual_edit_rejected(client: TestClient) -> None:
    _set(client, "2024-05-28", "2024-06-02")
    r = _set(client, "2024-06-02", "2024-06-02")
    assert r.status_code == 422
    body = r.json()
    assert body["ok"] is False
    assert body["error"]["message"] == "pre-registration date must be before event date"

    _pin_clock(datetime(2024, 5, 30))
    g = client.get("/api/event_config.get", headers=_auth_headers())
    assert g.json()["event_date"] == "2024-06-02"


def test_malformed_date_rejected_at_boundary(client: TestClient) -> None:
    r = _set(client, "not-a-date", "2024-06-02")
    assert r.status_code == 422


def test_page_load_rolls_expired_schedule_once(client: TestClient) -> None:
    _set(client, "2024-05-28", "2024-06-02")
    _pin_clock(datetime(2024, 6, 10, 8, 0))

    first = client.get("/api/event_config.get", headers=_auth_headers())
    assert first.status_code == 200
    assert first.json() == {
        "pre_reg_start_date": "2024-06-11",
        "event_date": "2024-06-16",
        "event_start": "2024-06-16T09:00:00",
        "rolled": True,
    }

    second = client.get("/api/event_config.get", headers=_auth_headers())
    assert second.json()["rolled"] is False
    assert second.json()["event_date"] == "2024-06-16"

    with session_scope() as db:
        rows = db.execute(
            select(SystemLog).where(SystemLog.action == "rollover", SystemLog.entity_id == "2024-06-16")
        ).scalars().all()
        assert len(rows) >= 1


def test_requires_token(client: TestClient) -> None:
    assert client.get("/api/event_config.get").status_code == 401
