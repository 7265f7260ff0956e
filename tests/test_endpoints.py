from __future__ import annotations

import sys
import uuid
from pathlib import Path
from typing import Dict

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from checkin_admin.main import app
from checkin_admin.database import Base, engine


API_TOKEN = "dev-token"


def _auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {API_TOKEN}"}


@pytest.fixture(scope="module")
def client() -> TestClient:
    Base.metadata.create_all(bind=engine)
    return TestClient(app)


def test_health_open(client: TestClient) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("status") == "ok"
    assert "X-Process-Time-Ms" in r.headers


def test_auth_required_on_api(client: TestClient) -> None:
    r = client.get("/api/members.list")
    assert r.status_code == 401
    data = r.json()
    assert data.get("ok") is False
    assert data["error"]["status"] == 401
    assert data["error"]["path"] == "/api/members.list"

    bad = client.get("/api/members.list", headers={"Authorization": "Bearer wrong"})
    assert bad.status_code == 401


def test_members_crud_and_pagination(client: TestClient) -> None:
    for i in range(3):
        r = client.post("/api/members.create", json={"full_name": f"Paged Member {i}"}, headers=_auth_headers())
        assert r.status_code == 200
    created = r.json()
    assert created["promoted_at"] is None
    assert created["qr_code_payload"]

    u = client.post(
        "/api/members.update", json={"id": created["id"], "nickname": "PM"}, headers=_auth_headers()
    )
    assert u.status_code == 200
    assert u.json()["nickname"] == "PM"

    missing = client.post("/api/members.update", json={"id": "missing", "full_name": "x"}, headers=_auth_headers())
    assert missing.status_code == 404

    page = client.get("/api/members.list", params={"page": 1, "page_size": 2, "q": "Paged Member"}, headers=_auth_headers())
    assert page.status_code == 200
    assert len(page.json()["items"]) == 2
    assert page.json()["total"] >= 3


def test_member_requires_name(client: TestClient) -> None:
    r = client.post("/api/members.create", json={"full_name": ""}, headers=_auth_headers())
    assert r.status_code == 422


def test_exports_csv(client: TestClient) -> None:
    for path, header in [
        ("/api/export.attendance.csv", "id,person_id,person_kind,person_name,timestamp,type,method"),
        (
            "/api/export.members.csv",
            "id,full_name,nickname,email,phone,birthday,wedding_anniversary,ministries,lg,created_at,promoted_at",
        ),
        ("/api/export.first_timers.csv", "id,full_name,email,phone,created_at"),
    ]:
        r = client.get(path, headers=_auth_headers())
        assert r.status_code == 200
        assert r.headers.get("content-type", "").startswith("text/csv")
        assert r.text.splitlines()[0] == header


def test_export_attendance_rejects_unknown_kind(client: TestClient) -> None:
    r = client.get("/api/export.attendance.csv", params={"person_kind": "visitor"}, headers=_auth_headers())
    assert r.status_code == 422

    ok = client.get("/api/export.attendance.csv", params={"person_kind": "first_timer"}, headers=_auth_headers())
    assert ok.status_code == 200
    for line in ok.text.splitlines()[1:]:
        assert line.split(",")[2] == "first_timer"


def test_member_profile_fields(client: TestClient) -> None:
    r = client.post(
        "/api/members.create",
        json={"full_name": "Ana Reyes", "birthday": "1990-04-12", "ministries": "Choir", "lg": "LG North"},
        headers=_auth_headers(),
    )
    assert r.status_code == 200, r.text
    m = r.json()
    assert m["birthday"] == "1990-04-12"
    assert m["wedding_anniversary"] is None
    assert m["ministries"] == "Choir"

    u = client.post(
        "/api/members.update",
        json={"id": m["id"], "wedding_anniversary": "2015-11-21", "lg": "LG South"},
        headers=_auth_headers(),
    )
    assert u.status_code == 200
    assert u.json()["wedding_anniversary"] == "2015-11-21"
    assert u.json()["lg"] == "LG South"
    assert u.json()["birthday"] == "1990-04-12"


def test_members_delete(client: TestClient) -> None:
    m = client.post("/api/members.create", json={"full_name": "To Delete"}, headers=_auth_headers()).json()

    r = client.post("/api/members.delete", json={"id": m["id"]}, headers=_auth_headers())
    assert r.status_code == 200
    assert r.json() == {"ok": True, "id": m["id"]}

    gone = client.post("/api/members.update", json={"id": m["id"], "nickname": "x"}, headers=_auth_headers())
    assert gone.status_code == 404
    again = client.post("/api/members.delete", json={"id": m["id"]}, headers=_auth_headers())
    assert again.status_code == 404


def test_members_batch_create_skips_invalid_rows(client: TestClient) -> None:
    tag = uuid.uuid4().hex[:6]
    rows = [
        {"FullName": f"Import {tag} A", "Birthday": "1988-02-03", "Nickname": " Al ", "LG": "LG East"},
        {"full_name": f"Import {tag} B", "birthday": "1992-07-09T00:00:00Z", "wedding_anniversary": "2020-01-18"},
        # Excel serial date: 1 Jan 2000
        {"FullName": f"Import {tag} C", "Birthday": 36526},
        {"FullName": "   ", "Birthday": "1990-01-01"},
        {"FullName": f"Import {tag} no birthday"},
        {"FullName": f"Import {tag} bad birthday", "Birthday": "someday"},
    ]
    r = client.post("/api/members.batch_create", json={"items": rows}, headers=_auth_headers())
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["skipped"] == 3
    by_name = {m["full_name"]: m for m in data["items"]}
    assert set(by_name) == {f"Import {tag} A", f"Import {tag} B", f"Import {tag} C"}
    assert by_name[f"Import {tag} A"]["nickname"] == "Al"
    assert by_name[f"Import {tag} A"]["lg"] == "LG East"
    assert by_name[f"Import {tag} B"]["birthday"] == "1992-07-09"
    assert by_name[f"Import {tag} B"]["wedding_anniversary"] == "2020-01-18"
    assert by_name[f"Import {tag} C"]["birthday"] == "2000-01-01"
    assert len({m["qr_code_payload"] for m in data["items"]}) == 3

    listed = client.get("/api/members.list", params={"q": f"Import {tag}"}, headers=_auth_headers())
    assert listed.json()["total"] == 3

    empty = client.post("/api/members.batch_create", json={"items": [{"FullName": "x"}]}, headers=_auth_headers())
    assert empty.status_code == 200
    assert empty.json() == {"items": [], "skipped": 1}


def test_first_timers_update_and_delete(client: TestClient) -> None:
    ft = client.post("/api/first_timers.create", json={"full_name": "Walk In"}, headers=_auth_headers()).json()

    u = client.post(
        "/api/first_timers.update",
        json={"id": ft["id"], "full_name": "Walk In Renamed", "phone": "0917"},
        headers=_auth_headers(),
    )
    assert u.status_code == 200, u.text
    assert u.json()["full_name"] == "Walk In Renamed"
    assert u.json()["phone"] == "0917"
    assert u.json()["qr_code_payload"] == ft["qr_code_payload"]

    blank = client.post("/api/first_timers.update", json={"id": ft["id"], "full_name": ""}, headers=_auth_headers())
    assert blank.status_code == 422
    missing = client.post("/api/first_timers.update", json={"id": "missing"}, headers=_auth_headers())
    assert missing.status_code == 404

    d = client.post("/api/first_timers.delete", json={"id": ft["id"]}, headers=_auth_headers())
    assert d.status_code == 200
    listed = client.get("/api/first_timers.list", params={"q": "Walk In Renamed"}, headers=_auth_headers())
    assert ft["id"] not in [i["id"] for i in listed.json()["items"]]
    assert client.post("/api/first_timers.delete", json={"id": ft["id"]}, headers=_auth_headers()).status_code == 404
