from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi.testclient import TestClient

from checkin_admin.main import app
from checkin_admin.database import session_scope
from checkin_admin.schedule_store import SqlScheduleStore
from checkin_admin.seed import seed_schedule


def test_seed_leaves_existing_schedule_alone() -> None:
    seed_schedule()
    with session_scope() as db:
        before = SqlScheduleStore(db).get()
    assert before is not None
    assert before.is_valid()

    seed_schedule()
    with session_scope() as db:
        assert SqlScheduleStore(db).get() == before


def test_lifespan_startup_runs() -> None:
    with TestClient(app) as c:
        assert c.get("/health").status_code == 200
