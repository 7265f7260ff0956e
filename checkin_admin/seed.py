from __future__ import annotations

from .database import Base, engine, session_scope
from .rollover import set_schedule
from .schedule import next_schedule, utcnow
from .schedule_store import SqlScheduleStore


def seed_schedule() -> None:
    """Store the upcoming Sunday's schedule if none exists yet. Leaves an existing one alone."""
    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        store = SqlScheduleStore(db)
        if store.get() is None:
            schedule = set_schedule(store, next_schedule(utcnow().date()))
            print(f"Schedule seeded: pre-registration {schedule.pre_reg_start_date}, event {schedule.event_date}")


def main() -> None:
    seed_schedule()
    print("Seed complete.")


if __name__ == "__main__":
    main()
