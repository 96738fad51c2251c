import os
import random
import sys
from datetime import datetime, timedelta

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from sqlalchemy.orm import Session

# Database models and setup
from database import SessionLocal, init_db
from models.group import Group
from models.schedule import Schedule, ScheduleType
from models.shift import Shift
from models.site import Site
from models.users import User, ROLE_ADMIN, ROLE_MEMBER
from utils.hashing import get_password_hash
from utils.scheduling import normalize_shift_times, schedule_hours
from utils.week import week_days, week_start

# Configuration
SITE_NAME = "Demo Bar"
GROUP_NAMES = ["Bar", "Floor", "Kitchen"]
ADMIN_EMAIL = "admin@inntrac.io"
DEMO_PASSWORD = "Inntrac1!"
STAFF = [
    ("Anna", "Kowalska"),
    ("Ben", "Carter"),
    ("Chloe", "Dubois"),
    ("Dev", "Patel"),
    ("Ewa", "Nowak"),
    ("Finn", "O'Brien"),
]
# (start, end) pairs; "02:00" ends roll into the next day
SHIFT_PATTERNS = [("09:00", "17:00"), ("12:00", "20:00"), ("18:00", "02:00")]
# End Configuration


def seed(session: Session, today: datetime = None, rng: random.Random = None) -> Site:
    """Create one site with groups, an admin, staff and two weeks of rota.

    Returns the existing site untouched when it was seeded before.
    """
    rng = rng or random.Random(42)
    existing = session.query(Site).filter(Site.name == SITE_NAME).first()
    if existing:
        print(f"Site '{SITE_NAME}' already exists, nothing to do.")
        return existing

    site = Site(name=SITE_NAME)
    session.add(site)
    session.flush()
    groups = [Group(name=name, site_id=site.id) for name in GROUP_NAMES]
    session.add_all(groups)
    session.flush()

    password_hash = get_password_hash(DEMO_PASSWORD)
    admin = User(
        email=ADMIN_EMAIL, password_hash=password_hash, role=ROLE_ADMIN,
        first_name="Ada", surname="Admin", sites=[site], groups=[groups[0]],
        default_site_id=site.id, default_group_id=groups[0].id,
    )
    session.add(admin)

    staff = []
    for i, (first_name, surname) in enumerate(STAFF):
        group = groups[i % len(groups)]
        user = User(
            email=f"{first_name.lower()}.{surname.lower().replace(chr(39), '')}@inntrac.io",
            password_hash=password_hash, role=ROLE_MEMBER,
            first_name=first_name, surname=surname, sites=[site], groups=[group],
            default_site_id=site.id, default_group_id=group.id,
        )
        staff.append((user, group))
    session.add_all([u for u, _ in staff])
    session.flush()

    # This week and next: planned schedules, with the worked shifts mirrored for this week
    monday = week_start(today or datetime.now())
    for week in range(2):
        for day in week_days(monday + timedelta(weeks=week)):
            for user, group in staff:
                if rng.random() < 0.35:
                    continue
                start, end = normalize_shift_times(day, *rng.choice(SHIFT_PATTERNS))
                session.add(Schedule(
                    user_id=user.id, site_id=site.id, group_id=group.id,
                    start_time=start, end_time=end, status=True,
                    type=ScheduleType.PLANNED.value, hours=schedule_hours(start, end),
                ))
                if week == 0:
                    session.add(Shift(user_id=user.id, site_id=site.id, group_id=group.id,
                                      start_time=start, end_time=end, pending=False))

    # One pending time-off request for the notifications screen
    requester, group = staff[0]
    for offset in range(2):
        day = monday + timedelta(weeks=1, days=offset + 3)
        session.add(Schedule(
            user_id=requester.id, site_id=site.id, group_id=group.id,
            start_time=day, end_time=day, status=False,
            type=ScheduleType.TIME_OFF_REQUESTED.value, hours=0.0,
        ))

    session.commit()
    print(f"Seeded '{SITE_NAME}' with {len(staff)} staff. Log in as {ADMIN_EMAIL} / {DEMO_PASSWORD}")
    return site


def populate_database():
    """Main execution function to populate database."""
    init_db()
    session = SessionLocal()
    try:
        seed(session)
    finally:
        session.close()


if __name__ == "__main__":
    populate_database()
