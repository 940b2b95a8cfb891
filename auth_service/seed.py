"""Loads demo accounts into the users table.

Run with ``python -m auth_service.seed``. Existing emails are skipped.
"""

import logging

from common.db import Base, SessionLocal, engine
from .models import User
from .utils import get_password_hash

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

DEMO_USERS = [
    {
        "full_name": "Test User",
        "email": "test@example.com",
        "password": "password123",
        "mobile_number": "9876543210",
        "location": "Mumbai",
    },
    {
        "full_name": "Demo Planner",
        "email": "planner@example.com",
        "password": "planner123",
        "mobile_number": "9123456780",
        "location": "Bangalore",
    },
]


def seed_users(db, users=DEMO_USERS) -> int:
    """Inserts the given users, returning how many were created."""
    created = 0
    for entry in users:
        if db.query(User).filter(User.email == entry["email"]).first():
            logger.info(f"Skipping {entry['email']}: already present")
            continue
        db.add(User(
            full_name=entry["full_name"],
            email=entry["email"],
            password_hash=get_password_hash(entry["password"]),
            mobile_number=entry["mobile_number"],
            location=entry["location"],
        ))
        created += 1
    db.commit()
    return created


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        count = seed_users(session)
        logger.info(f"Seeded {count} user(s)")
    finally:
        session.close()
