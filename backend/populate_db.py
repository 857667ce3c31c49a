# backend/populate_db.py
"""Create the schema and seed the data the shop needs on first start.

Run from the backend directory: ``python populate_db.py``. Safe to run more
than once: existing rows are left alone.
"""
import logging

from config import settings
from database import SessionLocal, init_db
from models.category import Category
from models.users import User
from utils.hashing import get_password_hash

logger = logging.getLogger("populate_db")

DEFAULT_CATEGORIES = ["Sembako"]


def seed_categories(session) -> int:
    created = 0
    for name in DEFAULT_CATEGORIES:
        if not session.query(Category).filter(Category.name == name).first():
            session.add(Category(name=name))
            created += 1
    session.commit()
    return created


def seed_admin(session) -> bool:
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin account")
        return False

    email = settings.ADMIN_EMAIL.strip().lower()
    if session.query(User).filter(User.email == email).first():
        return False

    session.add(User(
        name=settings.ADMIN_NAME,
        email=email,
        password_hash=get_password_hash(settings.ADMIN_PASSWORD),
        role="admin",
    ))
    session.commit()
    return True


def main():
    init_db()
    session = SessionLocal()
    try:
        categories = seed_categories(session)
        admin = seed_admin(session)
    finally:
        session.close()
    logger.info("Seeding done: %d categories created, admin created: %s", categories, admin)


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    main()
