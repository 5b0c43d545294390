"""
Create the schema for the configured DATABASE_URL.

Usage: python -m app.db.init_db
"""
import logging
from app.core.config import settings
from app.db.session import init_db

if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    init_db()
