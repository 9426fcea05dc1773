"""
Database initialization script for the analytics engine

Creates the tables the engine reads (useful for local development and
demo databases) and verifies that they exist.
"""

import logging
import sys

from sqlalchemy import inspect

from . import Base, engine, get_database_url_for_display
from . import models  # noqa: F401  registers tables on Base.metadata

logger = logging.getLogger(__name__)

EXPECTED_TABLES = [
    "surveys",
    "organization_members",
    "survey_sessions",
    "survey_responses",
    "response_analysis_jtbd",
    "voice_recordings",
    "voice_quality_metrics",
]


def create_tables(bind=None):
    """Create all tables using SQLAlchemy"""
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=bind or engine)
        logger.info("✅ Database tables created successfully")
    except Exception as e:
        logger.error(f"❌ Error creating tables: {e}")
        raise


def verify_database(bind=None) -> list:
    """
    Verify that the tables read by the analytics engine exist.

    Returns:
        List of missing table names
    """
    inspector = inspect(bind or engine)
    tables = inspector.get_table_names()
    missing = []

    for table in EXPECTED_TABLES:
        if table in tables:
            logger.info(f"✅ Table '{table}' exists")
        else:
            logger.warning(f"⚠️ Table '{table}' not found")
            missing.append(table)

    return missing


def main():
    """Main initialization function"""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger.info(f"🚀 Initializing analytics tables on {get_database_url_for_display()}...")

    try:
        create_tables()
        missing = verify_database()
        if missing:
            logger.error(f"💥 Missing tables after initialization: {missing}")
            sys.exit(1)
        logger.info("🎉 Database initialization completed successfully!")
    except Exception as e:
        logger.error(f"💥 Database initialization failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
