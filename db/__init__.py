"""
Database Connection Module

This module handles the database connection and session factory used to
read survey, response and analysis tables with SQLAlchemy. Supports
MySQL/MariaDB, PostgreSQL and SQLite URLs.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import get_database_url, load_analytics_settings

__version__ = "0.1.0"
__author__ = "Readiness Analytics Team"

DATABASE_URL = get_database_url()


def _connect_args(url: str, timeout: float) -> dict:
    """Driver-level timeouts so a stuck query fails instead of hanging."""
    if url.startswith("mysql"):
        return {
            "connect_timeout": int(timeout),
            "read_timeout": int(timeout),
            "write_timeout": int(timeout),
        }
    if url.startswith("postgresql"):
        return {"connect_timeout": int(timeout)}
    if url.startswith("sqlite"):
        return {"timeout": timeout, "check_same_thread": False}
    return {}


_fetch_timeout = load_analytics_settings().fetch_timeout_seconds

# Create SQLAlchemy engine with connection pooling and timeout settings
engine = create_engine(
    DATABASE_URL,
    echo=False,
    pool_pre_ping=True,  # Verify connections before use
    pool_recycle=3600,  # Recycle connections every hour
    connect_args=_connect_args(DATABASE_URL, _fetch_timeout),
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base
Base = declarative_base()


def get_database_url_for_display():
    """Get the database URL without credentials for logging."""
    return engine.url.render_as_string(hide_password=True)
