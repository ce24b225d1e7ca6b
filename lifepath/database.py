"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for profile storage and version history.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import create_engine, Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class ProfileRecord(Base):
    """Latest version of a stored profile."""

    __tablename__ = "profiles"

    profile_id = Column(String, primary_key=True)
    owner_id = Column(String, nullable=True, index=True)
    payload = Column(Text, nullable=False)  # Profile as JSON (camelCase)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class ProfileVersion(Base):
    """One entry of a profile's version history."""

    __tablename__ = "profile_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(String, ForeignKey("profiles.profile_id"), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    payload = Column(Text, nullable=False)
    changed_fields = Column(Text, nullable=False, default="[]")  # JSON list of top-level keys
    created_at = Column(DateTime, nullable=False, default=datetime.now)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()
