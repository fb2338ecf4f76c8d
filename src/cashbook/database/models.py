"""SQLAlchemy models for cashbook databases."""

from datetime import datetime, UTC
from sqlalchemy import Column, String, Text, DateTime, Engine, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class Record(Base):
    """Local collection record (one row per collection)."""

    __tablename__ = "records"

    key = Column(String, primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


class RemoteSnapshot(Base):
    """Remote snapshot, one row per identity key."""

    __tablename__ = "remote_snapshots"

    key = Column(String, primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


def create_database_engine(database_url: str) -> Engine:
    """Create an engine and make sure all tables exist."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return engine


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    return sessionmaker(bind=create_database_engine(database_url))
