"""SQLAlchemy ORM models"""

import uuid
from sqlalchemy import Column, String, Boolean, Float, DateTime, Integer, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class AccountRecord(Base):
    """One account stored as a whole JSON document, keyed by account id"""

    __tablename__ = "account"

    id = Column(Text, primary_key=True)
    username = Column(Text, nullable=False, unique=True, index=True)
    account_number = Column(String(10), nullable=False, unique=True, index=True)
    document = Column(JSON, nullable=False)
    is_platform = Column(Boolean, nullable=False, default=False)
    fees_collected = Column(Float, nullable=False, default=0.0)
    version = Column(Integer, nullable=False, default=1)
    pool_version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class SimulationClock(Base):
    """Single-row shared simulated clock"""

    __tablename__ = "simulation_clock"

    id = Column(Text, primary_key=True, default="global")
    current_date = Column(Text, nullable=False)  # ISO-8601 timestamp


class TimekeeperLease(Base):
    """Lease held by the one process allowed to advance the clock"""

    __tablename__ = "timekeeper_lease"

    name = Column(Text, primary_key=True)
    holder = Column(Text, nullable=True)
    expires_at = Column(Float, nullable=False, default=0.0)  # Unix seconds


class NotificationRecord(Base):
    """In-app notification queued for an account"""

    __tablename__ = "notification"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(JSON, nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
