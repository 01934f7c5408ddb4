"""Pytest fixtures for testing"""

import uuid
from datetime import datetime, timezone
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from gameztarz_bank.api.main import create_app
from gameztarz_bank.domain.models import Account, PlatformAccount
from gameztarz_bank.domain.operations import open_account
from gameztarz_bank.infrastructure.database.models import Base
from gameztarz_bank.infrastructure.database.repositories import (
    AccountRepository,
    ClockRepository,
    ensure_platform_account,
)
from gameztarz_bank.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Simulated "now" used across tests
SIM_NOW = datetime(2030, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def second_db(db: Session) -> Generator[Session, None, None]:
    """Independent session on the same test database, standing in for another request"""
    other = TestingSessionLocal()
    try:
        yield other
    finally:
        other.close()


@pytest.fixture
def platform(db: Session) -> PlatformAccount:
    """Seeded platform account with an empty fee pool"""
    platform = ensure_platform_account(db, SIM_NOW)
    db.commit()
    return platform


@pytest.fixture
def sim_now(db: Session) -> datetime:
    """Persist the global clock at SIM_NOW"""
    ClockRepository(db).write(SIM_NOW)
    db.commit()
    return SIM_NOW


@pytest.fixture
def make_account(db: Session) -> Callable[..., Account]:
    """Factory that opens and persists an account at SIM_NOW"""

    def _make(username: str | None = None, usd: float | None = None, **overrides) -> Account:
        repo = AccountRepository(db)
        account = open_account(
            str(uuid.uuid4()),
            username or f"user_{uuid.uuid4().hex[:8]}",
            repo.generate_account_number(),
            SIM_NOW,
        )
        if usd is not None:
            account.balances["USD"] = usd
        for field_name, value in overrides.items():
            setattr(account, field_name, value)
        repo.save(account)
        db.commit()
        return account

    return _make


@pytest.fixture
def client(db: Session, platform: PlatformAccount, sim_now: datetime) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)

