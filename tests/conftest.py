"""Pytest fixtures for gateway tests."""

import os
import uuid
from collections.abc import Generator

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pushgate.db import models  # noqa: F401  # Imported for side effects
from pushgate.db.base import Base
from pushgate.db.models import Application
from pushgate.schemas.device import CreateUserDevice
from pushgate.services.rollup import PushRollupService, build_push_services
from pushgate.services.store import SubscriptionStore
from tests.stubs import StubProvider


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False
    )
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
        db.close()


@pytest.fixture()
def store(db_session) -> SubscriptionStore:
    return SubscriptionStore(db_session)


@pytest.fixture()
def provider() -> StubProvider:
    return StubProvider()


@pytest.fixture()
def services(db_session, provider) -> PushRollupService:
    return build_push_services(db_session, provider=provider)


@pytest.fixture()
def application(store) -> Application:
    return store.insert(
        Application(name=f"app-{uuid.uuid4().hex[:8]}", secret=uuid.uuid4().hex, owner_ids=["owner-1"])
    )


@pytest.fixture()
def register_device(store, application):
    def _register(profile_id: str, token: str, name: str = "Pixel") -> uuid.UUID:
        return store.upsert_device(
            application.id, profile_id, CreateUserDevice(token=token, name=name)
        )

    return _register
