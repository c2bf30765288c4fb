import os

# Settings are read at import time
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("DB_AUTO_CREATE", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from yuki import models  # noqa: F401  ensure models are imported
from yuki.core.deps import get_db
from yuki.core.security import create_access_token
from yuki.db.base import Base
from yuki.main import app
from yuki.models.user import User


class FakeRedis:
    """In-memory stand-in for the redis client; TTLs are recorded, not enforced."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def get(self, key):
        return self.store.get(key)

    def getdel(self, key):
        self.ttls.pop(key, None)
        return self.store.pop(key, None)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if key in self.store:
                del self.store[key]
                self.ttls.pop(key, None)
                removed += 1
        return removed


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def file_sessions(tmp_path):
    """Sessions on a file database so each thread gets its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'yuki.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture()
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr("yuki.services.challenge_store.r", fake)
    monkeypatch.setattr("yuki.services.onramp.r", fake)
    return fake


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make_user(handle=None, wallet_address=None, **fields):
        counter["n"] += 1
        user = User(
            wallet_address=wallet_address or "0x" + f"{counter['n']:040x}",
            **fields,
        )
        if handle:
            clean = handle.lstrip("@")
            user.username = f"@{clean}"
            user.username_normalized = clean.lower()
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}

    return _auth_headers


@pytest.fixture()
def client(engine, fake_redis):
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
