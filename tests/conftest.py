"""Shared pytest fixtures for the identity engine tests."""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

import logging  # noqa: E402
import random  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from identity.core.security import TokenIssuer  # noqa: E402
from identity.db.base import Base  # noqa: E402
from identity.db.directory import UserDirectory  # noqa: E402
from identity.models.user import User  # noqa: E402
from identity.services.auth import build_auth_service  # noqa: E402
from identity.utils.errors import TransientError  # noqa: E402


class SequenceRandom:
    """Random source that hands out queued ``randint`` values, then falls back to a seeded RNG."""

    def __init__(self, values=(), seed: int = 7):
        self.values = list(values)
        self.fallback = random.Random(seed)
        self.calls = []

    def randint(self, a, b):
        self.calls.append((a, b))
        if self.values:
            return self.values.pop(0)
        return self.fallback.randint(a, b)

    def choice(self, seq):
        return self.fallback.choice(seq)


class RecordingNotifier:
    """Captures send triggers instead of delivering them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def _record(self, kind, user, code=None):
        self.sent.append((kind, user.email, code))
        if self.fail:
            raise TransientError("notification delivery failed")
        return True

    async def send_confirmation(self, user, code):
        return await self._record("confirmation", user, code)

    async def send_password_reset(self, user, code):
        return await self._record("password_reset", user, code)

    async def send_oauth_welcome(self, user):
        return await self._record("oauth_welcome", user)

    def of_kind(self, kind):
        return [entry for entry in self.sent if entry[0] == kind]


@pytest.fixture()
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def directory(db_session) -> UserDirectory:
    return UserDirectory(db_session)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def issuer() -> TokenIssuer:
    return TokenIssuer("test-secret")


@pytest.fixture()
def test_logger() -> logging.Logger:
    return logging.getLogger("tests.identity")


@pytest.fixture()
def service(db_session, notifier, issuer, test_logger):
    return build_auth_service(
        db_session,
        notifier=notifier,
        rng=SequenceRandom(),
        token_issuer=issuer,
        logger=test_logger,
    )


@pytest.fixture()
def user_count(db_session):
    return lambda: db_session.query(User).count()


@pytest.fixture()
def make_user(directory):
    async def _make_user(**overrides) -> User:
        fields = {
            "email": "bob@example.com",
            "full_name": "Bob Stone",
            "username": "Bob",
            "tax_id": "12345678901",
            "phone": "+5511987654321",
            "password": "s3cret",
            "is_verified": True,
            "is_active": True,
        }
        fields.update(overrides)
        return await directory.create(fields)

    return _make_user


@pytest.fixture()
def seq_random():
    return SequenceRandom


@pytest.fixture()
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(fail=True)
