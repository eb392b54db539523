"""Tests for the SQLAlchemy-backed user directory."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from identity.db.directory import UserDirectory
from identity.utils.errors import ConflictError, TransientError


@pytest.mark.asyncio
async def test_lookups_are_exact(directory, make_user):
    user = await make_user(email="Bob@example.com", tax_id="12345678901", phone="+5511987654321")

    assert (await directory.find_by_email("Bob@example.com")).id == user.id
    assert await directory.find_by_email("bob@example.com") is None
    assert (await directory.find_by_tax_id("12345678901")).id == user.id
    assert (await directory.find_by_phone("+5511987654321")).id == user.id
    assert (await directory.find_by_id(user.id)).email == "Bob@example.com"
    assert await directory.find_by_id("missing") is None


@pytest.mark.asyncio
async def test_create_assigns_id_and_defaults(make_user):
    user = await make_user()

    assert len(user.id) == 36
    assert user.is_google_user is False
    assert user.verification_code is None
    assert user.created_at is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "clash",
    [
        {"email": "bob@example.com", "tax_id": "2", "phone": "2"},
        {"email": "other@example.com", "tax_id": "1", "phone": "2"},
        {"email": "other@example.com", "tax_id": "2", "phone": "1"},
    ],
)
async def test_unique_constraints_surface_as_conflict(make_user, user_count, clash):
    await make_user(email="bob@example.com", tax_id="1", phone="1")

    with pytest.raises(ConflictError) as excinfo:
        await make_user(**clash)

    assert excinfo.value.message == "account already exists"
    assert user_count() == 1


@pytest.mark.asyncio
async def test_empty_identifiers_are_not_unique(make_user, user_count):
    await make_user(email="one@example.com", tax_id="", phone="")
    await make_user(email="two@example.com", tax_id="", phone="")

    assert user_count() == 2


@pytest.mark.asyncio
async def test_directory_remains_usable_after_conflict(directory, make_user):
    await make_user(email="bob@example.com", tax_id="1", phone="1")
    with pytest.raises(ConflictError):
        await make_user(email="bob@example.com", tax_id="2", phone="2")

    user = await directory.find_by_email("bob@example.com")
    user.phone = "+5511000000000"
    await directory.save(user)

    assert (await directory.find_by_phone("+5511000000000")).email == "bob@example.com"


@pytest.mark.asyncio
async def test_storage_outage_is_transient():
    session = MagicMock()
    session.query.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
    directory = UserDirectory(session)

    with pytest.raises(TransientError) as excinfo:
        await directory.find_by_email("bob@example.com")

    assert excinfo.value.message == "directory unavailable"
    assert "connection lost" not in excinfo.value.message
    session.rollback.assert_called_once()
