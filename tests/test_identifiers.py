"""Tests for placeholder tax ID and phone generation."""

from __future__ import annotations

import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from identity.services.identifiers import UniqueIdentifierGenerator, make_phone, make_tax_id
from identity.utils.errors import ConflictError


def test_tax_id_groups_are_zero_padded(seq_random):
    rng = seq_random([7, 42, 999, 5])

    assert make_tax_id(rng) == "00704299905"
    assert rng.calls == [(0, 999), (0, 999), (0, 999), (0, 99)]


def test_phone_has_country_prefix_and_eleven_digits(seq_random):
    assert make_phone(seq_random([10_000_000_000])) == "+5510000000000"
    assert make_phone(seq_random([99_999_999_999])) == "+5599999999999"


def test_random_candidates_match_storage_format(seq_random):
    rng = seq_random(seed=3)
    for _ in range(50):
        assert re.fullmatch(r"[0-9]{11}", make_tax_id(rng))
        assert re.fullmatch(r"\+55[1-9][0-9]{10}", make_phone(rng))


@pytest.mark.asyncio
async def test_returns_first_free_candidate(seq_random):
    directory = MagicMock()
    directory.find_by_tax_id = AsyncMock(side_effect=[object(), object(), None])
    generator = UniqueIdentifierGenerator(directory, rng=seq_random(seed=1))

    tax_id = await generator.generate_unique_tax_id()

    assert re.fullmatch(r"[0-9]{11}", tax_id)
    assert directory.find_by_tax_id.await_count == 3
    directory.find_by_tax_id.assert_awaited_with(tax_id)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, lookup",
    [
        ("generate_unique_tax_id", "find_by_tax_id"),
        ("generate_unique_phone", "find_by_phone"),
    ],
)
async def test_exhaustion_after_ten_lookups(seq_random, method, lookup):
    """A directory that always collides yields a conflict and no 11th lookup."""

    directory = MagicMock()
    setattr(directory, lookup, AsyncMock(return_value=object()))
    generator = UniqueIdentifierGenerator(directory, rng=seq_random(seed=5))

    with pytest.raises(ConflictError) as excinfo:
        await getattr(generator, method)()

    assert excinfo.value.message == "unique value exhausted"
    assert getattr(directory, lookup).await_count == 10


@pytest.mark.asyncio
async def test_phone_generation_against_real_directory(directory, make_user, seq_random):
    await make_user(phone="+5510000000000")
    generator = UniqueIdentifierGenerator(
        directory, rng=seq_random([10_000_000_000, 10_000_000_001])
    )

    assert await generator.generate_unique_phone() == "+5510000000001"
