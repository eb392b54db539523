"""Tests for the orchestrator facade and its wiring."""

from __future__ import annotations

import pytest

from identity.services.auth import build_auth_service
from identity.services.oauth import DeferredCompletionReconciler, EagerCompletionReconciler
from identity.utils.errors import InvalidTokenError, NotFoundError


def test_factory_wires_requested_strategy(db_session, notifier, issuer):
    assert isinstance(build_auth_service(db_session, notifier=notifier).reconciler, DeferredCompletionReconciler)
    service = build_auth_service(db_session, notifier=notifier, token_issuer=issuer, strategy="eager")
    assert isinstance(service.reconciler, EagerCompletionReconciler)
    assert service.reconciler.generator.max_attempts == 10


@pytest.mark.asyncio
async def test_oauth_reconcile_result_shape(service):
    result = await service.oauth_reconcile({"email": "gina@example.com", "name": "Gina Lima"})

    assert result["success"] is True
    assert result["user"]["email"] == "gina@example.com"
    assert result["user"]["tax_id"] == ""
    assert "password" not in result["user"]
    assert result["access_token"]


@pytest.mark.asyncio
async def test_current_user_from_access_token(service, issuer, make_user):
    user = await make_user()
    token = issuer.issue_access_token(user.id, user.email, False)

    assert (await service.current_user(token)).id == user.id


@pytest.mark.asyncio
async def test_current_user_rejects_bad_tokens(service, issuer):
    with pytest.raises(InvalidTokenError):
        await service.current_user(issuer.issue_state_token({"taxId": "1"}))

    with pytest.raises(NotFoundError):
        await service.current_user(issuer.issue_access_token("gone", "gone@example.com", True))


@pytest.mark.asyncio
async def test_full_password_lifecycle(service, notifier):
    await service.register(
        email="hana@example.com",
        password="first",
        full_name="Hana Ito",
        tax_id="11122233344",
        phone="+5511912345678",
    )
    code = notifier.of_kind("confirmation")[0][2]
    await service.verify_code("hana@example.com", code)

    await service.forgot_password("hana@example.com")
    reset_code = notifier.of_kind("password_reset")[0][2]
    await service.reset_password("hana@example.com", reset_code, "second")

    assert await service.login("hana@example.com", "first") is None
    assert (await service.login("hana@example.com", "second")).email == "hana@example.com"
