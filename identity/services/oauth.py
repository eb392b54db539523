import logging
import random
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from identity.models.user import User
from identity.services.identifiers import UniqueIdentifierGenerator
from identity.utils.email import dispatch_notification
from identity.utils.errors import ValidationError

TEMPORARY_PASSWORD_LENGTH = 8
TEMPORARY_PASSWORD_ALPHABET = string.ascii_lowercase + string.digits

DEFERRED = "deferred"
EAGER = "eager"


@dataclass
class ExternalProfile:
    email: str
    full_name: str = ""
    picture: str = ""
    google_id: str = ""


@dataclass
class ReconcileResult:
    user: User
    access_token: str


def _get(source: Any, key: str) -> Any:
    if source is None:
        return None
    if isinstance(source, dict):
        return source.get(key)
    return getattr(source, key, None)


def _first_value(items: Any) -> str:
    """First ``value`` of a passport style ``[{"value": ...}]`` list."""
    if not items:
        return ""
    try:
        first = items[0]
    except (TypeError, IndexError, KeyError):
        return ""
    if isinstance(first, str):
        return first
    return _get(first, "value") or ""


def extract_profile(raw: Any) -> ExternalProfile:
    """
    Pull the fields the engine needs out of a provider profile.

    Accepts both the passport shape (``emails``/``photos`` lists, ``name``
    with ``givenName``/``familyName``, ``id``) and the flat shape of a
    verified ID token (``email``, ``name``, ``picture``, ``sub``).
    """
    email = _first_value(_get(raw, "emails")) or _get(raw, "email") or ""
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("missing email")

    name = _get(raw, "name")
    if isinstance(name, str):
        full_name = name.strip()
    elif name:
        full_name = f"{_get(name, 'givenName') or ''} {_get(name, 'familyName') or ''}".strip()
    else:
        full_name = _get(raw, "fullName") or ""

    picture = _first_value(_get(raw, "photos")) or _get(raw, "picture") or ""
    google_id = _get(raw, "id") or _get(raw, "sub") or ""

    return ExternalProfile(
        email=email.strip(),
        full_name=full_name,
        picture=picture,
        google_id=str(google_id),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OAuthReconciler:
    """
    Finds or creates the local account for an externally authenticated
    identity, keyed strictly by email, and issues an access token for it.
    Subclasses decide how a brand new account is completed.
    """

    strategy = None

    def __init__(
        self,
        directory,
        notifier,
        token_issuer,
        generator: Optional[UniqueIdentifierGenerator] = None,
        rng=None,
        clock: Callable[[], datetime] = _utcnow,
        logger: Optional[logging.Logger] = None,
    ):
        self.directory = directory
        self.notifier = notifier
        self.token_issuer = token_issuer
        self.rng = rng or random.SystemRandom()
        self.generator = generator or UniqueIdentifierGenerator(directory, rng=self.rng)
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    async def reconcile(self, raw_profile: Any) -> ReconcileResult:
        profile = extract_profile(raw_profile)

        user = await self.directory.find_by_email(profile.email)
        if user:
            self.logger.info(f"Existing account found for {profile.email}")
            user = await self._update_existing(user, profile)
        else:
            self.logger.info(f"Creating account for {profile.email} ({self.strategy})")
            user = await self._create(profile)
            await dispatch_notification(self.notifier.send_oauth_welcome, user, log=self.logger)

        access_token = self.token_issuer.issue_access_token(user.id, user.email, True)
        return ReconcileResult(user=user, access_token=access_token)

    async def _update_existing(self, user: User, profile: ExternalProfile) -> User:
        raise NotImplementedError

    async def _create(self, profile: ExternalProfile) -> User:
        raise NotImplementedError


class DeferredCompletionReconciler(OAuthReconciler):
    """
    Links the provider identity to an existing account, or creates a new
    verified account whose tax ID and phone stay empty until the user
    completes the profile.
    """

    strategy = DEFERRED

    async def _update_existing(self, user: User, profile: ExternalProfile) -> User:
        user.last_login = self.clock()
        if profile.picture:
            user.picture = profile.picture
        user.is_google_user = True
        # First linked provider id wins
        if not user.google_id:
            user.google_id = profile.google_id or None
        return await self.directory.save(user)

    async def _create(self, profile: ExternalProfile) -> User:
        return await self.directory.create({
            "email": profile.email,
            "full_name": profile.full_name,
            "username": profile.email.split("@")[0],
            "picture": profile.picture or None,
            "google_id": profile.google_id or None,
            "tax_id": "",
            "phone": "",
            "password": "",
            "is_google_user": True,
            "is_verified": True,
            "is_active": True,
            "last_login": self.clock(),
        })


class EagerCompletionReconciler(OAuthReconciler):
    """
    Legacy strategy: new accounts get synthetic tax ID and phone values and
    a random temporary password up front. Existing accounts only have their
    last login refreshed.
    """

    strategy = EAGER

    def _temporary_password(self) -> str:
        return "".join(self.rng.choice(TEMPORARY_PASSWORD_ALPHABET) for _ in range(TEMPORARY_PASSWORD_LENGTH))

    async def _update_existing(self, user: User, profile: ExternalProfile) -> User:
        user.last_login = self.clock()
        return await self.directory.save(user)

    async def _create(self, profile: ExternalProfile) -> User:
        tax_id = await self.generator.generate_unique_tax_id()
        phone = await self.generator.generate_unique_phone()
        return await self.directory.create({
            "email": profile.email,
            "full_name": profile.full_name,
            "username": profile.email.split("@")[0],
            "tax_id": tax_id,
            "phone": phone,
            "password": self._temporary_password(),
            "is_verified": True,
            "is_active": True,
            "last_login": self.clock(),
        })


RECONCILERS = {
    DEFERRED: DeferredCompletionReconciler,
    EAGER: EagerCompletionReconciler,
}


def get_reconciler(strategy: str, directory, notifier, token_issuer, **kwargs) -> OAuthReconciler:
    try:
        reconciler_class = RECONCILERS[strategy]
    except KeyError:
        raise ValueError(f"Unknown OAuth completion strategy: {strategy!r}")
    return reconciler_class(directory, notifier, token_issuer, **kwargs)
