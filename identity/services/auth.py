import logging
from typing import Any, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from identity.core.config import Settings, settings as default_settings
from identity.core.security import TokenIssuer, get_token_issuer
from identity.db.base import get_db
from identity.db.directory import UserDirectory
from identity.models.user import User
from identity.services.identifiers import UniqueIdentifierGenerator
from identity.services.oauth import OAuthReconciler, get_reconciler
from identity.services.profile import ProfileManager
from identity.services.verification import CredentialManager
from identity.utils.email import EmailNotifier
from identity.utils.errors import InvalidTokenError, NotFoundError


def user_summary(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "username": user.username,
        "picture": user.picture,
        "tax_id": user.tax_id,
        "phone": user.phone,
        "is_verified": user.is_verified,
        "is_active": user.is_active,
    }


class AuthService:
    """Facade over the identity engine. Every collaborator is handed in."""

    def __init__(
        self,
        directory,
        credentials: CredentialManager,
        reconciler: OAuthReconciler,
        profiles: ProfileManager,
        token_issuer: TokenIssuer,
    ):
        self.directory = directory
        self.credentials = credentials
        self.reconciler = reconciler
        self.profiles = profiles
        self.token_issuer = token_issuer

    async def register(self, **fields) -> dict:
        return await self.credentials.register(**fields)

    async def login(self, email: str, password: str) -> Optional[User]:
        return await self.credentials.login(email, password)

    async def verify_code(self, email: str, code: str) -> dict:
        return await self.credentials.verify_code(email, code)

    async def forgot_password(self, email: str) -> dict:
        return await self.credentials.forgot_password(email)

    async def reset_password(self, email: str, code: str, new_password: str) -> dict:
        return await self.credentials.reset_password(email, code, new_password)

    async def oauth_reconcile(self, external_profile: Any) -> dict:
        result = await self.reconciler.reconcile(external_profile)
        return {
            "success": True,
            "user": user_summary(result.user),
            "access_token": result.access_token,
        }

    async def update_profile(self, email: str, tax_id: str, phone: str) -> dict:
        return await self.profiles.update_profile(email, tax_id, phone)

    def pre_register_oauth(self, tax_id: str, phone: str) -> dict:
        return self.profiles.pre_register_oauth(tax_id, phone)

    def read_state(self, state_token: str) -> dict:
        return self.profiles.read_state(state_token)

    async def current_user(self, token: str) -> User:
        payload = self.token_issuer.verify(token)
        subject_id = payload.get("sub")
        if not subject_id:
            raise InvalidTokenError("Could not validate credentials")
        user = await self.directory.find_by_id(subject_id)
        if not user:
            raise NotFoundError("user not found")
        return user


def build_auth_service(
    db: Session,
    settings: Optional[Settings] = None,
    notifier=None,
    rng=None,
    strategy: Optional[str] = None,
    token_issuer: Optional[TokenIssuer] = None,
    logger: Optional[logging.Logger] = None,
) -> AuthService:
    settings = settings or default_settings
    logger = logger or logging.getLogger(__name__)
    directory = UserDirectory(db, logger=logger.getChild("directory"))
    notifier = notifier or EmailNotifier(settings.APP_DISPLAY_NAME)
    token_issuer = token_issuer or get_token_issuer(settings)
    generator = UniqueIdentifierGenerator(
        directory,
        rng=rng,
        max_attempts=settings.UNIQUE_VALUE_MAX_ATTEMPTS,
        logger=logger.getChild("identifiers"),
    )
    reconciler = get_reconciler(
        strategy or settings.OAUTH_COMPLETION_STRATEGY,
        directory,
        notifier,
        token_issuer,
        generator=generator,
        rng=rng,
        logger=logger.getChild("oauth"),
    )
    return AuthService(
        directory=directory,
        credentials=CredentialManager(directory, notifier, rng=rng, logger=logger.getChild("credentials")),
        reconciler=reconciler,
        profiles=ProfileManager(directory, token_issuer, logger=logger.getChild("profile")),
        token_issuer=token_issuer,
    )


def get_notifier() -> EmailNotifier:
    return EmailNotifier()


async def get_auth_service(
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
) -> AuthService:
    return build_auth_service(db, notifier=notifier)
