import hmac
import logging
from typing import Optional

from identity.core.security import generate_otp
from identity.models.user import User
from identity.utils.email import dispatch_notification
from identity.utils.errors import ConflictError, ValidationError

REQUIRED_REGISTRATION_FIELDS = ("email", "password", "full_name", "tax_id", "phone")


def default_username(full_name: str, email: str) -> str:
    tokens = (full_name or "").split()
    if tokens:
        return tokens[0]
    return email.split("@")[0]


class CredentialManager:
    """
    Owns the verification code state machine.

    Registration and password reset share ``User.verification_code``, so
    issuing a reset code replaces a pending registration code and the other
    way round. The two tracks clear the field differently: a verified
    account ends with ``None``, a completed reset with ``""``.
    """

    def __init__(self, directory, notifier, rng=None, logger: Optional[logging.Logger] = None):
        self.directory = directory
        self.notifier = notifier
        self.rng = rng
        self.logger = logger or logging.getLogger(__name__)

    async def register(
        self,
        *,
        email: str,
        password: str,
        full_name: str,
        tax_id: str,
        phone: str,
        username: Optional[str] = None,
    ) -> dict:
        fields = {
            "email": email,
            "password": password,
            "full_name": full_name,
            "tax_id": tax_id,
            "phone": phone,
        }
        for name in REQUIRED_REGISTRATION_FIELDS:
            if not fields[name]:
                raise ValidationError(f"missing {name}")

        if await self.directory.find_by_email(email):
            raise ConflictError("email already registered")
        if await self.directory.find_by_tax_id(tax_id):
            raise ConflictError("taxId already registered")

        code = generate_otp(self.rng)
        user = await self.directory.create({
            **fields,
            "username": username or default_username(full_name, email),
            "verification_code": code,
            "is_verified": False,
            "is_active": False,
        })
        self.logger.info(f"Registered unverified account {user.email}")

        await dispatch_notification(self.notifier.send_confirmation, user, code, log=self.logger)

        return {
            "success": True,
            "message": "Please verify your email to activate your account",
            "email": user.email,
        }

    async def login(self, email: str, password: str) -> Optional[User]:
        """
        Returns None when the email is unknown or the password does not match.
        A matching but unverified account raises instead.
        """
        user = await self.directory.find_by_email(email)
        if not user:
            return None

        if not user.password or not hmac.compare_digest(
            user.password.encode("utf-8"), (password or "").encode("utf-8")
        ):
            return None

        if not user.is_verified:
            raise ConflictError("unverified")

        return user

    async def _find_pending(self, email: str, code: str) -> User:
        # A cleared code (None or "") is never a valid submission
        if not code:
            raise ConflictError("invalid code")
        user = await self.directory.find_by_email_and_code(email, code)
        if not user:
            raise ConflictError("invalid code")
        return user

    async def verify_code(self, email: str, code: str) -> dict:
        user = await self._find_pending(email, code)

        user.is_verified = True
        user.is_active = True
        user.verification_code = None
        await self.directory.save(user)
        self.logger.info(f"Account verified: {user.email}")

        return {"success": True, "message": "Account activated successfully"}

    async def forgot_password(self, email: str) -> dict:
        user = await self.directory.find_by_email(email)
        if not user:
            raise ConflictError("email not found")

        code = generate_otp(self.rng)
        user.verification_code = code
        await self.directory.save(user)

        await dispatch_notification(self.notifier.send_password_reset, user, code, log=self.logger)

        return {"success": True, "message": "We sent a recovery code to your email"}

    async def reset_password(self, email: str, code: str, new_password: str) -> dict:
        if not new_password:
            raise ValidationError("missing new_password")
        user = await self._find_pending(email, code)

        user.password = new_password
        user.verification_code = ""
        await self.directory.save(user)
        self.logger.info(f"Password reset for {user.email}")

        return {"success": True, "message": "Password updated successfully"}
