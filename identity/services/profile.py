import logging
from typing import Optional

from identity.core.security import STATE_TOKEN_TYPE
from identity.utils.errors import ConflictError, InvalidTokenError, NotFoundError, ValidationError


def profile_summary(user) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "tax_id": user.tax_id,
        "phone": user.phone,
    }


class ProfileManager:
    """Post-hoc completion of tax ID and phone, mostly for OAuth-created accounts."""

    def __init__(self, directory, token_issuer, logger: Optional[logging.Logger] = None):
        self.directory = directory
        self.token_issuer = token_issuer
        self.logger = logger or logging.getLogger(__name__)

    async def update_profile(self, email: str, tax_id: str, phone: str) -> dict:
        if not tax_id:
            raise ValidationError("missing tax_id")
        if not phone:
            raise ValidationError("missing phone")

        user = await self.directory.find_by_email(email)
        if not user:
            self.logger.error(f"User not found: {email}")
            raise NotFoundError("user not found")

        if tax_id != user.tax_id:
            existing = await self.directory.find_by_tax_id(tax_id)
            if existing and existing.id != user.id:
                raise ConflictError("taxId already registered")

        user.tax_id = tax_id
        user.phone = phone
        user = await self.directory.save(user)
        self.logger.info(f"Profile data updated for {email}")

        return {
            "success": True,
            "message": "Profile updated successfully",
            "user": profile_summary(user),
        }

    def pre_register_oauth(self, tax_id: str, phone: str) -> dict:
        """Carry pre-registration data across the provider redirect in a signed state token."""
        if not tax_id:
            raise ValidationError("missing tax_id")
        if not phone:
            raise ValidationError("missing phone")

        state_token = self.token_issuer.issue_state_token({"taxId": tax_id, "phone": phone})
        return {
            "success": True,
            "redirect_url": f"/auth/google?state={state_token}",
        }

    def read_state(self, state_token: str) -> dict:
        payload = self.token_issuer.verify(state_token)
        if payload.get("typ") != STATE_TOKEN_TYPE:
            raise InvalidTokenError("Not a state token")
        if not payload.get("taxId") or not payload.get("phone"):
            raise InvalidTokenError("Incomplete state token")
        return {"tax_id": payload["taxId"], "phone": payload["phone"]}
