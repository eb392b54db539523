import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from identity.models.user import User
from identity.utils.errors import ConflictError, TransientError


class UserDirectory:
    """
    Narrow async view over the users table.

    Every lookup is an exact match. Writes commit one record at a time; a
    unique constraint hit at commit time is reported as ``ConflictError``
    regardless of what the caller checked beforehand.
    """

    def __init__(self, db: Session, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    def _first(self, *criteria) -> Optional[User]:
        try:
            return self.db.query(User).filter(*criteria).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"User lookup failed: {e}")
            raise TransientError("directory unavailable")

    async def find_by_id(self, user_id: str) -> Optional[User]:
        return self._first(User.id == user_id)

    async def find_by_email(self, email: str) -> Optional[User]:
        return self._first(User.email == email)

    async def find_by_tax_id(self, tax_id: str) -> Optional[User]:
        return self._first(User.tax_id == tax_id)

    async def find_by_phone(self, phone: str) -> Optional[User]:
        return self._first(User.phone == phone)

    async def find_by_email_and_code(self, email: str, code: str) -> Optional[User]:
        return self._first(User.email == email, User.verification_code == code)

    async def create(self, fields: Dict[str, Any]) -> User:
        return await self.save(User(**fields))

    async def save(self, user: User) -> User:
        email = user.email
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            self.logger.warning(f"Unique constraint rejected write for {email}: {e.orig}")
            raise ConflictError("account already exists")
        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"User write failed for {email}: {e}")
            raise TransientError("directory unavailable")
        self.db.refresh(user)
        return user
