from sqlalchemy import Boolean, Column, String, DateTime, Index, text
from sqlalchemy.sql import func
import uuid

from identity.db.base import Base

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    username = Column(String, nullable=True)
    tax_id = Column(String, nullable=False, default="")
    full_name = Column(String, nullable=False, default="")
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=False, default="")
    password = Column(String, nullable=False, default="")
    # None after verification, "" after a password reset
    verification_code = Column(String, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login = Column(DateTime(timezone=True), nullable=True)
    google_id = Column(String, nullable=True)
    picture = Column(String, nullable=True)
    is_google_user = Column(Boolean, nullable=False, default=False)

    # Unreconciled OAuth accounts share the empty value
    __table_args__ = (
        Index(
            "uq_users_tax_id",
            "tax_id",
            unique=True,
            sqlite_where=text("tax_id <> ''"),
            postgresql_where=text("tax_id <> ''"),
        ),
        Index(
            "uq_users_phone",
            "phone",
            unique=True,
            sqlite_where=text("phone <> ''"),
            postgresql_where=text("phone <> ''"),
        ),
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
