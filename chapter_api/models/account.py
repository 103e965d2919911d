"""Account model definitions."""

from sqlalchemy import Column, DateTime, Index, Integer, String, func

from chapter_api.database import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class Account(Base):
    """Represents a registered chapter member."""
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    college = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_USER)  # user/admin
    github = Column(String, nullable=False, default="")
    linkedin = Column(String, nullable=False, default="")
    profile = Column(String, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


# Case-insensitive email uniqueness.
Index("uq_accounts_email_lower", func.lower(Account.email), unique=True)
