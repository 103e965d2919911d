"""Account persistence on top of a SQLAlchemy session."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from chapter_api.models.account import Account

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("username", "college", "github", "linkedin", "profile")


class DuplicateAccount(Exception):
    """Raised when an account with the same normalized email already exists."""


class AccountNotFound(Exception):
    pass


class AccountStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def get(self, account_id: int) -> Account | None:
        return self.db.query(Account).filter(Account.id == account_id).first()

    def find_by_email(self, email: str) -> Account | None:
        return self.db.query(Account).filter(func.lower(Account.email) == email.lower()).first()

    def create(self, account: Account) -> Account:
        self.db.add(account)
        try:
            self._commit()
        except IntegrityError as exc:
            # Only the email indexes are unique; anything else is a genuine storage error.
            if self.find_by_email(account.email) is not None:
                logger.warning("Unique email index rejected insert for %s", account.email)
                raise DuplicateAccount(account.email) from exc
            raise
        self.db.refresh(account)
        return account

    def update_password_hash(self, email: str, password_hash: str) -> None:
        account = self.find_by_email(email)
        if account is None:
            raise AccountNotFound(email)

        account.password_hash = password_hash
        self._commit()

    def update_profile(self, account_id: int, **fields) -> Account:
        account = self.get(account_id)
        if account is None:
            raise AccountNotFound(account_id)

        for name, value in fields.items():
            if name not in PROFILE_FIELDS:
                raise ValueError(f"{name} is not an editable profile field")
            setattr(account, name, value)

        self._commit()
        self.db.refresh(account)
        return account
