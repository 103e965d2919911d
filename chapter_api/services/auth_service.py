"""
Authentication service.

Handles:
- Registration with case-insensitive unique emails
- Login with bcrypt verification and JWT issuance
- Password reset through an emailed one-time code
- Profile edits for logged-in members

Every failure leaves this module as one of the ``AuthError`` kinds in
``chapter_api.core.errors``; storage and hashing errors are wrapped in
``InternalError`` with the original text kept only as a diagnostic.
"""

import functools
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from chapter_api.auth.jwt_handler import TokenIssuer
from chapter_api.auth.passwords import PasswordHasher
from chapter_api.auth.reset_codes import ResetCodeStore, VerifyResult
from chapter_api.core import config
from chapter_api.core.errors import (
    AuthError,
    Conflict,
    DeliveryFailure,
    Expired,
    InternalError,
    InvalidCredentials,
    Mismatch,
    NotFound,
    ValidationError,
    VerificationRequired,
)
from chapter_api.models.account import ROLE_ADMIN, ROLE_USER, ROLES, Account
from chapter_api.services.account_store import AccountNotFound, AccountStore, DuplicateAccount

logger = logging.getLogger(__name__)

# bcrypt ignores (or rejects) anything past 72 bytes.
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class LoginResult:
    account: Account
    token: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be {MAX_PASSWORD_BYTES} bytes or fewer")


def service_boundary(failure_message: str):
    """Wrap anything that is not already an ``AuthError`` as ``InternalError``."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except AuthError:
                raise
            except SQLAlchemyError as exc:
                logger.exception("%s: storage error", failure_message)
                raise InternalError(failure_message, detail=str(exc)) from exc
            except Exception as exc:
                logger.exception("%s: unexpected error", failure_message)
                raise InternalError(failure_message, detail=str(exc)) from exc

        return wrapper

    return decorator


class AuthService:
    def __init__(
        self,
        accounts: AccountStore,
        reset_codes: ResetCodeStore,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        notifier,
        allow_admin_registration: bool | None = None,
    ) -> None:
        self.accounts = accounts
        self.reset_codes = reset_codes
        self.hasher = hasher
        self.tokens = tokens
        self.notifier = notifier
        self.allow_admin_registration = (
            config.ALLOW_ADMIN_REGISTRATION if allow_admin_registration is None else allow_admin_registration
        )

    @service_boundary("Registration failed")
    def register(
        self,
        username: str | None,
        email: str | None,
        password: str | None,
        college: str | None,
        role: str | None = None,
    ) -> Account:
        if any(_is_blank(value) for value in (username, email, password, college)):
            raise ValidationError("Please fill all required fields")

        email = normalize_email(email)
        role = self._resolve_role(role)
        _check_password_length(password)

        if self.accounts.find_by_email(email) is not None:
            logger.info("Registration rejected, account exists for %s", email)
            raise Conflict("Account already exists")

        account = Account(
            username=username.strip(),
            email=email,
            password_hash=self.hasher.hash(password),
            college=college.strip(),
            role=role,
            github="",
            linkedin="",
            profile="",
        )

        try:
            account = self.accounts.create(account)
        except DuplicateAccount as exc:
            logger.info("Registration lost a race for %s", email)
            raise Conflict("Email already registered") from exc

        logger.info("Created account %s (%s)", account.id, email)
        return account

    def _resolve_role(self, role: str | None) -> str:
        if _is_blank(role):
            return ROLE_USER

        role = role.strip().lower()
        if role not in ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(ROLES)}")
        if role == ROLE_ADMIN and not self.allow_admin_registration:
            raise ValidationError("Admin accounts cannot be self-registered")
        return role

    @service_boundary("Login failed")
    def login(self, email: str | None, password: str | None) -> LoginResult:
        if _is_blank(email) or not password:
            raise InvalidCredentials()

        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise InvalidCredentials()

        email = normalize_email(email)
        account = self.accounts.find_by_email(email)
        if account is None or not self.hasher.verify(password, account.password_hash):
            logger.info("Failed login for %s", email)
            raise InvalidCredentials()

        token = self.tokens.issue(account.id, account.role)
        logger.info("Account %s logged in", account.id)
        return LoginResult(account=account, token=token)

    @service_boundary("Failed to send OTP")
    def request_reset(self, email: str | None) -> None:
        if _is_blank(email):
            raise ValidationError("Email is required")

        email = normalize_email(email)
        if self.accounts.find_by_email(email) is None:
            raise NotFound("No account found with this email")

        record = self.reset_codes.issue(email)
        minutes = max(1, int(self.reset_codes.ttl.total_seconds() // 60))
        body = f"Your OTP for password reset is: {record.code}\n\nThis OTP is valid for {minutes} minutes."

        try:
            self.notifier.send(email, config.RESET_EMAIL_SUBJECT, body)
        except DeliveryFailure:
            # The user never saw this code; do not leave it pending.
            self.reset_codes.discard(email, record)
            raise

        logger.info("Reset code sent to %s", email)

    @service_boundary("Error verifying OTP")
    def verify_reset(self, email: str | None, code: str | None) -> None:
        if _is_blank(email) or _is_blank(code):
            raise ValidationError("Email and OTP are required")

        email = normalize_email(email)
        result = self.reset_codes.verify(email, code)

        if result is VerifyResult.NOT_FOUND:
            raise NotFound("OTP expired or not found")
        if result is VerifyResult.EXPIRED:
            raise Expired("OTP expired")
        if result is VerifyResult.MISMATCH:
            logger.info("Wrong reset code presented for %s", email)
            raise Mismatch("Invalid OTP")

        logger.info("Reset code verified for %s", email)

    @service_boundary("Error resetting password")
    def complete_reset(self, email: str | None, new_password: str | None) -> None:
        if _is_blank(email) or not new_password:
            raise ValidationError("Email and new password are required")

        email = normalize_email(email)
        _check_password_length(new_password)

        claim = self.reset_codes.consume_if_verified(email)
        if not claim.verified:
            raise VerificationRequired("OTP verification required")

        try:
            self.accounts.update_password_hash(email, self.hasher.hash(new_password))
        except AccountNotFound as exc:
            self.reset_codes.discard(email, claim.record)
            raise NotFound("No account found with this email") from exc

        self.reset_codes.discard(email, claim.record)
        logger.info("Password reset for %s", email)

    @service_boundary("Profile update failed")
    def update_profile(self, account_id: int, **fields) -> Account:
        changes = {name: value.strip() for name, value in fields.items() if value is not None}
        if not changes:
            raise ValidationError("No profile fields supplied")

        for required in ("username", "college"):
            if required in changes and not changes[required]:
                raise ValidationError(f"{required.capitalize()} cannot be empty")

        try:
            account = self.accounts.update_profile(account_id, **changes)
        except AccountNotFound as exc:
            raise NotFound("Account not found") from exc

        logger.info("Account %s updated profile fields: %s", account_id, ", ".join(sorted(changes)))
        return account
