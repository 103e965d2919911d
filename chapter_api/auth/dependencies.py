import logging

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from chapter_api.auth.jwt_handler import TokenIssuer
from chapter_api.auth.passwords import PasswordHasher
from chapter_api.auth.reset_codes import InMemoryResetCodeStore, ResetCodeStore
from chapter_api.database import SessionLocal
from chapter_api.models.account import Account
from chapter_api.services.account_store import AccountStore
from chapter_api.services.auth_service import AuthService
from chapter_api.services.notifier import EmailNotifier

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# Process-wide collaborators. Reset codes are shared by every request.
_reset_code_store = InMemoryResetCodeStore()
_password_hasher = PasswordHasher()
_token_issuer = TokenIssuer()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_reset_code_store() -> ResetCodeStore:
    return _reset_code_store


def get_password_hasher() -> PasswordHasher:
    return _password_hasher


def get_token_issuer() -> TokenIssuer:
    return _token_issuer


def get_notifier() -> EmailNotifier:
    return EmailNotifier()


def get_auth_service(
    db: Session = Depends(get_db),
    reset_codes: ResetCodeStore = Depends(get_reset_code_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenIssuer = Depends(get_token_issuer),
    notifier: EmailNotifier = Depends(get_notifier),
) -> AuthService:
    return AuthService(
        accounts=AccountStore(db),
        reset_codes=reset_codes,
        hasher=hasher,
        tokens=tokens,
        notifier=notifier,
    )


def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> Account:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = tokens.decode(credentials.credentials)
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=401, detail="Token expired") from exc
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    account_id = payload.get("accountId")
    if not isinstance(account_id, int):
        raise HTTPException(status_code=401, detail="Invalid token subject")

    account = AccountStore(db).get(account_id)
    if account is None:
        raise HTTPException(status_code=401, detail="User not found")
    return account
