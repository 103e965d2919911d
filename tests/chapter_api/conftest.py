import re
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from chapter_api.auth.jwt_handler import TokenIssuer
from chapter_api.auth.passwords import PasswordHasher
from chapter_api.auth.reset_codes import InMemoryResetCodeStore
from chapter_api.core.errors import DeliveryFailure
from chapter_api.database import Base
from chapter_api.models.account import Account
from chapter_api.services.account_store import AccountStore
from chapter_api.services.auth_service import AuthService

TEST_SECRET = 'test-secret'


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


class FakeNotifier:
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    def send(self, to_address: str, subject: str, body: str) -> None:
        if self.fail:
            raise DeliveryFailure(detail='connection refused')
        self.sent.append({'to': to_address, 'subject': subject, 'body': body})

    def last_code(self) -> str:
        return re.search(r'\b(\d{6})\b', self.sent[-1]['body']).group(1)


@pytest.fixture
def account_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[Account.__table__])

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[Account.__table__])


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def reset_codes(clock) -> InMemoryResetCodeStore:
    return InMemoryResetCodeStore(ttl_seconds=300, clock=clock)


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret_key=TEST_SECRET, algorithm='HS256', expires_minutes=7 * 24 * 60)


@pytest.fixture
def auth_service(account_db, reset_codes, hasher, token_issuer, notifier) -> AuthService:
    return AuthService(
        accounts=AccountStore(account_db),
        reset_codes=reset_codes,
        hasher=hasher,
        tokens=token_issuer,
        notifier=notifier,
        allow_admin_registration=False,
    )


@pytest.fixture
def bob(auth_service) -> Account:
    return auth_service.register(username='bob', email='Bob@X.com', password='pw123', college='MIT')
