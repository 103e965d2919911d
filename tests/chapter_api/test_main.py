import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chapter_api.auth.dependencies import get_db, get_notifier, get_password_hasher, get_reset_code_store, get_token_issuer
from chapter_api.database import Base
from chapter_api.main import app
from chapter_api.models.account import Account


@pytest.fixture
def client(reset_codes, hasher, token_issuer, notifier):
    # Requests run in worker threads, so every session must share one connection.
    engine = create_engine(
        'sqlite:///:memory:',
        poolclass=StaticPool,
        connect_args={'check_same_thread': False},
    )
    Base.metadata.create_all(bind=engine, tables=[Account.__table__])
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _get_db():
        db = testing_session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_reset_code_store] = lambda: reset_codes
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        engine.dispose()


def test_root_reports_running(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'status': 'Chapter Auth API Running'}


def test_malformed_body_is_reported_as_400(client) -> None:
    response = client.post('/auth/register', json={'username': ['not', 'a', 'string']})

    assert response.status_code == 400
    assert response.json() == {'message': 'Please fill all required fields'}


def test_protected_routes_require_bearer_token(client) -> None:
    missing = client.get('/auth/me')

    assert missing.status_code == 401
    assert missing.json() == {'detail': 'Not authenticated'}
    assert client.get('/auth/me', headers={'Authorization': 'Bearer junk'}).status_code == 401


def test_register_login_and_password_reset_end_to_end(client, notifier, token_issuer) -> None:
    registered = client.post(
        '/auth/register',
        json={'username': 'bob', 'email': 'Bob@X.com', 'password': 'pw123', 'college': 'MIT'},
    )
    assert registered.status_code == 201
    assert registered.json()['user']['email'] == 'bob@x.com'
    assert 'password' not in registered.json()['user']

    duplicate = client.post(
        '/auth/register',
        json={'username': 'bobby', 'email': 'bob@x.com', 'password': 'pw', 'college': 'MIT'},
    )
    assert duplicate.status_code == 409

    logged_in = client.post('/auth/login', json={'email': 'bob@x.com', 'password': 'pw123'})
    assert logged_in.status_code == 200
    body = logged_in.json()
    assert body['account'] == {'username': 'bob', 'email': 'bob@x.com', 'role': 'user'}
    assert body['role'] == 'user'
    assert token_issuer.decode(body['token'])['accountId'] == registered.json()['user']['id']

    me = client.get('/auth/me', headers={'Authorization': f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()['user']['username'] == 'bob'

    requested = client.post('/auth/request-reset', json={'email': 'bob@x.com'})
    assert requested.status_code == 200
    code = notifier.last_code()
    wrong = '000000' if code != '000000' else '111111'

    mismatch = client.post('/auth/verify-reset', json={'email': 'bob@x.com', 'code': wrong})
    assert mismatch.status_code == 400
    assert mismatch.json() == {'message': 'Invalid OTP'}

    verified = client.post('/auth/verify-reset', json={'email': 'bob@x.com', 'code': code})
    assert verified.status_code == 200

    reset = client.post('/auth/complete-reset', json={'email': 'bob@x.com', 'newPassword': 'newpw'})
    assert reset.status_code == 200
    assert reset.json() == {'message': 'Password reset successful'}

    replay = client.post('/auth/complete-reset', json={'email': 'bob@x.com', 'newPassword': 'again'})
    assert replay.status_code == 400

    assert client.post('/auth/login', json={'email': 'bob@x.com', 'password': 'pw123'}).status_code == 406
    assert client.post('/auth/login', json={'email': 'bob@x.com', 'password': 'newpw'}).status_code == 200


def test_profile_update_over_http(client) -> None:
    client.post(
        '/auth/register',
        json={'username': 'bob', 'email': 'bob@x.com', 'password': 'pw123', 'college': 'MIT'},
    )
    token = client.post('/auth/login', json={'email': 'bob@x.com', 'password': 'pw123'}).json()['token']

    response = client.put(
        '/auth/profile',
        json={'github': 'bobgh', 'role': 'admin'},
        headers={'Authorization': f'Bearer {token}'},
    )

    assert response.status_code == 200
    assert response.json()['user']['github'] == 'bobgh'
    assert response.json()['user']['role'] == 'user'
