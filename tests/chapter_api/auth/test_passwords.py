from chapter_api.auth.passwords import PasswordHasher


def test_hash_is_not_plaintext_and_verifies() -> None:
    hasher = PasswordHasher(rounds=4)

    password_hash = hasher.hash('pw123')

    assert password_hash != 'pw123'
    assert 'pw123' not in password_hash
    assert hasher.verify('pw123', password_hash) is True


def test_verify_rejects_wrong_password() -> None:
    hasher = PasswordHasher(rounds=4)

    assert hasher.verify('not-it', hasher.hash('pw123')) is False


def test_hash_uses_a_fresh_salt_each_time() -> None:
    hasher = PasswordHasher(rounds=4)

    assert hasher.hash('pw123') != hasher.hash('pw123')


def test_hash_records_configured_cost_factor() -> None:
    password_hash = PasswordHasher(rounds=5).hash('pw123')

    assert password_hash.split('$')[2] == '05'


def test_verify_treats_malformed_hash_as_mismatch() -> None:
    hasher = PasswordHasher(rounds=4)

    assert hasher.verify('pw123', 'pw123') is False
