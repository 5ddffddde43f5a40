import pytest
from blog_api.passwords import PasswordHasher


@pytest.fixture(scope='module')
def hasher():
    return PasswordHasher(rounds=4)


@pytest.mark.parametrize('password', ['secret1', 'p', 'correct horse battery staple', 'пароль-ünïcode'])
def test_verify_accepts_own_hash(hasher, password):
    assert hasher.verify(password, hasher.hash(password))


def test_verify_rejects_wrong_password(hasher):
    hashed = hasher.hash('secret1')
    assert not hasher.verify('secret2', hashed)
    assert not hasher.verify('', hashed)


def test_hash_is_salted(hasher):
    assert hasher.hash('secret1') != hasher.hash('secret1')
    assert 'secret1' not in hasher.hash('secret1')


@pytest.mark.parametrize('bad_hash', ['', 'not-a-hash', '$2b$04$tooshort', None])
def test_malformed_hash_is_a_mismatch(hasher, bad_hash):
    assert hasher.verify('secret1', bad_hash) is False
