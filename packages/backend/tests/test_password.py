"""Password verifier tests.

Learn: bcrypt salts every hash, so equality of digests is never the
check — verify_password is. Malformed digests are a False, not a crash.
"""

import pytest

from quill.auth.password import PasswordHashingError, hash_password, verify_password


def test_hash_then_verify():
    digest = hash_password("secret1")
    assert digest.startswith("$2")
    assert verify_password("secret1", digest) is True


def test_same_password_hashes_differently():
    assert hash_password("secret1") != hash_password("secret1")


def test_wrong_password_is_false():
    digest = hash_password("secret1")
    assert verify_password("secret2", digest) is False
    assert verify_password("", digest) is False


@pytest.mark.parametrize("digest", ["", "not-a-hash", "$2b$04$tooshort", "salt$abcdef"])
def test_malformed_digest_is_false(digest):
    assert verify_password("secret1", digest) is False


def test_unicode_password():
    digest = hash_password("pässwörd-✓")
    assert verify_password("pässwörd-✓", digest)
    assert not verify_password("passwort-✓", digest)


def test_rounds_parameter_is_encoded_in_digest():
    digest = hash_password("secret1", rounds=5)
    assert digest.split("$")[2] == "05"


def test_hashing_backend_failure_is_an_error_not_false():
    # bcrypt refuses a cost below 4
    with pytest.raises(PasswordHashingError):
        hash_password("secret1", rounds=2)


def test_unencodable_password_is_a_hashing_error():
    with pytest.raises(PasswordHashingError):
        hash_password("secret\ud800")


def test_unencodable_password_never_verifies():
    assert verify_password("secret\ud800", hash_password("secret1")) is False
