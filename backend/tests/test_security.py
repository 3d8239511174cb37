from backend.app.security import (
    hash_password,
    hash_session_token,
    needs_rehash,
    new_session_token,
    verify_password,
)


def test_session_token_is_hashed_with_prefix():
    h = hash_session_token("abc")
    assert h.startswith("sha256:")
    assert len(h) > 10
    assert hash_session_token("abc") == h


def test_new_session_tokens_are_unique():
    assert new_session_token() != new_session_token()


def test_password_hash_roundtrip():
    h = hash_password("Demo123*")
    assert verify_password("Demo123*", h) is True
    assert verify_password("wrong-pass", h) is False
    assert needs_rehash(h) is False


def test_missing_hash_never_verifies():
    assert verify_password("Demo123*", None) is False
    assert verify_password("Demo123*", "") is False
