"""Unit tests for auth/hasher.py -- bcrypt hashing and verification."""

import pytest

from auth.hasher import DEFAULT_ROUNDS, CredentialHasher


def test_verify_accepts_original_password(hasher):
    hashed = hasher.hash("secret123")
    assert hasher.verify("secret123", hashed) is True


def test_verify_rejects_wrong_password(hasher):
    hashed = hasher.hash("secret123")
    assert hasher.verify("secret124", hashed) is False


def test_hash_is_salted(hasher):
    """Two hashes of the same password must differ, and both must verify."""
    first = hasher.hash("secret123")
    second = hasher.hash("secret123")
    assert first != second
    assert hasher.verify("secret123", first)
    assert hasher.verify("secret123", second)


def test_hash_never_contains_plaintext(hasher):
    assert "secret123" not in hasher.hash("secret123")


def test_cost_factor_embedded_in_hash(hasher):
    assert hasher.hash("pw").startswith("$2b$04$")


def test_default_cost_factor_is_ten():
    assert DEFAULT_ROUNDS == 10


def test_malformed_hash_returns_false(hasher):
    """A corrupted stored hash must not raise -- it simply fails to verify."""
    assert hasher.verify("secret123", "not-a-bcrypt-hash") is False
    assert hasher.verify("secret123", "") is False


def test_dummy_verify_does_not_raise():
    CredentialHasher(rounds=4).dummy_verify("anything")


def test_hash_refuses_password_over_72_bytes(hasher):
    with pytest.raises(ValueError):
        hasher.hash("é" * 37)
    assert hasher.hash("é" * 36).startswith("$2b$")


def test_verify_rejects_password_over_72_bytes(hasher):
    """bcrypt 4.x would compare only the first 72 bytes; never accept that."""
    hashed = hasher.hash("a" * 72)
    assert hasher.verify("a" * 72, hashed) is True
    assert hasher.verify("a" * 73, hashed) is False
