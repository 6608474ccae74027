"""Unit tests for auth/passwords.py -- bcrypt hashing and verification."""

from __future__ import annotations

import pytest

from auth.errors import HashingFailure
from auth.passwords import PasswordHasher


def test_hash_is_bcrypt_and_not_plaintext(hasher: PasswordHasher) -> None:
    hashed = hasher.hash("secret123")
    assert hashed.startswith("$2")
    assert "secret123" not in hashed


def test_same_password_hashes_differently(hasher: PasswordHasher) -> None:
    """Fresh salt per call: identical input, different output."""
    assert hasher.hash("same") != hasher.hash("same")


def test_verify_accepts_matching_password(hasher: PasswordHasher) -> None:
    assert hasher.verify("mypassword", hasher.hash("mypassword")) is True


def test_verify_rejects_wrong_and_empty_password(hasher: PasswordHasher) -> None:
    hashed = hasher.hash("mypassword")
    assert hasher.verify("wrong", hashed) is False
    assert hasher.verify("", hashed) is False


def test_verify_malformed_hash_is_false_not_error(hasher: PasswordHasher) -> None:
    assert hasher.verify("anything", "not-a-bcrypt-hash") is False


def test_cost_factor_is_embedded(hasher: PasswordHasher) -> None:
    assert hasher.hash("x").startswith("$2b$04$")
    assert PasswordHasher(rounds=5).hash("x").startswith("$2b$05$")


def test_invalid_rounds_raise_hashing_failure() -> None:
    with pytest.raises(HashingFailure):
        PasswordHasher(rounds=99).hash("password123")


def test_verify_dummy_never_raises(hasher: PasswordHasher) -> None:
    hasher.verify_dummy("whatever")
    hasher.verify_dummy("")


def test_verify_over_long_password_is_false(hasher: PasswordHasher, caplog) -> None:
    hashed = hasher.hash("mypassword")
    with caplog.at_level("WARNING", logger="wdpl.auth"):
        assert hasher.verify("é" * 40, hashed) is False
    assert "over 72 bytes" in caplog.text
    assert "could not be parsed" not in caplog.text
