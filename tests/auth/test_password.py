"""Tests for password hashing and validation."""

import pytest

from photohunt.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("secret123")
        assert hashed.startswith("$argon2id$")
        assert verify_password("secret123", hashed)

    def test_wrong_password(self):
        assert not verify_password("wrong-one", hash_password("secret123"))

    def test_garbage_hash_does_not_raise(self):
        assert not verify_password("secret123", "not-a-hash")

    def test_salted(self):
        assert hash_password("secret123") != hash_password("secret123")

    def test_fresh_hash_needs_no_rehash(self):
        assert not check_needs_rehash(hash_password("secret123"))


class TestValidation:
    def test_accepts_minimum_length(self):
        validate_password_strength("abcdef")

    def test_too_short(self):
        with pytest.raises(PasswordStrengthError, match="at least 6"):
            validate_password_strength("abc")

    def test_too_long(self):
        with pytest.raises(PasswordStrengthError, match="must not exceed"):
            validate_password_strength("x" * 129)

    def test_blank(self):
        with pytest.raises(PasswordStrengthError, match="empty"):
            validate_password_strength("      ")
