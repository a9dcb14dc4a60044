#!/usr/bin/env python3
"""Tests for password hashing and bearer tokens."""

from garage.auth import decode_token, hash_password, sign_token, verify_password

KEY = "test-secret-key-that-is-long-enough"


class TestPasswords:
    """Tests for hash_password / verify_password."""

    def test_round_trip(self):
        hashed = hash_password("secret")
        assert hashed != "secret"
        assert verify_password("secret", hashed)
        assert not verify_password("wrong", hashed)

    def test_garbage_hash(self):
        assert not verify_password("secret", "not-a-bcrypt-hash")


class TestTokens:
    """Tests for sign_token / decode_token."""

    def test_round_trip(self):
        token = sign_token("account-1", KEY)
        assert decode_token(token, KEY) == "account-1"

    def test_wrong_secret(self):
        token = sign_token("account-1", KEY)
        assert decode_token(token, "another-secret-key-that-is-long-enough") is None

    def test_expired(self):
        token = sign_token("account-1", KEY, exp_seconds=-1)
        assert decode_token(token, KEY) is None

    def test_malformed(self):
        assert decode_token("not.a.token", KEY) is None
