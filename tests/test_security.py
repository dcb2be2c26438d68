"""Tests for bcrypt password hashing and the staff API key check."""

import pytest

from blottr.core.security import (
    MAX_PASSWORD_BYTES,
    hash_password,
    parse_api_keys,
    verify_password,
)


def test_hash_roundtrip():
    encoded = hash_password("Secret123", rounds=4)

    assert verify_password(encoded, "Secret123") is True
    assert verify_password(encoded, "secret123") is False


def test_hash_is_salted_bcrypt():
    first = hash_password("Secret123", rounds=4)

    assert first.startswith("$2b$04$")
    assert first != hash_password("Secret123", rounds=4)


def test_rounds_default_to_settings():
    # conftest sets APP_BCRYPT_ROUNDS=4
    assert hash_password("Secret123").startswith("$2b$04$")


def test_overlong_password_is_refused():
    password = "é" * (MAX_PASSWORD_BYTES // 2 + 1)

    with pytest.raises(ValueError):
        hash_password(password, rounds=4)
    assert verify_password(hash_password("Secret123", rounds=4), password) is False


@pytest.mark.parametrize("encoded", ["", "plaintext", "$2b$04$short"])
def test_malformed_hash_never_matches(encoded):
    assert verify_password(encoded, "Secret123") is False


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, set()), ("", set()), ("k1, k2 ,,k3 ", {"k1", "k2", "k3"})],
)
def test_parse_api_keys(raw, expected):
    assert parse_api_keys(raw) == expected
