import pytest

from breachcheck.validation import (
    InvalidEmailError,
    hash_email,
    is_valid_email,
    sanitize_email,
    validate_and_hash_email,
)

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


@pytest.mark.parametrize(
    "email",
    [
        "user@example.com",
        "first.last+tag@sub.example.com",
        "User_Name%x@Example.COM",
    ],
)
def test_valid_addresses(email):
    assert is_valid_email(email) is True


@pytest.mark.parametrize(
    "email",
    [
        "",
        "a@",
        "user@example",
        "user@example.c",
        "no-at-sign.example.com",
        "user@@example.com",
        "user name@example.com",
        "user@example.com\n",
        "user@example.com1",
    ],
)
def test_invalid_addresses(email):
    assert is_valid_email(email) is False


def test_length_boundary():
    suffix = "@example.com"
    longest = "a" * (254 - len(suffix)) + suffix
    assert len(longest) == 254
    assert is_valid_email(longest) is True
    assert is_valid_email("a" + longest) is False


def test_sanitize_lowercases_trims_and_drops_nulls():
    assert sanitize_email("  User@Example.COM\t") == "user@example.com"
    assert sanitize_email("us\x00er@example.com") == "user@example.com"


def test_hash_of_empty_input_is_sha256_of_nothing():
    assert hash_email("") == EMPTY_SHA256
    assert hash_email("   ") == EMPTY_SHA256


def test_hash_is_hex_digest_and_normalised():
    digest = hash_email("user@example.com")
    assert len(digest) == 64
    assert set(digest) <= set("0123456789abcdef")
    assert hash_email("  USER@Example.com ") == digest
    assert hash_email("other@example.com") != digest


def test_validate_and_hash_returns_hash_of_sanitised_address():
    assert validate_and_hash_email(" USER@Example.com ") == hash_email("user@example.com")


@pytest.mark.parametrize("email", ["", "not-an-email", "user@example", "  @example.com "])
def test_validate_and_hash_rejects_invalid(email):
    with pytest.raises(InvalidEmailError):
        validate_and_hash_email(email)


def test_invalid_email_error_is_value_error():
    with pytest.raises(ValueError):
        validate_and_hash_email("bad")