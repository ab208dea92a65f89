"""
Unit Tests for Hashgen Encoded Hash Strings

Tests for serializing and parsing the ``$tag$params$salt$key`` format,
including the error kinds raised for malformed and unsupported input.
"""

import pytest

from hashgen.crypto.encoding import SCHEMES, EncodedHash, b64encode, encode_hash, parse_hash
from hashgen.crypto.errors import (
    InvalidParametersError,
    MalformedEncodingError,
    ParseError,
    UnsupportedAlgorithmError,
)

SALT = bytes(range(16))
KEY = bytes(range(100, 132))
ARGON2_ENCODED = f"$argon2id$v=19$m=19456,t=2,p=1${b64encode(SALT)}${b64encode(KEY)}"


class TestEncodeHash:
    """Test cases for encode_hash."""

    def test_argon2id_layout(self):
        encoded = encode_hash("argon2id", {"m": 19456, "t": 2, "p": 1}, SALT, KEY)

        assert encoded == ARGON2_ENCODED

    def test_pbkdf2_layout(self):
        encoded = encode_hash("pbkdf2-sha256", {"i": 10000}, b"salt", b"key")

        assert encoded == "$pbkdf2-sha256$i=10000$c2FsdA$a2V5"

    def test_base64_is_unpadded(self):
        encoded = encode_hash("pbkdf2-sha512", {"i": 1}, b"s", b"k")

        assert "=" not in encoded.split("$", 3)[3]

    def test_params_in_canonical_order(self):
        """Test that parameters are written m, t, p whatever the input order."""
        encoded = encode_hash("argon2id", {"p": 1, "t": 2, "m": 19456}, SALT, KEY)

        assert encoded == ARGON2_ENCODED

    def test_unknown_algorithm(self):
        with pytest.raises(UnsupportedAlgorithmError):
            encode_hash("scrypt", {"n": 16384}, SALT, KEY)

    def test_unsupported_version(self):
        with pytest.raises(UnsupportedAlgorithmError):
            encode_hash("argon2id", {"m": 64, "t": 1, "p": 1}, SALT, KEY, version=16)

    @pytest.mark.parametrize("params", [
        {"m": 64, "t": 1},
        {"m": 64, "t": 1, "p": 1, "x": 0},
        {"m": -1, "t": 1, "p": 1},
        {"m": "64", "t": 1, "p": 1},
    ])
    def test_invalid_params(self, params):
        with pytest.raises(InvalidParametersError):
            encode_hash("argon2id", params, SALT, KEY)

    def test_short_argon2_salt(self):
        with pytest.raises(InvalidParametersError):
            encode_hash("argon2id", {"m": 64, "t": 1, "p": 1}, b"short", KEY)


class TestParseHash:
    """Test cases for parse_hash."""

    def test_parse_argon2id(self):
        parsed = parse_hash(ARGON2_ENCODED)

        assert parsed.algorithm == "argon2id"
        assert parsed.version == 19
        assert parsed.params == {"m": 19456, "t": 2, "p": 1}
        assert parsed.salt == SALT
        assert parsed.derived_key == KEY

    def test_parse_pbkdf2(self):
        parsed = parse_hash("$pbkdf2-sha1$i=4096$c2FsdA$a2V5")

        assert parsed.algorithm == "pbkdf2-sha1"
        assert parsed.version is None
        assert parsed.params == {"i": 4096}
        assert parsed.salt == b"salt"
        assert parsed.derived_key == b"key"

    def test_leading_separator_optional(self):
        assert parse_hash(ARGON2_ENCODED[1:]) == parse_hash(ARGON2_ENCODED)

    def test_reencode_is_identical(self):
        assert parse_hash(ARGON2_ENCODED).encode() == ARGON2_ENCODED

    @pytest.mark.parametrize("encoded", [
        "",
        "$",
        "garbage",
        "argon2id",
        "$argon2id$v=19$m=64,t=1,p=1$c29tZXNhbHQ",
        "$argon2id$m=64,t=1,p=1$c29tZXNhbHQ$a2V5a2V5",
        "$argon2id$v=19$m=64,t=1,p=1$c29tZXNhbHQ$a2V5a2V5$extra",
        "$argon2id$x=19$m=64,t=1,p=1$c29tZXNhbHQ$a2V5a2V5",
        "$argon2id$v=nineteen$m=64,t=1,p=1$c29tZXNhbHQ$a2V5a2V5",
        "$argon2id$v=19$m=64,t=1$c29tZXNhbHQ$a2V5a2V5",
        "$argon2id$v=19$m=64,t=1,p=1,x=2$c29tZXNhbHQ$a2V5a2V5",
        "$argon2id$v=19$m=64,m=64,t=1,p=1$c29tZXNhbHQ$a2V5a2V5",
        "$argon2id$v=19$m=-64,t=1,p=1$c29tZXNhbHQ$a2V5a2V5",
        "$argon2id$v=19$m,t=1,p=1$c29tZXNhbHQ$a2V5a2V5",
        "$argon2id$v=19$m=64,t=1,p=1$c29t*XNhbHQ$a2V5a2V5",
        "$argon2id$v=19$m=64,t=1,p=1$c29tZXNhbHQ$a",
        "$argon2id$v=19$m=64,t=1,p=1$c2FsdA$a2V5a2V5",
        "$argon2id$v=19$m=64,t=1,p=1$c29tZXNhbHQ$a2U",
        "$pbkdf2-sha256$i=10000$$a2V5",
        "$pbkdf2-sha256$i=10000$c2FsdA$",
        "$pbkdf2-sha256$i=0x10$c2FsdA$a2V5",
        "$pbkdf2-sha256$i=1$c2FsdA==$a2V5",
        "$pbkdf2-sha256$v=1$i=10000$c2FsdA$a2V5",
    ])
    def test_malformed(self, encoded):
        with pytest.raises(MalformedEncodingError):
            parse_hash(encoded)

    @pytest.mark.parametrize("encoded", [
        "unknowntag$abc",
        "$argon2i$v=19$m=64,t=1,p=1$c29tZXNhbHQ$a2V5a2V5",
        "$argon2d$v=19$m=64,t=1,p=1$c29tZXNhbHQ$a2V5a2V5",
        "$scrypt$ln=16,r=8,p=1$c2FsdA$a2V5",
        "$pbkdf2-md5$i=1000$c2FsdA$a2V5",
        "$argon2id$v=16$m=64,t=1,p=1$c29tZXNhbHQ$a2V5a2V5",
    ])
    def test_unsupported(self, encoded):
        with pytest.raises(UnsupportedAlgorithmError):
            parse_hash(encoded)

    @pytest.mark.parametrize("encoded", [None, 42, b"$pbkdf2-sha256$i=1$c2FsdA$a2V5"])
    def test_non_string(self, encoded):
        with pytest.raises(MalformedEncodingError):
            parse_hash(encoded)

    def test_errors_share_base_class(self):
        """Test that both parse error kinds are ParseErrors and ValueErrors."""
        for encoded in ("garbage", "unknowntag$abc"):
            with pytest.raises(ParseError):
                parse_hash(encoded)
            with pytest.raises(ValueError):
                parse_hash(encoded)


class TestSchemes:
    """Test cases for the scheme registry."""

    def test_registered_tags(self):
        assert set(SCHEMES) == {"argon2id", "pbkdf2-sha1", "pbkdf2-sha256", "pbkdf2-sha512"}

    def test_field_counts(self):
        assert SCHEMES["argon2id"].field_count == 5
        assert SCHEMES["pbkdf2-sha256"].field_count == 4

    def test_encoded_hash_equality(self):
        first = EncodedHash("pbkdf2-sha256", {"i": 1}, b"salt", b"key")
        second = EncodedHash("pbkdf2-sha256", {"i": 1}, b"salt", b"key")

        assert first == second
        assert hash(first) == hash(second)
