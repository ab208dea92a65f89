"""
Unit Tests for Hashgen Password Hashing

This module tests the hashers, the unified PasswordHashGenerator and the
function-level hash/verify API, including interoperability with
argon2-cffi.
"""

import pytest
from argon2 import PasswordHasher

from hashgen.core.config import Argon2Parameters, HashingConfig, PBKDF2Parameters
from hashgen.crypto.encoding import parse_hash
from hashgen.crypto.errors import (
    EntropyUnavailableError,
    InvalidParametersError,
    MalformedEncodingError,
    UnsupportedAlgorithmError,
)
from hashgen.crypto.kdf import (
    Argon2Hasher,
    HashAlgorithm,
    PasswordHashGenerator,
    PBKDF2Hasher,
    argon2_encode_and_hash,
    argon2_verify,
    pbkdf2_encode_and_hash,
    pbkdf2_verify,
)
from hashgen.crypto.salt import SaltGenerator

FAST_ARGON2 = dict(memory_cost_kib=64, time_cost=1, parallelism=1)


class TestHashAlgorithm:
    """Test cases for the HashAlgorithm enum."""

    def test_values_are_tags(self):
        assert [a.value for a in HashAlgorithm] == ["argon2id", "pbkdf2-sha1", "pbkdf2-sha256", "pbkdf2-sha512"]

    def test_hash_name(self):
        assert HashAlgorithm.ARGON2ID.hash_name is None
        assert HashAlgorithm.PBKDF2_SHA512.hash_name == "sha512"

    def test_for_pbkdf2(self):
        assert HashAlgorithm.for_pbkdf2("sha1") is HashAlgorithm.PBKDF2_SHA1

        with pytest.raises(InvalidParametersError):
            HashAlgorithm.for_pbkdf2("md5")


class TestArgon2Functions:
    """Test cases for argon2_encode_and_hash and argon2_verify."""

    def test_encoded_layout(self):
        encoded = argon2_encode_and_hash("password", **FAST_ARGON2)

        assert encoded.startswith("$argon2id$v=19$m=64,t=1,p=1$")
        parsed = parse_hash(encoded)
        assert len(parsed.salt) == 16
        assert len(parsed.derived_key) == 32

    def test_custom_lengths(self):
        parsed = parse_hash(argon2_encode_and_hash("password", salt_len=24, output_len=48, **FAST_ARGON2))

        assert len(parsed.salt) == 24
        assert len(parsed.derived_key) == 48

    def test_verify_round_trip(self):
        encoded = argon2_encode_and_hash("password", **FAST_ARGON2)

        assert argon2_verify("password", encoded) is True
        assert argon2_verify(b"password", encoded) is True

    def test_near_miss_plaintexts_rejected(self, near_miss_plaintexts):
        """Test that every single-character variant fails verification."""
        plaintext, variants = near_miss_plaintexts
        encoded = argon2_encode_and_hash(plaintext, **FAST_ARGON2)

        assert argon2_verify(plaintext, encoded)
        for variant in variants:
            assert argon2_verify(variant, encoded) is False, variant

    def test_empty_plaintext(self):
        encoded = argon2_encode_and_hash("", **FAST_ARGON2)

        assert argon2_verify("", encoded)
        assert not argon2_verify(" ", encoded)

    def test_fresh_salt_every_call(self):
        encodings = {argon2_encode_and_hash("password", **FAST_ARGON2) for _ in range(5)}

        assert len(encodings) == 5
        assert len({parse_hash(e).salt for e in encodings}) == 5

    def test_verify_uses_stored_parameters(self):
        """Test that verification recomputes with the costs in the string."""
        encoded = argon2_encode_and_hash("password", memory_cost_kib=96, time_cost=2, parallelism=3, output_len=20)

        assert argon2_verify("password", encoded)

    def test_tampered_key_rejected(self):
        encoded = argon2_encode_and_hash("password", **FAST_ARGON2)
        parsed = parse_hash(encoded)
        tampered = parsed.__class__(
            parsed.algorithm, parsed.params, parsed.salt,
            bytes([parsed.derived_key[0] ^ 1]) + parsed.derived_key[1:], parsed.version,
        )

        assert not argon2_verify("password", tampered.encode())

    def test_pbkdf2_string_rejected(self):
        encoded = pbkdf2_encode_and_hash("password", iterations=10000)

        with pytest.raises(UnsupportedAlgorithmError):
            argon2_verify("password", encoded)

    def test_malformed_string_raises(self):
        with pytest.raises(MalformedEncodingError):
            argon2_verify("password", "not a hash")

    @pytest.mark.parametrize("overrides", [
        {"memory_cost_kib": 0},
        {"time_cost": 0},
        {"parallelism": 0},
        {"output_len": 3},
        {"salt_len": 4},
    ])
    def test_invalid_parameters(self, overrides):
        with pytest.raises(InvalidParametersError):
            argon2_encode_and_hash("password", **dict(FAST_ARGON2, **overrides))


class TestPBKDF2Functions:
    """Test cases for pbkdf2_encode_and_hash and pbkdf2_verify."""

    @pytest.mark.parametrize("hash_name", ["sha1", "sha256", "sha512"])
    def test_round_trip(self, hash_name):
        encoded = pbkdf2_encode_and_hash("password", iterations=10000, hash_name=hash_name)

        assert encoded.startswith(f"$pbkdf2-{hash_name}$i=10000$")
        assert pbkdf2_verify("password", encoded)
        assert not pbkdf2_verify("passwore", encoded)

    def test_near_miss_plaintexts_rejected(self, near_miss_plaintexts):
        plaintext, variants = near_miss_plaintexts
        encoded = pbkdf2_encode_and_hash(plaintext, iterations=10000)

        for variant in variants:
            assert pbkdf2_verify(variant, encoded) is False, variant

    def test_iteration_floor(self):
        """Test that new hashes below 10,000 iterations are refused."""
        with pytest.raises(InvalidParametersError):
            pbkdf2_encode_and_hash("password", iterations=9999)

    def test_verify_accepts_low_iterations(self):
        """Test that existing hashes below the floor still verify."""
        encoded = PBKDF2Hasher(PBKDF2Parameters(iterations=1000, min_iterations=1000)).hash("password")

        assert pbkdf2_verify("password", encoded)

    def test_argon2_string_rejected(self):
        encoded = argon2_encode_and_hash("password", **FAST_ARGON2)

        with pytest.raises(UnsupportedAlgorithmError):
            pbkdf2_verify("password", encoded)

    def test_unknown_hash_function(self):
        with pytest.raises(InvalidParametersError):
            pbkdf2_encode_and_hash("password", iterations=10000, hash_name="md5")


class TestHashers:
    """Test cases for Argon2Hasher and PBKDF2Hasher."""

    def test_argon2_explicit_salt_is_deterministic(self, fast_argon2_params):
        hasher = Argon2Hasher(fast_argon2_params)

        assert hasher.hash("password", b"somesalt") == hasher.hash("password", b"somesalt")

    def test_argon2_uses_injected_salt_generator(self, fast_argon2_params):
        hasher = Argon2Hasher(fast_argon2_params, SaltGenerator(lambda length: b"\x07" * length))

        assert parse_hash(hasher.hash("password")).salt == b"\x07" * 16

    def test_entropy_failure_propagates(self, fast_argon2_params):
        def broken_source(length):
            raise OSError("no entropy")

        hasher = Argon2Hasher(fast_argon2_params, SaltGenerator(broken_source))

        with pytest.raises(EntropyUnavailableError):
            hasher.hash("password")

    def test_argon2_needs_rehash(self, fast_argon2_params):
        hasher = Argon2Hasher(fast_argon2_params)
        encoded = hasher.hash("password")

        assert not hasher.needs_rehash(encoded)
        assert Argon2Hasher(Argon2Parameters(memory_cost_kib=128, time_cost=1)).needs_rehash(encoded)
        assert hasher.needs_rehash(pbkdf2_encode_and_hash("password", iterations=10000))

    def test_pbkdf2_rejects_empty_salt(self, fast_pbkdf2_params):
        with pytest.raises(InvalidParametersError):
            PBKDF2Hasher(fast_pbkdf2_params).hash("password", b"")

    def test_pbkdf2_floor_enforced_at_construction(self):
        with pytest.raises(InvalidParametersError):
            PBKDF2Hasher(PBKDF2Parameters(iterations=5000))

    def test_pbkdf2_needs_rehash(self, fast_pbkdf2_params):
        encoded = PBKDF2Hasher(fast_pbkdf2_params).hash("password")

        assert not PBKDF2Hasher(fast_pbkdf2_params).needs_rehash(encoded)
        assert PBKDF2Hasher(PBKDF2Parameters(iterations=20000)).needs_rehash(encoded)
        assert PBKDF2Hasher(PBKDF2Parameters(iterations=10000, hash_name="sha512")).needs_rehash(encoded)


class TestPasswordHashGenerator:
    """Test cases for the unified interface."""

    @pytest.fixture
    def generator(self, fast_config):
        return PasswordHashGenerator(fast_config)

    @pytest.mark.parametrize("algorithm", list(HashAlgorithm))
    def test_hash_and_verify_each_algorithm(self, generator, algorithm):
        encoded = generator.hash("my_password", algorithm)

        assert parse_hash(encoded).algorithm == algorithm.value
        assert generator.verify("my_password", encoded)
        assert not generator.verify("my_passwore", encoded)

    def test_default_algorithm_is_argon2id(self, generator):
        assert generator.hash("password").startswith("$argon2id$")
        assert generator.recommended_algorithm() is HashAlgorithm.ARGON2ID

    def test_algorithm_by_tag(self, generator):
        assert generator.hash("password", "pbkdf2-sha512").startswith("$pbkdf2-sha512$")

    def test_str_and_bytes_equivalent(self, generator):
        encoded = generator.hash("pässword")

        assert generator.verify("pässword".encode("utf-8"), encoded)

    def test_verify_unknown_tag(self, generator):
        with pytest.raises(UnsupportedAlgorithmError):
            generator.verify("password", "$bcrypt$12$abcdefgh$ijklmnop")

    def test_needs_rehash_across_algorithms(self, generator):
        pbkdf2 = generator.hash("password", HashAlgorithm.PBKDF2_SHA256)

        assert generator.needs_rehash(pbkdf2)
        assert not generator.needs_rehash(pbkdf2, HashAlgorithm.PBKDF2_SHA256)

    def test_generate_salt(self, generator):
        assert len(generator.generate_salt()) == 16
        assert len(generator.generate_salt(32)) == 32

    def test_supported_algorithms(self, generator):
        assert generator.supported_algorithms() == list(HashAlgorithm)

    def test_default_config(self):
        assert PasswordHashGenerator().config == HashingConfig()


class TestArgon2Interoperability:
    """Encoded Argon2id strings are exchangeable with argon2-cffi."""

    def test_argon2_cffi_verifies_our_hash(self):
        encoded = argon2_encode_and_hash("interop password", memory_cost_kib=64, time_cost=2, parallelism=2)

        assert PasswordHasher().verify(encoded, "interop password")

    def test_we_verify_argon2_cffi_hash(self):
        encoded = PasswordHasher(time_cost=1, memory_cost=64, parallelism=2).hash("interop password")

        assert argon2_verify("interop password", encoded)
        assert not argon2_verify("interop passwore", encoded)
