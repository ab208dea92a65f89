#!/usr/bin/env python3
"""
Hashgen Password Hashing Module

This module turns a plaintext into a self-describing encoded hash and
verifies plaintexts against such hashes. It ties together salt
generation, the two key derivation functions and the encoded string
format.

Features:
- Argon2id (recommended for new hashes)
- PBKDF2-HMAC with SHA-1, SHA-256 or SHA-512 (for compatibility)
- Fresh random salt for every hash
- Constant-time comparison during verification
- Rehash detection when configured parameters are raised

Module Structure:
- HashAlgorithm: Enum of supported algorithm tags
- Argon2Hasher: Argon2id hashing with a fixed parameter set
- PBKDF2Hasher: PBKDF2 hashing with a fixed parameter set
- PasswordHashGenerator: Unified interface dispatching on the algorithm
- argon2_* / pbkdf2_*: Function-level API

Example Usage:
    >>> from hashgen.crypto.kdf import PasswordHashGenerator, HashAlgorithm
    >>> generator = PasswordHashGenerator()
    >>> encoded = generator.hash("my_password", HashAlgorithm.ARGON2ID)
    >>> generator.verify("my_password", encoded)
    True

A wrong password is reported as False. Structural problems with the
encoded string raise MalformedEncodingError or UnsupportedAlgorithmError.
"""

import logging
from enum import Enum
from typing import List, Optional

from ..core.config import Argon2Parameters, HashingConfig, PBKDF2Parameters
from ..core.memory import BytesLike, secure_compare
from .argon2id import argon2_hash
from .encoding import EncodedHash, encode_hash, parse_hash
from .errors import InvalidParametersError, UnsupportedAlgorithmError
from .pbkdf2 import pbkdf2_hash
from .salt import DEFAULT_SALT_LENGTH, SaltGenerator

logger = logging.getLogger(__name__)


class HashAlgorithm(Enum):
    """
    Supported password hashing algorithms, valued by their encoded tag.

    Usage:
        >>> HashAlgorithm.ARGON2ID.value
        'argon2id'
        >>> HashAlgorithm.for_pbkdf2("sha512")
        <HashAlgorithm.PBKDF2_SHA512: 'pbkdf2-sha512'>
    """

    ARGON2ID = "argon2id"
    PBKDF2_SHA1 = "pbkdf2-sha1"
    PBKDF2_SHA256 = "pbkdf2-sha256"
    PBKDF2_SHA512 = "pbkdf2-sha512"

    @property
    def is_pbkdf2(self) -> bool:
        return self.value.startswith("pbkdf2-")

    @property
    def hash_name(self) -> Optional[str]:
        """Digest name for PBKDF2 algorithms, None for Argon2id."""
        return self.value.split("-", 1)[1] if self.is_pbkdf2 else None

    @classmethod
    def for_pbkdf2(cls, hash_name: str) -> "HashAlgorithm":
        try:
            return cls(f"pbkdf2-{hash_name}")
        except ValueError:
            raise InvalidParametersError(f"Unsupported PBKDF2 hash function: {hash_name!r}") from None


def _parse_for(encoded: str, *algorithms: HashAlgorithm) -> EncodedHash:
    parsed = parse_hash(encoded)
    if parsed.algorithm not in {algorithm.value for algorithm in algorithms}:
        raise UnsupportedAlgorithmError(
            f"Expected {' or '.join(a.value for a in algorithms)} hash, got {parsed.algorithm}",
            details={"algorithm": parsed.algorithm},
        )
    return parsed


class Argon2Hasher:
    """
    Argon2id password hashing with a fixed parameter set.

    Default Security Parameters (see Argon2Parameters):
    - Memory Cost: 19 MiB (19456 KiB)
    - Time Cost: 2 passes over memory
    - Parallelism: 1 lane
    - Output: 32 bytes, with a 16-byte salt

    Usage:
        >>> hasher = Argon2Hasher(Argon2Parameters(memory_cost_kib=64, time_cost=1))
        >>> encoded = hasher.hash("my_password")
        >>> hasher.verify("my_password", encoded)
        True
    """

    def __init__(self, params: Optional[Argon2Parameters] = None, salt_generator: Optional[SaltGenerator] = None):
        self._params = params or Argon2Parameters()
        self._salts = salt_generator or SaltGenerator()

    @property
    def params(self) -> Argon2Parameters:
        return self._params

    def derive(self, plaintext: BytesLike, salt: bytes) -> bytes:
        """Derive the raw key for ``plaintext`` and ``salt`` with the configured costs."""
        p = self._params
        return argon2_hash(plaintext, salt, p.memory_cost_kib, p.time_cost, p.parallelism, p.hash_len)

    def hash(self, plaintext: BytesLike, salt: Optional[bytes] = None) -> str:
        """
        Hash ``plaintext`` and return the encoded string.

        Args:
            plaintext: The password; str is encoded as UTF-8
            salt: Optional salt; a fresh one of ``salt_len`` bytes is
                generated when omitted

        Raises:
            EntropyUnavailableError: If no salt could be generated
            InvalidParametersError: If the supplied salt is too short
        """
        if salt is None:
            salt = self._salts.generate(self._params.salt_len)
        p = self._params
        return encode_hash(
            HashAlgorithm.ARGON2ID.value,
            {"m": p.memory_cost_kib, "t": p.time_cost, "p": p.parallelism},
            salt,
            self.derive(plaintext, salt),
        )

    def verify(self, plaintext: BytesLike, encoded: str) -> bool:
        """
        Check ``plaintext`` against an encoded Argon2id hash.

        The hash is recomputed with the parameters stored in ``encoded``,
        not with this hasher's parameters.
        """
        return argon2_verify(plaintext, encoded)

    def needs_rehash(self, encoded: str) -> bool:
        """True if ``encoded`` was not produced with this hasher's parameters."""
        parsed = parse_hash(encoded)
        if parsed.algorithm != HashAlgorithm.ARGON2ID.value:
            return True
        p = self._params
        return (
            parsed.params != {"m": p.memory_cost_kib, "t": p.time_cost, "p": p.parallelism}
            or len(parsed.derived_key) != p.hash_len
        )


class PBKDF2Hasher:
    """
    PBKDF2-HMAC password hashing with a fixed parameter set.

    New hashes are refused below the policy floor (``min_iterations``,
    10,000 by default). Verification accepts any iteration count, so
    older hashes keep working until they are rehashed.

    Usage:
        >>> hasher = PBKDF2Hasher(PBKDF2Parameters(iterations=10000, hash_name="sha512"))
        >>> encoded = hasher.hash("my_password")
        >>> encoded.startswith("$pbkdf2-sha512$i=10000$")
        True
    """

    def __init__(self, params: Optional[PBKDF2Parameters] = None, salt_generator: Optional[SaltGenerator] = None):
        self._params = params or PBKDF2Parameters()
        self._salts = salt_generator or SaltGenerator()

        if self._params.iterations < self._params.min_iterations:
            raise InvalidParametersError(
                f"Iterations must be at least {self._params.min_iterations}, "
                f"got {self._params.iterations}",
                details={"parameter": "iterations"},
            )

    @property
    def params(self) -> PBKDF2Parameters:
        return self._params

    @property
    def algorithm(self) -> HashAlgorithm:
        return HashAlgorithm.for_pbkdf2(self._params.hash_name)

    def derive(self, plaintext: BytesLike, salt: bytes) -> bytes:
        p = self._params
        return pbkdf2_hash(plaintext, salt, p.iterations, p.hash_name, p.hash_len)

    def hash(self, plaintext: BytesLike, salt: Optional[bytes] = None) -> str:
        """Hash ``plaintext`` and return the encoded string."""
        if salt is None:
            salt = self._salts.generate(self._params.salt_len)
        elif not salt:
            raise InvalidParametersError("Salt must not be empty")
        return encode_hash(self.algorithm.value, {"i": self._params.iterations}, salt, self.derive(plaintext, salt))

    def verify(self, plaintext: BytesLike, encoded: str) -> bool:
        return pbkdf2_verify(plaintext, encoded)

    def needs_rehash(self, encoded: str) -> bool:
        parsed = parse_hash(encoded)
        return (
            parsed.algorithm != self.algorithm.value
            or parsed.params["i"] < self._params.iterations
            or len(parsed.derived_key) != self._params.hash_len
        )


class PasswordHashGenerator:
    """
    Unified password hashing interface.

    Holds one hasher per algorithm, configured from a HashingConfig, and
    routes verification by the tag of the encoded string.

    Usage:
        >>> generator = PasswordHashGenerator()
        >>> encoded = generator.hash("password", HashAlgorithm.PBKDF2_SHA256)
        >>> generator.verify("password", encoded)
        True
        >>> generator.verify("wrong", encoded)
        False
    """

    def __init__(self, config: Optional[HashingConfig] = None, salt_generator: Optional[SaltGenerator] = None):
        self._config = config or HashingConfig()
        self._salts = salt_generator or SaltGenerator()
        self._argon2 = Argon2Hasher(self._config.argon2, self._salts)

    @property
    def config(self) -> HashingConfig:
        return self._config

    def _hasher(self, algorithm: HashAlgorithm):
        if algorithm is HashAlgorithm.ARGON2ID:
            return self._argon2
        params = self._config.pbkdf2
        if params.hash_name != algorithm.hash_name:
            params = PBKDF2Parameters(
                iterations=params.iterations,
                hash_name=algorithm.hash_name,
                hash_len=params.hash_len,
                salt_len=params.salt_len,
                min_iterations=params.min_iterations,
            )
        return PBKDF2Hasher(params, self._salts)

    def hash(self, plaintext: BytesLike, algorithm: HashAlgorithm = HashAlgorithm.ARGON2ID) -> str:
        """Hash ``plaintext`` with ``algorithm`` and the configured parameters."""
        algorithm = HashAlgorithm(algorithm)
        encoded = self._hasher(algorithm).hash(plaintext)
        logger.debug(f"Produced {algorithm.value} hash")
        return encoded

    def verify(self, plaintext: BytesLike, encoded: str) -> bool:
        """Verify ``plaintext`` against an encoded hash of any supported algorithm."""
        parsed = parse_hash(encoded)
        if parsed.algorithm == HashAlgorithm.ARGON2ID.value:
            return _verify_argon2(plaintext, parsed)
        return _verify_pbkdf2(plaintext, parsed)

    def needs_rehash(self, encoded: str, algorithm: HashAlgorithm = HashAlgorithm.ARGON2ID) -> bool:
        """True if ``encoded`` should be replaced by a fresh hash under ``algorithm``."""
        return self._hasher(HashAlgorithm(algorithm)).needs_rehash(encoded)

    def generate_salt(self, length: int = DEFAULT_SALT_LENGTH) -> bytes:
        return self._salts.generate(length)

    def recommended_algorithm(self) -> HashAlgorithm:
        return HashAlgorithm.ARGON2ID

    def supported_algorithms(self) -> List[HashAlgorithm]:
        return list(HashAlgorithm)


# ============================================================================
# Function-level API
# ============================================================================

def _verify_argon2(plaintext: BytesLike, parsed: EncodedHash) -> bool:
    params = parsed.params
    candidate = argon2_hash(plaintext, parsed.salt, params["m"], params["t"], params["p"], len(parsed.derived_key))
    return secure_compare(candidate, parsed.derived_key)


def _verify_pbkdf2(plaintext: BytesLike, parsed: EncodedHash) -> bool:
    hash_name = HashAlgorithm(parsed.algorithm).hash_name
    candidate = pbkdf2_hash(plaintext, parsed.salt, parsed.params["i"], hash_name, len(parsed.derived_key))
    return secure_compare(candidate, parsed.derived_key)


def argon2_encode_and_hash(
    plaintext: BytesLike,
    salt_len: int = DEFAULT_SALT_LENGTH,
    memory_cost_kib: int = Argon2Parameters.memory_cost_kib,
    time_cost: int = Argon2Parameters.time_cost,
    parallelism: int = Argon2Parameters.parallelism,
    output_len: int = Argon2Parameters.hash_len,
) -> str:
    """
    Hash ``plaintext`` with Argon2id under a freshly generated salt.

    Returns:
        Encoded string ``$argon2id$v=19$m=..,t=..,p=..$<salt>$<key>``

    Raises:
        InvalidParametersError: If a cost or length is out of range
        EntropyUnavailableError: If no salt could be generated
        AllocationFailureError: If the memory workspace cannot be allocated
    """
    params = Argon2Parameters(
        memory_cost_kib=memory_cost_kib,
        time_cost=time_cost,
        parallelism=parallelism,
        hash_len=output_len,
        salt_len=salt_len,
    )
    return Argon2Hasher(params).hash(plaintext)


def argon2_verify(plaintext: BytesLike, encoded: str) -> bool:
    """
    Verify ``plaintext`` against an encoded Argon2id hash.

    Returns:
        True on match, False on mismatch

    Raises:
        MalformedEncodingError: If ``encoded`` is structurally invalid
        UnsupportedAlgorithmError: If ``encoded`` is not an Argon2id hash
    """
    return _verify_argon2(plaintext, _parse_for(encoded, HashAlgorithm.ARGON2ID))


def pbkdf2_encode_and_hash(
    plaintext: BytesLike,
    salt_len: int = DEFAULT_SALT_LENGTH,
    iterations: int = PBKDF2Parameters.iterations,
    hash_name: str = PBKDF2Parameters.hash_name,
    output_len: int = PBKDF2Parameters.hash_len,
) -> str:
    """
    Hash ``plaintext`` with PBKDF2-HMAC under a freshly generated salt.

    Returns:
        Encoded string ``$pbkdf2-<hash>$i=<iterations>$<salt>$<key>``

    Raises:
        InvalidParametersError: If iterations is below the policy floor or
            another parameter is invalid
        EntropyUnavailableError: If no salt could be generated
    """
    params = PBKDF2Parameters(iterations=iterations, hash_name=hash_name, hash_len=output_len, salt_len=salt_len)
    return PBKDF2Hasher(params).hash(plaintext)


def pbkdf2_verify(plaintext: BytesLike, encoded: str) -> bool:
    """
    Verify ``plaintext`` against an encoded PBKDF2 hash of any supported digest.

    Raises:
        MalformedEncodingError: If ``encoded`` is structurally invalid
        UnsupportedAlgorithmError: If ``encoded`` is not a PBKDF2 hash
    """
    pbkdf2 = [algorithm for algorithm in HashAlgorithm if algorithm.is_pbkdf2]
    return _verify_pbkdf2(plaintext, _parse_for(encoded, *pbkdf2))


__all__ = [
    "HashAlgorithm",
    "Argon2Hasher",
    "PBKDF2Hasher",
    "PasswordHashGenerator",
    "argon2_hash",
    "argon2_encode_and_hash",
    "argon2_verify",
    "pbkdf2_hash",
    "pbkdf2_encode_and_hash",
    "pbkdf2_verify",
]
