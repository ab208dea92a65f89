"""
Hashgen Cryptographic Primitives.

Modules:
    errors: Exception hierarchy shared by every primitive
    salt: Cryptographically secure salt generation
    argon2id: Argon2id memory-hard key derivation (RFC 9106)
    pbkdf2: PBKDF2-HMAC key derivation (RFC 8018)
    encoding: Self-describing encoded hash strings (PHC format)
    kdf: Hashing and verification front end

Usage:
    >>> from hashgen.crypto import argon2_encode_and_hash, argon2_verify
    >>> encoded = argon2_encode_and_hash("password", memory_cost_kib=64, time_cost=1)
    >>> argon2_verify("password", encoded)
    True

    >>> from hashgen.crypto import PasswordHashGenerator, HashAlgorithm
    >>> generator = PasswordHashGenerator()
    >>> encoded = generator.hash("password", HashAlgorithm.PBKDF2_SHA256)
"""

from .errors import (
    HashingError,
    InvalidParametersError,
    EntropyUnavailableError,
    AllocationFailureError,
    ParseError,
    MalformedEncodingError,
    UnsupportedAlgorithmError,
)
from .salt import SaltGenerator, generate_salt
from .encoding import EncodedHash, encode_hash, parse_hash
from .kdf import (
    HashAlgorithm,
    Argon2Hasher,
    PBKDF2Hasher,
    PasswordHashGenerator,
    argon2_hash,
    argon2_encode_and_hash,
    argon2_verify,
    pbkdf2_hash,
    pbkdf2_encode_and_hash,
    pbkdf2_verify,
)

__all__ = [
    # Errors
    "HashingError",
    "InvalidParametersError",
    "EntropyUnavailableError",
    "AllocationFailureError",
    "ParseError",
    "MalformedEncodingError",
    "UnsupportedAlgorithmError",
    # Salt generation
    "SaltGenerator",
    "generate_salt",
    # Encoded hash format
    "EncodedHash",
    "encode_hash",
    "parse_hash",
    # Hashing
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
