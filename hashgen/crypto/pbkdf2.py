"""
PBKDF2-HMAC key derivation (RFC 8018, section 5.2).

    T_i = U_1 ^ U_2 ^ ... ^ U_c
    U_1 = HMAC(P, S || INT_32_BE(i))
    U_j = HMAC(P, U_{j-1})
    DK  = T_1 || T_2 || ... truncated to dkLen

The keyed HMAC state is computed once per call and copied for every
iteration, so the password is absorbed into the inner and outer pads only
once.
"""

import hashlib
import hmac
import logging
import struct
from typing import Optional

from ..core.memory import BytesLike, as_bytes, secure_wipe
from .errors import InvalidParametersError

logger = logging.getLogger(__name__)

HASH_FUNCTIONS = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
}

MAX_BLOCKS = 0xFFFFFFFF


def digest_size(hash_name: str) -> int:
    """Return the output size in bytes of a supported hash function."""
    try:
        return HASH_FUNCTIONS[hash_name]().digest_size
    except KeyError:
        raise InvalidParametersError(
            f"Unsupported PBKDF2 hash function: {hash_name!r}. "
            f"Must be one of {', '.join(HASH_FUNCTIONS)}",
            details={"parameter": "hash_name"},
        ) from None


def pbkdf2_hash(
    plaintext: BytesLike,
    salt: bytes,
    iterations: int,
    hash_name: str = "sha256",
    output_len: Optional[int] = None,
) -> bytes:
    """
    Derive a key with PBKDF2-HMAC.

    Args:
        plaintext: Password bytes, or a str encoded as UTF-8. May be empty.
        salt: Salt bytes
        iterations: Iteration count, at least 1
        hash_name: "sha1", "sha256" or "sha512"
        output_len: Derived key length in bytes (default: digest size)

    Returns:
        The derived key of ``output_len`` bytes

    Raises:
        InvalidParametersError: If iterations, output_len or hash_name is invalid

    Example:
        >>> pbkdf2_hash(b"password", b"salt", 1, "sha1").hex()
        '0c60c80f961f0e71f3a9b524af6012062fe037a6'
    """
    size = digest_size(hash_name)
    if output_len is None:
        output_len = size
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
        raise InvalidParametersError(
            f"iterations must be a positive integer, got {iterations!r}",
            details={"parameter": "iterations"},
        )
    if (isinstance(output_len, bool) or not isinstance(output_len, int)
            or not 1 <= output_len <= MAX_BLOCKS * size):
        raise InvalidParametersError(
            f"output_len must be an integer in [1, {MAX_BLOCKS * size}], got {output_len!r}",
            details={"parameter": "output_len"},
        )

    password = as_bytes(plaintext)
    salt = as_bytes(salt, "salt")
    logger.debug(f"PBKDF2-HMAC-{hash_name.upper()} derivation: i={iterations}, len={output_len}")

    keyed = hmac.new(password, digestmod=HASH_FUNCTIONS[hash_name])

    def prf(message: bytes) -> bytes:
        mac = keyed.copy()
        mac.update(message)
        return mac.digest()

    blocks = bytearray()
    try:
        for index in range(1, -(-output_len // size) + 1):
            u = prf(salt + struct.pack(">I", index))
            accumulator = int.from_bytes(u, "big")
            for _ in range(iterations - 1):
                u = prf(u)
                accumulator ^= int.from_bytes(u, "big")
            blocks += accumulator.to_bytes(size, "big")
        return bytes(blocks[:output_len])
    finally:
        secure_wipe(blocks)
