"""
Secure salt generation.

Salts come from the operating system's CSPRNG through the secrets module.
A failing source is fatal for the call: the generator never falls back to
a general-purpose pseudo-random generator.
"""

import logging
import secrets
from typing import Callable

from .errors import EntropyUnavailableError, InvalidParametersError

logger = logging.getLogger(__name__)

# Salt length used by the original hash page for Argon2
DEFAULT_SALT_LENGTH = 16


class SaltGenerator:
    """
    Produces cryptographically secure random salts.

    The random source is injectable so callers can route entropy through
    their own provider. It must accept a length and return that many bytes.

    Example:
        >>> generator = SaltGenerator()
        >>> salt = generator.generate(16)
        >>> len(salt)
        16
    """

    def __init__(self, source: Callable[[int], bytes] = secrets.token_bytes):
        self._source = source

    def generate(self, length: int = DEFAULT_SALT_LENGTH) -> bytes:
        """
        Generate ``length`` random bytes.

        Raises:
            InvalidParametersError: If length is not a positive integer
            EntropyUnavailableError: If the source fails or returns short
        """
        if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
            raise InvalidParametersError(
                f"Salt length must be a positive integer, got {length!r}",
                details={"parameter": "salt_len"},
            )

        try:
            salt = self._source(length)
        except (OSError, NotImplementedError) as e:
            logger.error(f"Secure random source failed: {e}")
            raise EntropyUnavailableError(f"Secure random source unavailable: {e}") from e

        received = len(salt) if isinstance(salt, (bytes, bytearray)) else 0
        if received != length:
            logger.error("Secure random source returned a short or invalid read")
            raise EntropyUnavailableError(
                f"Secure random source returned {received} of {length} requested bytes"
            )

        return bytes(salt)


_default_generator = SaltGenerator()


def generate_salt(length: int = DEFAULT_SALT_LENGTH) -> bytes:
    """Generate a salt with the process-wide default generator."""
    return _default_generator.generate(length)
