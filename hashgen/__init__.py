"""
Hashgen Python Package

Password hashing core for the hash generator: plaintext in, encoded
Argon2id or PBKDF2 hash out, and verification of plaintexts against
previously encoded hashes.

Subpackages:
    crypto: Salt generation, Argon2id, PBKDF2 and the encoded hash format
    core: Configuration and secure memory handling
    cli: Command line interface

Version: 1.0.0
"""

from . import crypto
from . import core

__all__ = ['crypto', 'core']

__version__ = "1.0.0"
