# Hashgen Core Module
# Configuration and secure memory handling shared by the hashing primitives
#
# This package provides:
# - Default cost parameters and JSON configuration loading (config)
# - Scoped, zeroed workspaces and constant-time comparison (memory)

from .config import Argon2Parameters, PBKDF2Parameters, HashingConfig
from .memory import SecureWorkspace, secure_compare, secure_wipe

__all__ = [
    'Argon2Parameters',
    'PBKDF2Parameters',
    'HashingConfig',
    'SecureWorkspace',
    'secure_compare',
    'secure_wipe',
]
