"""
Hashgen Error Hierarchy

Every failure raised by the hashing core derives from HashingError. Each
error carries a numeric code for programmatic handling and an optional
details dictionary. Errors are grouped by what the caller can do about
them:

- InvalidParametersError: out-of-range cost or length values (fix inputs)
- EntropyUnavailableError: the secure random source failed (fatal for call)
- AllocationFailureError: the Argon2 workspace could not be allocated
- ParseError and its subclasses: an encoded hash string was rejected

A password that does not match is not an error; verification returns False.
"""

from typing import Any, Dict, Optional


class HashingError(Exception):
    """
    Base exception for the hashing core.

    Attributes:
        message: Human-readable description of the error
        code: Integer error code for programmatic identification
        details: Optional context (parameter name, offending value, ...)
    """

    code = 1000

    def __init__(self, message: str, code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return f"{self.message} (Code: {self.code})"


class InvalidParametersError(HashingError, ValueError):
    """Raised when a cost, length or hash-function argument is out of range."""

    code = 1001


class EntropyUnavailableError(HashingError):
    """
    Raised when the cryptographically secure random source cannot supply
    bytes. There is no fallback to a weaker generator.
    """

    code = 1002


class AllocationFailureError(HashingError, MemoryError):
    """Raised when the Argon2 memory workspace cannot be allocated."""

    code = 1003


class ParseError(HashingError, ValueError):
    """Base class for rejected encoded hash strings."""

    code = 1100


class MalformedEncodingError(ParseError):
    """
    Raised when an encoded hash is structurally invalid: wrong field
    count, non-numeric parameter, bad base64, truncated salt or key.
    """

    code = 1101


class UnsupportedAlgorithmError(ParseError):
    """Raised for an unknown algorithm tag or an unsupported version."""

    code = 1102
