#!/usr/bin/env python3
"""
Hashgen Secure Memory Module

This module provides the memory hygiene used by the hashing core: a
scoped workspace for the Argon2 memory matrix, zeroization of mutable
buffers, and constant-time comparison of derived keys.

The module addresses three concerns:

1. Keeping Sensitive State Out of Swap:
   The Argon2 workspace holds values derived from the password. Where the
   platform allows it, the workspace pages are locked with mlock (Linux,
   macOS) or VirtualLock (Windows). Locking is best-effort: resource
   limits commonly forbid it, and hashing proceeds without it.

2. Zeroization on Every Exit Path:
   SecureWorkspace is a context manager. Its buffer is overwritten with
   zeros when the with-block exits, whether it returns or raises, so
   cleanup never depends on garbage collection timing.

3. Constant-Time Comparison:
   secure_compare() delegates to the constant-time comparison shipped with
   the cryptography package, so comparing a recomputed key against a stored
   one does not leak the position of the first differing byte.

Note:
    Immutable bytes objects cannot be wiped in place. Intermediate values
    are kept in bytearrays or numpy arrays wherever the core controls them.
"""

# ============================================================================
# Import Statements
# ============================================================================

import ctypes          # Foreign Function Interface for mlock/VirtualLock
import logging
import platform        # System information for platform detection
from typing import Optional, Union

import numpy as np
from cryptography.hazmat.primitives import constant_time

from ..crypto.errors import AllocationFailureError

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview, str]


# ============================================================================
# Platform Detection
# ============================================================================

PLATFORM = platform.system().lower()

IS_LINUX = PLATFORM == "linux"
IS_MACOS = PLATFORM == "darwin"
IS_WINDOWS = PLATFORM == "windows"


def _load_libc() -> Optional[ctypes.CDLL]:
    try:
        return ctypes.CDLL("libc.so.6" if IS_LINUX else "libc.dylib")
    except OSError as e:
        logger.debug(f"libc not available for memory locking: {e}")
        return None


def _lock_memory(array: np.ndarray) -> bool:
    """
    Lock the pages backing ``array`` in physical RAM.

    Returns:
        True if the pages were locked, False otherwise
    """
    address = ctypes.c_void_p(array.ctypes.data)
    size = ctypes.c_size_t(array.nbytes)
    try:
        if IS_LINUX or IS_MACOS:
            libc = _load_libc()
            return libc is not None and libc.mlock(address, size) == 0
        if IS_WINDOWS:
            return bool(ctypes.windll.kernel32.VirtualLock(address, size))
    except (OSError, AttributeError) as e:
        logger.warning(f"Could not lock workspace memory: {e}")
    return False


def _unlock_memory(array: np.ndarray) -> None:
    address = ctypes.c_void_p(array.ctypes.data)
    size = ctypes.c_size_t(array.nbytes)
    try:
        if IS_LINUX or IS_MACOS:
            libc = _load_libc()
            if libc is not None:
                libc.munlock(address, size)
        elif IS_WINDOWS:
            ctypes.windll.kernel32.VirtualUnlock(address, size)
    except (OSError, AttributeError) as e:
        logger.warning(f"Could not unlock workspace memory: {e}")


# ============================================================================
# Secure Memory Functions
# ============================================================================


def as_bytes(value: BytesLike, name: str = "plaintext") -> bytes:
    """Return ``value`` as bytes; str is encoded as UTF-8."""
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"{name} must be str or bytes-like, got {type(value).__name__}")


def secure_wipe(buffer: Union[bytearray, memoryview, np.ndarray, bytes, None]) -> None:
    """
    Overwrite a mutable buffer with zeros in place.

    Args:
        buffer: A bytearray, writable memoryview or numpy array. Immutable
            bytes and None are accepted and left untouched, since bytes
            cannot be modified in place.

    Example:
        >>> buffer = bytearray(b"secret")
        >>> secure_wipe(buffer)
        >>> buffer
        bytearray(b'\\x00\\x00\\x00\\x00\\x00\\x00')
    """
    if buffer is None or isinstance(buffer, bytes):
        return
    if isinstance(buffer, np.ndarray):
        buffer.fill(0)
    elif isinstance(buffer, memoryview):
        view = buffer.cast("B")
        view[:] = bytes(view.nbytes)
    else:
        buffer[:] = bytes(len(buffer))


def secure_compare(a: bytes, b: bytes) -> bool:
    """
    Compare two byte sequences in constant time.

    The running time does not depend on where the first differing byte
    occurs. Sequences of different length compare unequal; length is not
    secret for derived keys.

    Example:
        >>> secure_compare(b"key", b"key")
        True
        >>> secure_compare(b"key", b"kez")
        False
    """
    return constant_time.bytes_eq(bytes(a), bytes(b))


# ============================================================================
# Secure Workspace Class
# ============================================================================

class SecureWorkspace:
    """
    Context manager for a zero-initialized 2-D numpy matrix that is wiped
    on exit.

    The Argon2 memory matrix is allocated here as ``rows`` blocks of
    ``columns`` unsigned 64-bit words. On exit from the with-block, on
    explicit wipe(), or as a last resort on garbage collection, the matrix
    is zero-filled and its pages are unlocked.

    Attributes:
        array: The underlying numpy matrix
        locked: Whether the pages were successfully locked in RAM

    Example:
        >>> with SecureWorkspace(8, 128) as workspace:
        ...     workspace.array[0, 0] = 42
        >>> int(workspace.array.sum())
        0

    Raises:
        AllocationFailureError: If the matrix cannot be allocated
    """

    def __init__(self, rows: int, columns: int, dtype=np.uint64):
        try:
            self._array = np.zeros((rows, columns), dtype=dtype)
        except (MemoryError, ValueError) as e:
            logger.error(f"Could not allocate {rows}x{columns} workspace: {e}")
            raise AllocationFailureError(
                f"Could not allocate workspace of {rows} blocks",
                details={"rows": rows, "columns": columns},
            ) from e

        self._locked = _lock_memory(self._array)
        self._wiped = False
        logger.debug(f"Allocated {self._array.nbytes} byte workspace (locked={self._locked})")

    def __enter__(self) -> "SecureWorkspace":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.wipe()
        return False

    def __del__(self):
        # Safety net only; the context manager is the real cleanup path
        if getattr(self, "_array", None) is not None:
            self.wipe()

    @property
    def array(self) -> np.ndarray:
        return self._array

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def wiped(self) -> bool:
        return self._wiped

    def wipe(self) -> None:
        """Zero the matrix and release the page lock. Safe to call twice."""
        if self._wiped:
            return
        secure_wipe(self._array)
        if self._locked:
            _unlock_memory(self._array)
            self._locked = False
        self._wiped = True
