#!/usr/bin/env python3
"""
Hashgen Argon2id Module

A from-scratch implementation of Argon2id, version 0x13, as specified in
RFC 9106. Argon2id won the Password Hashing Competition and is the
recommended memory-hard password hashing function.

Algorithm Outline:
1. H0 = BLAKE2b-512 over the parameters, password, salt, secret and
   associated data, each length-prefixed in little-endian.
2. Memory is a matrix of ``4 * p * floor(m / 4p)`` 1 KiB blocks split into
   ``p`` lanes; each lane is split into 4 segments (slices).
3. The first two blocks of each lane are H'(H0 || i || lane).
4. Every other block is G(previous block, reference block). From the
   second pass on, the result is XOR-ed into the block it replaces.
5. The reference block is chosen from pseudo-random values that come
   from a counter-mode address generator during the first half of the
   first pass (data-independent, resisting side channels) and from the
   previous block afterwards (data-dependent, resisting time-memory
   trade-offs).
6. The tag is H' over the XOR of the last block of every lane.

Implementation Notes:
- Blocks are numpy arrays of 128 little-endian uint64 words. The
  compression function G applies the BLAKE2b round to the 8 rows and then
  the 8 columns of the block; both steps are vectorised.
- Lanes within a slice never reference each other's current segment, so
  the same block index is computed for every lane in one batch.
- The memory matrix lives in a SecureWorkspace and is zeroed before
  argon2_hash() returns or raises.

References:
- RFC 9106: Argon2 Memory-Hard Function for Password Hashing
- https://github.com/P-H-C/phc-winner-argon2
"""

import hashlib
import logging
import struct
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..core.memory import BytesLike, SecureWorkspace, as_bytes, secure_wipe
from .errors import InvalidParametersError

logger = logging.getLogger(__name__)

ARGON2_VERSION = 0x13
ARGON2ID_TYPE = 2

SYNC_POINTS = 4
BLOCK_SIZE = 1024
BLOCK_WORDS = BLOCK_SIZE // 8
ADDRESSES_PER_BLOCK = BLOCK_WORDS

MIN_OUTPUT_LENGTH = 4
MIN_SALT_LENGTH = 8
MAX_PARALLELISM = 0xFFFFFF
MAX_UINT32 = 0xFFFFFFFF

_WORD = np.dtype("<u8")
_LOW32 = np.uint64(0xFFFFFFFF)
_TWO = np.uint64(2)
_ROTATIONS = {n: (np.uint64(n), np.uint64(64 - n)) for n in (16, 24, 32, 63)}

# Column selections for the diagonal step of the BLAKE2b round
_DIAGONAL = (
    np.array([0, 1, 2, 3]),
    np.array([5, 6, 7, 4]),
    np.array([10, 11, 8, 9]),
    np.array([15, 12, 13, 14]),
)


# ============================================================================
# BLAKE2b helpers
# ============================================================================

def _le32(value: int) -> bytes:
    return struct.pack("<I", value)


def blake2b_long(data: bytes, length: int) -> bytes:
    """
    Variable-length hash H' built on BLAKE2b.

    Outputs of up to 64 bytes are a single BLAKE2b call. Longer outputs
    chain 64-byte digests, keeping the first 32 bytes of each, and finish
    with a digest sized to the remainder.
    """
    prefixed = _le32(length) + data
    if length <= 64:
        return hashlib.blake2b(prefixed, digest_size=length).digest()

    rounds = -(-length // 32) - 2
    digest = hashlib.blake2b(prefixed).digest()
    out = bytearray(digest[:32])
    for _ in range(rounds - 1):
        digest = hashlib.blake2b(digest).digest()
        out += digest[:32]
    out += hashlib.blake2b(digest, digest_size=length - 32 * rounds).digest()
    return bytes(out)


# ============================================================================
# Compression function G
# ============================================================================

def _rotr(x: np.ndarray, n: int) -> np.ndarray:
    right, left = _ROTATIONS[n]
    return (x >> right) | (x << left)


def _blamka(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    # x + y + 2 * lo32(x) * lo32(y), wrapping mod 2**64
    return x + y + _TWO * (x & _LOW32) * (y & _LOW32)


def _mix(a, b, c, d):
    a = _blamka(a, b)
    d = _rotr(d ^ a, 32)
    c = _blamka(c, d)
    b = _rotr(b ^ c, 24)
    a = _blamka(a, b)
    d = _rotr(d ^ a, 16)
    c = _blamka(c, d)
    b = _rotr(b ^ c, 63)
    return a, b, c, d


def _permute(v: np.ndarray) -> None:
    """Apply one BLAKE2b round (without message) to every row of ``v``, in place."""
    v[:, 0:4], v[:, 4:8], v[:, 8:12], v[:, 12:16] = _mix(
        v[:, 0:4], v[:, 4:8], v[:, 8:12], v[:, 12:16]
    )
    a_idx, b_idx, c_idx, d_idx = _DIAGONAL
    a, b, c, d = _mix(v[:, a_idx], v[:, b_idx], v[:, c_idx], v[:, d_idx])
    v[:, a_idx] = a
    v[:, b_idx] = b
    v[:, c_idx] = c
    v[:, d_idx] = d


def compress(prev: np.ndarray, ref: np.ndarray, current: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Compression function G over a batch of blocks.

    Args:
        prev: (n, 128) array of previous blocks
        ref: (n, 128) array of reference blocks
        current: (n, 128) array of blocks being overwritten, XOR-ed into
            the result (passes after the first), or None

    Returns:
        A new (n, 128) array
    """
    r = prev ^ ref
    out = r ^ current if current is not None else r.copy()
    n = r.shape[0]

    # Rows: words 16i .. 16i+15
    _permute(r.reshape(n * 8, 16))

    # Columns: words 2i, 2i+1, 2i+16, 2i+17, ..., 2i+112, 2i+113
    columns = r.reshape(n, 8, 8, 2).transpose(0, 2, 1, 3).reshape(n * 8, 16)
    _permute(columns)
    r = columns.reshape(n, 8, 8, 2).transpose(0, 2, 1, 3).reshape(n, BLOCK_WORDS)

    out ^= r
    return out


# ============================================================================
# Memory layout and indexing
# ============================================================================

@dataclass(frozen=True)
class _Geometry:
    lanes: int
    passes: int
    memory_blocks: int
    lane_length: int
    segment_length: int

    @classmethod
    def create(cls, memory_cost_kib: int, time_cost: int, parallelism: int) -> "_Geometry":
        memory_blocks = (memory_cost_kib // (SYNC_POINTS * parallelism)) * SYNC_POINTS * parallelism
        lane_length = memory_blocks // parallelism
        return cls(
            lanes=parallelism,
            passes=time_cost,
            memory_blocks=memory_blocks,
            lane_length=lane_length,
            segment_length=lane_length // SYNC_POINTS,
        )

    def reference_column(self, pass_no: int, slice_no: int, index: int, j1: int, same_lane: bool) -> int:
        """Map the 32-bit pseudo-random value J1 to a column of the reference lane."""
        segment = self.segment_length
        if pass_no == 0:
            if slice_no == 0:
                area = index - 1
            elif same_lane:
                area = slice_no * segment + index - 1
            else:
                area = slice_no * segment - (1 if index == 0 else 0)
        elif same_lane:
            area = self.lane_length - segment + index - 1
        else:
            area = self.lane_length - segment - (1 if index == 0 else 0)

        relative = (j1 * j1) >> 32
        relative = area - 1 - ((area * relative) >> 32)

        start = 0
        if pass_no != 0 and slice_no != SYNC_POINTS - 1:
            start = (slice_no + 1) * segment
        return (start + relative) % self.lane_length


def _next_addresses(counters: np.ndarray) -> np.ndarray:
    """Advance the address generator counter and return the next address blocks."""
    counters[:, 6] += 1
    zero = np.zeros_like(counters)
    return compress(zero, compress(zero, counters))


def _initial_hash(
    password: bytes,
    salt: bytes,
    secret: bytes,
    associated_data: bytes,
    geometry: _Geometry,
    memory_cost_kib: int,
    output_len: int,
) -> bytearray:
    h0 = hashlib.blake2b(digest_size=64)
    for value in (geometry.lanes, output_len, memory_cost_kib, geometry.passes, ARGON2_VERSION, ARGON2ID_TYPE):
        h0.update(_le32(value))
    for chunk in (password, salt, secret, associated_data):
        h0.update(_le32(len(chunk)))
        h0.update(chunk)
    return bytearray(h0.digest())


def _fill_memory(memory: np.ndarray, geometry: _Geometry) -> None:
    lanes = geometry.lanes
    lane_length = geometry.lane_length
    segment_length = geometry.segment_length
    lane_rows = np.arange(lanes) * lane_length

    for pass_no in range(geometry.passes):
        for slice_no in range(SYNC_POINTS):
            data_independent = pass_no == 0 and slice_no < SYNC_POINTS // 2
            start = 2 if pass_no == 0 and slice_no == 0 else 0

            addresses = None
            if data_independent:
                counters = np.zeros((lanes, BLOCK_WORDS), dtype=_WORD)
                counters[:, 0] = pass_no
                counters[:, 1] = np.arange(lanes)
                counters[:, 2] = slice_no
                counters[:, 3] = geometry.memory_blocks
                counters[:, 4] = geometry.passes
                counters[:, 5] = ARGON2ID_TYPE
                if start:
                    addresses = _next_addresses(counters)

            for index in range(start, segment_length):
                column = slice_no * segment_length + index
                prev_rows = lane_rows + (column - 1 if column else lane_length - 1)

                if data_independent:
                    if index % ADDRESSES_PER_BLOCK == 0:
                        addresses = _next_addresses(counters)
                    pseudo_rand: List[int] = addresses[:, index % ADDRESSES_PER_BLOCK].tolist()
                else:
                    pseudo_rand = memory[prev_rows, 0].tolist()

                ref_rows = []
                for lane, value in enumerate(pseudo_rand):
                    if pass_no == 0 and slice_no == 0:
                        ref_lane = lane
                    else:
                        ref_lane = (value >> 32) % lanes
                    ref_column = geometry.reference_column(
                        pass_no, slice_no, index, value & 0xFFFFFFFF, ref_lane == lane
                    )
                    ref_rows.append(ref_lane * lane_length + ref_column)

                current_rows = lane_rows + column
                memory[current_rows] = compress(
                    memory[prev_rows],
                    memory[ref_rows],
                    memory[current_rows] if pass_no else None,
                )


# ============================================================================
# Public API
# ============================================================================

def _check_range(name: str, value, minimum: int, maximum: int = MAX_UINT32) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not minimum <= value <= maximum:
        raise InvalidParametersError(
            f"{name} must be an integer in [{minimum}, {maximum}], got {value!r}",
            details={"parameter": name, "value": value},
        )


def validate_parameters(memory_cost_kib: int, time_cost: int, parallelism: int, output_len: int) -> None:
    """
    Check Argon2id cost parameters.

    Raises:
        InvalidParametersError: If any parameter is out of range
    """
    _check_range("parallelism", parallelism, 1, MAX_PARALLELISM)
    _check_range("time_cost", time_cost, 1)
    _check_range("output_len", output_len, MIN_OUTPUT_LENGTH)
    _check_range("memory_cost_kib", memory_cost_kib, 1)
    if memory_cost_kib < 2 * SYNC_POINTS * parallelism:
        raise InvalidParametersError(
            f"memory_cost_kib must be at least 8 * parallelism ({8 * parallelism}), "
            f"got {memory_cost_kib}",
            details={"parameter": "memory_cost_kib", "value": memory_cost_kib},
        )


def argon2_hash(
    plaintext: BytesLike,
    salt: bytes,
    memory_cost_kib: int,
    time_cost: int,
    parallelism: int,
    output_len: int,
    secret: bytes = b"",
    associated_data: bytes = b"",
) -> bytes:
    """
    Derive a key with Argon2id.

    Args:
        plaintext: Password bytes, or a str encoded as UTF-8. May be empty.
        salt: Salt of at least 8 bytes
        memory_cost_kib: Memory in KiB, at least 8 * parallelism
        time_cost: Number of passes, at least 1
        parallelism: Number of lanes, at least 1
        output_len: Derived key length in bytes, at least 4
        secret: Optional secret key (pepper), K in RFC 9106
        associated_data: Optional associated data, X in RFC 9106

    Returns:
        The derived key of ``output_len`` bytes

    Raises:
        InvalidParametersError: If a parameter is out of range
        AllocationFailureError: If the memory matrix cannot be allocated

    Example:
        >>> key = argon2_hash(b"password", b"somesalt", 64, 2, 1, 32)
        >>> len(key)
        32
    """
    validate_parameters(memory_cost_kib, time_cost, parallelism, output_len)
    password = as_bytes(plaintext)
    salt = as_bytes(salt, "salt")
    secret = as_bytes(secret, "secret")
    associated_data = as_bytes(associated_data, "associated_data")
    _check_range("salt length", len(salt), MIN_SALT_LENGTH)
    _check_range("password length", len(password), 0)
    _check_range("secret length", len(secret), 0)
    _check_range("associated data length", len(associated_data), 0)

    geometry = _Geometry.create(memory_cost_kib, time_cost, parallelism)
    logger.debug(
        f"Argon2id derivation: m={memory_cost_kib} KiB ({geometry.memory_blocks} blocks), "
        f"t={time_cost}, p={parallelism}, len={output_len}"
    )

    h0 = _initial_hash(password, salt, secret, associated_data, geometry, memory_cost_kib, output_len)
    final_block = None
    try:
        with SecureWorkspace(geometry.memory_blocks, BLOCK_WORDS, dtype=_WORD) as workspace:
            memory = workspace.array
            for lane in range(parallelism):
                row = lane * geometry.lane_length
                for i in (0, 1):
                    seed = blake2b_long(bytes(h0) + _le32(i) + _le32(lane), BLOCK_SIZE)
                    memory[row + i] = np.frombuffer(seed, dtype=_WORD)

            _fill_memory(memory, geometry)

            last_rows = np.arange(parallelism) * geometry.lane_length + geometry.lane_length - 1
            final_block = bytearray(np.bitwise_xor.reduce(memory[last_rows], axis=0).tobytes())

        return blake2b_long(bytes(final_block), output_len)
    finally:
        secure_wipe(h0)
        secure_wipe(final_block)
