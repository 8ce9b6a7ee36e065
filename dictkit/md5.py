"""MD5 message digest."""

from __future__ import annotations

import math
import struct

_SHIFTS = (
    (7, 12, 17, 22),
    (5, 9, 14, 20),
    (4, 11, 16, 23),
    (6, 10, 15, 21),
)
_CONSTANTS = tuple(int(abs(math.sin(i + 1)) * 2**32) & 0xFFFFFFFF for i in range(64))
_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476)
_MASK = 0xFFFFFFFF


def _rotl(x: int, n: int) -> int:
    x &= _MASK
    return ((x << n) | (x >> (32 - n))) & _MASK


def _message_index(step: int) -> int:
    rnd, i = divmod(step, 16)
    if rnd == 0:
        return i
    if rnd == 1:
        return (1 + 5 * i) % 16
    if rnd == 2:
        return (5 + 3 * i) % 16
    return (7 * i) % 16


def _mix(step: int, b: int, c: int, d: int) -> int:
    rnd = step // 16
    if rnd == 0:
        return (b & c) | (~b & d)
    if rnd == 1:
        return (b & d) | (c & ~d)
    if rnd == 2:
        return b ^ c ^ d
    return c ^ (b | (~d & _MASK))


def _transform(state: tuple, block: bytes) -> tuple:
    x = struct.unpack("<16I", block)
    a, b, c, d = state
    for step in range(64):
        f = _mix(step, b, c, d) & _MASK
        shift = _SHIFTS[step // 16][step % 4]
        total = a + f + x[_message_index(step)] + _CONSTANTS[step]
        a, d, c, b = d, c, b, (b + _rotl(total, shift)) & _MASK
    return tuple((s + v) & _MASK for s, v in zip(state, (a, b, c, d)))


class MD5:
    """Incremental MD5 hash with a ``hashlib``-like interface."""

    digest_size = 16
    block_size = 64
    name = "md5"

    def __init__(self, data=b""):
        self._state = _INITIAL_STATE
        self._length = 0
        self._pending = b""
        if data:
            self.update(data)

    def update(self, data) -> None:
        """Feed more bytes into the hash."""
        data = bytes(data)
        self._length += len(data)
        buffer = self._pending + data
        full = len(buffer) - len(buffer) % 64
        state = self._state
        for offset in range(0, full, 64):
            state = _transform(state, buffer[offset:offset + 64])
        self._state = state
        self._pending = buffer[full:]

    def digest(self) -> bytes:
        """Return the 16-byte digest of the data fed so far."""
        bit_length = (self._length * 8) & 0xFFFFFFFFFFFFFFFF
        pad_len = (55 - self._length) % 64 + 1
        tail = self._pending + b"\x80" + b"\x00" * (pad_len - 1)
        tail += struct.pack("<Q", bit_length)
        state = self._state
        for offset in range(0, len(tail), 64):
            state = _transform(state, tail[offset:offset + 64])
        return struct.pack("<4I", *state)

    def hexdigest(self) -> str:
        """Return the digest as a lowercase hexadecimal string."""
        return self.digest().hex()

    def copy(self) -> "MD5":
        """Return an independent copy of the current hash state."""
        clone = MD5()
        clone._state = self._state
        clone._length = self._length
        clone._pending = self._pending
        return clone


def md5(data=b"") -> MD5:
    """Return a new MD5 object, optionally fed with ``data``."""
    return MD5(data)