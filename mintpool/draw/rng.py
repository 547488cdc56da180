"""Seeded ChaCha20 keystream generator used for every draw."""

from __future__ import annotations

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

SEED_SIZE = 32
# 4-byte block counter followed by a 12-byte nonce, all zero: the stream
# depends on the seed alone.
_ZERO_NONCE = bytes(16)
_U32_SPAN = 1 << 32


class ChaChaStream:
    """Deterministic pseudo-random stream keyed solely by a 32-byte seed.

    Successive reads continue the same keystream, so the order of calls is part
    of the output contract.
    """

    def __init__(self, seed: bytes) -> None:
        if not isinstance(seed, (bytes, bytearray)):
            raise TypeError("seed must be bytes")
        if len(seed) != SEED_SIZE:
            raise ValueError(f"seed must be exactly {SEED_SIZE} bytes")
        cipher = Cipher(algorithms.ChaCha20(bytes(seed), _ZERO_NONCE), mode=None)
        self._encryptor = cipher.encryptor()

    def read(self, size: int) -> bytes:
        """Return the next ``size`` keystream bytes."""
        if size < 0:
            raise ValueError("size must be non-negative")
        return self._encryptor.update(bytes(size))

    def next_u32(self) -> int:
        return int.from_bytes(self.read(4), "little")

    def gen_range(self, low: int, high: int) -> int:
        """Return a uniform integer in ``[low, high)``.

        Uses rejection sampling over 32-bit words so that every value in the
        range is equally likely.
        """
        span = high - low
        if span <= 0:
            raise ValueError("high must be greater than low")
        if span > _U32_SPAN:
            raise ValueError("range must fit in 32 bits")
        limit = _U32_SPAN - (_U32_SPAN % span)
        while True:
            value = self.next_u32()
            if value < limit:
                return low + value % span


__all__ = ["ChaChaStream", "SEED_SIZE"]
