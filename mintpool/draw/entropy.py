"""Derivation of per-draw seeds from the persistent secret and public context."""

from __future__ import annotations

import base64
import hashlib

from .rng import ChaChaStream, SEED_SIZE

DOMAIN_SEPARATOR = b"mintpool:prng-seed:v1"
_U64_MAX = (1 << 64) - 1


def hash_entropy(entropy: str) -> bytes:
    """Turn the administrator-supplied entropy string into the persistent secret.

    Parameters
    ----------
    entropy : str
        Free-form string provided at initialization.

    Returns
    -------
    bytes
        32-byte SHA-256 digest of the domain separator followed by the
        base64-encoded entropy.
    """
    if not isinstance(entropy, str):
        raise TypeError("entropy must be a string")
    encoded = base64.b64encode(entropy.encode("utf-8"))
    return hashlib.sha256(DOMAIN_SEPARATOR + encoded).digest()


def keyed_prf(secret: bytes, message: bytes) -> bytes:
    """Return 32 bytes of ChaCha20 output keyed by ``sha256(secret || message)``."""
    key = hashlib.sha256(bytes(secret) + bytes(message)).digest()
    return ChaChaStream(key).read(SEED_SIZE)


def _u64_be(value: int, name: str) -> bytes:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an integer")
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"{name} must fit in an unsigned 64-bit integer")
    return value.to_bytes(8, "big")


def draw_context(
    secret: bytes,
    *,
    block_height: int,
    block_time: int,
    requester: str,
    index: int,
) -> bytes:
    """Concatenate the public context mixed into a draw seed.

    Layout: block height (8 bytes, big-endian), block time (8 bytes,
    big-endian), requester identity (UTF-8), the secret again, then the
    1-based batch index as decimal text.
    """
    if index < 1:
        raise ValueError("index is 1-based")
    return b"".join(
        [
            _u64_be(block_height, "block_height"),
            _u64_be(block_time, "block_time"),
            requester.encode("utf-8"),
            bytes(secret),
            str(index).encode("ascii"),
        ]
    )


def derive_seed(
    secret: bytes,
    *,
    block_height: int,
    block_time: int,
    requester: str,
    index: int,
) -> bytes:
    """Return the 32-byte seed for the ``index``-th draw of a request.

    The same inputs always give the same seed. Without ``secret`` the output
    cannot be computed from the public context alone.
    """
    if len(secret) != SEED_SIZE:
        raise ValueError(f"secret must be exactly {SEED_SIZE} bytes")
    context = draw_context(
        secret,
        block_height=block_height,
        block_time=block_time,
        requester=requester,
        index=index,
    )
    return keyed_prf(secret, context)


__all__ = [
    "DOMAIN_SEPARATOR",
    "derive_seed",
    "draw_context",
    "hash_entropy",
    "keyed_prf",
]
