"""Seeded draw-without-replacement over the preloaded inventory."""

from .engine import Draw, DrawEngine, InventoryStaging, pick
from .entropy import derive_seed, hash_entropy, keyed_prf
from .rng import ChaChaStream

__all__ = [
    "ChaChaStream",
    "Draw",
    "DrawEngine",
    "InventoryStaging",
    "derive_seed",
    "hash_entropy",
    "keyed_prf",
    "pick",
]
