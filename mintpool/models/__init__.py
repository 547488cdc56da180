from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .config import MinterConfig, RevenueSplit, MetadataEditor  # noqa: F401
from .inventory import InventoryCounter, ItemSlot  # noqa: F401
from .allowlist import AllowListEntry, AllowListStatus  # noqa: F401
from .seed import PrngSeed  # noqa: F401

__all__ = [
    "Base",
    "MinterConfig",
    "RevenueSplit",
    "MetadataEditor",
    "InventoryCounter",
    "ItemSlot",
    "AllowListEntry",
    "AllowListStatus",
    "PrngSeed",
]
