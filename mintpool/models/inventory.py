"""Slot-addressed inventory of preloaded items and its counters."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from sqlalchemy import JSON, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..errors import NotFound, PreconditionFailed
from ..messages import ItemRecord, Trait

logger = logging.getLogger(__name__)


def _traits_column(traits: Optional[Sequence[Trait]]) -> Optional[list[dict]]:
    return None if traits is None else [t.to_json() for t in traits]


def _traits_value(data: Optional[list[dict[str, Any]]]) -> Optional[tuple[Trait, ...]]:
    return None if data is None else tuple(Trait.from_json(d) for d in data)


class ItemSlot(Base):
    """Dense 1-based storage position holding one :class:`ItemRecord`.

    Draws relocate the last undrawn record into the drawn slot, so the row for
    a slot changes content over time but is never deleted.
    """

    __tablename__ = "inventory_slots"

    slot: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    item_id: Mapped[str] = mapped_column(String(255), nullable=False)
    img_url: Mapped[str] = mapped_column(Text, nullable=False)
    attributes: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    priv_attributes: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    hidden_attributes: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<ItemSlot(slot={self.slot}, item_id={self.item_id})>"

    @classmethod
    def load(cls, session: Session, slot: int) -> "ItemSlot":
        row = session.get(cls, slot)
        if row is None:
            raise NotFound(f"Inventory slot {slot} has never been loaded")
        return row

    @classmethod
    def from_record(cls, slot: int, record: ItemRecord) -> "ItemSlot":
        row = cls(slot=slot, item_id=record.item_id, img_url=record.img_url)
        row.assign(record)
        return row

    def assign(self, record: ItemRecord) -> None:
        """Overwrite this slot with ``record``."""
        self.item_id = record.item_id
        self.img_url = record.img_url
        self.attributes = _traits_column(record.attributes)
        self.priv_attributes = _traits_column(record.priv_attributes)
        self.hidden_attributes = _traits_column(record.hidden_attributes)

    def to_record(self) -> ItemRecord:
        return ItemRecord(
            item_id=self.item_id,
            img_url=self.img_url,
            attributes=_traits_value(self.attributes),
            priv_attributes=_traits_value(self.priv_attributes),
            hidden_attributes=_traits_value(self.hidden_attributes),
        )


class InventoryCounter(Base):
    """Counters of the inventory pool.

    ``total_loaded`` grows with each preload; ``remaining`` shrinks with each
    draw. Slots ``1..remaining`` always hold undrawn records.
    """

    __tablename__ = "inventory_counters"

    SINGLETON_ID = 1

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    total_loaded: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "remaining >= 0 AND remaining <= total_loaded", name="remaining_range"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryCounter(total_loaded={self.total_loaded}, "
            f"remaining={self.remaining})>"
        )

    @classmethod
    def load(cls, session: Session) -> "InventoryCounter":
        counter = session.get(cls, cls.SINGLETON_ID)
        if counter is None:
            raise NotFound("Inventory counter is missing")
        return counter

    @property
    def drawn(self) -> int:
        return self.total_loaded - self.remaining

    def preload(self, session: Session, items: Sequence[ItemRecord]) -> list[int]:
        """Append ``items`` to the pool and return the slots they occupy.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        items : Sequence[ItemRecord]
            Records to store, in order.

        Returns
        -------
        list[int]
            Slot numbers assigned to ``items``.

        Raises
        ------
        PreconditionFailed
            If any draw has already happened. Draws relocate records below
            ``remaining``, so appending afterwards would duplicate or strand
            records.
        """
        if self.drawn > 0:
            raise PreconditionFailed(
                "Items cannot be preloaded once drawing has started"
            )

        slots: list[int] = []
        for record in items:
            slot = self.total_loaded + 1
            session.add(ItemSlot.from_record(slot, record))
            self.total_loaded = slot
            slots.append(slot)
        self.remaining = self.total_loaded
        logger.debug("Preloaded %d items, pool size now %d", len(slots), self.remaining)
        return slots
