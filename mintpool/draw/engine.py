"""Draw-without-replacement engine over the slot-addressed inventory."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from .rng import ChaChaStream
from ..errors import InventoryExhausted
from ..messages import ItemRecord
from ..models.inventory import InventoryCounter, ItemSlot

SECONDARY_MIN = 1
SECONDARY_MAX = 100


@dataclass(frozen=True)
class Draw:
    """Value object describing one draw.

    Attributes
    ----------
    slot : int
        1-based slot the record was drawn from.
    record : ItemRecord
        The drawn item.
    secondary : int
        Secondary random attribute in ``[1, 100]``.
    """

    slot: int
    record: ItemRecord
    secondary: int


def pick(seed: bytes, remaining: int) -> tuple[int, int]:
    """Return ``(slot, secondary)`` for a pool of ``remaining`` items.

    The slot is ``next_u32 % remaining + 1``; the secondary attribute comes
    from the same stream right after it.
    """
    if remaining <= 0:
        raise InventoryExhausted("All tokens have been minted")
    rng = ChaChaStream(seed)
    slot = rng.next_u32() % remaining + 1
    secondary = rng.gen_range(SECONDARY_MIN, SECONDARY_MAX + 1)
    return slot, secondary


class InventoryStaging:
    """Buffered view of the inventory used for a single request.

    Reads fall through to the session; writes and the shrinking ``remaining``
    count stay in memory until :meth:`commit`. Discarding the object discards
    every staged change.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._counter = InventoryCounter.load(session)
        self.remaining = self._counter.remaining
        self._writes: dict[int, ItemRecord] = {}

    def read(self, slot: int) -> ItemRecord:
        staged = self._writes.get(slot)
        if staged is not None:
            return staged
        return ItemSlot.load(self._session, slot).to_record()

    def write(self, slot: int, record: ItemRecord) -> None:
        self._writes[slot] = record

    def commit(self) -> None:
        """Apply staged relocations and the new counter to the session."""
        for slot, record in sorted(self._writes.items()):
            ItemSlot.load(self._session, slot).assign(record)
        self._counter.remaining = self.remaining
        self._writes.clear()


class DrawEngine:
    """Selects items uniformly from the undrawn pool and removes them.

    Each draw swaps the last undrawn record into the drawn slot, so slots
    ``1..remaining`` stay densely populated and no record can be drawn twice.
    """

    def __init__(self, staging: InventoryStaging) -> None:
        self._staging = staging

    @property
    def remaining(self) -> int:
        return self._staging.remaining

    def draw(self, seed: bytes) -> Draw:
        """Draw one item using ``seed``.

        Raises
        ------
        InventoryExhausted
            If the pool is empty.
        NotFound
            If a slot inside the pool has no stored record.
        """
        remaining = self._staging.remaining
        slot, secondary = pick(seed, remaining)

        record = self._staging.read(slot)
        if slot != remaining:
            self._staging.write(slot, self._staging.read(remaining))
        self._staging.remaining = remaining - 1

        return Draw(slot=slot, record=record, secondary=secondary)


__all__ = ["Draw", "DrawEngine", "InventoryStaging", "pick"]
