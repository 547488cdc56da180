from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..errors import PreconditionFailed


class AllowListStatus(enum.Enum):
    UNLISTED = "unlisted"
    ELIGIBLE_UNUSED = "eligible-unused"
    ELIGIBLE_USED = "eligible-used"


class AllowListEntry(Base):
    """Pre-approved identity and whether its privileged allocation was used."""

    __tablename__ = "allow_list_entries"

    address: Mapped[str] = mapped_column(String(255), primary_key=True)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<AllowListEntry(address={self.address}, used={self.used})>"

    @classmethod
    def register(cls, session: Session, addresses: Iterable[str]) -> int:
        """Add an unused entry per distinct address; returns how many were added."""
        added = 0
        seen: set[str] = set()
        for address in addresses:
            if address in seen or session.get(cls, address) is not None:
                continue
            seen.add(address)
            session.add(cls(address=address, used=False))
            added += 1
        return added

    @classmethod
    def status(cls, session: Session, address: str) -> AllowListStatus:
        entry = session.get(cls, address)
        if entry is None:
            return AllowListStatus.UNLISTED
        return entry.state

    @property
    def state(self) -> AllowListStatus:
        if self.used:
            return AllowListStatus.ELIGIBLE_USED
        return AllowListStatus.ELIGIBLE_UNUSED

    def mark_used(self, when: Optional[datetime] = None) -> None:
        if self.used:
            raise PreconditionFailed(
                f"Allow-list entry for {self.address} has already been used"
            )
        self.used = True
        self.used_at = when or datetime.now(timezone.utc)
