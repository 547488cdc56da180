from __future__ import annotations

from sqlalchemy import Integer, LargeBinary
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..errors import NotFound


class PrngSeed(Base):
    """Persistent secret mixed into every draw. Written once at initialization."""

    __tablename__ = "prng_seeds"

    SINGLETON_ID = 1

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    seed: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)

    def __repr__(self) -> str:
        # Never expose the seed itself.
        return f"<PrngSeed(id={self.id})>"

    @classmethod
    def load(cls, session: Session) -> bytes:
        row = session.get(cls, cls.SINGLETON_ID)
        if row is None:
            raise NotFound("PRNG seed is missing")
        return row.seed
