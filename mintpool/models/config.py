"""Singleton minter configuration and its administrator-managed lists."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base, ROW_ID
from ..db.utils import dt_iso
from ..errors import InvalidRequest, NotConfigured, PreconditionFailed, Unauthorized
from ..messages import ContractRef, RevenueShare

FULL_PERCENTAGE = 1_000_000


class MinterConfig(Base):
    """Administrator-controlled settings of the minter.

    Exactly one row exists once the minter has been initialized. Both sale
    modes start disabled and no issuance target is set.
    """

    __tablename__ = "minter_config"

    SINGLETON_ID = 1

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    admin: Mapped[str] = mapped_column(String(255), nullable=False)
    payment_asset_address: Mapped[str] = mapped_column(String(255), nullable=False)
    payment_asset_code_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    issuance_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    issuance_code_hash: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    unit_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """Price per item in the smallest denomination of the payment asset."""

    max_per_request: Mapped[int] = mapped_column(Integer, nullable=False)
    allow_list_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    public_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    revenue_splits: Mapped[list["RevenueSplit"]] = relationship(
        back_populates="config",
        cascade="all, delete-orphan",
        order_by="RevenueSplit.position",
    )
    metadata_editors: Mapped[list["MetadataEditor"]] = relationship(
        back_populates="config",
        cascade="all, delete-orphan",
        order_by="MetadataEditor.id",
    )

    __table_args__ = (
        CheckConstraint("unit_price >= 0", name="unit_price_non_negative"),
        CheckConstraint("max_per_request >= 1", name="max_per_request_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<MinterConfig(admin={self.admin}, allow_list_enabled={self.allow_list_enabled}, "
            f"public_enabled={self.public_enabled}, unit_price={self.unit_price})>"
        )

    @classmethod
    def get(cls, session: Session) -> Optional["MinterConfig"]:
        return session.get(cls, cls.SINGLETON_ID)

    @classmethod
    def load(cls, session: Session) -> "MinterConfig":
        """Return the configuration row or raise :class:`NotConfigured`."""
        config = cls.get(session)
        if config is None:
            raise NotConfigured("Minter has not been initialized")
        return config

    @property
    def payment_asset(self) -> ContractRef:
        return ContractRef(self.payment_asset_address, self.payment_asset_code_hash)

    @property
    def issuance_target(self) -> Optional[ContractRef]:
        if self.issuance_address is None or self.issuance_code_hash is None:
            return None
        return ContractRef(self.issuance_address, self.issuance_code_hash)

    @property
    def minting_enabled(self) -> bool:
        return self.allow_list_enabled or self.public_enabled

    def require_admin(self, caller: str) -> None:
        if caller != self.admin:
            raise Unauthorized("Only admin can execute this action!")

    def update_sale_mode(
        self,
        allow_list_enabled: bool,
        public_enabled: bool,
        unit_price: Optional[int] = None,
        max_per_request: Optional[int] = None,
    ) -> None:
        """Overwrite both mode flags and, when given, the price and cap."""
        if unit_price is not None and unit_price < 0:
            raise InvalidRequest("unit_price must be non-negative")
        if max_per_request is not None and max_per_request < 1:
            raise InvalidRequest("max_per_request must be at least 1")

        self.allow_list_enabled = allow_list_enabled
        self.public_enabled = public_enabled
        if unit_price is not None:
            self.unit_price = unit_price
        if max_per_request is not None:
            self.max_per_request = max_per_request

    def set_issuance_target(self, contract: ContractRef) -> None:
        if self.minting_enabled:
            raise PreconditionFailed("Mint should be stopped to perform this")
        self.issuance_address = contract.address
        self.issuance_code_hash = contract.code_hash

    def replace_revenue_splits(self, shares: Sequence[RevenueShare]) -> None:
        total = 0
        for share in shares:
            if not 0 <= share.percentage <= FULL_PERCENTAGE:
                raise InvalidRequest(
                    f"Revenue share for {share.address} is out of range: {share.percentage}"
                )
            total += share.percentage
        if total > FULL_PERCENTAGE:
            raise InvalidRequest(f"Revenue shares exceed 100%: {total}")

        self.revenue_splits = [
            RevenueSplit(address=share.address, percentage=share.percentage, position=idx)
            for idx, share in enumerate(shares)
        ]

    def replace_metadata_editors(self, addresses: Sequence[str]) -> None:
        unique: list[str] = []
        for address in addresses:
            if address not in unique:
                unique.append(address)
        # Keep surviving rows; the flush inserts before it deletes orphans.
        existing = {e.address: e for e in self.metadata_editors}
        self.metadata_editors = [
            existing.get(a) or MetadataEditor(address=a) for a in unique
        ]

    def to_json(self) -> dict:
        target = self.issuance_target
        return {
            "admin": self.admin,
            "payment_asset": self.payment_asset.to_json(),
            "issuance_target": target.to_json() if target else None,
            "unit_price": str(self.unit_price),
            "max_per_request": self.max_per_request,
            "allow_list_enabled": self.allow_list_enabled,
            "public_enabled": self.public_enabled,
            "revenue_split": [
                {"address": s.address, "percentage": s.percentage}
                for s in self.revenue_splits
            ],
            "metadata_editors": [e.address for e in self.metadata_editors],
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }


class RevenueSplit(Base):
    """Revenue recipient with a weight in millionths."""

    __tablename__ = "revenue_splits"

    id: Mapped[int] = mapped_column(ROW_ID, primary_key=True, autoincrement=True)
    config_id: Mapped[int] = mapped_column(
        ForeignKey("minter_config.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    percentage: Mapped[int] = mapped_column(Integer, nullable=False)

    config: Mapped["MinterConfig"] = relationship(back_populates="revenue_splits")

    __table_args__ = (
        CheckConstraint(
            f"percentage >= 0 AND percentage <= {FULL_PERCENTAGE}",
            name="percentage_range",
        ),
    )


class MetadataEditor(Base):
    """Identity allowed to edit metadata of issued items later on."""

    __tablename__ = "metadata_editors"

    id: Mapped[int] = mapped_column(ROW_ID, primary_key=True, autoincrement=True)
    config_id: Mapped[int] = mapped_column(
        ForeignKey("minter_config.id", ondelete="CASCADE"), nullable=False, index=True
    )
    address: Mapped[str] = mapped_column(String(255), nullable=False)

    config: Mapped["MinterConfig"] = relationship(back_populates="metadata_editors")

    __table_args__ = (UniqueConstraint("config_id", "address"),)
