"""initial minter schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "minter_config",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("admin", sa.String(length=255), nullable=False),
        sa.Column("payment_asset_address", sa.String(length=255), nullable=False),
        sa.Column("payment_asset_code_hash", sa.String(length=255), nullable=False),
        sa.Column("issuance_address", sa.String(length=255), nullable=True),
        sa.Column("issuance_code_hash", sa.String(length=255), nullable=True),
        sa.Column("unit_price", sa.BigInteger(), nullable=False),
        sa.Column("max_per_request", sa.Integer(), nullable=False),
        sa.Column("allow_list_enabled", sa.Boolean(), nullable=False),
        sa.Column("public_enabled", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "unit_price >= 0", name=op.f("ck_minter_config_unit_price_non_negative")
        ),
        sa.CheckConstraint(
            "max_per_request >= 1",
            name=op.f("ck_minter_config_max_per_request_positive"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_minter_config")),
    )
    op.create_table(
        "revenue_splits",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("config_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("percentage", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "percentage >= 0 AND percentage <= 1000000",
            name=op.f("ck_revenue_splits_percentage_range"),
        ),
        sa.ForeignKeyConstraint(
            ["config_id"],
            ["minter_config.id"],
            name=op.f("fk_revenue_splits_config_id_minter_config"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_revenue_splits")),
    )
    op.create_index(
        op.f("ix_revenue_splits_config_id"), "revenue_splits", ["config_id"]
    )
    op.create_table(
        "metadata_editors",
        sa.Column("id", _ID, autoincrement=True, nullable=False),
        sa.Column("config_id", sa.Integer(), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(
            ["config_id"],
            ["minter_config.id"],
            name=op.f("fk_metadata_editors_config_id_minter_config"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_metadata_editors")),
        sa.UniqueConstraint(
            "config_id", "address", name=op.f("uq_metadata_editors_config_id")
        ),
    )
    op.create_index(
        op.f("ix_metadata_editors_config_id"), "metadata_editors", ["config_id"]
    )
    op.create_table(
        "inventory_counters",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("total_loaded", sa.Integer(), nullable=False),
        sa.Column("remaining", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "remaining >= 0 AND remaining <= total_loaded",
            name=op.f("ck_inventory_counters_remaining_range"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_inventory_counters")),
    )
    op.create_table(
        "inventory_slots",
        sa.Column("slot", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("item_id", sa.String(length=255), nullable=False),
        sa.Column("img_url", sa.Text(), nullable=False),
        sa.Column("attributes", sa.JSON(), nullable=True),
        sa.Column("priv_attributes", sa.JSON(), nullable=True),
        sa.Column("hidden_attributes", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("slot", name=op.f("pk_inventory_slots")),
    )
    op.create_table(
        "allow_list_entries",
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("address", name=op.f("pk_allow_list_entries")),
    )
    op.create_table(
        "prng_seeds",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("seed", sa.LargeBinary(length=32), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_prng_seeds")),
    )


def downgrade() -> None:
    op.drop_table("prng_seeds")
    op.drop_table("allow_list_entries")
    op.drop_table("inventory_slots")
    op.drop_table("inventory_counters")
    op.drop_index(op.f("ix_metadata_editors_config_id"), table_name="metadata_editors")
    op.drop_table("metadata_editors")
    op.drop_index(op.f("ix_revenue_splits_config_id"), table_name="revenue_splits")
    op.drop_table("revenue_splits")
    op.drop_table("minter_config")
