"""Seed a development minter database with sample inventory."""

import argparse
import json
from pathlib import Path
from typing import Optional

from mintpool.db.engine import get_sessionmaker, make_engine
from mintpool.messages import (
    ContractRef,
    ExecutionContext,
    InitializeMinter,
    ItemRecord,
    RevenueShare,
    Trait,
)
from mintpool.models import Base
from mintpool.workflows import (
    initialize_minter,
    preload_items,
    set_issuance_target,
    update_sale_mode,
)

ADMIN = "admin-dev"
SAMPLE_SIZE = 50


def sample_items(count: int) -> list[ItemRecord]:
    return [
        ItemRecord(
            item_id=str(n),
            img_url=f"https://assets.example.com/items/{n}.gif",
            attributes=(Trait(value="dev", trait_type="Batch"),),
        )
        for n in range(1, count + 1)
    ]


def load_items(path: Path) -> list[ItemRecord]:
    """Read item records from a JSON list in the ``load_metadata`` format."""
    with path.open(encoding="utf-8") as fh:
        return [ItemRecord.from_json(entry) for entry in json.load(fh)]


def main(argv: Optional[list[str]] = None) -> None:
    """Seed the development database with an open public sale."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--items",
        type=Path,
        help=f"JSON file of item records (default: {SAMPLE_SIZE} generated samples)",
    )
    args = parser.parse_args(argv)
    items = load_items(args.items) if args.items else sample_items(SAMPLE_SIZE)

    engine = make_engine()

    # Drop and recreate all tables.
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    env = ExecutionContext(
        caller=ADMIN,
        block_height=1,
        block_time=1_700_000_000,
        contract_address="minter-dev",
        contract_code_hash="minter-dev-hash",
    )

    with Session.begin() as session:
        initialize_minter(
            session,
            env,
            InitializeMinter(
                payment_asset=ContractRef("payment-dev", "payment-dev-hash"),
                entropy="development entropy",
                unit_price=1_000_000,
                max_per_request=5,
                allow_list=("user_01", "user_02"),
                revenue_split=(RevenueShare("treasury-dev", 1_000_000),),
            ),
        )
        preload_items(session, env, items)
        set_issuance_target(session, env, ContractRef("issuance-dev", "issuance-dev-hash"))
        update_sale_mode(session, env, allow_list_enabled=True, public_enabled=True)

    print(f"Development database seeded with {len(items)} items.")


if __name__ == "__main__":
    main()
