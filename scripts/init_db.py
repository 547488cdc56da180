"""Bring the minter database to the latest schema and summarize its state."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from mintpool.db.engine import get_sessionmaker, make_engine
from mintpool.models import Base, InventoryCounter, MinterConfig

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def upgrade_db(target_revision: str = "head") -> None:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(cfg, target_revision)


def describe_minter() -> list[str]:
    """Return report lines for the minter tables and singleton rows."""
    engine = make_engine()
    try:
        present = set(inspect(engine).get_table_names())
        missing = sorted(set(Base.metadata.tables) - present)
        lines = [f"Minter tables: {len(present & set(Base.metadata.tables))}"]
        if missing:
            lines.append("Missing tables: " + ", ".join(missing))
            return lines

        with get_sessionmaker(engine)() as session:
            config = MinterConfig.get(session)
            if config is None:
                lines.append("Minter not initialized yet.")
                return lines
            counter = InventoryCounter.load(session)
            target = config.issuance_target
            lines += [
                f"Admin: {config.admin}",
                f"Issuance target: {target.address if target else '-'}",
                f"Inventory: {counter.remaining}/{counter.total_loaded} undrawn",
            ]
        return lines
    finally:
        engine.dispose()


def main() -> None:
    upgrade_db()
    for line in describe_minter():
        print(line)


if __name__ == "__main__":
    main()
