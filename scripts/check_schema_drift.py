"""Compare the live minter schema with the ORM models.

Exit status is 0 when they match, 1 when differences exist and 2 when the
database cannot be inspected.
"""

from __future__ import annotations

import sys

from alembic.autogenerate import compare_metadata
from alembic.runtime.migration import MigrationContext

from mintpool.db.engine import make_engine
from mintpool.models import Base


def schema_diffs(engine) -> list:
    with engine.connect() as connection:
        context = MigrationContext.configure(
            connection=connection,
            opts={"compare_type": True, "compare_server_default": True},
        )
        return compare_metadata(context, Base.metadata)


def main() -> int:
    engine = make_engine()
    where = engine.url.render_as_string(hide_password=True)
    try:
        diffs = schema_diffs(engine)
    except Exception as exc:
        print(f"Cannot inspect {where}: {exc}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()

    if not diffs:
        print(f"{where}: minter schema is up to date.")
        return 0
    print(f"{where}: {len(diffs)} difference(s) from the models:")
    for diff in diffs:
        print(f"  {diff}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
