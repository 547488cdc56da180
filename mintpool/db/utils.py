import re
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional

# "sqlite:///./x.db" or "sqlite+pysqlite:///./x.db"
_RELATIVE_SQLITE = re.compile(r"^(sqlite(?:\+\w+)?:///)\./(.+)$")


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Anchor a relative SQLite path at ``project_root``.

    Driver-qualified URLs keep their driver. In-memory and non-SQLite URLs
    are returned unchanged.
    """
    match = _RELATIVE_SQLITE.match(url)
    if match is None:
        return url
    scheme, rel = match.groups()
    return f"{scheme}{(project_root / rel).resolve()}"


def dt_iso(dt: Optional[datetime]) -> Optional[str]:
    """Convert a datetime to an ISO 8601 string in UTC, or return None.

    Naive datetimes (SQLite drops tzinfo on read) are treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()
