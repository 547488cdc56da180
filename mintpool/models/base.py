from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

from mintpool.db.metadata import metadata_obj

# Surrogate keys for child rows; SQLite only autoincrements INTEGER keys.
ROW_ID = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    """Declarative base for every minter table, sharing one naming convention."""

    metadata = metadata_obj
