from sqlalchemy.dialects import postgresql, sqlite

from models import db


def dialect_insert(table):
    """INSERT construct that supports ON CONFLICT for the bound database."""
    name = db.engine.dialect.name
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise RuntimeError(f"Keyed upserts are not supported on {name}")
