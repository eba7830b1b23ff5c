"""SQLite schema for room storage (code-first)."""

import logging

from src.core.db_client import get_connection


logger = logging.getLogger(__name__)


# Rooms are stored as JSON documents; position preserves the user's ordering
TABLE_SCHEMAS: dict[str, str] = {
    "rooms": """
        CREATE TABLE IF NOT EXISTS rooms (
            id TEXT PRIMARY KEY,
            position INTEGER NOT NULL,
            data TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
}

INDEXES: list[str] = [
    "CREATE INDEX IF NOT EXISTS idx_rooms_position ON rooms(position)",
]


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes if they do not exist."""
    conn = await get_connection(db_path=db_path)
    for name, ddl in TABLE_SCHEMAS.items():
        await conn.execute(ddl)
        logger.debug("schema_table_ready", extra={"table": name})
    for ddl in INDEXES:
        await conn.execute(ddl)
    await conn.commit()
    logger.info("Database schema initialized", extra={"tables": list(TABLE_SCHEMAS)})
