"""SQLite-backed repository for the full room collection."""

import asyncio
import logging
from datetime import UTC, datetime

import aiosqlite
from pydantic import ValidationError

from src.core.db_client import get_connection
from src.core.errors import StorageError
from src.core.logging import span
from src.domain.room import Room


logger = logging.getLogger(__name__)


class SqliteRoomRepository:
    """Loads and saves every room at once; a save replaces the collection atomically."""

    def __init__(self, db_path: str | None = None) -> None:
        self._db_path = db_path
        self._write_lock = asyncio.Lock()

    async def load_rooms(self) -> list[Room]:
        with span("room_repository.load_rooms"):
            try:
                conn = await get_connection(db_path=self._db_path)
                async with conn.execute("SELECT id, data FROM rooms ORDER BY position") as cursor:
                    rows = await cursor.fetchall()
            except aiosqlite.Error as e:
                raise StorageError(f"Failed to load rooms: {e}") from e

            rooms = []
            for row in rows:
                try:
                    rooms.append(Room.model_validate_json(row["data"]))
                except ValidationError as e:
                    raise StorageError(f"Stored room {row['id']} is corrupt: {e}") from e

            logger.debug("rooms_loaded", extra={"count": len(rooms)})
            return rooms

    async def save_rooms(self, rooms: list[Room]) -> None:
        with span("room_repository.save_rooms"):
            now = datetime.now(UTC).isoformat()
            rows = [(room.id, position, room.model_dump_json(), now) for position, room in enumerate(rooms)]
            try:
                conn = await get_connection(db_path=self._db_path)
                async with self._write_lock:
                    try:
                        await conn.execute("DELETE FROM rooms")
                        await conn.executemany(
                            "INSERT INTO rooms (id, position, data, updated_at) VALUES (?, ?, ?, ?)",
                            rows,
                        )
                    except BaseException:
                        await conn.rollback()
                        raise
                    await conn.commit()
            except aiosqlite.Error as e:
                raise StorageError(f"Failed to save rooms: {e}") from e

            logger.debug("rooms_saved", extra={"count": len(rooms)})
