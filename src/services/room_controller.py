"""Serialized owner of the room collection and entry point for every room operation."""

import asyncio
import logging
from datetime import UTC, datetime

from src.core.capabilities import AnalysisService, CameraBridge, ImageStore, RoomRepository
from src.core.errors import InvalidStateError, RoomNotFoundError, StorageError
from src.core.logging import span
from src.domain.camera import Camera
from src.domain.persona import Persona
from src.domain.room import CaptureSource, Room, RoomImageSource
from src.domain.schedule import ScanCadence
from src.domain.settings import AppSettings
from src.domain.verification import RoomVerificationOutcome
from src.services import scan_service, verification_service
from src.services.scan_scheduler import ScanSchedulerService, is_eligible, normalize_schedules, update_schedule


logger = logging.getLogger(__name__)

_UNSET = object()


class RoomController:
    """Holds the rooms and settings; one lock guards the collection, one lock per room.

    Network calls happen outside the collection lock. Each result is committed and the
    whole collection persisted under it.
    """

    def __init__(
        self,
        *,
        repository: RoomRepository,
        analysis: AnalysisService,
        camera_bridge: CameraBridge,
        image_store: ImageStore,
        scheduler: ScanSchedulerService,
        settings: AppSettings | None = None,
    ) -> None:
        self._repository = repository
        self._analysis = analysis
        self._camera_bridge = camera_bridge
        self._image_store = image_store
        self._scheduler = scheduler
        self._settings = settings or AppSettings()
        self._rooms: list[Room] = []
        self._lock = asyncio.Lock()
        self._room_locks: dict[str, asyncio.Lock] = {}

    @property
    def rooms(self) -> list[Room]:
        return [room.model_copy(deep=True) for room in self._rooms]

    @property
    def settings(self) -> AppSettings:
        return self._settings.model_copy()

    def get_room(self, room_id: str) -> Room:
        return self._find(room_id).model_copy(deep=True)

    def _find(self, room_id: str) -> Room:
        for room in self._rooms:
            if room.id == room_id:
                return room
        raise RoomNotFoundError(room_id)

    def _room_lock(self, room_id: str) -> asyncio.Lock:
        """Per-room lock, created only for rooms that exist."""
        lock = self._room_locks.get(room_id)
        if lock is None:
            self._find(room_id)
            lock = self._room_locks[room_id] = asyncio.Lock()
        return lock

    async def _persist(self, rooms: list[Room]) -> None:
        """Save then swap in the new collection. Caller holds the collection lock."""
        await self._repository.save_rooms(rooms)
        self._rooms = rooms

    async def _commit(self, updated: Room) -> Room:
        """Replace one room in the collection and persist."""
        async with self._lock:
            if not any(room.id == updated.id for room in self._rooms):
                raise RoomNotFoundError(updated.id)
            rooms = [updated if room.id == updated.id else room for room in self._rooms]
            await self._persist(rooms)
        return updated.model_copy(deep=True)

    async def _reschedule(self) -> None:
        try:
            await self._scheduler.reschedule(self._rooms, self._settings)
        except Exception:
            logger.exception("reschedule_failed")

    async def load(self) -> list[Room]:
        """Load rooms from storage, fill missing next runs and recompute scheduling."""
        with span("room_controller.load"):
            async with self._lock:
                rooms = await self._repository.load_rooms()
                if normalize_schedules(rooms, datetime.now(UTC)):
                    await self._persist(rooms)
                else:
                    self._rooms = rooms
            logger.info("rooms_loaded", extra={"count": len(rooms)})
            await self._reschedule()
            return self.rooms

    async def add_room(
        self,
        *,
        name: str,
        persona: Persona = Persona.CLASSIC,
        image_source: RoomImageSource = RoomImageSource.CAMERA,
        camera_identifier: str | None = None,
    ) -> Room:
        room = Room(name=name, persona=persona, image_source=image_source, camera_identifier=camera_identifier)
        async with self._lock:
            await self._persist([*self._rooms, room])
        logger.info("room_added", extra={"room_id": room.id, "persona": persona.value})
        return room.model_copy(deep=True)

    async def update_room(
        self,
        room_id: str,
        *,
        name: str | None = None,
        persona: Persona | None = None,
        image_source: RoomImageSource | None = None,
        camera_identifier: str | None | object = _UNSET,
    ) -> Room:
        """Rename a room or change its persona or capture configuration."""
        async with self._room_lock(room_id):
            updated = self._find(room_id).model_copy(deep=True)
            if name is not None:
                updated.name = name
            if persona is not None:
                updated.persona = persona
            if image_source is not None:
                updated.image_source = image_source
            if camera_identifier is not _UNSET:
                updated.camera_identifier = camera_identifier  # type: ignore[assignment]
            result = await self._commit(updated)
        await self._reschedule()
        return result

    async def delete_room(self, room_id: str) -> None:
        """Remove a room and every image it references."""
        async with self._room_lock(room_id):
            async with self._lock:
                room = self._find(room_id)
                await self._persist([r for r in self._rooms if r.id != room_id])

            for path in room.image_paths():
                try:
                    self._image_store.delete_image(path)
                except StorageError as e:
                    logger.warning("room_image_delete_failed", extra={"room_id": room_id, "path": path, "error": str(e)})

        self._room_locks.pop(room_id, None)
        logger.info("room_deleted", extra={"room_id": room_id})
        await self._reschedule()

    async def update_settings(
        self,
        *,
        gemini_api_key: str | None = None,
        home_assistant_url: str | None = None,
        home_assistant_token: str | None = None,
        selected_persona: Persona | None = None,
    ) -> AppSettings:
        changes = {
            key: value
            for key, value in {
                "gemini_api_key": gemini_api_key,
                "home_assistant_url": home_assistant_url,
                "home_assistant_token": home_assistant_token,
                "selected_persona": selected_persona,
            }.items()
            if value is not None
        }
        async with self._lock:
            self._settings = self._settings.model_copy(update=changes)
        logger.info("settings_updated", extra={"fields": sorted(changes)})
        await self._reschedule()
        return self.settings

    async def update_room_schedule(self, room_id: str, *, enabled: bool, cadence: ScanCadence) -> Room:
        async with self._room_lock(room_id):
            updated = self._find(room_id).model_copy(deep=True)
            updated.scan_schedule = update_schedule(
                updated.scan_schedule, enabled=enabled, cadence=cadence, now=datetime.now(UTC)
            )
            result = await self._commit(updated)
        await self._reschedule()
        return result

    async def scan_room(self, room_id: str, image: bytes, source: CaptureSource = CaptureSource.SCAN) -> Room:
        async with self._room_lock(room_id):
            room = self._find(room_id)
            updated = await scan_service.scan_room(
                room=room,
                image=image,
                credential=self._settings.gemini_api_key,
                analysis=self._analysis,
                image_store=self._image_store,
                capture_source=source,
            )
            return await self._commit(updated)

    def _camera_target(self, room: Room) -> str:
        if not room.camera_identifier:
            msg = f"Room {room.id} has no camera configured"
            raise InvalidStateError(msg)
        if not self._settings.has_bridge_credentials:
            msg = "Home Assistant URL and token are not configured"
            raise InvalidStateError(msg)
        return room.camera_identifier

    async def _snapshot(self, room: Room) -> bytes:
        camera_id = self._camera_target(room)
        return await self._camera_bridge.snapshot(
            self._settings.home_assistant_url, self._settings.home_assistant_token, camera_id
        )

    async def scan_from_camera(self, room_id: str) -> Room:
        async with self._room_lock(room_id):
            room = self._find(room_id)
            image = await self._snapshot(room)
            updated = await scan_service.scan_room(
                room=room,
                image=image,
                credential=self._settings.gemini_api_key,
                analysis=self._analysis,
                image_store=self._image_store,
                capture_source=CaptureSource.HOME_ASSISTANT,
            )
            return await self._commit(updated)

    async def _verify(self, room: Room, image: bytes, source: CaptureSource) -> RoomVerificationOutcome:
        outcome = await verification_service.verify_room(
            room=room,
            after_image=image,
            credential=self._settings.gemini_api_key,
            active_persona=self._settings.selected_persona,
            analysis=self._analysis,
            image_store=self._image_store,
            capture_source=source,
        )
        committed = await self._commit(outcome.room)
        return outcome.model_copy(
            update={"room": committed, "summary": verification_service.rescan_message(outcome) or outcome.summary}
        )

    async def verify_room(
        self, room_id: str, image: bytes, source: CaptureSource = CaptureSource.VERIFY
    ) -> RoomVerificationOutcome:
        async with self._room_lock(room_id):
            return await self._verify(self._find(room_id), image, source)

    async def verify_from_camera(self, room_id: str) -> RoomVerificationOutcome:
        async with self._room_lock(room_id):
            room = self._find(room_id)
            image = await self._snapshot(room)
            return await self._verify(room, image, CaptureSource.HOME_ASSISTANT)

    async def manual_override(self, room_id: str) -> Room:
        async with self._room_lock(room_id):
            updated = verification_service.manual_override(
                self._find(room_id), active_persona=self._settings.selected_persona
            )
            return await self._commit(updated)

    async def set_manual_task(self, room_id: str, task_id: str, *, is_completed: bool) -> Room:
        async with self._room_lock(room_id):
            updated = verification_service.set_manual_task(
                self._find(room_id),
                task_id=task_id,
                is_completed=is_completed,
                active_persona=self._settings.selected_persona,
            )
            return await self._commit(updated)

    async def run_auto_scans(self) -> bool:
        """Background wake handler: scan every due, eligible room from its camera.

        Rooms busy with another operation are left for the next wake. Each room is
        committed as soon as it succeeds. Scheduling is always recomputed afterwards.
        """
        with span("room_controller.run_auto_scans"):
            now = datetime.now(UTC)
            did_scan = False
            try:
                if not self._settings.gemini_api_key:
                    logger.info("auto_scan_skipped", extra={"reason": "missing_credential"})
                    return False

                for candidate in list(self._rooms):
                    schedule = candidate.scan_schedule
                    if schedule is None or not schedule.enabled or not schedule.is_due(now):
                        continue
                    if not is_eligible(candidate, self._settings):
                        continue

                    lock = self._room_lock(candidate.id)
                    if lock.locked():
                        logger.info("auto_scan_room_busy", extra={"room_id": candidate.id})
                        continue

                    async with lock:
                        try:
                            room = self._find(candidate.id)
                            image = await self._snapshot(room)
                            updated = await scan_service.scan_room(
                                room=room,
                                image=image,
                                credential=self._settings.gemini_api_key,
                                analysis=self._analysis,
                                image_store=self._image_store,
                                capture_source=CaptureSource.HOME_ASSISTANT,
                                now=now,
                            )
                            if updated.scan_schedule is not None:
                                updated.scan_schedule.mark_ran(now)
                            await self._commit(updated)
                        except Exception:
                            logger.exception("auto_scan_room_failed", extra={"room_id": candidate.id})
                            continue
                        did_scan = True
            finally:
                await self._reschedule()

            logger.info("auto_scan_complete", extra={"did_scan": did_scan})
            return did_scan

    async def test_gemini_key(self, key: str | None = None) -> bool:
        return await self._analysis.test_credential(key if key is not None else self._settings.gemini_api_key)

    async def test_camera_connection(self, base_url: str | None = None, token: str | None = None) -> bool:
        return await self._camera_bridge.test_connection(
            base_url if base_url is not None else self._settings.home_assistant_url,
            token if token is not None else self._settings.home_assistant_token,
        )

    async def list_cameras(self) -> list[Camera]:
        if not self._settings.has_bridge_credentials:
            msg = "Home Assistant URL and token are not configured"
            raise InvalidStateError(msg)
        return await self._camera_bridge.list_cameras(
            self._settings.home_assistant_url, self._settings.home_assistant_token
        )
