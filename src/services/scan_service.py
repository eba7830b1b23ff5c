"""Scan use case: photo in, fresh task list, advice and dream vision out."""

import logging
from datetime import UTC, datetime

from src.core.capabilities import AnalysisService, ImageStore
from src.core.config import constants
from src.core.errors import ImageProcessingError, MissingCredentialError, StorageError
from src.core.images import encode_jpeg, encode_png, generate_filename
from src.core.logging import log_with_room_context, span
from src.domain.room import CaptureSource, Room, UserCapture
from src.domain.task import CleaningTask


logger = logging.getLogger(__name__)


def save_capture(
    *,
    room: Room,
    image: bytes,
    source: CaptureSource,
    prefix: str,
    image_store: ImageStore,
    now: datetime,
) -> UserCapture | None:
    """Persist a raw capture and append it to the room's audit trail.

    Best-effort: encoding or storage failures are logged and return None.
    """
    filename = generate_filename(prefix, room.id, "jpg")
    try:
        data = encode_jpeg(image, quality=constants.CAPTURE_JPEG_QUALITY)
        image_store.save_image(data, filename)
    except (ImageProcessingError, StorageError) as e:
        logger.warning(
            "capture_persist_failed",
            extra={"room_id": room.id, "capture_source": source.value, "error": str(e)},
        )
        return None

    capture = UserCapture(room_id=room.id, date=now, path=filename, source=source)
    room.user_captures.append(capture)
    return capture


async def _generate_dream_vision(
    *,
    room: Room,
    image: bytes,
    credential: str,
    analysis: AnalysisService,
    image_store: ImageStore,
) -> str | None:
    """Render and store the stylized image; any failure leaves the scan intact."""
    try:
        stylized = await analysis.stylize(image, room.persona, credential)
        filename = generate_filename("dream", room.id, "png")
        image_store.save_image(encode_png(stylized), filename)
    except Exception:
        logger.exception("dream_vision_failed", extra={"room_id": room.id})
        return None
    return filename


async def scan_room(
    *,
    room: Room,
    image: bytes,
    credential: str,
    analysis: AnalysisService,
    image_store: ImageStore,
    capture_source: CaptureSource = CaptureSource.SCAN,
    now: datetime | None = None,
) -> Room:
    """Analyze a new photo of the room and return the updated room.

    The input room is never mutated; on any hard failure the caller keeps its
    previous state.

    Args:
        room: Room being scanned
        image: Raw captured image bytes
        credential: Analysis service API key
        analysis: Analysis capability
        image_store: Where captures and stylized images are written
        capture_source: Tag recorded with the capture
        now: Clock override for tests

    Returns:
        Updated room with fresh tasks, advice and (if rendered) a new dream vision

    Raises:
        MissingCredentialError: If credential is empty
        ServiceError, UnauthorizedError, ImageProcessingError: If the analysis call fails
    """
    with span("scan_service.scan_room"):
        if not credential:
            raise MissingCredentialError

        now = now or datetime.now(UTC)
        updated = room.model_copy(deep=True)

        archived = updated.archive_current_scan(now)
        if archived is not None:
            logger.debug("scan_archived", extra={"room_id": room.id, "history_size": len(updated.scan_history)})

        save_capture(
            room=updated,
            image=image,
            source=capture_source,
            prefix="capture",
            image_store=image_store,
            now=now,
        )

        result = await analysis.analyze(image, room.persona, credential)

        updated.tasks = [CleaningTask(title=title) for title in result.tasks]
        updated.advice = result.advice
        updated.last_scan_date = now
        updated.verification_attempts = 0

        dream_path = await _generate_dream_vision(
            room=updated,
            image=image,
            credential=credential,
            analysis=analysis,
            image_store=image_store,
        )
        if dream_path is not None:
            updated.dream_vision_path = dream_path

        log_with_room_context(
            logger,
            "info",
            "room_scan_complete",
            room_id=room.id,
            task_count=len(updated.tasks),
            capture_source=capture_source.value,
            dream_vision=dream_path is not None,
        )
        return updated
