"""Verification of task completion from photos, plus manual override paths."""

import logging
from datetime import UTC, datetime

from src.core.capabilities import AnalysisService, ImageStore
from src.core.errors import InvalidStateError, MissingCredentialError, StorageError, TaskNotFoundError
from src.core.logging import log_with_room_context, span
from src.domain.persona import Persona
from src.domain.room import CaptureSource, Room
from src.domain.task import CleaningTask, TaskVerificationState
from src.domain.verification import RoomVerificationOutcome, TaskVerificationResult, TaskVerificationStatus
from src.services import gamification_service
from src.services.scan_service import save_capture


logger = logging.getLogger(__name__)

LOW_CONFIDENCE_NOTE = "Low confidence"
NOTE_SEPARATOR = " • "
TRUSTED_MANUAL_NOTE = "Trusted manual"
SELF_DECLARED_NOTE = "Self-declared completion"
MANUAL_CHECK_NOTE = "Manual check"
DEFAULT_RESCAN_MESSAGE = "Babcia needs a clearer scan to verify everything. Try another photo."


def _load_before_image(room: Room, image_store: ImageStore) -> bytes | None:
    if not room.last_verified_scan_path:
        return None
    try:
        return image_store.load_image(room.last_verified_scan_path)
    except StorageError as e:
        logger.warning("before_image_unavailable", extra={"room_id": room.id, "error": str(e)})
        return None


def apply_verdict(
    task: CleaningTask,
    verdict: TaskVerificationResult,
    *,
    threshold: float,
    now: datetime,
) -> int:
    """Apply one verdict to an unlocked task and return the XP it earned.

    The threshold only annotates low-confidence positive verdicts; it never rejects them.
    """
    if verdict.status == TaskVerificationStatus.VERIFIED:
        task.is_completed = True
        task.completed_at = now
        task.verification_state = TaskVerificationState.VERIFIED
        task.verification_confidence = verdict.confidence
        if verdict.confidence < threshold:
            task.verification_note = NOTE_SEPARATOR.join(
                part for part in (verdict.note, LOW_CONFIDENCE_NOTE) if part
            )
        else:
            task.verification_note = verdict.note
        return task.xp_reward

    task.verification_state = TaskVerificationState.PENDING
    task.verification_confidence = verdict.confidence
    task.verification_note = verdict.note
    return 0


async def verify_room(
    *,
    room: Room,
    after_image: bytes,
    credential: str,
    active_persona: Persona,
    analysis: AnalysisService,
    image_store: ImageStore,
    capture_source: CaptureSource = CaptureSource.VERIFY,
    now: datetime | None = None,
) -> RoomVerificationOutcome:
    """Verify the room's tasks against a new photo.

    The before image is the room's last fully verified capture, if any. Verdicts for
    verified (locked) tasks are ignored. The active persona's threshold annotates
    low-confidence positives; the room's own persona supplies the prompt voice.

    Args:
        room: Room being verified (not mutated)
        after_image: Raw image bytes of the current state
        credential: Analysis service API key
        active_persona: Persona selected at verification time
        analysis: Analysis capability
        image_store: Where captures are written and the before image is read
        capture_source: Tag recorded with the capture
        now: Clock override for tests

    Returns:
        Outcome with the updated room, the service's needs-rescan flag and summary

    Raises:
        MissingCredentialError: If credential is empty
        ParsingError: If the reply carries no usable verdicts
        ServiceError, UnauthorizedError, ImageProcessingError: If the analysis call fails
    """
    with span("verification_service.verify_room"):
        if not credential:
            raise MissingCredentialError

        now = now or datetime.now(UTC)
        updated = room.model_copy(deep=True)

        capture = save_capture(
            room=updated,
            image=after_image,
            source=capture_source,
            prefix="verify",
            image_store=image_store,
            now=now,
        )
        before_image = _load_before_image(room, image_store)

        result = await analysis.verify(before_image, after_image, room.tasks, room.persona, credential)

        threshold = active_persona.confidence_threshold
        gained_xp = 0
        for verdict in result.tasks:
            task = updated.find_task(verdict.task_id)
            if task is None:
                logger.debug("verdict_for_unknown_task", extra={"room_id": room.id, "task_id": verdict.task_id})
                continue
            if task.is_locked:
                continue
            gained_xp += apply_verdict(task, verdict, threshold=threshold, now=now)

        gamification_service.grant_xp(updated, gained_xp, now=now)

        if updated.pending_task_count == 0:
            updated.verification_attempts = 0
            updated.last_verified_at = now
            if capture is not None:
                updated.last_verified_scan_path = capture.path
        else:
            updated.verification_attempts += 1

        logger.info(
            "room_verification_complete",
            extra={
                "room_id": room.id,
                "persona": active_persona.value,
                "gained_xp": gained_xp,
                "pending_tasks": updated.pending_task_count,
                "attempts": updated.verification_attempts,
                "needs_rescan": result.needs_rescan,
            },
        )

        return RoomVerificationOutcome(
            room=updated,
            needs_rescan=result.needs_rescan,
            summary=result.summary,
            gained_xp=gained_xp,
        )


def rescan_message(outcome: RoomVerificationOutcome) -> str | None:
    """User-facing 'try again' text when the evidence was unusable, else None."""
    if not outcome.needs_rescan:
        return None
    return outcome.summary or DEFAULT_RESCAN_MESSAGE


def manual_override(room: Room, *, active_persona: Persona, now: datetime | None = None) -> Room:
    """Declare every unlocked task done after repeated failed verifications.

    A trusted persona turns the override into a verified pass (XP granted); any other
    persona marks tasks as manual, self-declared completions without XP.

    Raises:
        InvalidStateError: If the override is not available for the room
    """
    with span("verification_service.manual_override"):
        if not room.manual_override_available:
            msg = f"Manual override is not available for room {room.id}"
            raise InvalidStateError(msg)

        now = now or datetime.now(UTC)
        updated = room.model_copy(deep=True)
        trusted = active_persona.is_trusted
        gained_xp = 0

        for task in updated.tasks:
            if task.is_locked:
                continue
            task.is_completed = True
            task.completed_at = now
            if trusted:
                task.verification_state = TaskVerificationState.VERIFIED
                task.verification_confidence = 1.0
                task.verification_note = TRUSTED_MANUAL_NOTE
                gained_xp += task.xp_reward
            else:
                task.verification_state = TaskVerificationState.MANUAL
                task.verification_note = SELF_DECLARED_NOTE

        if gained_xp > 0:
            gamification_service.grant_xp(updated, gained_xp, now=now)
            updated.last_verified_at = now
        updated.verification_attempts = 0

        log_with_room_context(logger, "info", "room_manual_override", room_id=room.id, trusted=trusted, gained_xp=gained_xp)
        return updated


def set_manual_task(
    room: Room,
    *,
    task_id: str,
    is_completed: bool,
    active_persona: Persona,
    now: datetime | None = None,
) -> Room:
    """Toggle one task by hand. Locked tasks are left untouched.

    Raises:
        TaskNotFoundError: If the task is not in the room
    """
    updated = room.model_copy(deep=True)
    task = updated.find_task(task_id)
    if task is None:
        raise TaskNotFoundError(room.id, task_id)

    now = now or datetime.now(UTC)

    if task.is_locked:
        logger.debug("manual_toggle_on_locked_task", extra={"room_id": room.id, "task_id": task_id})
        return updated

    if is_completed:
        task.is_completed = True
        task.completed_at = now
        if active_persona.is_trusted:
            task.verification_state = TaskVerificationState.VERIFIED
            task.verification_confidence = 1.0
            task.verification_note = TRUSTED_MANUAL_NOTE
            gamification_service.grant_xp(updated, task.xp_reward, now=now)
            updated.last_verified_at = now
        else:
            task.verification_state = TaskVerificationState.MANUAL
            task.verification_note = MANUAL_CHECK_NOTE
    else:
        task.is_completed = False
        task.completed_at = None
        task.verification_state = TaskVerificationState.PENDING
        task.verification_confidence = None
        task.verification_note = None

    return updated
