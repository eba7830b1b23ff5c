"""Unit tests for verification_service module."""

import pytest

from src.core.errors import InvalidStateError, MissingCredentialError, ParsingError, TaskNotFoundError
from src.domain.persona import Persona
from src.domain.task import TaskVerificationState
from src.domain.verification import RoomVerificationResult, TaskVerificationResult, TaskVerificationStatus
from src.services.verification_service import (
    DEFAULT_RESCAN_MESSAGE,
    manual_override,
    rescan_message,
    set_manual_task,
    verify_room,
)


def verdict(task_id, status, confidence=0.0, note=None):
    return TaskVerificationResult(task_id=task_id, status=status, confidence=confidence, note=note)


@pytest.fixture
def verify(analysis, image_store, jpeg_bytes, now):
    """Run verify_room against the fake analysis service with the given verdicts."""

    async def _verify(room, verdicts, *, active_persona=Persona.CLASSIC, summary="", needs_rescan=False):
        analysis.verification = RoomVerificationResult(tasks=verdicts, summary=summary, needs_rescan=needs_rescan)
        return await verify_room(
            room=room,
            after_image=jpeg_bytes,
            credential="key",
            active_persona=active_persona,
            analysis=analysis,
            image_store=image_store,
            now=now,
        )

    return _verify


@pytest.mark.unit
class TestVerifyRoom:
    async def test_mixed_verdicts(self, room, verify, now):
        t1, t2, t3 = room.tasks

        outcome = await verify(
            room,
            [
                verdict(t1.id, TaskVerificationStatus.VERIFIED, 0.9, "sparkling"),
                verdict(t2.id, TaskVerificationStatus.NOT_DONE, 0.5, "crumbs"),
                verdict(t3.id, TaskVerificationStatus.UNCLEAR, 0.1),
            ],
        )

        updated = outcome.room
        first, second, third = updated.tasks
        assert first.verification_state == TaskVerificationState.VERIFIED
        assert first.is_completed is True
        assert first.completed_at == now
        assert first.verification_confidence == 0.9
        assert first.verification_note == "sparkling"
        assert second.verification_state == TaskVerificationState.PENDING
        assert second.is_completed is False
        assert second.verification_note == "crumbs"
        assert third.verification_state == TaskVerificationState.PENDING
        assert outcome.gained_xp == 10
        assert updated.total_xp == 10
        assert updated.streak == 1
        assert updated.verification_attempts == 1
        assert updated.last_verified_at is None

    async def test_low_confidence_is_annotated_but_still_granted(self, room, verify):
        t1, t2, _ = room.tasks

        outcome = await verify(
            room,
            [
                verdict(t1.id, TaskVerificationStatus.VERIFIED, 0.95, "clean"),
                verdict(t2.id, TaskVerificationStatus.VERIFIED, 0.5, "probably clean"),
            ],
            active_persona=Persona.BARONESS,
        )

        first, second, _ = outcome.room.tasks
        assert first.verification_note == "clean"
        assert second.verification_note == "probably clean • Low confidence"
        assert outcome.gained_xp == 20

    async def test_low_confidence_without_note(self, room, verify):
        outcome = await verify(room, [verdict(room.tasks[0].id, TaskVerificationStatus.VERIFIED, 0.1)])

        assert outcome.room.tasks[0].verification_note == "Low confidence"

    async def test_threshold_follows_active_persona(self, room, verify):
        room.persona = Persona.BARONESS

        outcome = await verify(
            room, [verdict(room.tasks[0].id, TaskVerificationStatus.VERIFIED, 0.5)], active_persona=Persona.CLASSIC
        )

        assert outcome.room.tasks[0].verification_note is None

    async def test_prompt_uses_room_persona(self, room, verify, analysis):
        room.persona = Persona.WARRIOR

        await verify(room, [verdict(room.tasks[0].id, TaskVerificationStatus.NOT_DONE)], active_persona=Persona.CLASSIC)

        assert analysis.verify_calls[0]["persona"] == Persona.WARRIOR

    async def test_locked_tasks_are_not_rescored(self, room, verify, now):
        locked = room.tasks[0]
        locked.is_completed = True
        locked.verification_state = TaskVerificationState.VERIFIED
        locked.verification_confidence = 0.8
        locked.verification_note = "done earlier"
        room.total_xp = 10

        outcome = await verify(
            room,
            [
                verdict(locked.id, TaskVerificationStatus.NOT_DONE, 0.9, "looks messy"),
                verdict(locked.id, TaskVerificationStatus.VERIFIED, 1.0),
                verdict(room.tasks[1].id, TaskVerificationStatus.VERIFIED, 0.9),
            ],
        )

        first = outcome.room.tasks[0]
        assert first.verification_state == TaskVerificationState.VERIFIED
        assert first.is_completed is True
        assert first.verification_note == "done earlier"
        assert first.verification_confidence == 0.8
        assert outcome.gained_xp == 10
        assert outcome.room.total_xp == 20

    async def test_duplicate_verdicts_grant_xp_once(self, room, verify):
        task_id = room.tasks[0].id

        outcome = await verify(
            room,
            [verdict(task_id, TaskVerificationStatus.VERIFIED, 0.9), verdict(task_id, TaskVerificationStatus.VERIFIED, 0.9)],
        )

        assert outcome.gained_xp == 10

    async def test_unknown_task_ids_are_ignored(self, room, verify):
        outcome = await verify(room, [verdict("nope", TaskVerificationStatus.VERIFIED, 1.0)])

        assert outcome.gained_xp == 0
        assert outcome.room.verification_attempts == 1

    async def test_all_verified_resets_attempts_and_sets_before_image(self, room, verify, now, image_store):
        room.verification_attempts = 2

        outcome = await verify(room, [verdict(task.id, TaskVerificationStatus.VERIFIED, 0.9) for task in room.tasks])

        updated = outcome.room
        assert updated.pending_task_count == 0
        assert updated.verification_attempts == 0
        assert updated.last_verified_at == now
        assert updated.last_verified_scan_path == updated.user_captures[-1].path
        assert updated.last_verified_scan_path.startswith(f"verify_{room.id}_")
        assert updated.last_verified_scan_path in image_store.images
        assert updated.total_xp == 30

    async def test_before_image_is_last_verified_capture(self, room, verify, analysis, image_store):
        image_store.images["verify_prev.jpg"] = b"before-bytes"
        room.last_verified_scan_path = "verify_prev.jpg"

        await verify(room, [verdict(room.tasks[0].id, TaskVerificationStatus.NOT_DONE)])

        assert analysis.verify_calls[0]["before_image"] == b"before-bytes"

    async def test_missing_before_image_is_acceptable(self, room, verify, analysis):
        room.last_verified_scan_path = "verify_gone.jpg"

        await verify(room, [verdict(room.tasks[0].id, TaskVerificationStatus.NOT_DONE)])

        assert analysis.verify_calls[0]["before_image"] is None

    async def test_needs_rescan_still_applies_verdicts(self, room, verify):
        outcome = await verify(
            room, [verdict(room.tasks[0].id, TaskVerificationStatus.VERIFIED, 0.9)], needs_rescan=True
        )

        assert outcome.needs_rescan is True
        assert outcome.room.tasks[0].verification_state == TaskVerificationState.VERIFIED
        assert rescan_message(outcome) == DEFAULT_RESCAN_MESSAGE

    async def test_rescan_message_prefers_summary(self, room, verify):
        outcome = await verify(
            room, [verdict(room.tasks[0].id, TaskVerificationStatus.UNCLEAR)], summary="Too dark, dear.", needs_rescan=True
        )

        assert rescan_message(outcome) == "Too dark, dear."

    async def test_no_rescan_message_when_not_needed(self, room, verify):
        outcome = await verify(room, [verdict(room.tasks[0].id, TaskVerificationStatus.UNCLEAR)])

        assert rescan_message(outcome) is None

    async def test_missing_credential(self, room, analysis, image_store, jpeg_bytes):
        with pytest.raises(MissingCredentialError):
            await verify_room(
                room=room,
                after_image=jpeg_bytes,
                credential="",
                active_persona=Persona.CLASSIC,
                analysis=analysis,
                image_store=image_store,
            )

        assert analysis.verify_calls == []

    async def test_parsing_failure_propagates_without_mutation(self, room, analysis, image_store, jpeg_bytes):
        analysis.verify_error = ParsingError("Failed to parse verification response")

        with pytest.raises(ParsingError):
            await verify_room(
                room=room,
                after_image=jpeg_bytes,
                credential="key",
                active_persona=Persona.CLASSIC,
                analysis=analysis,
                image_store=image_store,
            )

        assert room.verification_attempts == 0
        assert room.user_captures == []


@pytest.mark.unit
class TestManualOverride:
    async def test_trusted_override_is_a_verified_pass(self, room, now):
        room.verification_attempts = 2
        room.tasks[0].is_completed = True
        room.tasks[0].verification_state = TaskVerificationState.VERIFIED
        room.tasks[0].verification_note = "earlier"

        updated = manual_override(room, active_persona=Persona.WELLNESS_X, now=now)

        assert all(task.verification_state == TaskVerificationState.VERIFIED for task in updated.tasks)
        assert updated.tasks[0].verification_note == "earlier"
        assert [task.verification_note for task in updated.tasks[1:]] == ["Trusted manual", "Trusted manual"]
        assert all(task.verification_confidence == 1.0 for task in updated.tasks[1:])
        assert updated.total_xp == 20
        assert updated.streak == 1
        assert updated.last_verified_at == now
        assert updated.verification_attempts == 0

    async def test_untrusted_override_is_self_declared(self, room, now):
        room.verification_attempts = 3

        updated = manual_override(room, active_persona=Persona.BARONESS, now=now)

        assert all(task.is_completed for task in updated.tasks)
        assert all(task.verification_state == TaskVerificationState.MANUAL for task in updated.tasks)
        assert all(task.verification_note == "Self-declared completion" for task in updated.tasks)
        assert updated.total_xp == 0
        assert updated.last_verified_at is None
        assert updated.verification_attempts == 0
        assert updated.pending_task_count == 3

    async def test_rejected_before_two_attempts(self, room, now):
        room.verification_attempts = 1

        with pytest.raises(InvalidStateError):
            manual_override(room, active_persona=Persona.WELLNESS_X, now=now)


@pytest.mark.unit
class TestSetManualTask:
    def test_complete_under_untrusted_persona(self, room, now):
        task_id = room.tasks[0].id

        updated = set_manual_task(room, task_id=task_id, is_completed=True, active_persona=Persona.CLASSIC, now=now)

        task = updated.find_task(task_id)
        assert task.is_completed is True
        assert task.completed_at == now
        assert task.verification_state == TaskVerificationState.MANUAL
        assert task.verification_note == "Manual check"
        assert updated.total_xp == 0

    def test_complete_under_trusted_persona(self, room, now):
        task_id = room.tasks[0].id

        updated = set_manual_task(room, task_id=task_id, is_completed=True, active_persona=Persona.WELLNESS_X, now=now)

        task = updated.find_task(task_id)
        assert task.verification_state == TaskVerificationState.VERIFIED
        assert task.verification_confidence == 1.0
        assert task.verification_note == "Trusted manual"
        assert updated.total_xp == 10
        assert updated.streak == 1
        assert updated.last_verified_at == now

    def test_uncomplete_resets_task(self, room, now):
        task = room.tasks[0]
        task.is_completed = True
        task.completed_at = now
        task.verification_state = TaskVerificationState.MANUAL
        task.verification_confidence = 0.4
        task.verification_note = "Manual check"

        updated = set_manual_task(room, task_id=task.id, is_completed=False, active_persona=Persona.CLASSIC, now=now)

        reset = updated.find_task(task.id)
        assert reset.is_completed is False
        assert reset.completed_at is None
        assert reset.verification_state == TaskVerificationState.PENDING
        assert reset.verification_confidence is None
        assert reset.verification_note is None

    def test_locked_task_is_untouched(self, room, now):
        task = room.tasks[0]
        task.is_completed = True
        task.verification_state = TaskVerificationState.VERIFIED

        updated = set_manual_task(room, task_id=task.id, is_completed=False, active_persona=Persona.CLASSIC, now=now)

        locked = updated.find_task(task.id)
        assert locked.is_completed is True
        assert locked.verification_state == TaskVerificationState.VERIFIED

    def test_unknown_task(self, room, now):
        with pytest.raises(TaskNotFoundError):
            set_manual_task(room, task_id="missing", is_completed=True, active_persona=Persona.CLASSIC, now=now)
