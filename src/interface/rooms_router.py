"""HTTP API over the room controller. Images travel as base64 strings."""

import base64
import binascii
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.core.errors import ErrorCode, classify_error
from src.domain.persona import Persona
from src.domain.room import CaptureSource, Room, RoomImageSource
from src.domain.schedule import ScanCadence
from src.domain.settings import AppSettings
from src.domain.verification import RoomVerificationOutcome
from src.services.gamification_service import level_for_xp, xp_to_next_level
from src.services.room_controller import RoomController


logger = logging.getLogger(__name__)

router = APIRouter(tags=["rooms"])

_STATUS_BY_CODE = {
    ErrorCode.ERR_MISSING_CREDENTIAL: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ERR_IMAGE_PROCESSING: 422,
    ErrorCode.ERR_UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.ERR_PARSING: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.ERR_SERVICE: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.ERR_NETWORK: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.ERR_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ERR_INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.ERR_STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class CreateRoomRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Display name")
    persona: Persona = Persona.CLASSIC
    image_source: RoomImageSource = RoomImageSource.CAMERA
    camera_identifier: str | None = None


class ScheduleRequest(BaseModel):
    enabled: bool
    cadence: ScanCadence = ScanCadence.DAILY


class ImageRequest(BaseModel):
    image: str = Field(..., description="Base64-encoded image bytes")
    source: CaptureSource | None = Field(default=None, description="Where the photo came from (e.g. camera, manual)")


class UpdateRoomRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    persona: Persona | None = None
    image_source: RoomImageSource | None = None
    camera_identifier: str | None = None


class TaskToggleRequest(BaseModel):
    is_completed: bool


class SettingsRequest(BaseModel):
    gemini_api_key: str | None = None
    home_assistant_url: str | None = None
    home_assistant_token: str | None = None
    selected_persona: Persona | None = None


class CredentialTestRequest(BaseModel):
    gemini_api_key: str | None = None


class CameraTestRequest(BaseModel):
    home_assistant_url: str | None = None
    home_assistant_token: str | None = None


def get_controller(request: Request) -> RoomController:
    return request.app.state.controller


async def babcia_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Map pipeline failures to HTTP responses through classify_error."""
    error = classify_error(exc)
    status_code = _STATUS_BY_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.warning("request_failed", extra={"code": error.code, "status_code": status_code, "error": error.message})
    return JSONResponse(
        status_code=status_code,
        content={"code": error.code, "message": error.message, "suggestion": error.suggestion},
    )


def decode_image(encoded: str) -> bytes:
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=422, detail="Image is not valid base64") from e


def room_view(room: Room) -> dict[str, Any]:
    """Room document plus derived progress fields."""
    return {
        **room.model_dump(mode="json"),
        "level": level_for_xp(room.total_xp),
        "xp_to_next_level": xp_to_next_level(room.total_xp),
        "pending_task_count": room.pending_task_count,
        "manual_override_available": room.manual_override_available,
    }


def outcome_view(outcome: RoomVerificationOutcome) -> dict[str, Any]:
    return {
        "room": room_view(outcome.room),
        "needs_rescan": outcome.needs_rescan,
        "summary": outcome.summary,
        "gained_xp": outcome.gained_xp,
    }


def persona_view(persona: Persona) -> dict[str, Any]:
    return {
        "id": persona.value,
        "display_name": persona.display_name,
        "tagline": persona.tagline,
        "verification_mode": persona.verification_mode_name,
        "verification_mode_description": persona.verification_mode_description,
        "confidence_threshold": persona.confidence_threshold,
        "trusted": persona.is_trusted,
    }


def settings_view(settings: AppSettings) -> dict[str, Any]:
    """Settings without secrets."""
    return {
        "home_assistant_url": settings.home_assistant_url,
        "selected_persona": settings.selected_persona.value,
        "verification_mode": settings.selected_persona.verification_mode_name,
        "has_gemini_api_key": bool(settings.gemini_api_key),
        "has_home_assistant_token": bool(settings.home_assistant_token),
    }


@router.get("/rooms")
async def list_rooms(controller: RoomController = Depends(get_controller)) -> list[dict[str, Any]]:
    return [room_view(room) for room in controller.rooms]


@router.post("/rooms", status_code=status.HTTP_201_CREATED)
async def create_room(
    body: CreateRoomRequest, controller: RoomController = Depends(get_controller)
) -> dict[str, Any]:
    room = await controller.add_room(
        name=body.name,
        persona=body.persona,
        image_source=body.image_source,
        camera_identifier=body.camera_identifier,
    )
    return room_view(room)


@router.patch("/rooms/{room_id}")
async def update_room(
    room_id: str, body: UpdateRoomRequest, controller: RoomController = Depends(get_controller)
) -> dict[str, Any]:
    changes = body.model_dump(include=body.model_fields_set)
    room = await controller.update_room(room_id, **changes)
    return room_view(room)


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(room_id: str, controller: RoomController = Depends(get_controller)) -> None:
    await controller.delete_room(room_id)


@router.put("/rooms/{room_id}/schedule")
async def update_schedule(
    room_id: str, body: ScheduleRequest, controller: RoomController = Depends(get_controller)
) -> dict[str, Any]:
    room = await controller.update_room_schedule(room_id, enabled=body.enabled, cadence=body.cadence)
    return room_view(room)


@router.post("/rooms/{room_id}/scan")
async def scan_room(
    room_id: str, body: ImageRequest, controller: RoomController = Depends(get_controller)
) -> dict[str, Any]:
    room = await controller.scan_room(room_id, decode_image(body.image), body.source or CaptureSource.SCAN)
    return room_view(room)


@router.post("/rooms/{room_id}/scan/camera")
async def scan_room_from_camera(room_id: str, controller: RoomController = Depends(get_controller)) -> dict[str, Any]:
    room = await controller.scan_from_camera(room_id)
    return room_view(room)


@router.post("/rooms/{room_id}/verify")
async def verify_room(
    room_id: str, body: ImageRequest, controller: RoomController = Depends(get_controller)
) -> dict[str, Any]:
    outcome = await controller.verify_room(room_id, decode_image(body.image), body.source or CaptureSource.VERIFY)
    return outcome_view(outcome)


@router.post("/rooms/{room_id}/verify/camera")
async def verify_room_from_camera(
    room_id: str, controller: RoomController = Depends(get_controller)
) -> dict[str, Any]:
    outcome = await controller.verify_from_camera(room_id)
    return outcome_view(outcome)


@router.post("/rooms/{room_id}/override")
async def manual_override(room_id: str, controller: RoomController = Depends(get_controller)) -> dict[str, Any]:
    room = await controller.manual_override(room_id)
    return room_view(room)


@router.put("/rooms/{room_id}/tasks/{task_id}")
async def set_task(
    room_id: str,
    task_id: str,
    body: TaskToggleRequest,
    controller: RoomController = Depends(get_controller),
) -> dict[str, Any]:
    room = await controller.set_manual_task(room_id, task_id, is_completed=body.is_completed)
    return room_view(room)


@router.post("/autoscan/run")
async def run_auto_scans(controller: RoomController = Depends(get_controller)) -> dict[str, bool]:
    return {"did_scan": await controller.run_auto_scans()}


@router.get("/cameras")
async def list_cameras(controller: RoomController = Depends(get_controller)) -> list[dict[str, Any]]:
    cameras = await controller.list_cameras()
    return [camera.model_dump() for camera in cameras]


@router.put("/settings")
async def update_settings(body: SettingsRequest, controller: RoomController = Depends(get_controller)) -> dict[str, Any]:
    settings = await controller.update_settings(**body.model_dump())
    return settings_view(settings)


@router.post("/settings/test-gemini")
async def test_gemini(
    body: CredentialTestRequest, controller: RoomController = Depends(get_controller)
) -> dict[str, bool]:
    return {"valid": await controller.test_gemini_key(body.gemini_api_key)}


@router.post("/settings/test-camera")
async def test_camera(body: CameraTestRequest, controller: RoomController = Depends(get_controller)) -> dict[str, bool]:
    return {"connected": await controller.test_camera_connection(body.home_assistant_url, body.home_assistant_token)}


@router.get("/personas")
async def list_personas() -> list[dict[str, Any]]:
    return [persona_view(persona) for persona in Persona]
