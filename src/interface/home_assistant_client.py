"""Home Assistant REST client implementing the camera bridge capability."""

import logging
from typing import Any

import httpx

from src.core.config import constants
from src.core.errors import ImageProcessingError, ServiceError, UnauthorizedError
from src.core.images import validate_image
from src.core.logging import span
from src.domain.camera import Camera


logger = logging.getLogger(__name__)

CAMERA_ENTITY_PREFIX = "camera."


def normalize_base_url(base_url: str) -> str:
    """Ensure the base URL ends with a single trailing slash."""
    return base_url if base_url.endswith("/") else f"{base_url}/"


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def camera_display_name(entity_id: str, friendly_name: str | None) -> str:
    """friendly_name if set, else 'camera.front_door' -> 'Front Door'."""
    if friendly_name:
        return friendly_name
    return entity_id.replace(CAMERA_ENTITY_PREFIX, "", 1).replace("_", " ").title()


def _camera_from_state(state: Any) -> Camera | None:
    if not isinstance(state, dict):
        return None
    entity_id = state.get("entity_id")
    if not isinstance(entity_id, str) or not entity_id.startswith(CAMERA_ENTITY_PREFIX):
        return None
    attributes = state.get("attributes") or {}
    friendly_name = attributes.get("friendly_name") if isinstance(attributes, dict) else None
    return Camera(
        entity_id=entity_id,
        name=camera_display_name(entity_id, friendly_name if isinstance(friendly_name, str) else None),
        state=str(state.get("state", "unknown")),
    )


class HomeAssistantClient:
    """Camera bridge backed by the Home Assistant REST API."""

    async def list_cameras(self, base_url: str, token: str) -> list[Camera]:
        """List camera entities exposed by Home Assistant.

        Raises:
            UnauthorizedError: If the token is rejected
            ServiceError: On any other failure to fetch the states
        """
        with span("home_assistant_client.list_cameras"):
            url = f"{normalize_base_url(base_url)}api/states"
            try:
                async with httpx.AsyncClient(timeout=constants.CAMERA_LIST_TIMEOUT_SECONDS) as client:
                    response = await client.get(url, headers=_auth_headers(token))
            except httpx.HTTPError as e:
                raise ServiceError(0, f"Failed to fetch from Home Assistant: {e}") from e

            if response.status_code == constants.HTTP_UNAUTHORIZED:
                raise UnauthorizedError
            if response.status_code != constants.HTTP_OK:
                raise ServiceError(response.status_code, "Failed to fetch from Home Assistant")

            try:
                states = response.json()
            except ValueError as e:
                raise ServiceError(response.status_code, "Home Assistant returned invalid JSON") from e
            if not isinstance(states, list):
                raise ServiceError(response.status_code, "Home Assistant returned an unexpected payload")

            cameras = [camera for state in states if (camera := _camera_from_state(state)) is not None]
            logger.info("cameras_listed", extra={"count": len(cameras)})
            return cameras

    async def snapshot(self, base_url: str, token: str, camera_id: str) -> bytes:
        """Fetch a still image from a camera entity.

        Raises:
            ServiceError: If the snapshot request fails
            ImageProcessingError: If the body is not a decodable image
        """
        with span("home_assistant_client.snapshot"):
            url = f"{normalize_base_url(base_url)}api/camera_proxy/{camera_id}"
            try:
                async with httpx.AsyncClient(timeout=constants.CAMERA_SNAPSHOT_TIMEOUT_SECONDS) as client:
                    response = await client.get(url, headers=_auth_headers(token))
            except httpx.HTTPError as e:
                raise ServiceError(0, f"Failed to get camera snapshot: {e}") from e

            if response.status_code == constants.HTTP_UNAUTHORIZED:
                raise UnauthorizedError
            if response.status_code != constants.HTTP_OK:
                raise ServiceError(response.status_code, "Failed to get camera snapshot")

            try:
                return validate_image(response.content)
            except ImageProcessingError as e:
                raise ImageProcessingError("Invalid image data") from e

    async def test_connection(self, base_url: str, token: str) -> bool:
        """True when the API root answers 200; never raises."""
        if not base_url or not token:
            return False
        try:
            async with httpx.AsyncClient(timeout=constants.CONNECTION_TEST_TIMEOUT_SECONDS) as client:
                response = await client.get(f"{normalize_base_url(base_url)}api/", headers=_auth_headers(token))
        except httpx.HTTPError as e:
            logger.warning("home_assistant_connection_failed", extra={"error": str(e)})
            return False
        return response.status_code == constants.HTTP_OK
