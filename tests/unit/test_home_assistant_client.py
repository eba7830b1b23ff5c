"""Tests for the Home Assistant camera bridge via httpx."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.core.errors import ImageProcessingError, ServiceError, UnauthorizedError
from src.interface.home_assistant_client import HomeAssistantClient, camera_display_name, normalize_base_url


def make_response(status_code: int = 200, body=None, content: bytes = b"") -> MagicMock:
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.json.return_value = body
    response.content = content
    return response


@pytest.fixture
def client() -> HomeAssistantClient:
    return HomeAssistantClient()


@pytest.mark.unit
class TestNaming:
    def test_normalize_base_url(self):
        assert normalize_base_url("http://ha.local:8123") == "http://ha.local:8123/"
        assert normalize_base_url("http://ha.local:8123/") == "http://ha.local:8123/"

    def test_friendly_name_wins(self):
        assert camera_display_name("camera.front_door", "Porch Cam") == "Porch Cam"

    def test_name_derived_from_entity_id(self):
        assert camera_display_name("camera.front_door", None) == "Front Door"


@pytest.mark.unit
class TestListCameras:
    async def test_filters_camera_entities(self, client):
        states = [
            {"entity_id": "camera.kitchen", "state": "idle", "attributes": {"friendly_name": "Kitchen Cam"}},
            {"entity_id": "light.kitchen", "state": "on", "attributes": {}},
            {"entity_id": "camera.back_yard", "state": "streaming"},
            "garbage",
        ]

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(body=states)

            cameras = await client.list_cameras("http://ha.local:8123", "token")

        assert [(c.entity_id, c.name, c.state) for c in cameras] == [
            ("camera.kitchen", "Kitchen Cam", "idle"),
            ("camera.back_yard", "Back Yard", "streaming"),
        ]
        assert mock_get.call_args.args[0] == "http://ha.local:8123/api/states"
        assert mock_get.call_args.kwargs["headers"] == {"Authorization": "Bearer token"}

    async def test_unauthorized(self, client):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(401)

            with pytest.raises(UnauthorizedError):
                await client.list_cameras("http://ha.local:8123/", "bad")

    async def test_server_error(self, client):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(500)

            with pytest.raises(ServiceError) as exc_info:
                await client.list_cameras("http://ha.local:8123/", "token")

        assert exc_info.value.status_code == 500

    async def test_unexpected_payload(self, client):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(body={"states": []})

            with pytest.raises(ServiceError):
                await client.list_cameras("http://ha.local:8123/", "token")


@pytest.mark.unit
class TestSnapshot:
    async def test_returns_image_bytes(self, client, jpeg_bytes):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(content=jpeg_bytes)

            data = await client.snapshot("http://ha.local:8123", "token", "camera.kitchen")

        assert data == jpeg_bytes
        assert mock_get.call_args.args[0] == "http://ha.local:8123/api/camera_proxy/camera.kitchen"

    async def test_undecodable_body(self, client):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(content=b"<html>oops</html>")

            with pytest.raises(ImageProcessingError, match="Invalid image data"):
                await client.snapshot("http://ha.local:8123", "token", "camera.kitchen")

    async def test_transport_error(self, client):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = httpx.ReadTimeout("slow camera")

            with pytest.raises(ServiceError):
                await client.snapshot("http://ha.local:8123", "token", "camera.kitchen")


@pytest.mark.unit
class TestConnection:
    async def test_ok(self, client):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(200)

            assert await client.test_connection("http://ha.local:8123", "token") is True

        assert mock_get.call_args.args[0] == "http://ha.local:8123/api/"

    async def test_missing_configuration(self, client):
        assert await client.test_connection("", "token") is False
        assert await client.test_connection("http://ha.local:8123", "") is False

    async def test_never_raises(self, client):
        with patch("httpx.AsyncClient.get", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = httpx.ConnectError("refused")

            assert await client.test_connection("http://ha.local:8123", "token") is False
