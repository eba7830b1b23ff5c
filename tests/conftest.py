"""Pytest configuration and shared fixtures."""

import io
import logging

import pytest
from PIL import Image


logger = logging.getLogger(__name__)


def make_image(fmt: str, size: tuple[int, int] = (64, 48), color: tuple[int, int, int] = (200, 120, 40)) -> bytes:
    """Encode a solid-color image in the given Pillow format."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image("PNG", color=(30, 160, 90))


@pytest.fixture
def large_jpeg_bytes() -> bytes:
    return make_image("JPEG", size=(2048, 1536))


@pytest.fixture
def tmp_db_path(tmp_path) -> str:
    return str(tmp_path / "test_babcia.db")
