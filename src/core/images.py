"""Image decoding, resizing and encoding with Pillow."""

import io
import uuid

from PIL import Image, UnidentifiedImageError

from src.core.config import constants
from src.core.errors import ImageProcessingError


def _open(data: bytes) -> Image.Image:
    if not data:
        raise ImageProcessingError("Image data is empty")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageProcessingError(f"Invalid image data: {e}") from e
    return image


def validate_image(data: bytes) -> bytes:
    """Return data unchanged if it decodes as an image."""
    _open(data)
    return data


def encode_jpeg(data: bytes, *, quality: int, max_dimension: int | None = None) -> bytes:
    """Re-encode an image as JPEG, optionally shrinking its long side to max_dimension."""
    image = _open(data)
    if max_dimension is not None:
        image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
    if image.mode != "RGB":
        image = image.convert("RGB")

    buffer = io.BytesIO()
    try:
        image.save(buffer, format="JPEG", quality=quality)
    except (OSError, ValueError) as e:
        raise ImageProcessingError(f"Failed to encode JPEG: {e}") from e
    return buffer.getvalue()


def prepare_for_analysis(data: bytes) -> bytes:
    """Resize to the analysis limit and encode as JPEG for inline upload."""
    return encode_jpeg(
        data,
        quality=constants.ANALYSIS_JPEG_QUALITY,
        max_dimension=constants.IMAGE_MAX_DIMENSION,
    )


def encode_png(data: bytes) -> bytes:
    """Re-encode an image as PNG (stylized images are stored losslessly)."""
    image = _open(data)
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as e:
        raise ImageProcessingError(f"Failed to encode PNG: {e}") from e
    return buffer.getvalue()


def generate_filename(prefix: str, room_id: str, extension: str) -> str:
    """Build a unique stored-image name like 'capture_<room>_<uuid>.jpg'."""
    return f"{prefix}_{room_id}_{uuid.uuid4()}.{extension}"
