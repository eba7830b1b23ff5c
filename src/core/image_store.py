"""File-backed storage for captured and generated room images."""

import logging
import os
import tempfile
from pathlib import Path

from src.core.config import settings
from src.core.errors import StorageError


logger = logging.getLogger(__name__)


class FileImageStore:
    """Stores image bytes under a base directory by generated file name."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = Path(base_dir or settings.data_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _path_for(self, filename: str) -> Path:
        # Stored names are generated; reject anything that could escape base_dir
        if not filename or Path(filename).name != filename:
            raise StorageError(f"Invalid image file name: {filename!r}")
        return self._base_dir / filename

    def save_image(self, data: bytes, filename: str) -> None:
        """Write the image atomically (temp file + rename)."""
        path = self._path_for(filename)
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._base_dir, prefix=".tmp_")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to save image {filename}: {e}") from e

        logger.debug("image_saved", extra={"image_file": filename, "bytes": len(data)})

    def load_image(self, filename: str) -> bytes | None:
        """Return the stored bytes, or None if the file does not exist."""
        path = self._path_for(filename)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read image {filename}: {e}") from e

    def delete_image(self, filename: str) -> None:
        path = self._path_for(filename)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete image {filename}: {e}") from e
