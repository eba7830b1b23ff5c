"""Unit tests for FileImageStore."""

import pytest

from src.core.errors import StorageError
from src.core.image_store import FileImageStore


@pytest.fixture
def store(tmp_path):
    return FileImageStore(tmp_path / "images")


@pytest.mark.unit
class TestFileImageStore:
    def test_save_and_load(self, store, jpeg_bytes):
        store.save_image(jpeg_bytes, "capture_room_1.jpg")

        assert store.load_image("capture_room_1.jpg") == jpeg_bytes
        assert (store.base_dir / "capture_room_1.jpg").exists()

    def test_save_overwrites_without_leaving_temp_files(self, store):
        store.save_image(b"first", "dream.png")
        store.save_image(b"second", "dream.png")

        assert store.load_image("dream.png") == b"second"
        assert [p.name for p in store.base_dir.iterdir()] == ["dream.png"]

    def test_load_missing_returns_none(self, store):
        assert store.load_image("nothing.jpg") is None

    def test_delete_is_idempotent(self, store):
        store.save_image(b"x", "a.jpg")

        store.delete_image("a.jpg")
        store.delete_image("a.jpg")

        assert store.load_image("a.jpg") is None

    @pytest.mark.parametrize("name", ["../escape.jpg", "nested/file.jpg", ""])
    def test_rejects_paths_outside_base_dir(self, store, name):
        with pytest.raises(StorageError):
            store.save_image(b"x", name)
        with pytest.raises(StorageError):
            store.load_image(name)
