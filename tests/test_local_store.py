"""
Tests for per-key local JSON files
"""
import os

import pytest

from churchsite.exceptions import LocalStoreException, ValidationException
from churchsite.local_store import LocalFileStore


class TestLocalFileStore:

    def test_path_for_key(self, local_store, content_dir):
        assert local_store.path_for("events_ta") == os.path.join(content_dir, "events_ta.json")

    @pytest.mark.parametrize("key", ["", "../secrets", "a/b", "about.json", None])
    def test_rejects_unsafe_keys(self, local_store, key):
        with pytest.raises(ValidationException):
            local_store.path_for(key)

    def test_read_missing_raises(self, local_store):
        assert not local_store.exists("about")
        with pytest.raises(LocalStoreException, match="No local content"):
            local_store.read("about")

    def test_exists_tracks_written_keys(self, local_store):
        assert not local_store.exists("events")
        local_store.write("events", [])
        assert local_store.exists("events")
        with pytest.raises(ValidationException):
            local_store.exists("../events")

    def test_read_corrupt_raises(self, local_store, content_dir):
        with open(os.path.join(content_dir, "about.json"), "w") as f:
            f.write("{not json")
        with pytest.raises(LocalStoreException, match="Unreadable"):
            local_store.read("about")

    def test_write_keeps_unicode(self, local_store):
        local_store.write("about_ta", {"title": "எங்களைப் பற்றி"})
        with open(local_store.path_for("about_ta"), encoding="utf-8") as f:
            assert "எங்களைப் பற்றி" in f.read()
        assert local_store.read("about_ta") == {"title": "எங்களைப் பற்றி"}

    def test_write_creates_directory(self, tmp_path):
        store = LocalFileStore(str(tmp_path / "fresh" / "data"))
        store.write("events", [])
        assert store.exists("events")

    def test_write_unserializable_raises(self, local_store):
        with pytest.raises(LocalStoreException):
            local_store.write("events", [object()])
