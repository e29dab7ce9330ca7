"""Unit tests for the CookieStore persistence layer."""

from unittest.mock import patch

import pytest

from tracker_exporter.cookie_store import CookieStore
from tracker_exporter.exceptions import PersistenceError


class TestSaveAndLoad:
    """Tests for save()/load()."""

    def test_save_then_load(self, tmp_path):
        store = CookieStore(tmp_path / "tracker.cookie")
        store.save("uid=1; pass=abc")
        assert store.load() == "uid=1; pass=abc"

    def test_file_holds_exact_header(self, tmp_path):
        path = tmp_path / "tracker.cookie"
        CookieStore(path).save("uid=1; pass=abc")
        assert path.read_text(encoding="utf-8") == "uid=1; pass=abc"

    def test_save_overwrites(self, tmp_path):
        store = CookieStore(tmp_path / "tracker.cookie")
        store.save("uid=1; pass=old")
        store.save("uid=1; pass=new")
        assert store.load() == "uid=1; pass=new"

    def test_save_creates_parent_dirs(self, tmp_path):
        store = CookieStore(tmp_path / "nested" / "dir" / "tracker.cookie")
        store.save("a=1")
        assert store.load() == "a=1"

    def test_no_temp_files_left_behind(self, tmp_path):
        CookieStore(tmp_path / "tracker.cookie").save("a=1")
        assert [p.name for p in tmp_path.iterdir()] == ["tracker.cookie"]

    def test_load_missing_returns_none(self, tmp_path):
        assert CookieStore(tmp_path / "absent.cookie").load() is None

    def test_load_strips_trailing_newline(self, tmp_path):
        path = tmp_path / "tracker.cookie"
        path.write_text("uid=1\n", encoding="utf-8")
        assert CookieStore(path).load() == "uid=1"


class TestErrors:
    """Tests for PersistenceError wrapping."""

    def test_unwritable_target_raises_persistence_error(self, tmp_path):
        store = CookieStore(tmp_path / "tracker.cookie")
        with patch("tracker_exporter.cookie_store.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(PersistenceError, match="Could not write cookie file"):
                store.save("a=1")
        # The temp file was cleaned up and nothing was written.
        assert list(tmp_path.iterdir()) == []

    def test_parent_is_a_file_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        store = CookieStore(blocker / "tracker.cookie")
        with pytest.raises(PersistenceError):
            store.save("a=1")
