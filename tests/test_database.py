"""
Unit tests for the fingerprint store.
"""

import os
import threading

import pytest
from dupehunter.database import (
    FingerprintStore,
    KeyNotFoundError,
    StoreClosedError,
    StoreError,
    StoreStats,
    StoreUnavailableError,
    open_store,
)


class TestOpenStore:
    """Test the store open policy."""

    def test_creates_missing_directory(self, temp_dir):
        data_dir = temp_dir / "nested" / "share" / "db"
        store = open_store(str(data_dir))
        try:
            assert data_dir.is_dir()
            assert os.path.exists(store.db_path)
            assert store.namespace('images').count() == 0
        finally:
            store.close()

    def test_reopen_existing_store(self, temp_dir):
        data_dir = str(temp_dir / "db")
        store = open_store(data_dir)
        store.namespace('images').put("/a.jpg", b"payload")
        store.sync_and_close_all()

        reopened = open_store(data_dir)
        try:
            assert reopened.namespace('images').get("/a.jpg") == b"payload"
        finally:
            reopened.close()

    def test_data_dir_is_a_file(self, temp_dir):
        blocker = temp_dir / "db"
        blocker.write_text("in the way")
        with pytest.raises(StoreUnavailableError):
            open_store(str(blocker))

    def test_cannot_create_directory(self, temp_dir):
        blocker = temp_dir / "file"
        blocker.write_text("in the way")
        with pytest.raises(StoreUnavailableError):
            open_store(str(blocker / "db"))


class TestNamespace:
    """Test key/value operations."""

    def test_put_and_get(self, images_ns):
        images_ns.put("/photos/a.jpg", b'{"x": 1}')
        assert images_ns.has("/photos/a.jpg")
        assert images_ns.get("/photos/a.jpg") == b'{"x": 1}'

    def test_has_missing(self, images_ns):
        assert not images_ns.has("/nope.jpg")

    def test_get_missing_raises(self, images_ns):
        with pytest.raises(KeyNotFoundError):
            images_ns.get("/nope.jpg")

    def test_put_is_upsert(self, images_ns):
        images_ns.put("/a.jpg", b"first")
        images_ns.put("/a.jpg", b"second")
        assert images_ns.get("/a.jpg") == b"second"
        assert images_ns.count() == 1

    def test_binary_values_round_trip(self, images_ns):
        value = bytes(range(256))
        images_ns.put("/bin", value)
        assert images_ns.get("/bin") == value

    def test_keys(self, images_ns):
        for name in ("c", "a", "b"):
            images_ns.put(f"/{name}.png", b"v")
        assert sorted(images_ns.keys()) == ["/a.png", "/b.png", "/c.png"]

    def test_keys_empty(self, images_ns):
        assert images_ns.keys() == []

    def test_concurrent_puts(self, images_ns):
        def writer(offset):
            for i in range(20):
                images_ns.put(f"/t{offset}/{i}.jpg", f"{offset}-{i}".encode())

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert images_ns.count() == 160
        assert images_ns.get("/t3/7.jpg") == b"3-7"


class TestFingerprintStore:
    """Test FingerprintStore lifecycle."""

    def test_init_existing_namespace_is_not_an_error(self, store):
        assert store.init('images') is False

    def test_init_new_namespace(self, store):
        assert store.init('thumbnails') is True
        assert store.namespace('thumbnails').count() == 0

    def test_namespace_not_initialized(self, store):
        with pytest.raises(StoreError, match="not initialized"):
            store.namespace('missing')

    def test_invalid_namespace_name(self, store):
        with pytest.raises(ValueError):
            store.init('images; DROP TABLE meta')

    def test_namespace_handle_is_cached(self, store):
        assert store.namespace('images') is store.namespace('images')

    def test_sync_all(self, store, images_ns):
        images_ns.put("/a.jpg", b"v")
        store.sync_all()
        assert images_ns.get("/a.jpg") == b"v"

    def test_closed_store_rejects_operations(self, temp_dir):
        store = open_store(str(temp_dir / "db"))
        ns = store.namespace('images')
        store.close()
        assert store.closed
        with pytest.raises(StoreClosedError):
            ns.put("/a.jpg", b"v")
        with pytest.raises(StoreClosedError):
            store.sync_all()

    def test_close_twice(self, temp_dir):
        store = open_store(str(temp_dir / "db"))
        store.close()
        store.close()
        assert store.closed

    def test_context_manager(self, temp_dir):
        (temp_dir / "ctx").mkdir()
        with FingerprintStore(str(temp_dir / "ctx" / "store.db")) as store:
            store.init('images')
        assert store.closed

    def test_stats(self, store, images_ns):
        images_ns.put("/a.jpg", b"v")
        stats = store.stats('images')
        assert isinstance(stats, StoreStats)
        assert stats.total_keys == 1
        assert stats.db_size_bytes > 0
        assert stats.db_size_formatted.endswith("B")
