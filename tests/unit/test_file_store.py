"""
Unit tests for FileStore.
"""

import threading

import pytest

from pyhttpd.core.file_store import FileStore, PathTraversalError


@pytest.fixture
def store(tmp_path):
    return FileStore(str(tmp_path))


class TestAvailability:
    """Tests for FileStore.is_available()."""

    def test_existing_directory(self, tmp_path):
        assert FileStore(str(tmp_path)).is_available()

    def test_unset(self):
        assert not FileStore(None).is_available()

    def test_missing_directory(self, tmp_path):
        assert not FileStore(str(tmp_path / "missing")).is_available()

    def test_directory_created_later(self, tmp_path):
        """Availability is checked live, not at construction."""
        target = tmp_path / "later"
        store = FileStore(str(target))
        assert not store.is_available()

        target.mkdir()

        assert store.is_available()

    def test_regular_file_is_not_a_directory(self, tmp_path):
        path = tmp_path / "file"
        path.write_bytes(b"")
        assert not FileStore(str(path)).is_available()


class TestReadWrite:
    """Tests for read() and write()."""

    def test_round_trip(self, store, tmp_path):
        store.write("data.bin", b"\x00\x01\xff")

        assert (tmp_path / "data.bin").read_bytes() == b"\x00\x01\xff"
        assert store.read("data.bin") == b"\x00\x01\xff"

    def test_write_replaces(self, store):
        store.write("f", b"long content")
        store.write("f", b"short")

        assert store.read("f") == b"short"

    def test_empty_file(self, store):
        store.write("empty", b"")
        assert store.read("empty") == b""

    def test_missing_file(self, store):
        with pytest.raises(FileNotFoundError):
            store.read("nope")

    def test_subdirectory_inside_root(self, store, tmp_path):
        (tmp_path / "sub").mkdir()
        store.write("sub/f.txt", b"x")

        assert store.read("sub/f.txt") == b"x"

    def test_missing_parent_not_created(self, store):
        with pytest.raises(OSError):
            store.write("no/such/dir.txt", b"x")

    def test_read_directory_is_os_error(self, store, tmp_path):
        (tmp_path / "sub").mkdir()

        with pytest.raises(OSError) as exc_info:
            store.read("sub")
        assert not isinstance(exc_info.value, FileNotFoundError)

    def test_unset_root(self):
        with pytest.raises(FileNotFoundError):
            FileStore(None).read("x")


class TestPathSafety:
    """Names that would leave the serving directory are refused."""

    @pytest.mark.parametrize("name", [
        "../outside",
        "../../etc/passwd",
        "sub/../../outside",
        "/etc/passwd",
        ".",
        "sub/..",
    ])
    def test_escapes_rejected(self, store, name):
        with pytest.raises(PathTraversalError):
            store.read(name)
        with pytest.raises(PathTraversalError):
            store.write(name, b"x")

    def test_nul_byte_rejected(self, store):
        with pytest.raises(PathTraversalError):
            store.write("a\x00b", b"x")

    def test_nothing_written_outside(self, store, tmp_path):
        with pytest.raises(PathTraversalError):
            store.write("../escaped", b"x")

        assert not (tmp_path.parent / "escaped").exists()

    def test_dot_segments_inside_root_allowed(self, store):
        store.write("a/../b", b"ok")
        assert store.read("b") == b"ok"


class TestConcurrentWrites:
    """Concurrent writers to one name."""

    def test_last_writer_wins_whole(self, store):
        payloads = [bytes([i]) * 65536 for i in range(8)]
        barrier = threading.Barrier(len(payloads))

        def writer(data):
            barrier.wait()
            store.write("shared", data)

        threads = [threading.Thread(target=writer, args=(p,)) for p in payloads]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.read("shared") in payloads
        assert store._locks == {}

    def test_lock_table_does_not_grow(self, store):
        """Each path's lock is dropped after its write, failed writes included."""
        for i in range(50):
            store.write(f"file-{i}", b"x")
        with pytest.raises(OSError):
            store.write("no/such/dir.txt", b"x")

        assert store._locks == {}

    def test_writers_to_different_names_do_not_share_a_lock(self, store):
        """A write held open on one path does not block another path."""
        entered = threading.Event()
        release = threading.Event()

        def slow_write():
            with store._locked(store._resolve("held")):
                entered.set()
                release.wait(timeout=5.0)

        t = threading.Thread(target=slow_write)
        t.start()
        assert entered.wait(timeout=5.0)

        store.write("other", b"ok")
        assert len(store._locks) == 1

        release.set()
        t.join()
        assert store.read("other") == b"ok"
        assert store._locks == {}
