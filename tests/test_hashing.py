import hashlib
import threading

from src.reload.hashing import FileHashStore

class TestFileHashStore:
    def test_first_check_then_unchanged(self, write_source):
        store = FileHashStore()
        path = write_source("out/goog/deps.js", "goog.addDependency('a');")
        assert store.has_changed(path) is True
        assert store.has_changed(path) is False

    def test_content_change_detected(self, write_source):
        store = FileHashStore()
        path = write_source("out/deps.js", "one")
        store.has_changed(path)
        write_source("out/deps.js", "two")
        assert store.has_changed(path) is True
        assert store.get(path) == hashlib.md5(b"two").hexdigest()

    def test_rewrite_with_same_content(self, write_source):
        store = FileHashStore()
        path = write_source("out/deps.js", "same")
        store.has_changed(path)
        write_source("out/deps.js", "same")
        assert store.has_changed(path) is False

    def test_missing_file_is_not_a_change(self, tmp_path):
        store = FileHashStore()
        path = str(tmp_path / "missing.js")
        assert store.has_changed(path) is False
        assert path not in store

    def test_deleted_file_keeps_old_hash(self, write_source, tmp_path):
        store = FileHashStore()
        path = write_source("out/deps.js", "content")
        store.has_changed(path)
        before = store.get(path)
        (tmp_path / "out" / "deps.js").unlink()
        assert store.has_changed(path) is False
        assert store.get(path) == before

    def test_seed_baseline(self, write_source, tmp_path):
        store = FileHashStore()
        path = write_source("out/main.js", "main")
        missing = str(tmp_path / "out" / "nope.js")
        seeded = store.seed_baseline([path, missing])
        assert set(seeded) == {path}
        assert store.has_changed(path) is False

    def test_concurrent_checks_report_one_change(self, write_source):
        store = FileHashStore()
        path = write_source("out/deps.js", "content")
        results = []
        lock = threading.Lock()

        def check():
            changed = store.has_changed(path)
            with lock:
                results.append(changed)

        threads = [threading.Thread(target=check) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count(True) == 1
