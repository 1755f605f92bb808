import hashlib
import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)

class FileHashStore:
    """Remembers the last seen md5 of files whose mtime is not trustworthy.

    Generated dependency files are rewritten on every build even when their
    content is the same, so they are compared by content instead.
    """

    def __init__(self):
        self._file_hashes: Dict[str, str] = {}
        self._lock = threading.Lock()

    def has_changed(self, file_path: str) -> bool:
        """Standard md5 check to see if a file actually changed.

        A missing file never counts as changed and leaves the store alone.
        """
        checksum = self._get_file_hash(file_path)
        if checksum is None:
            return False
        with self._lock:
            changed = self._file_hashes.get(file_path) != checksum
            self._file_hashes[file_path] = checksum
        return changed

    def seed_baseline(self, file_paths: Iterable[str]) -> Dict[str, str]:
        """Record current hashes so the first build is not reported as a change"""
        for file_path in file_paths:
            self.has_changed(file_path)
        return self.snapshot()

    def get(self, file_path: str) -> Optional[str]:
        with self._lock:
            return self._file_hashes.get(file_path)

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._file_hashes)

    def __contains__(self, file_path: str) -> bool:
        with self._lock:
            return file_path in self._file_hashes

    @staticmethod
    def _get_file_hash(file_path: str) -> Optional[str]:
        """Get md5 hash of file contents, None if the file is not there"""
        path = Path(file_path)
        if not path.is_file():
            return None
        digest = hashlib.md5()
        try:
            with open(path, 'rb') as f:
                for chunk in iter(lambda: f.read(65536), b''):
                    digest.update(chunk)
        except FileNotFoundError:
            # removed between the check and the read
            logger.debug(f"{file_path} vanished while hashing")
            return None
        return digest.hexdigest()
