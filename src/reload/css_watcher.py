import asyncio
import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from watchfiles import awatch, Change

logger = logging.getLogger(__name__)

# coarsest mtime resolution we expect from a filesystem
MTIME_GRANULARITY_MS = 1000

def _now_ms() -> int:
    return int(time.time() * 1000)

class CssWatcher:
    """Polls stylesheet directories for files modified since the last poll.

    Stylesheets are not compiled, so they bypass the mtime snapshots the
    build hands us and are checked on their own.
    """

    def __init__(self, css_dirs: Iterable[str], extensions: Iterable[str] = (".css",),
                 last_pass: Optional[int] = None):
        self.css_dirs: List[Path] = [Path(d) for d in css_dirs]
        self.extensions = tuple(extensions)
        self.last_pass = _now_ms() if last_pass is None else last_pass
        self._lock = threading.Lock()
        self._mtimes: Dict[str, int] = {}

    def accepts(self, path: str) -> bool:
        name = os.path.basename(path)
        return not name.startswith('.') and name.endswith(self.extensions)

    def _candidates(self) -> List[Path]:
        files = []
        for css_dir in self.css_dirs:
            if not css_dir.is_dir():
                continue
            for path in css_dir.rglob('*'):
                if path.is_file() and self.accepts(path.name):
                    files.append(path)
        return files

    def poll(self) -> List[str]:
        """Paths modified after last_pass; advances last_pass.

        Filesystems that store mtimes at a coarse resolution can stamp a save
        made just after the previous scan with a time before it. Files whose
        mtime falls within MTIME_GRANULARITY_MS before last_pass are therefore
        also reported when their mtime differs from what the last scan saw.
        """
        with self._lock:
            started = _now_ms()
            last_pass = self.last_pass
            seen: Dict[str, int] = {}
            updated = []
            for path in self._candidates():
                try:
                    mtime_ms = int(path.stat().st_mtime * 1000)
                except FileNotFoundError:
                    continue
                key = str(path)
                seen[key] = mtime_ms
                if mtime_ms > last_pass:
                    updated.append(key)
                elif (mtime_ms > last_pass - MTIME_GRANULARITY_MS
                      and self._mtimes.get(key) != mtime_ms):
                    updated.append(key)
            self._mtimes = seen
            self.last_pass = started
        return sorted(updated)

    def _watch_filter(self, change: Change, path: str) -> bool:
        return change != Change.deleted and self.accepts(path)

    async def watch(self, on_change: Callable[[], None],
                    stop_event: Optional[asyncio.Event] = None):
        """Call on_change whenever the filesystem reports stylesheet activity.

        on_change runs in the default executor, off the event loop.
        """
        existing = [str(d) for d in self.css_dirs if d.is_dir()]
        if not existing:
            logger.warning("No css directories exist, not watching stylesheets")
            return
        logger.info(f"Watching css in {', '.join(existing)}")
        async for changes in awatch(*existing, watch_filter=self._watch_filter,
                                    stop_event=stop_event):
            logger.debug(f"css activity: {len(changes)} change(s)")
            try:
                await asyncio.get_running_loop().run_in_executor(None, on_change)
            except Exception:
                logger.exception("Error handling css change")
