"""
Hooks the build calls into.

``ChangeNotifier.check_for_changes`` should be called whenever a compile run
has completed, with the ``{path: mtime}`` maps of the source files before
and after the run. The result is appended to the change log, where every
connected client channel picks it up.

Only namespaces that belong to the project are reloaded; compiled output of
third party libraries is never sent. Dependency files (``goog/deps.js`` and
the main output file) have no namespace and are rewritten on every build,
so they are sent only when their content changes.
"""
import logging
from typing import List, Optional

from ..core.config_manager import ReloadConfig
from ..monitoring.metrics import MetricsTracker
from .change_log import ChangeLog
from .compile_errors import report_compile_failure, report_compile_warning
from .css_watcher import CssWatcher
from .hashing import FileHashStore
from .messages import CompileFailed, CompileWarning, CssFilesChanged, FileRef, FilesChanged
from .paths import (
    make_server_relative_css_path,
    make_server_relative_file_path,
    make_server_relative_path,
    munge,
    resource_paths_pattern_str,
)
from .snapshot_diff import Snapshot, get_changed_source_file_ns

logger = logging.getLogger(__name__)

class ChangeNotifier:
    def __init__(self, config: Optional[ReloadConfig] = None,
                 change_log: Optional[ChangeLog] = None,
                 metrics: Optional[MetricsTracker] = None):
        self.config = config or ReloadConfig()
        self.change_log = change_log if change_log is not None else ChangeLog()
        self.metrics = metrics or MetricsTracker()
        self.hash_store = FileHashStore()
        self.hash_store.seed_baseline(self.dependency_files())
        self.css_watcher = CssWatcher(self.config.css_dirs) if self.config.css_dirs else None
        logger.info(f"Serving files from '{resource_paths_pattern_str(self.config)}'")

    # -- compiled output -----------------------------------------------------

    def dependency_files(self) -> List[str]:
        return [self.config.output_to, f"{self.config.output_dir}/goog/deps.js"]

    def get_dependency_files(self) -> List[FileRef]:
        """Refs for dependency files whose content changed since the last check"""
        return [
            FileRef(file=make_server_relative_file_path(self.config, path), dependency_file=True)
            for path in self.dependency_files()
            if self.hash_store.has_changed(path)
        ]

    def make_sendable_file(self, ns: str) -> FileRef:
        return FileRef(file=make_server_relative_path(self.config, ns), namespace=munge(ns))

    def check_for_changes(self, old_mtimes: Snapshot, new_mtimes: Snapshot) -> FilesChanged:
        """Diff the snapshots and tell clients which files to reload"""
        namespaces = sorted(get_changed_source_file_ns(old_mtimes, new_mtimes))
        files = self.get_dependency_files() + [self.make_sendable_file(ns) for ns in namespaces]
        return self.send_changed_files(files)

    on_build_complete = check_for_changes

    def send_changed_files(self, files: List[FileRef]) -> FilesChanged:
        event = FilesChanged(files=files)
        self._append(event)
        for f in files:
            logger.info(f"notifying browser that file changed: {f.file}")
        return event

    # -- stylesheets ---------------------------------------------------------

    def make_css_file(self, path: str) -> FileRef:
        return FileRef(file=make_server_relative_css_path(self.config, path), type="css")

    def check_for_css_changes(self) -> Optional[CssFilesChanged]:
        if self.css_watcher is None:
            return None
        changed = self.css_watcher.poll()
        if not changed:
            return None
        event = CssFilesChanged(files=[self.make_css_file(p) for p in changed])
        self._append(event)
        for f in event.files:
            logger.info(f"sending changed CSS file: {f.file}")
        return event

    # -- build problems ------------------------------------------------------

    def compile_error_occured(self, exc: BaseException) -> Optional[CompileFailed]:
        event = report_compile_failure(self.change_log, exc)
        if event is not None:
            self.metrics.record('events_appended')
            self.metrics.record_error('compile_failed', str(exc))
        return event

    def compile_warning_occured(self, message: str) -> Optional[CompileWarning]:
        event = report_compile_warning(self.change_log, message)
        if event is not None:
            self.metrics.record('events_appended')
        return event

    on_compile_error = compile_error_occured
    on_compile_warning = compile_warning_occured

    def _append(self, event):
        self.change_log.append(event)
        self.metrics.record('events_appended')
