"""Watch mode for Inkstand.

Re-runs the content check whenever a markdown file or the configuration
changes, so authoring mistakes show up while writing rather than at publish
time.

Key classes:
- ContentWatcher: Runs the initial check, then re-checks on changes.
- _ChangeHandler: File system event handler that triggers re-checks.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .check import CheckReport, check_content
from .config import (
    CONFIG_FILENAME,
    DEFAULT_CONFIG,
    ConfigError,
    content_root,
    load_config,
    output_root,
)
from .content import FileContentLoader
from .utils import is_markdown

logger = logging.getLogger(__name__)


class ContentWatcher:
    """Checks a content tree and re-checks it on every change.

    Attributes:
        project_root: Root directory of the project.
        on_report: Callback receiving every CheckReport.
        content_dir: Content directory being watched.
        output_dir: Manifest directory, ignored by the watcher.
    """

    def __init__(self, project_root: Path, on_report: Callable[[CheckReport], None]):
        self.project_root = project_root
        self.on_report = on_report
        self.content_dir = project_root.resolve()
        self.output_dir = output_root(project_root, DEFAULT_CONFIG)
        self.exclude: list[str] = []
        self._observer: Observer | None = None
        self._apply_config(load_config(project_root))
        self._checking = False
        self._last_check_at = 0.0
        self._last_signature: tuple | None = None
        self._debounce_seconds = 0.05

    def start(self) -> None:  # pragma: no cover - integration path
        self.recheck(force=True)
        self._start_observer()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def _start_observer(self) -> None:  # pragma: no cover - integration path
        observer = Observer()
        self._schedule(observer)
        observer.start()
        self._observer = observer

    def _schedule(self, observer) -> None:  # pragma: no cover - integration path
        handler = _ChangeHandler(self)
        observer.schedule(handler, str(self.content_dir), recursive=True)
        if self.content_dir != self.project_root.resolve():
            observer.schedule(handler, str(self.project_root), recursive=False)

    def _apply_config(self, config: dict) -> None:
        content_dir = content_root(self.project_root, config)
        self.output_dir = output_root(self.project_root, config)
        self.exclude = list(config.get("exclude") or [])
        if content_dir == self.content_dir:
            return
        logger.info("Watching %s", content_dir)
        self.content_dir = content_dir
        if self._observer:  # pragma: no cover - integration path
            self._observer.unschedule_all()
            self._schedule(self._observer)

    def recheck(self, force: bool = False) -> CheckReport | None:
        """Run the check if content changed since the last run.

        Args:
            force: Run even if nothing changed.

        Returns:
            The new report, or None if the check was skipped.
        """
        now = time.time()
        if not force and (
            self._checking or (now - self._last_check_at) < self._debounce_seconds
        ):
            return None
        # Configuration may have moved the content directory
        try:
            config = load_config(self.project_root)
        except ConfigError as exc:
            config = None
            config_error = exc
        else:
            self._apply_config(config)
        signature = self._compute_signature()
        if not force and signature == self._last_signature:
            return None
        self._checking = True
        try:
            if config is None:
                logger.error("Skipping check: %s", config_error)
                self._last_signature = signature
                return None
            report = check_content(self.content_dir, config)
            self._last_signature = signature
            self.on_report(report)
            return report
        finally:
            self._checking = False
            self._last_check_at = time.time()

    def _compute_signature(self) -> tuple:
        entries: list[tuple] = []
        config_path = self.project_root / CONFIG_FILENAME
        candidates = [config_path] if config_path.exists() else []
        if self.content_dir.exists():
            candidates.extend(FileContentLoader(self.content_dir, self.exclude).iter_files())
        for path in candidates:
            try:
                stat = path.stat()
            except OSError:
                continue
            entries.append((str(path), stat.st_mtime_ns, stat.st_size))
        return tuple(entries)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, watcher: ContentWatcher):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(str(event.src_path))
        try:
            path.relative_to(self.watcher.output_dir)
            return
        except ValueError:
            pass
        if not (is_markdown(path) or path.name == CONFIG_FILENAME):
            return
        self.watcher.recheck()
