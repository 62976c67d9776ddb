"""
Background rebuild helpers for the preview server.

- RebuildCoordinator runs one build at a time; triggers arriving during a
  build collapse into a single pending rebuild.
- ContentEventHandler turns file system events for content markdown and the
  templates into debounced rebuild requests.
- ContentWatcher schedules that handler on a watchdog Observer.
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from mdbuilder.config import BuilderConfig
from mdbuilder.logger import get_logger
from mdbuilder.site.builder import SiteBuilder

logger = get_logger(__name__)


@dataclass
class RebuildState:
    """Snapshot of the coordinator, exposed by the preview server."""

    state: str = "idle"  # idle|running|completed|failed
    build_count: int = 0
    coalesced_count: int = 0
    pending: bool = False
    last_reason: Optional[str] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RebuildCoordinator:
    """
    Serializes rebuilds of one SiteBuilder.

    Args:
        builder: The builder to run
        run_async: Build in a background thread (the preview server) or in the
            calling thread (tests, one-off triggers)
    """

    def __init__(self, builder: SiteBuilder, run_async: bool = True):
        self.builder = builder
        self.run_async = run_async
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._running = False
        self._pending = False
        self._invalidate_pending = False
        self._state = RebuildState()

    def request(self, reason: Optional[str] = None, invalidate_templates: bool = False) -> bool:
        """
        Ask for a rebuild.

        Returns:
            True if a build was started, False if the request was folded into
            the pending rebuild of a running build.
        """
        with self._lock:
            self._state.last_reason = reason
            if invalidate_templates:
                self._invalidate_pending = True
            if self._running:
                self._pending = True
                self._state.pending = True
                self._state.coalesced_count += 1
                logger.debug(f"Rebuild already running; queued ({reason or 'manual'})")
                return False
            self._running = True
            self._idle.clear()

        if self.run_async:
            thread = threading.Thread(target=self._run_loop, name="mdbuilder-rebuild", daemon=True)
            thread.start()
        else:
            self._run_loop()
        return True

    def _run_loop(self) -> None:
        while True:
            with self._lock:
                invalidate = self._invalidate_pending
                self._invalidate_pending = False
                self._state.state = "running"
                self._state.started_at = time.time()

            if invalidate:
                self.builder.invalidate_templates()
            self._run_once()

            with self._lock:
                if self._pending:
                    self._pending = False
                    self._state.pending = False
                    continue
                self._running = False
                self._idle.set()
                return

    def _run_once(self) -> None:
        logger.info("Rebuilding...")
        try:
            self.builder.build()
        except Exception as exc:
            error_type = type(exc).__name__
            with self._lock:
                self._state.state = "failed"
                self._state.error = f"{error_type}: {exc}"
                self._state.build_count += 1
                self._state.finished_at = time.time()
            logger.error(f"Build failed: {error_type}: {exc}")
            return

        with self._lock:
            self._state.state = "completed"
            self._state.error = None
            self._state.build_count += 1
            self._state.finished_at = time.time()
        logger.info("Build completed successfully.")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no build is running or pending."""
        return self._idle.wait(timeout)

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return self._state.to_dict()


class ContentEventHandler(FileSystemEventHandler):
    """
    Rebuild trigger for watchdog events.

    Only markdown files below the content directory and the configured
    template files count; everything else is ignored. Events arriving within
    ``debounce`` seconds of each other are sent as one request, which also
    invalidates the template cache if any of them touched a template.
    """

    def __init__(self, config: BuilderConfig, coordinator: RebuildCoordinator, debounce: float = 0.2):
        self.coordinator = coordinator
        self.debounce = debounce
        self.content_dir = config.content_dir.resolve()
        self.template_paths = {
            path.resolve()
            for path in (config.template_path, config.homepage_template_path)
            if path is not None
        }
        self.lock = threading.Lock()
        self.timer: Optional[threading.Timer] = None
        self._changed: List[Path] = []
        self._templates_changed = False

    def is_template(self, path: Path) -> bool:
        return path in self.template_paths

    def is_content(self, path: Path) -> bool:
        return path.suffix == '.md' and self.content_dir in path.parents

    def _event_paths(self, event: FileSystemEvent) -> List[Path]:
        paths = [event.src_path]
        dest_path = getattr(event, 'dest_path', None)
        if dest_path:
            paths.append(dest_path)
        return [Path(os.fsdecode(path)).resolve() for path in paths]

    def dispatch(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        super().dispatch(event)

    def _record(self, event: FileSystemEvent, action: str) -> None:
        relevant = [path for path in self._event_paths(event) if self.is_template(path) or self.is_content(path)]
        if not relevant:
            return

        for path in relevant:
            logger.info(f"File {action}: {path}")
        with self.lock:
            self._changed.extend(relevant)
            self._templates_changed = self._templates_changed or any(self.is_template(p) for p in relevant)
            if self.debounce > 0:
                if self.timer is not None:
                    self.timer.cancel()
                self.timer = threading.Timer(self.debounce, self.flush)
                self.timer.daemon = True
                self.timer.start()
                return
        self.flush()

    def flush(self) -> bool:
        """Send the collected changes as one rebuild request; False if there were none."""
        with self.lock:
            changed, self._changed = self._changed, []
            invalidate, self._templates_changed = self._templates_changed, False
            self.timer = None
        if not changed:
            return False
        self.coordinator.request(reason=str(changed[0]), invalidate_templates=invalidate)
        return True

    def cancel(self) -> None:
        with self.lock:
            if self.timer is not None:
                self.timer.cancel()
                self.timer = None

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(event, "added")

    def on_modified(self, event: FileSystemEvent) -> None:
        self._record(event, "changed")

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._record(event, "removed")

    def on_moved(self, event: FileSystemEvent) -> None:
        self._record(event, "moved")


class ContentWatcher:
    """Watches the content tree and the template directories with a watchdog Observer."""

    def __init__(self, config: BuilderConfig, coordinator: RebuildCoordinator, debounce: float = 0.2):
        self.handler = ContentEventHandler(config, coordinator, debounce=debounce)
        self.observer: Optional[Observer] = None

    def watch_paths(self) -> List[Path]:
        """Directories to schedule: the content tree, then each template directory not already inside it."""
        content_dir = self.handler.content_dir
        paths = [content_dir] if content_dir.is_dir() else []
        for template_path in sorted(self.handler.template_paths):
            parent = template_path.parent
            if parent == content_dir or content_dir in parent.parents:
                continue
            if parent.is_dir() and parent not in paths:
                paths.append(parent)
        return paths

    def start(self) -> None:
        if self.observer is not None:
            return
        self.observer = Observer()
        for path in self.watch_paths():
            self.observer.schedule(self.handler, str(path), recursive=path == self.handler.content_dir)
            logger.info(f"Watching: {path}")
        self.observer.start()
        logger.info("File watcher ready. Watching for changes to markdown files and templates...")

    def stop(self) -> None:
        self.handler.cancel()
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None
