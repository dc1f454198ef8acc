"""Bridge filesystem notifications to debounced rebuild signals."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from hotbuild.config import Settings
from hotbuild.errors import FilesystemError
from hotbuild.models import WatchEvent, WatchEventKind
from hotbuild.observability import EventLog
from hotbuild.paths import matches_ext
from hotbuild.signals import Debouncer, LatestSignal

logger = logging.getLogger(__name__)

# Open/close notifications carry no content change and are dropped.
EVENT_KINDS: dict[str, WatchEventKind] = {
    EVENT_TYPE_CREATED: WatchEventKind.CREATED,
    EVENT_TYPE_MODIFIED: WatchEventKind.MODIFIED,
    EVENT_TYPE_DELETED: WatchEventKind.DELETED,
    EVENT_TYPE_MOVED: WatchEventKind.MOVED,
}


def to_watch_event(event: FileSystemEvent) -> WatchEvent | None:
    """Convert a watchdog file event; directory and open/close events yield ``None``."""
    if event.is_directory:
        return None
    kind = EVENT_KINDS.get(event.event_type)
    if kind is None:
        return None
    raw_path = event.src_path
    if kind is WatchEventKind.MOVED and getattr(event, "dest_path", ""):
        raw_path = event.dest_path
    return WatchEvent(path=Path(os.fsdecode(raw_path)), kind=kind)


class _Handler(FileSystemEventHandler):
    def __init__(self, coordinator: WatchCoordinator) -> None:
        super().__init__()
        self._coordinator = coordinator

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._coordinator.dispatch(event)


class WatchCoordinator:
    """Subscribes to every watch path and posts one signal per change burst.

    Notification handling only filters and restarts the debounce timer, so the
    observer thread is never held up by a busy orchestrator.
    """

    def __init__(
        self,
        paths: Sequence[Path],
        exts: Sequence[str],
        *,
        log: EventLog,
        signals: LatestSignal,
        settings: Settings,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.paths = tuple(paths)
        self.exts = tuple(exts)
        self.log = log
        self.signals = signals
        self.debouncer = Debouncer(settings.debounce_window, self._emit)
        self._observer_factory = observer_factory
        self._observer: Any = None
        self._watched = {str(path) for path in self.paths}

    def start(self) -> None:
        observer = self._observer_factory()
        handler = _Handler(self)
        for path in self.paths:
            try:
                observer.schedule(handler, str(path), recursive=False)
            except OSError as exc:
                raise FilesystemError(
                    "Failed to watch directory.",
                    hint="Ensure every watch root exists and is readable.",
                    context={"operation": "watch", "path": str(path), "error": str(exc)},
                ) from exc
        try:
            observer.start()
        except OSError as exc:
            raise FilesystemError(
                "Failed to start filesystem observer.",
                hint="Ensure every watch root exists and is readable.",
                context={"operation": "watch", "error": str(exc)},
            ) from exc
        self._observer = observer
        logger.debug("watching %d directories", len(self.paths))

    def stop(self) -> None:
        self.debouncer.cancel()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def dispatch(self, event: FileSystemEvent) -> None:
        if event.is_directory and event.event_type == EVENT_TYPE_DELETED:
            if os.fsdecode(event.src_path) in self._watched:
                self.log.warning(f"Watched directory was removed: {os.fsdecode(event.src_path)}")
            return
        watch_event = to_watch_event(event)
        if watch_event is not None:
            self.handle(watch_event)

    def handle(self, event: WatchEvent) -> bool:
        """Filter one change; accepted changes restart the debounce window."""
        if not matches_ext(event.path, self.exts):
            self.log.ignore(f"Ignoring change to unwatched file: {event.path} ({event.kind})")
            return False
        logger.debug("accepted %s event for %s", event.kind, event.path)
        self.debouncer.trigger()
        return True

    def _emit(self) -> None:
        signal = self.signals.post()
        if signal is not None:
            self.log.info("Source change detected; requesting rebuild.")
