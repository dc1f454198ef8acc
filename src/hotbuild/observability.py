"""Event log channel and console presentation of log events."""

from __future__ import annotations

import json
import logging
import queue
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from hotbuild.models import LogEvent, LogKind

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EventLog:
    """Unbounded, ordered stream of log events.

    Producers only append. Consumers either pull from the live queue with
    :meth:`get` / :meth:`drain` or read the append-only ``records`` history.
    """

    records: list[LogEvent] = field(default_factory=list)
    _queue: queue.SimpleQueue[LogEvent] = field(default_factory=queue.SimpleQueue, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def emit(self, kind: LogKind, message: str) -> LogEvent:
        event = LogEvent(kind=kind, message=message)
        with self._lock:
            self.records.append(event)
            self._queue.put(event)
        logger.debug("%s: %s", kind.value, message)
        return event

    def info(self, message: str) -> LogEvent:
        return self.emit(LogKind.INFO, message)

    def warning(self, message: str) -> LogEvent:
        return self.emit(LogKind.WARNING, message)

    def success(self, message: str) -> LogEvent:
        return self.emit(LogKind.SUCCESS, message)

    def error(self, message: str) -> LogEvent:
        return self.emit(LogKind.ERROR, message)

    def ignore(self, message: str) -> LogEvent:
        return self.emit(LogKind.IGNORE, message)

    def get(self, timeout: float | None = None) -> LogEvent | None:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[LogEvent]:
        events: list[LogEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def records_of(self, kind: LogKind) -> list[LogEvent]:
        with self._lock:
            return [record for record in self.records if record.kind is kind]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            lines = [json.dumps(record.to_dict(), sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path


PREFIXES: dict[LogKind, str] = {
    LogKind.SUCCESS: "[SUCC]",
    LogKind.INFO: "[INFO]",
    LogKind.WARNING: "[WARN]",
    LogKind.ERROR: "[ERRO]",
    LogKind.IGNORE: "[IGNO]",
}


def format_event(event: LogEvent) -> str:
    return f"{PREFIXES[event.kind]} {event.message}"


class ConsoleRenderer:
    """Background thread that prints events from an :class:`EventLog`."""

    def __init__(
        self,
        log: EventLog,
        *,
        stream: TextIO | None = None,
        show_ignored: bool = False,
        poll_interval: float = 0.1,
    ) -> None:
        self.log = log
        self.stream = stream if stream is not None else sys.stdout
        self.show_ignored = show_ignored
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="hotbuild-console", daemon=True)

    def start(self) -> ConsoleRenderer:
        self._thread.start()
        return self

    def stop(self) -> None:
        """Stop after every event emitted so far has been written."""
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join()

    def render(self, event: LogEvent) -> None:
        if event.kind is LogKind.IGNORE and not self.show_ignored:
            return
        self.stream.write(format_event(event) + "\n")
        self.stream.flush()

    def _run(self) -> None:
        while not self._stop.is_set():
            event = self.log.get(timeout=self.poll_interval)
            if event is not None:
                self.render(event)
        for event in self.log.drain():
            self.render(event)
