import time
from pathlib import Path

import pytest
from watchdog.events import (
    DirDeletedEvent,
    DirModifiedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from hotbuild.config import Settings
from hotbuild.errors import FilesystemError
from hotbuild.models import LogKind, WatchEvent, WatchEventKind
from hotbuild.observability import EventLog
from hotbuild.signals import LatestSignal
from hotbuild.watch import WatchCoordinator, to_watch_event


class FakeObserver:
    def __init__(self) -> None:
        self.scheduled: list[tuple[str, bool]] = []
        self.running = False

    def schedule(self, handler: object, path: str, recursive: bool = False) -> None:
        if not Path(path).is_dir():
            raise FileNotFoundError(path)
        self.scheduled.append((path, recursive))

    def start(self) -> None:
        self.running = True

    def stop(self) -> None:
        self.running = False

    def join(self, timeout: float | None = None) -> None:
        pass


def test_to_watch_event_maps_file_events() -> None:
    assert to_watch_event(FileModifiedEvent("/src/a.go")) == WatchEvent(
        path=Path("/src/a.go"), kind=WatchEventKind.MODIFIED
    )
    assert to_watch_event(FileCreatedEvent("/src/b.go")).kind is WatchEventKind.CREATED


def test_to_watch_event_uses_destination_of_moves() -> None:
    event = to_watch_event(FileMovedEvent("/src/.main.go.swp", "/src/main.go"))
    assert event is not None
    assert event.path == Path("/src/main.go")
    assert event.ext == ".go"


def test_to_watch_event_drops_directory_and_close_events() -> None:
    assert to_watch_event(DirModifiedEvent("/src")) is None
    assert to_watch_event(FileClosedEvent("/src/a.go")) is None


def test_start_schedules_every_path_non_recursively(tmp_path: Path, settings: Settings) -> None:
    observer = FakeObserver()
    (tmp_path / "sub").mkdir()
    coordinator = _coordinator([tmp_path, tmp_path / "sub"], [".go"], settings, observer)

    coordinator.start()
    coordinator.stop()

    assert observer.scheduled == [(str(tmp_path), False), (str(tmp_path / "sub"), False)]


def test_start_fails_for_missing_directory(tmp_path: Path, settings: Settings) -> None:
    coordinator = _coordinator([tmp_path / "missing"], [".go"], settings, FakeObserver())

    with pytest.raises(FilesystemError) as excinfo:
        coordinator.start()

    assert excinfo.value.context["path"] == str(tmp_path / "missing")


def test_unwatched_extension_is_ignored(tmp_path: Path, settings: Settings) -> None:
    coordinator = _coordinator([tmp_path], [".go"], settings, FakeObserver())

    accepted = coordinator.handle(WatchEvent(path=tmp_path / "readme.md", kind=WatchEventKind.MODIFIED))
    time.sleep(settings.debounce_window * 3)

    assert not accepted
    assert not coordinator.signals.pending
    assert coordinator.log.records_of(LogKind.IGNORE)


def test_empty_extension_set_watches_nothing(tmp_path: Path, settings: Settings) -> None:
    coordinator = _coordinator([tmp_path], [], settings, FakeObserver())
    assert not coordinator.handle(WatchEvent(path=tmp_path / "main.go", kind=WatchEventKind.CREATED))


def test_wildcard_accepts_any_file(tmp_path: Path, settings: Settings) -> None:
    coordinator = _coordinator([tmp_path], ["*"], settings, FakeObserver())
    assert coordinator.handle(WatchEvent(path=tmp_path / "Makefile", kind=WatchEventKind.MODIFIED))
    coordinator.stop()


def test_burst_of_changes_produces_one_signal(tmp_path: Path, settings: Settings) -> None:
    coordinator = _coordinator([tmp_path], [".go"], settings, FakeObserver())
    posted: list[object] = []
    original_post = coordinator.signals.post

    def _post() -> object:
        signal = original_post()
        posted.append(signal)
        return signal

    coordinator.signals.post = _post  # type: ignore[method-assign]

    for index in range(20):
        coordinator.dispatch(FileModifiedEvent(str(tmp_path / f"file{index}.go")))
    time.sleep(settings.debounce_window * 4)

    assert len(posted) == 1
    assert coordinator.signals.take(timeout=0) is not None
    assert [event.message for event in coordinator.log.records_of(LogKind.INFO)] == [
        "Source change detected; requesting rebuild."
    ]


def test_removed_watch_root_is_reported(tmp_path: Path, settings: Settings) -> None:
    coordinator = _coordinator([tmp_path], [".go"], settings, FakeObserver())

    coordinator.dispatch(DirDeletedEvent(str(tmp_path)))

    warnings = coordinator.log.records_of(LogKind.WARNING)
    assert len(warnings) == 1
    assert str(tmp_path) in warnings[0].message


def test_stop_cancels_pending_debounce(tmp_path: Path, settings: Settings) -> None:
    observer = FakeObserver()
    coordinator = _coordinator([tmp_path], [".go"], settings, observer)
    coordinator.start()

    coordinator.dispatch(FileModifiedEvent(str(tmp_path / "main.go")))
    coordinator.stop()
    time.sleep(settings.debounce_window * 3)

    assert not coordinator.signals.pending
    assert not observer.running


def _coordinator(
    paths: list[Path],
    exts: list[str],
    settings: Settings,
    observer: FakeObserver,
) -> WatchCoordinator:
    return WatchCoordinator(
        paths,
        exts,
        log=EventLog(),
        signals=LatestSignal(),
        settings=settings,
        observer_factory=lambda: observer,
    )
