"""Entry point: validate inputs, then run the watch-build-run loop."""

from __future__ import annotations

import os
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from hotbuild.args import split_args
from hotbuild.backends.base import CompilerBackend, ProcessBackend
from hotbuild.backends.local import SubprocessCompiler, SubprocessLauncher
from hotbuild.config import Settings
from hotbuild.errors import ConfigurationError
from hotbuild.models import FLAG_CATEGORIES, BuildSpec
from hotbuild.observability import EventLog
from hotbuild.orchestrator import Orchestrator
from hotbuild.paths import get_exts, recursive_paths, resolve_output_path
from hotbuild.signals import LatestSignal
from hotbuild.watch import WatchCoordinator


def make_spec(
    main_files: str | None,
    output_name: str | None,
    flags: Mapping[str, str] | None,
    exts: str,
    recursive: bool,
    app_args: str,
    dirs: tuple[str | Path, ...],
    *,
    exe_suffix: str = "",
) -> BuildSpec:
    """Validate the entry arguments and build the immutable :class:`BuildSpec`."""
    if not dirs:
        raise ConfigurationError(
            "At least one directory to watch is required.",
            hint="The first directory is the primary root that gets compiled.",
            context={"operation": "build"},
        )

    roots = tuple(_absolute(path) for path in dirs)
    primary = roots[0]
    output_path = resolve_output_path(output_name, primary, exe_suffix=exe_suffix)

    return BuildSpec(
        output_path=output_path,
        roots=roots,
        working_dir=output_path.parent,
        main_files=tuple(split_args(main_files or "")),
        flags=_normalize_flags(flags or {}),
        exts=tuple(get_exts(exts)),
        recursive=recursive,
        app_args=tuple(split_args(app_args)),
    )


def _absolute(path: str | Path) -> Path:
    if not str(path):
        raise ConfigurationError(
            "Watch directory must not be empty.",
            context={"operation": "build"},
        )
    try:
        return Path(os.path.abspath(path))
    except OSError as exc:
        raise ConfigurationError(
            "Unable to resolve directory to an absolute path.",
            hint="Check that the current working directory still exists.",
            context={"operation": "build", "path": str(path), "error": str(exc)},
        ) from exc


def _normalize_flags(flags: Mapping[str, str]) -> dict[str, str]:
    normalized: dict[str, str] = {}
    for key, value in flags.items():
        category = FLAG_CATEGORIES.get(key)
        if category is None:
            raise ConfigurationError(
                f"Unknown toolchain flag category `{key}`.",
                hint="Use one of: assembler, external-compiler, general-compiler, linker.",
                context={"operation": "build", "category": key},
            )
        if value:
            normalized[category] = value
    return normalized


class HotBuild:
    """One hot-rebuild session over a :class:`BuildSpec`.

    Construction validates the configuration; :meth:`start` expands the watch
    paths and starts the watcher and orchestrator threads; :meth:`stop` shuts
    both down and terminates the running child.
    """

    def __init__(
        self,
        logs: EventLog,
        main_files: str | None,
        output_name: str | None,
        flags: Mapping[str, str] | None,
        exts: str,
        recursive: bool,
        app_args: str,
        *dirs: str | Path,
        settings: Settings | None = None,
        compiler: CompilerBackend | None = None,
        processes: ProcessBackend | None = None,
        observer_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.logs = logs
        self.settings = settings or Settings.from_env()
        self.spec = make_spec(
            main_files,
            output_name,
            flags,
            exts,
            recursive,
            app_args,
            dirs,
            exe_suffix=self.settings.exe_suffix,
        )
        self.compiler = compiler or SubprocessCompiler(tool=self.settings.compiler)
        self.processes = processes or SubprocessLauncher()
        self.signals = LatestSignal()
        self._observer_factory = observer_factory
        self.watcher: WatchCoordinator | None = None
        self.orchestrator: Orchestrator | None = None

    def start(self) -> HotBuild:
        spec = self.spec
        self.logs.info(f"Arguments passed to the program: {list(spec.app_args)}")
        if spec.exts:
            self.logs.info(f"Watching files with extensions: {list(spec.exts)}")
        else:
            self.logs.warning("No extensions configured; no file changes will be watched!")
        self.logs.info(f"Output binary: {spec.output_path}")

        paths = recursive_paths(spec.recursive, spec.roots)
        self.logs.info(f"Watching {len(paths)} directories under {spec.primary_root}")

        watcher_kwargs: dict[str, Any] = {}
        if self._observer_factory is not None:
            watcher_kwargs["observer_factory"] = self._observer_factory
        watcher = WatchCoordinator(
            paths,
            spec.exts,
            log=self.logs,
            signals=self.signals,
            settings=self.settings,
            **watcher_kwargs,
        )
        watcher.start()
        self.watcher = watcher

        self.orchestrator = Orchestrator(
            spec,
            log=self.logs,
            signals=self.signals,
            compiler=self.compiler,
            processes=self.processes,
            settings=self.settings,
        )
        self.orchestrator.start()
        return self

    def stop(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None
            self.logs.info("Stopped watching for changes.")
        if self.orchestrator is not None:
            self.orchestrator.stop()
        self.signals.close()

    def wait(self, stop: threading.Event, *, interval: float = 0.5) -> None:
        """Block until *stop* is set, then shut the session down."""
        try:
            while not stop.wait(interval):
                pass
        finally:
            self.stop()

    def __enter__(self) -> HotBuild:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def build(
    logs: EventLog,
    main_files: str | None,
    output_name: str | None,
    flags: Mapping[str, str] | None,
    exts: str,
    recursive: bool,
    app_args: str,
    *dirs: str | Path,
    stop: threading.Event | None = None,
    settings: Settings | None = None,
    compiler: CompilerBackend | None = None,
    processes: ProcessBackend | None = None,
) -> None:
    """Run the hot-rebuild loop until *stop* is set.

    ``dirs`` lists the directories to watch; the first one is the primary root
    whose package is compiled. ``output_name`` without a path is placed in the
    primary root, which is then also the child's working directory; with a
    path, the binary's directory is the working directory. ``exts`` is a
    comma-separated extension list, empty to watch nothing and ``*`` for all
    files. ``flags`` maps toolchain categories (assembler, external-compiler,
    general-compiler, linker) to raw flag strings.
    """
    session = HotBuild(
        logs,
        main_files,
        output_name,
        flags,
        exts,
        recursive,
        app_args,
        *dirs,
        settings=settings,
        compiler=compiler,
        processes=processes,
    )
    session.start()
    session.wait(stop if stop is not None else threading.Event())
