"""Core typed dataclasses for build configuration, attempts, and log events."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

# Flag category -> toolchain option prefix (``-<prefix>flags``).
FLAG_CATEGORIES: dict[str, str] = {
    "assembler": "asm",
    "external-compiler": "gccgo",
    "general-compiler": "gc",
    "linker": "ld",
    "asm": "asm",
    "gccgo": "gccgo",
    "gc": "gc",
    "ld": "ld",
}

# Emission order of toolchain flags on the compiler command line.
FLAG_ORDER = ("asm", "gccgo", "gc", "ld")


class LogKind(StrEnum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"
    IGNORE = "ignore"


class WatchEventKind(StrEnum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"


class BuildOutcome(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


class OrchestratorState(StrEnum):
    IDLE = "idle"
    BUILDING = "building"
    RUNNING = "running"
    BUILD_FAILED = "build_failed"


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class LogEvent:
    kind: LogKind
    message: str
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, str]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class WatchEvent:
    path: Path
    kind: WatchEventKind

    @property
    def ext(self) -> str:
        return self.path.suffix


@dataclass(frozen=True, slots=True)
class BuildSpec:
    """Immutable configuration for one orchestration run."""

    output_path: Path
    roots: tuple[Path, ...]
    working_dir: Path
    main_files: tuple[str, ...] = ()
    flags: Mapping[str, str] = field(default_factory=dict)
    exts: tuple[str, ...] = ()
    recursive: bool = True
    app_args: tuple[str, ...] = ()

    @property
    def primary_root(self) -> Path:
        return self.roots[0]

    def compiler_args(self) -> list[str]:
        """Return ``build -o <output> [-<category>flags <value>]* -v [<main files>]``."""
        args = ["build", "-o", str(self.output_path)]
        for category in FLAG_ORDER:
            if category in self.flags:
                args.extend([f"-{category}flags", self.flags[category]])
        args.append("-v")
        args.extend(self.main_files)
        return args


@dataclass(slots=True)
class BuildAttempt:
    sequence: int
    started_at: datetime = field(default_factory=_now)
    finished_at: datetime | None = None
    outcome: BuildOutcome | None = None
    returncode: int | None = None
    stderr: str = ""

    @property
    def in_flight(self) -> bool:
        return self.outcome is None

    @property
    def duration(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def finish(self, outcome: BuildOutcome, *, returncode: int | None, stderr: str = "") -> None:
        self.outcome = outcome
        self.returncode = returncode
        self.stderr = stderr
        self.finished_at = _now()


@dataclass(frozen=True, slots=True)
class RunningProcess:
    handle: Any
    sequence: int
