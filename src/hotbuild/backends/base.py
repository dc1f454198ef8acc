"""Protocols for compiler and child-process backends."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class CompileResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True, slots=True)
class ProcessSpec:
    executable: Path
    cwd: Path
    args: tuple[str, ...] = ()
    env: Mapping[str, str] | None = None

    @property
    def argv(self) -> list[str]:
        return [str(self.executable), *self.args]


class CompileJob(Protocol):
    def wait(self, timeout: float | None = None) -> CompileResult | None:
        """Return the result once the compiler exits, or ``None`` on timeout."""

    def cancel(self) -> None:
        """Abort the compiler; a following ``wait()`` reports its exit."""


class CompilerBackend(Protocol):
    name: str

    def start(self, args: Sequence[str], *, cwd: Path) -> CompileJob:
        """Launch the compiler, raising ``BuildError`` if it cannot be spawned."""


class ProcessBackend(Protocol):
    name: str

    def start(self, spec: ProcessSpec) -> Any:
        """Start the child and return its handle, or raise ``ProcessLifecycleError``."""

    def terminate(self, handle: Any, grace_period: float) -> int | None:
        """Stop the child: graceful signal, then force kill after *grace_period*.

        Returns the exit code, or raises ``ProcessLifecycleError`` when the
        child survives the forced kill.
        """

    def poll(self, handle: Any) -> int | None:
        """Return the exit code, or ``None`` while the child is alive."""
