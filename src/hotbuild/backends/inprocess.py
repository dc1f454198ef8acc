"""In-process compiler and process backends for testing and development.

Nothing is executed: the compiler writes a placeholder binary after an
optional delay and the process backend only tracks liveness. Both count how
many compilers and processes are active at once, which makes the
orchestrator's serialization observable in tests.
"""

from __future__ import annotations

import itertools
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from hotbuild.backends.base import CompileResult, ProcessSpec
from hotbuild.errors import BuildError, ProcessLifecycleError

CANCELLED_RETURNCODE = -9


class InProcessCompileJob:
    def __init__(self, compiler: InProcessCompiler, args: tuple[str, ...], delay: float) -> None:
        self._compiler = compiler
        self._args = args
        self._deadline = time.monotonic() + delay
        self._cancelled = threading.Event()
        self._result: CompileResult | None = None

    def wait(self, timeout: float | None = None) -> CompileResult | None:
        if self._result is not None:
            return self._result
        remaining = max(0.0, self._deadline - time.monotonic())
        if timeout is not None and timeout < remaining:
            if self._cancelled.wait(timeout):
                return self._finish(cancelled=True)
            return None
        if self._cancelled.wait(remaining):
            return self._finish(cancelled=True)
        return self._finish(cancelled=False)

    def cancel(self) -> None:
        self._cancelled.set()

    def _finish(self, *, cancelled: bool) -> CompileResult:
        if cancelled:
            result = CompileResult(returncode=CANCELLED_RETURNCODE, stderr="killed")
        else:
            result = CompileResult(
                returncode=self._compiler.returncode,
                stdout=self._compiler.stdout,
                stderr=self._compiler.stderr,
            )
            if result.ok:
                self._write_output()
        self._result = result
        self._compiler._release()
        return result

    def _write_output(self) -> None:
        if "-o" not in self._args:
            return
        output = Path(self._args[self._args.index("-o") + 1])
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(f"hotbuild-artifact: {' '.join(self._args)}\n", encoding="utf-8")


@dataclass(slots=True)
class InProcessCompiler:
    """Compiler double whose outcome is controlled through its attributes."""

    name: str = "inprocess"
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    delay: float = 0.0
    spawn_error: bool = False
    invocations: list[tuple[str, ...]] = field(default_factory=list)
    active: int = 0
    max_active: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def start(self, args: Sequence[str], *, cwd: Path) -> InProcessCompileJob:
        if self.spawn_error:
            raise BuildError(
                "Failed to launch the compiler.",
                context={"backend": self.name, "operation": "compile", "cwd": str(cwd)},
            )
        with self._lock:
            self.invocations.append(tuple(args))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        return InProcessCompileJob(self, tuple(args), self.delay)

    def _release(self) -> None:
        with self._lock:
            self.active -= 1


@dataclass(slots=True)
class FakeProcess:
    pid: int
    spec: ProcessSpec
    returncode: int | None = None
    unkillable: bool = False

    @property
    def alive(self) -> bool:
        return self.returncode is None


@dataclass(slots=True)
class InProcessProcesses:
    """Process backend double that tracks started and alive processes."""

    name: str = "inprocess"
    fail_start: bool = False
    unkillable: bool = False
    started: list[FakeProcess] = field(default_factory=list)
    max_alive: int = 0
    _pids: itertools.count[int] = field(default_factory=lambda: itertools.count(1000), repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def alive(self) -> list[FakeProcess]:
        with self._lock:
            return [process for process in self.started if process.alive]

    def start(self, spec: ProcessSpec) -> FakeProcess:
        if self.fail_start:
            raise ProcessLifecycleError(
                "Failed to start the compiled program.",
                context={"backend": self.name, "operation": "start", "command": " ".join(spec.argv)},
            )
        with self._lock:
            process = FakeProcess(pid=next(self._pids), spec=spec, unkillable=self.unkillable)
            self.started.append(process)
            alive = sum(1 for item in self.started if item.alive)
            self.max_alive = max(self.max_alive, alive)
        return process

    def terminate(self, handle: FakeProcess, grace_period: float) -> int | None:
        with self._lock:
            if not handle.alive:
                return handle.returncode
            if handle.unkillable:
                raise ProcessLifecycleError(
                    "Process survived a forced kill.",
                    context={"backend": self.name, "operation": "terminate", "pid": str(handle.pid)},
                )
            handle.returncode = -15
            return handle.returncode

    def poll(self, handle: FakeProcess) -> int | None:
        with self._lock:
            return handle.returncode

    def exit(self, handle: FakeProcess, returncode: int = 0) -> None:
        """Simulate the child exiting on its own."""
        with self._lock:
            handle.returncode = returncode
