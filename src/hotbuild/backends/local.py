"""Compiler and child-process backends built on ``subprocess``."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from hotbuild.backends.base import CompileResult, ProcessSpec
from hotbuild.errors import BuildError, ProcessLifecycleError


@dataclass(slots=True)
class SubprocessCompileJob:
    process: subprocess.Popen[str]
    command: tuple[str, ...]
    result: CompileResult | None = None

    def wait(self, timeout: float | None = None) -> CompileResult | None:
        if self.result is not None:
            return self.result
        try:
            stdout, stderr = self.process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None
        self.result = CompileResult(
            returncode=self.process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
        )
        return self.result

    def cancel(self) -> None:
        if self.process.poll() is None:
            self.process.kill()


@dataclass(slots=True)
class SubprocessCompiler:
    """Runs ``<tool> <args...>`` with captured output."""

    name: str = "subprocess"
    tool: str = "go"

    def start(self, args: Sequence[str], *, cwd: Path) -> SubprocessCompileJob:
        command = (self.tool, *args)
        try:
            process = subprocess.Popen(
                command,
                cwd=str(cwd),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise BuildError(
                "Failed to launch the compiler.",
                hint=f"Ensure `{self.tool}` is installed and in PATH.",
                context={
                    "backend": self.name,
                    "operation": "compile",
                    "command": " ".join(command),
                    "error": str(exc),
                },
            ) from exc
        return SubprocessCompileJob(process=process, command=command)


@dataclass(slots=True)
class SubprocessLauncher:
    """Starts the compiled binary with inherited stdout/stderr."""

    name: str = "subprocess"

    def start(self, spec: ProcessSpec) -> subprocess.Popen[bytes]:
        try:
            return subprocess.Popen(spec.argv, cwd=str(spec.cwd), env=spec.env)
        except OSError as exc:
            raise ProcessLifecycleError(
                "Failed to start the compiled program.",
                hint="Check that the build produced an executable file.",
                context={
                    "backend": self.name,
                    "operation": "start",
                    "command": " ".join(spec.argv),
                    "cwd": str(spec.cwd),
                    "error": str(exc),
                },
            ) from exc

    def terminate(self, handle: subprocess.Popen[bytes], grace_period: float) -> int | None:
        if handle.poll() is not None:
            return handle.returncode
        context = {"backend": self.name, "operation": "terminate", "pid": str(handle.pid)}
        try:
            handle.terminate()
            try:
                return handle.wait(timeout=grace_period)
            except subprocess.TimeoutExpired:
                pass
            handle.kill()
            return handle.wait(timeout=grace_period)
        except OSError as exc:
            raise ProcessLifecycleError(
                "Failed to signal the process.",
                hint="Check that hotbuild may signal the processes it started.",
                context={**context, "error": str(exc)},
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ProcessLifecycleError(
                "Process survived a forced kill.",
                hint="Stop the process manually before the next rebuild.",
                context=context,
            ) from exc

    def poll(self, handle: subprocess.Popen[bytes]) -> int | None:
        return handle.poll()
