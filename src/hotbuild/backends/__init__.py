"""Compiler and process backend interfaces and implementations."""

from .base import CompileJob, CompileResult, CompilerBackend, ProcessBackend, ProcessSpec
from .inprocess import FakeProcess, InProcessCompiler, InProcessProcesses
from .local import SubprocessCompiler, SubprocessLauncher

__all__ = [
    "CompileJob",
    "CompileResult",
    "CompilerBackend",
    "FakeProcess",
    "InProcessCompiler",
    "InProcessProcesses",
    "ProcessBackend",
    "ProcessSpec",
    "SubprocessCompiler",
    "SubprocessLauncher",
]
