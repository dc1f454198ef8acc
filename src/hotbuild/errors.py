"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    """Stable error identifiers used across the orchestrator."""

    CONFIGURATION = "E_CONFIGURATION"
    FILESYSTEM = "E_FILESYSTEM"
    BUILD = "E_BUILD"
    PROCESS_LIFECYCLE = "E_PROCESS_LIFECYCLE"


class HotbuildError(Exception):
    """Base error class that carries code, optional hint, and context.

    Subclasses only pick their ``default_code``.
    """

    default_code: ClassVar[ErrorCode]

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = (code or self.default_code).value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        lines = [super().__str__()]
        if self.hint:
            lines.append(f"Hint: {self.hint}")
        lines.extend(f"  {key}: {value}" for key, value in self.context.items() if value)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ConfigurationError(HotbuildError):
    """Invalid entry arguments or settings; raised before anything starts."""

    default_code = ErrorCode.CONFIGURATION


class FilesystemError(HotbuildError):
    """A watch root could not be walked or subscribed to."""

    default_code = ErrorCode.FILESYSTEM


class BuildError(HotbuildError):
    """The compiler could not be launched or exited with a failure."""

    default_code = ErrorCode.BUILD


class ProcessLifecycleError(HotbuildError):
    """Starting or stopping the compiled program failed."""

    default_code = ErrorCode.PROCESS_LIFECYCLE


__all__ = [
    "BuildError",
    "ConfigurationError",
    "ErrorCode",
    "FilesystemError",
    "HotbuildError",
    "ProcessLifecycleError",
]
