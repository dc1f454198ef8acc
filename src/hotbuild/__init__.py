"""Hot-rebuild orchestrator for compiled programs."""

__version__ = "0.1.0"

from .args import split_args
from .build import HotBuild, build
from .config import Settings
from .errors import (
    BuildError,
    ConfigurationError,
    ErrorCode,
    FilesystemError,
    HotbuildError,
    ProcessLifecycleError,
)
from .models import BuildSpec, LogEvent, LogKind, OrchestratorState
from .observability import ConsoleRenderer, EventLog
from .paths import get_exts, recursive_paths, resolve_output_path

__all__ = [
    "BuildError",
    "BuildSpec",
    "ConfigurationError",
    "ConsoleRenderer",
    "ErrorCode",
    "EventLog",
    "FilesystemError",
    "HotBuild",
    "HotbuildError",
    "LogEvent",
    "LogKind",
    "OrchestratorState",
    "ProcessLifecycleError",
    "Settings",
    "build",
    "get_exts",
    "recursive_paths",
    "resolve_output_path",
    "split_args",
]
