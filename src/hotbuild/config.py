"""Runtime settings and their environment overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

from hotbuild.errors import ConfigurationError

EXE_SUFFIX_ENV = "GOEXE"
DEBOUNCE_ENV = "HOTBUILD_DEBOUNCE"
GRACE_PERIOD_ENV = "HOTBUILD_GRACE_PERIOD"
COMPILER_ENV = "HOTBUILD_COMPILER"


@dataclass(frozen=True, slots=True)
class Settings:
    debounce_window: float = 1.0
    grace_period: float = 5.0
    poll_interval: float = 0.05
    exe_suffix: str = ""
    compiler: str = "go"
    initial_build: bool = True
    cancel_superseded: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> Settings:
        env = os.environ if environ is None else environ
        values: dict[str, object] = {"exe_suffix": env.get(EXE_SUFFIX_ENV, "")}
        if DEBOUNCE_ENV in env:
            values["debounce_window"] = _parse_seconds(DEBOUNCE_ENV, env[DEBOUNCE_ENV])
        if GRACE_PERIOD_ENV in env:
            values["grace_period"] = _parse_seconds(GRACE_PERIOD_ENV, env[GRACE_PERIOD_ENV])
        if env.get(COMPILER_ENV):
            values["compiler"] = env[COMPILER_ENV]
        values.update(overrides)
        settings = cls(**values)  # type: ignore[arg-type]
        ensure_valid(settings)
        return settings

    def with_overrides(self, **overrides: object) -> Settings:
        settings = replace(self, **overrides)  # type: ignore[arg-type]
        ensure_valid(settings)
        return settings


def ensure_valid(settings: Settings) -> None:
    for name in ("debounce_window", "grace_period", "poll_interval"):
        value = getattr(settings, name)
        if value <= 0:
            raise ConfigurationError(
                f"Setting `{name}` must be a positive number of seconds.",
                context={"operation": "settings", "setting": name, "value": str(value)},
            )
    if not settings.compiler:
        raise ConfigurationError(
            "Setting `compiler` must name an executable.",
            context={"operation": "settings"},
        )


def _parse_seconds(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"Environment variable `{name}` is not a number.",
            hint="Use a duration in seconds, e.g. 0.5.",
            context={"operation": "settings", "variable": name, "value": raw},
        ) from exc
