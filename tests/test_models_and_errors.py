from pathlib import Path

from hotbuild.errors import (
    BuildError,
    ConfigurationError,
    ErrorCode,
    FilesystemError,
    ProcessLifecycleError,
)
from hotbuild.models import BuildAttempt, BuildOutcome, BuildSpec, LogEvent, LogKind


def test_compiler_args_follow_toolchain_layout(tmp_path: Path) -> None:
    spec = BuildSpec(
        output_path=tmp_path / "app",
        roots=(tmp_path,),
        working_dir=tmp_path,
        main_files=("main.go",),
        flags={"ld": "-s -w", "asm": "-trimpath"},
    )

    assert spec.compiler_args() == [
        "build",
        "-o",
        str(tmp_path / "app"),
        "-asmflags",
        "-trimpath",
        "-ldflags",
        "-s -w",
        "-v",
        "main.go",
    ]


def test_compiler_args_without_main_files_end_with_verbose(tmp_path: Path) -> None:
    spec = BuildSpec(output_path=tmp_path / "app", roots=(tmp_path,), working_dir=tmp_path)
    assert spec.compiler_args() == ["build", "-o", str(tmp_path / "app"), "-v"]
    assert spec.primary_root == tmp_path


def test_build_attempt_records_outcome() -> None:
    attempt = BuildAttempt(sequence=3)
    assert attempt.in_flight
    assert attempt.duration is None

    attempt.finish(BuildOutcome.FAILURE, returncode=2, stderr="undefined: x")

    assert not attempt.in_flight
    assert attempt.returncode == 2
    assert attempt.duration is not None and attempt.duration >= 0


def test_log_event_serializes_to_dict() -> None:
    event = LogEvent(kind=LogKind.WARNING, message="careful")
    payload = event.to_dict()
    assert payload["kind"] == "warning"
    assert payload["message"] == "careful"
    assert payload["timestamp"].endswith("+00:00")


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ConfigurationError("no roots"),
        FilesystemError("walk failed"),
        BuildError("compile failed"),
        ProcessLifecycleError("kill failed"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.CONFIGURATION.value,
        ErrorCode.FILESYSTEM.value,
        ErrorCode.BUILD.value,
        ErrorCode.PROCESS_LIFECYCLE.value,
    ]


def test_error_string_includes_hint_and_context() -> None:
    error = BuildError(
        "Compiler exited with a non-zero status.",
        hint="Fix the source.",
        context={"returncode": "2", "stderr": "main.go:3: syntax error", "empty": ""},
    )

    text = str(error)
    assert "Hint: Fix the source." in text
    assert "stderr: main.go:3: syntax error" in text
    assert "empty" not in text
    assert error.to_dict()["hint"] == "Fix the source."


def test_error_code_can_be_overridden_per_instance() -> None:
    error = BuildError("compile failed", code=ErrorCode.PROCESS_LIFECYCLE)

    assert error.code == "E_PROCESS_LIFECYCLE"
    assert error.to_dict()["context"] == {}
