import signal
from pathlib import Path

import pytest

from hotbuild import cli
from hotbuild.cli import main, parse_args
from hotbuild.errors import FilesystemError


def test_parse_args_defaults() -> None:
    args = parse_args([])

    assert args.dirs == ["."]
    assert args.ext == "go"
    assert args.recursive is True
    assert args.show_ignored is False
    assert args.ldflags == ""


def test_parse_args_collects_toolchain_flags_and_dirs() -> None:
    args = parse_args(
        ["--no-recursive", "--ldflags", "-s -w", "--app-args=-port=8080", "-o", "bin/app", "svc", "lib"]
    )

    assert args.recursive is False
    assert args.ldflags == "-s -w"
    assert args.app_args == "-port=8080"
    assert args.output == "bin/app"
    assert args.dirs == ["svc", "lib"]


def test_program_arguments_follow_the_separator() -> None:
    args = parse_args(["-x", "quiet", "svc", "--", "-port=8080", "--name", "my app"])

    assert args.dirs == ["svc"]
    assert args.app_args == 'quiet -port=8080 --name "my app"'


def test_single_dash_ext_option_is_recognized() -> None:
    args = parse_args(["-ext", "go,tpl", "svc"])

    assert args.ext == "go,tpl"
    assert args.dirs == ["svc"]
    assert parse_args(["-e", "*"]).ext == "*"


def test_main_reports_startup_errors(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    status = main([str(tmp_path / "missing")])

    assert status == 2
    assert "Watch root is not a readable directory" in capsys.readouterr().err


def test_main_rejects_invalid_debounce(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    status = main(["--debounce", "0", str(tmp_path)])

    assert status == 2
    assert "debounce_window" in capsys.readouterr().err


def test_stop_handlers_cover_session_startup(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    before = signal.getsignal(signal.SIGINT)
    seen: list[object] = []

    def fake_start(self: cli.HotBuild) -> cli.HotBuild:
        seen.append(signal.getsignal(signal.SIGINT))
        raise FilesystemError("watch failed")

    monkeypatch.setattr(cli.HotBuild, "start", fake_start)

    assert main([str(tmp_path)]) == 2
    assert seen and seen[0] is not before
    assert signal.getsignal(signal.SIGINT) is before
