"""Command-line front-end for the hot-rebuild loop."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from collections.abc import Sequence

from hotbuild import __version__
from hotbuild.build import HotBuild
from hotbuild.config import Settings
from hotbuild.errors import HotbuildError
from hotbuild.observability import ConsoleRenderer, EventLog

FLAG_OPTIONS = {
    "asmflags": "assembler",
    "gccgoflags": "external-compiler",
    "gcflags": "general-compiler",
    "ldflags": "linker",
}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse the command line.

    Everything after a ``--`` separator is passed to the program, appended to
    any ``--app-args`` value.
    """
    parser = argparse.ArgumentParser(
        prog="hotbuild",
        description="Rebuild and restart a compiled program whenever its sources change.",
        epilog="Example: hotbuild -ext go,tpl svc -- -port=8080",
    )
    parser.add_argument("dirs", nargs="*", default=["."], help="Directories to watch; the first is compiled.")
    parser.add_argument("-m", "--main", default="", help="Main files passed to the compiler.")
    parser.add_argument("-o", "--output", default="", help="Output binary path.")
    parser.add_argument(
        "-x",
        "--app-args",
        default="",
        help="Arguments passed to the program; use --app-args=-flag or put them after --.",
    )
    parser.add_argument(
        "-ext",
        "-e",
        "--ext",
        dest="ext",
        default="go",
        help="Comma-separated extensions to watch; * for all.",
    )
    parser.add_argument(
        "-r",
        "--recursive",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Watch subdirectories too.",
    )
    parser.add_argument("-i", "--show-ignored", action="store_true", help="Print ignored file events.")
    for option in FLAG_OPTIONS:
        parser.add_argument(f"--{option}", default="", help=f"Value forwarded as -{option}.")
    parser.add_argument("--debounce", type=float, default=None, help="Coalescing window in seconds.")
    parser.add_argument("--grace-period", type=float, default=None, help="Seconds before force-killing.")
    parser.add_argument("--log-file", default=None, help="Write events as JSON lines on exit.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug diagnostics.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    argv = list(sys.argv[1:] if argv is None else argv)
    program_args: list[str] = []
    if "--" in argv:
        split = argv.index("--")
        argv, program_args = argv[:split], argv[split + 1 :]
    args = parser.parse_args(argv)
    if program_args:
        args.app_args = " ".join(filter(None, [args.app_args, *map(_quote, program_args)]))
    return args


def _quote(arg: str) -> str:
    # Keep arguments with spaces together when the string is tokenized again.
    return f'"{arg}"' if " " in arg else arg


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.debounce is not None:
        overrides["debounce_window"] = args.debounce
    if args.grace_period is not None:
        overrides["grace_period"] = args.grace_period
    flags = {category: getattr(args, option) for option, category in FLAG_OPTIONS.items()}

    logs = EventLog()
    renderer = ConsoleRenderer(logs, show_ignored=args.show_ignored).start()
    stop = threading.Event()

    def _request_stop(signum: int, frame: object) -> None:
        logs.info(f"Received {signal.Signals(signum).name}; shutting down.")
        stop.set()

    # Handlers must be in place before any child can be started.
    previous = {
        signum: signal.signal(signum, _request_stop) for signum in (signal.SIGINT, signal.SIGTERM)
    }
    session: HotBuild | None = None
    status = 0
    try:
        settings = Settings.from_env(**overrides)
        session = HotBuild(
            logs,
            args.main,
            args.output,
            flags,
            args.ext,
            args.recursive,
            args.app_args,
            *args.dirs,
            settings=settings,
        )
        session.start()
        session.wait(stop)
    except HotbuildError as exc:
        if session is not None:
            session.stop()
        print(f"hotbuild: {exc}", file=sys.stderr)
        status = 2
    finally:
        for signum, handler in previous.items():
            if handler is None:
                continue
            signal.signal(signum, handler)
        renderer.stop()
        if args.log_file:
            logs.to_json_lines(args.log_file)
    return status
