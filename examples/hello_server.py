"""Watch a Go service directory and keep the latest build running.

Usage: ``python examples/hello_server.py path/to/service``
"""

import signal
import sys
import threading

from hotbuild import ConsoleRenderer, EventLog, build


def main(service_dir: str) -> None:
    logs = EventLog()
    renderer = ConsoleRenderer(logs).start()
    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    try:
        build(
            logs,
            None,
            None,
            {"linker": "-s -w"},
            "go,tpl",
            True,
            "-addr=:8080",
            service_dir,
            stop=stop,
        )
    finally:
        renderer.stop()


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else ".")
