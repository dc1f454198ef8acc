"""Shared helpers for integration tests."""

from __future__ import annotations

from pathlib import Path

GO_MAIN = """\
package main

import (
	"os"
	"time"
)

func main() {
	_ = os.WriteFile("marker.txt", []byte("{marker}"), 0o644)
	time.Sleep(time.Hour)
}
"""


def write_go_module(root: Path, marker: str) -> Path:
    """Write a minimal Go program that records *marker* in ``marker.txt``."""
    (root / "go.mod").write_text("module example.com/hot\n\ngo 1.21\n", encoding="utf-8")
    main_go = root / "main.go"
    main_go.write_text(GO_MAIN.replace("{marker}", marker), encoding="utf-8")
    return main_go
