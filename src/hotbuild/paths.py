"""Extension filtering, watch-path expansion, and output binary naming."""

from __future__ import annotations

import os
from collections.abc import Iterable, Sequence
from pathlib import Path

from hotbuild.errors import FilesystemError

WILDCARD = "*"


def get_exts(raw: str) -> list[str]:
    """Normalize a comma-separated extension list into dot-prefixed suffixes.

    Order is kept and duplicates are not removed. ``*`` is passed through
    as the match-all wildcard. An empty result means no file is watched.
    """
    exts: list[str] = []
    for item in raw.split(","):
        ext = item.strip()
        if not ext:
            continue
        if ext != WILDCARD and not ext.startswith("."):
            ext = "." + ext
        exts.append(ext)
    return exts


def matches_ext(path: str | Path, exts: Iterable[str]) -> bool:
    exts = tuple(exts)
    if WILDCARD in exts:
        return True
    if not exts:
        return False
    return Path(path).suffix in exts


def recursive_paths(recursive: bool, roots: Sequence[Path]) -> list[Path]:
    """Return every directory to watch.

    When *recursive* is false the roots come back unchanged. Otherwise each
    root is walked and every directory below it is collected, skipping any
    directory whose name starts with ``.`` together with its whole subtree.
    Any walk error aborts the expansion.
    """
    if not recursive:
        return list(roots)

    collected: list[Path] = []
    for root in roots:
        collected.extend(_walk_dirs(Path(root)))
    return collected


def _walk_dirs(root: Path) -> list[Path]:
    if not root.is_dir():
        raise FilesystemError(
            "Watch root is not a readable directory.",
            hint="Pass existing directories as watch roots.",
            context={"operation": "recursive_paths", "path": str(root)},
        )

    def _raise(exc: OSError) -> None:
        raise FilesystemError(
            "Failed to walk watch root.",
            hint="Check directory permissions below the watch root.",
            context={
                "operation": "recursive_paths",
                "path": str(exc.filename or root),
                "error": exc.strerror or str(exc),
            },
        ) from exc

    found: list[Path] = []
    for dirpath, dirnames, _ in os.walk(root, onerror=_raise):
        found.append(Path(dirpath))
        dirnames[:] = sorted(name for name in dirnames if not name.startswith("."))
    return found


def resolve_output_path(output_name: str | None, root: Path, *, exe_suffix: str = "") -> Path:
    """Resolve the absolute path of the compiled binary.

    Without *output_name* the primary root's base name is used. *exe_suffix*
    is appended when missing. A bare file name is placed inside *root*.
    """
    name = output_name or root.name
    if exe_suffix and not name.endswith(exe_suffix):
        name += exe_suffix

    if "/" not in name and os.sep not in name:
        return Path(os.path.abspath(root / name))
    return Path(os.path.abspath(name))
