from __future__ import annotations

from pathlib import Path


def report_name(path: Path, root: Path) -> str:
    """
    Name a source file the way reports show it.

    Files under `root` get a POSIX path relative to it; anything else keeps its
    own POSIX form so names stay stable across platforms.
    """

    if not path.is_absolute():
        path = root / path
    candidate = _normalized(path)
    base = _normalized(root)
    if candidate.is_relative_to(base):
        return candidate.relative_to(base).as_posix()
    return path.as_posix()


def _normalized(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path.absolute()
