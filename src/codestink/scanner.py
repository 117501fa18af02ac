from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from codestink.config import StinkConfig, load_config, path_matches_any
from codestink.languages.registry import allowed_extensions, detect_language
from codestink.utils import report_name

logger = logging.getLogger(__name__)

DEFAULT_SKIP_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".vscode",
    ".venv",
    "venv",
    "node_modules",
    "dist",
    "build",
    "coverage",
    "__pycache__",
}

CODESTINK_WORKERS_ENV = "CODESTINK_WORKERS"
DEFAULT_MAX_WORKERS = 32


class ScanError(RuntimeError):
    """Raised when the scan path cannot be used."""


@dataclass(frozen=True, slots=True)
class ScanTarget:
    project_root: Path
    scan_path: Path
    config: StinkConfig


def resolve_worker_count(
    raw_value: str | None,
    *,
    default: int | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> int:
    """
    Resolve a worker count from an env var-style string.

    None, "", "auto" and non-positive or non-numeric values fall back to the
    default (2 x CPU); values above `max_workers` are clamped.
    """

    cpu = os.cpu_count() or 1
    resolved_default = min(max(1, default if default is not None else (cpu * 2)), max_workers)
    if raw_value is None:
        return resolved_default

    normalized = raw_value.strip().lower()
    if not normalized or normalized in {"auto", "default"}:
        return resolved_default

    try:
        workers = int(normalized)
    except ValueError:
        return resolved_default

    if workers <= 0:
        return resolved_default
    return min(workers, max_workers)


def worker_count_from_env(*, default: int | None = None) -> int:
    return resolve_worker_count(os.environ.get(CODESTINK_WORKERS_ENV), default=default)


def prepare_target(scan_path: Path) -> ScanTarget:
    """
    Resolve the project root and load its configuration.

    The project root is the closest directory (starting at the scan path)
    holding a `pyproject.toml`; without one it is the scan directory itself.
    """

    scan_path = scan_path.resolve()
    if not scan_path.exists():
        raise ScanError(f"Path does not exist: {scan_path}")
    project_root = _detect_project_root(scan_path)
    config = load_config(project_root)
    return ScanTarget(project_root=project_root, scan_path=scan_path, config=config)


def is_selected(path: Path, target: ScanTarget) -> bool:
    if detect_language(path) is None:
        return False
    rel = report_name(path, target.project_root)
    if target.config.include and not path_matches_any(rel, target.config.include):
        return False
    return not path_matches_any(rel, target.config.exclude)


def discover_files(target: ScanTarget) -> list[Path]:
    scan_path = target.scan_path
    if not scan_path.exists():
        raise ScanError(f"Path does not exist: {scan_path}")

    if scan_path.is_file():
        return [scan_path] if is_selected(scan_path, target) else []

    allowed_exts = allowed_extensions()
    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(scan_path, topdown=True):
        dirnames[:] = [d for d in dirnames if d not in DEFAULT_SKIP_DIRS]
        base = Path(dirpath)
        for filename in filenames:
            path = base / filename
            if path.suffix.lower() not in allowed_exts:
                continue
            if is_selected(path, target):
                files.append(path)

    logger.debug("Discovered %d files under %s", len(files), scan_path)
    return sorted(set(files))


def read_source(path: Path) -> str:
    """Read a source file as UTF-8, replacing undecodable bytes. Raises OSError."""

    return path.read_text(encoding="utf-8", errors="replace")


def _detect_project_root(start: Path) -> Path:
    directory = start if start.is_dir() else start.parent
    for candidate in [directory, *directory.parents]:
        if (candidate / "pyproject.toml").exists():
            return candidate
    return directory
