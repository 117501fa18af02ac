from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class LanguageSpec:
    name: str
    extensions: tuple[str, ...]


# The tree-sitter grammar name doubles as the language name.
LANGUAGES: tuple[LanguageSpec, ...] = (
    LanguageSpec("typescript", (".ts",)),
    LanguageSpec("tsx", (".tsx",)),
)

_EXT_TO_LANG = {ext: spec.name for spec in LANGUAGES for ext in spec.extensions}


def detect_language(path: Path) -> str | None:
    """Language name for `path` based on its extension, or None if unsupported."""

    return _EXT_TO_LANG.get(path.suffix.lower())


def allowed_extensions() -> set[str]:
    return set(_EXT_TO_LANG)
