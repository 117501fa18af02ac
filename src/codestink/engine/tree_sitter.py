from __future__ import annotations

import logging
import threading
from functools import lru_cache
from typing import Protocol, cast

from tree_sitter_language_pack import get_language as _pack_get_language
from tree_sitter_language_pack import get_parser as _pack_get_parser

from codestink.engine.context import SyntaxTree

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("typescript", "tsx")


class _ParserLike(Protocol):
    def parse(self, source: bytes) -> object: ...


class TreeSitterError(RuntimeError):
    """Raised when tree-sitter cannot load a language or parse source."""


# Exposed for tests and light monkeypatching in downstream tooling.
get_parser = _pack_get_parser


@lru_cache(maxsize=8)
def _check_language(language: str) -> str:
    if language not in SUPPORTED_LANGUAGES:
        raise TreeSitterError(f"unsupported language: {language!r}")
    # The language pack raises its own error hierarchy, e.g. on grammar downloads.
    try:
        _pack_get_language(language)  # type: ignore[arg-type]
    except Exception as exc:  # noqa: BLE001
        raise TreeSitterError(f"tree-sitter language not available: {language!r}") from exc
    return language


_PARSER_LOCAL = threading.local()


def _get_parser(language: str) -> _ParserLike:
    """
    Return a per-thread Parser instance for the requested language.

    tree-sitter Parser objects are not thread-safe; sharing a single cached
    Parser across threads can lead to crashes or corrupted parse output.
    """

    parsers: dict[str, _ParserLike] | None = getattr(_PARSER_LOCAL, "parsers", None)
    if parsers is None:
        parsers = {}
        _PARSER_LOCAL.parsers = parsers

    parser = parsers.get(language)
    if parser is not None:
        return parser

    _check_language(language)
    try:
        parser = cast(_ParserLike, get_parser(language))  # type: ignore[arg-type]
    except Exception as exc:  # noqa: BLE001
        raise TreeSitterError(f"cannot create parser for {language!r}") from exc
    parsers[language] = parser
    return parser


def parse(language: str, source: str) -> SyntaxTree | None:
    """
    Parse source code with tree-sitter.

    tree-sitter is error tolerant: syntactically broken input still yields a
    tree with ERROR nodes. Returns None only if parsing fails unexpectedly.
    """

    try:
        parser = _get_parser(language)
        tree = parser.parse(source.encode("utf-8", errors="replace"))
        return cast(SyntaxTree, tree)
    except (TreeSitterError, ValueError, TypeError, RuntimeError) as exc:
        logger.debug("tree-sitter parse failed (%s): %s", language, exc)
        return None
