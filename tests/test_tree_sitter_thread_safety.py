from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest


def test_tree_sitter_parser_is_thread_local(monkeypatch) -> None:
    import codestink.engine.tree_sitter as ts

    class DummyParser:
        def parse(self, _source: bytes) -> int:
            return id(self)

    monkeypatch.setattr(ts, "get_parser", lambda _name: DummyParser())
    monkeypatch.setattr(ts, "_check_language", lambda language: language)
    if hasattr(ts._PARSER_LOCAL, "parsers"):
        ts._PARSER_LOCAL.parsers.clear()

    # Same thread should reuse the same Parser instance.
    assert ts.parse("typescript", "let a = 1;") == ts.parse("typescript", "let a = 2;")

    barrier = threading.Barrier(2)

    def worker() -> int:
        barrier.wait()
        return int(ts.parse("typescript", "let a = 1;"))

    with ThreadPoolExecutor(max_workers=2) as executor:
        a, b = list(executor.map(lambda _: worker(), range(2)))

    assert a != b
    ts._PARSER_LOCAL.parsers.clear()


def test_parse_returns_none_for_unsupported_language() -> None:
    from codestink.engine.tree_sitter import parse

    assert parse("cobol", "IDENTIFICATION DIVISION.") is None


def test_parse_returns_tree_for_typescript() -> None:
    from codestink.engine.tree_sitter import parse

    tree = parse("typescript", "const total: number = 1;\n")

    assert tree is not None
    assert tree.root_node.type == "program"


class GrammarDownloadError(Exception):
    pass


def test_parse_returns_none_when_parser_provider_fails(monkeypatch) -> None:
    import codestink.engine.tree_sitter as ts

    def _offline(_name: str) -> None:
        raise GrammarDownloadError("grammar download failed")

    monkeypatch.setattr(ts, "get_parser", _offline)
    monkeypatch.setattr(ts, "_check_language", lambda language: language)
    if hasattr(ts._PARSER_LOCAL, "parsers"):
        ts._PARSER_LOCAL.parsers.clear()

    assert ts.parse("typescript", "let a = 1;") is None


def test_check_language_wraps_provider_errors(monkeypatch) -> None:
    import codestink.engine.tree_sitter as ts

    def _offline(_name: str) -> None:
        raise GrammarDownloadError("grammar download failed")

    monkeypatch.setattr(ts, "_pack_get_language", _offline)
    ts._check_language.cache_clear()
    try:
        with pytest.raises(ts.TreeSitterError):
            ts._check_language("tsx")
    finally:
        ts._check_language.cache_clear()
