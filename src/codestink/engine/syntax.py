from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from typing import Any

from codestink.engine.context import ParsedFragment
from codestink.engine.tree_sitter import parse
from codestink.engine.types import FunctionKind

FUNCTION_NODE_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)
# Nodes that open a new scope for variable collection.
SCOPE_NODE_TYPES = FUNCTION_NODE_TYPES | {"class_declaration", "class", "abstract_class_declaration"}

CALL_NODE_TYPES = frozenset({"call_expression"})
STATEMENT_NODE_TYPES = frozenset({"lexical_declaration", "variable_declaration", "expression_statement"})
IDENTIFIER_NODE_TYPES = frozenset({"identifier", "property_identifier", "shorthand_property_identifier"})

# Methods are not valid at the top level of a program, so method fragments are
# parsed inside a throwaway class body.
_METHOD_WRAPPER_PREFIX = "class __CodeStinkFragment__ {\n"
_METHOD_WRAPPER_SUFFIX = "\n}\n"


class AbstractionMix(enum.Flag):
    NONE = 0
    HIGH = enum.auto()  # delegation: calls another function
    LOW = enum.auto()  # direct operations: declarations and bare statements
    MIXED = HIGH | LOW


def iter_nodes(node: Any) -> Iterator[Any]:
    """Pre-order walk over `node` and all of its descendants."""

    stack = [node]
    while stack:
        n = stack.pop()
        yield n
        stack.extend(reversed(getattr(n, "children", [])))


def iter_nodes_within_scope(node: Any) -> Iterator[Any]:
    """
    Pre-order walk over the descendants of `node` that belong to its scope.

    Nested functions and classes are yielded but not entered.
    """

    stack = list(reversed(getattr(node, "children", [])))
    while stack:
        n = stack.pop()
        yield n
        if getattr(n, "type", None) in SCOPE_NODE_TYPES:
            continue
        stack.extend(reversed(getattr(n, "children", [])))


def first_node_of_type(node: Any, node_types: Iterable[str]) -> Any | None:
    wanted = frozenset(node_types)
    for n in iter_nodes(node):
        if getattr(n, "type", None) in wanted:
            return n
    return None


def is_call(node: Any) -> bool:
    return getattr(node, "type", None) in CALL_NODE_TYPES


def is_low_level_statement(node: Any) -> bool:
    return getattr(node, "type", None) in STATEMENT_NODE_TYPES


def is_identifier(node: Any) -> bool:
    return getattr(node, "type", None) in IDENTIFIER_NODE_TYPES


def node_text(node: Any, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


_LEADING_SIBLING_TYPES = frozenset({"comment", "decorator"})


def _trivia_anchor(node: Any) -> Any:
    """The node whose leading trivia `node` inherits: its `export` statement, if any."""

    parent = node.parent
    if parent is not None and parent.type == "export_statement":
        return parent
    return node


def full_text_start(node: Any) -> int:
    """
    Byte offset where `node`'s text starts once leading trivia is included.

    Leading trivia is the whitespace, comments and decorators between the
    previous sibling and the node. An exported declaration starts at its
    `export` statement. A node that opens the file owns everything from
    offset 0.
    """

    node = _trivia_anchor(node)
    sibling = node.prev_sibling
    while sibling is not None and sibling.type in _LEADING_SIBLING_TYPES:
        sibling = sibling.prev_sibling
    if sibling is not None:
        return int(sibling.end_byte)
    parent = node.parent
    if parent is None or parent.parent is None:
        return 0
    return int(node.start_byte)


def full_text(node: Any, source: bytes) -> str:
    return source[full_text_start(node) : node.end_byte].decode("utf-8", errors="replace")


def field_text(node: Any, field_name: str, source: bytes) -> str | None:
    child = node.child_by_field_name(field_name)
    if child is None:
        return None
    return node_text(child, source)


def abstraction_mix(node: Any, state: AbstractionMix = AbstractionMix.NONE) -> AbstractionMix:
    """
    Classify the statements below `node` by abstraction level.

    The walk stops as soon as both levels have been observed.
    """

    for child in getattr(node, "named_children", []):
        if is_call(child):
            state |= AbstractionMix.HIGH
        elif is_low_level_statement(child):
            state |= AbstractionMix.LOW
        if state == AbstractionMix.MIXED:
            return state
        state = abstraction_mix(child, state)
        if state == AbstractionMix.MIXED:
            return state
    return state


def parse_fragment(text: str, *, language: str = "typescript", kind: FunctionKind = "function") -> ParsedFragment | None:
    """
    Parse a single function's text in isolation.

    Returns None when the provider cannot produce a tree at all; a tree whose
    function node could not be located still comes back, with
    `function_node=None`, so identifier-level rules keep working.
    """

    if kind == "method":
        source_text = f"{_METHOD_WRAPPER_PREFIX}{text}{_METHOD_WRAPPER_SUFFIX}"
        wanted: frozenset[str] = frozenset({"method_definition"})
    else:
        source_text = text
        wanted = FUNCTION_NODE_TYPES

    tree = parse(language, source_text)
    if tree is None:
        return None

    root = tree.root_node
    return ParsedFragment(
        source=source_text.encode("utf-8", errors="replace"),
        root=root,
        function_node=first_node_of_type(root, wanted),
    )
