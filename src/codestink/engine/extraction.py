from __future__ import annotations

import logging
from typing import Any

from codestink.engine.context import SyntaxTree
from codestink.engine.syntax import field_text, full_text, is_identifier, iter_nodes, iter_nodes_within_scope
from codestink.engine.types import BoundValue, CodeFunction, CodeVariable, FunctionKind, SourceFile

logger = logging.getLogger(__name__)

_DECLARATION_NODE_TYPES = frozenset({"function_declaration", "generator_function_declaration"})


def extract_functions(source_file: SourceFile, tree: SyntaxTree) -> list[CodeFunction]:
    """
    Collect named functions, class methods and arrow functions bound to variables.

    Functions are returned in source order, nested ones included. Each
    function's captured text carries its leading comments and whitespace.
    """

    source = source_file.text.encode("utf-8", errors="replace")
    functions: list[CodeFunction] = []
    for node in iter_nodes(tree.root_node):
        found = _function_from_node(node, source)
        if found is None:
            continue
        name, fn_node, kind = found
        functions.append(
            CodeFunction(
                name=name,
                text=full_text(fn_node, source),
                file_name=source_file.name,
                kind=kind,
                language=source_file.language,
                start_line=int(fn_node.start_point[0]) + 1,
                variables=extract_variables(fn_node, source, function_name=name),
            )
        )
    logger.debug("Extracted %d functions from %s", len(functions), source_file.name)
    return functions


def _function_from_node(node: Any, source: bytes) -> tuple[str, Any, FunctionKind] | None:
    if node.type in _DECLARATION_NODE_TYPES:
        name = field_text(node, "name", source)
        return (name, node, "function") if name else None

    if node.type == "method_definition":
        name = field_text(node, "name", source)
        return (name, node, "method") if name else None

    if node.type == "variable_declarator":
        value = node.child_by_field_name("value")
        name_node = node.child_by_field_name("name")
        if value is None or value.type != "arrow_function":
            return None
        if name_node is None or not is_identifier(name_node):
            return None
        return field_text(node, "name", source) or "", value, "arrow"

    return None


def extract_variables(fn_node: Any, source: bytes, *, function_name: str | None = None) -> list[CodeVariable]:
    """
    Variables declared in `fn_node`'s own scope.

    Nested functions and classes are not entered, but a declarator that binds
    a nested function still belongs to the enclosing one.
    """

    variables: list[CodeVariable] = []
    for node in iter_nodes_within_scope(fn_node):
        if node.type != "variable_declarator":
            continue
        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            continue
        variables.append(
            CodeVariable(
                name=field_text(node, "name", source) or "",
                value=BoundValue.from_node(node.child_by_field_name("value"), source),
                function_name=function_name,
            )
        )
    return variables
