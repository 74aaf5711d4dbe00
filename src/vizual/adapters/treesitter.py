"""Symbol outlines from tree-sitter parse trees."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import cast

from tree_sitter import Node
from tree_sitter_language_pack import SupportedLanguage, get_parser

from vizual.core.errors import ResolutionError
from vizual.core.languages import detect_language_from_path
from vizual.core.locators import locator_to_path
from vizual.core.ports.symbols import OutlineSymbol, SymbolKind
from vizual.models import SourceRange

logger = logging.getLogger(__name__)

_JS_DECLARATIONS = {
    "class_declaration": SymbolKind.CLASS,
    "function_declaration": SymbolKind.FUNCTION,
    "generator_function_declaration": SymbolKind.FUNCTION,
    "method_definition": SymbolKind.METHOD,
    "field_definition": SymbolKind.PROPERTY,
}

_TS_DECLARATIONS = {
    **_JS_DECLARATIONS,
    "abstract_class_declaration": SymbolKind.CLASS,
    "interface_declaration": SymbolKind.INTERFACE,
    "enum_declaration": SymbolKind.ENUM,
    "internal_module": SymbolKind.NAMESPACE,
    "module": SymbolKind.NAMESPACE,
    "public_field_definition": SymbolKind.PROPERTY,
    "abstract_method_signature": SymbolKind.METHOD,
    "method_signature": SymbolKind.METHOD,
    "property_signature": SymbolKind.PROPERTY,
}

_DECLARATIONS: dict[str, dict[str, SymbolKind]] = {
    "python": {
        "class_definition": SymbolKind.CLASS,
        "function_definition": SymbolKind.FUNCTION,
    },
    "javascript": _JS_DECLARATIONS,
    "typescript": _TS_DECLARATIONS,
    "tsx": _TS_DECLARATIONS,
    "go": {
        "function_declaration": SymbolKind.FUNCTION,
        "method_declaration": SymbolKind.METHOD,
        "type_spec": SymbolKind.CLASS,
    },
}

_VARIABLE_NODES: dict[str, frozenset[str]] = {
    "python": frozenset({"assignment"}),
    "javascript": frozenset({"variable_declarator"}),
    "typescript": frozenset({"variable_declarator"}),
    "tsx": frozenset({"variable_declarator"}),
    "go": frozenset({"const_spec", "var_spec"}),
}

_NAME_NODE_TYPES = frozenset(
    {
        "identifier",
        "property_identifier",
        "private_property_identifier",
        "type_identifier",
        "field_identifier",
    }
)

_CONTAINER_KINDS = frozenset(
    {
        SymbolKind.CLASS,
        SymbolKind.INTERFACE,
        SymbolKind.NAMESPACE,
        SymbolKind.FUNCTION,
        SymbolKind.METHOD,
        SymbolKind.CONSTRUCTOR,
    }
)

_FUNCTION_KINDS = frozenset({SymbolKind.FUNCTION, SymbolKind.METHOD, SymbolKind.CONSTRUCTOR})

_FUNCTION_VALUE_TYPES = frozenset({"arrow_function", "function_expression", "function", "generator_function"})

_CONSTRUCTOR_NAMES = frozenset({"__init__", "constructor"})


def _node_range(node: Node) -> SourceRange:
    return SourceRange(
        start_line=node.start_point[0],
        start_column=node.start_point[1],
        end_line=node.end_point[0],
        end_column=node.end_point[1],
    )


def _node_name(node: Node | None) -> str | None:
    if node is None or node.type not in _NAME_NODE_TYPES or node.text is None:
        return None
    return node.text.decode("utf-8", errors="replace")


class _OutlineBuilder:
    def __init__(self, language: str) -> None:
        self._declarations = _DECLARATIONS[language]
        self._variables = _VARIABLE_NODES[language]

    def collect(self, node: Node, scope: SymbolKind | None) -> list[OutlineSymbol]:
        symbols: list[OutlineSymbol] = []
        for child in node.named_children:
            symbol = self._symbol_for(child, scope)
            if symbol is not None:
                symbols.append(symbol)
            else:
                symbols.extend(self.collect(child, scope))
        return symbols

    def _symbol_for(self, node: Node, scope: SymbolKind | None) -> OutlineSymbol | None:
        kind = self._declarations.get(node.type)
        if kind is not None:
            return self._declaration(node, kind, scope)
        if node.type in self._variables and scope not in _FUNCTION_KINDS:
            return self._variable(node, scope)
        return None

    def _declaration(self, node: Node, kind: SymbolKind, scope: SymbolKind | None) -> OutlineSymbol | None:
        name_node = node.child_by_field_name("name") or node.child_by_field_name("property")
        name = _node_name(name_node)
        if name is None:
            return None

        if kind is SymbolKind.FUNCTION and scope is SymbolKind.CLASS:
            kind = SymbolKind.METHOD
        if kind is SymbolKind.METHOD and name in _CONSTRUCTOR_NAMES:
            kind = SymbolKind.CONSTRUCTOR
        if node.type == "type_spec":
            type_node = node.child_by_field_name("type")
            if type_node is not None and type_node.type == "interface_type":
                kind = SymbolKind.INTERFACE

        children = self.collect(node, kind) if kind in _CONTAINER_KINDS else []
        return OutlineSymbol(name=name, kind=kind, range=_node_range(node), children=children)

    def _variable(self, node: Node, scope: SymbolKind | None) -> OutlineSymbol | None:
        name = _node_name(node.child_by_field_name("name") or node.child_by_field_name("left"))
        if name is None:
            return None

        value = node.child_by_field_name("value") or node.child_by_field_name("right")
        if value is not None and value.type in _FUNCTION_VALUE_TYPES:
            return OutlineSymbol(
                name=name,
                kind=SymbolKind.FUNCTION,
                range=_node_range(node),
                children=self.collect(value, SymbolKind.FUNCTION),
            )

        if scope is SymbolKind.CLASS:
            kind = SymbolKind.FIELD
        elif node.type == "const_spec" or (name.isupper() and node.type == "assignment"):
            kind = SymbolKind.CONSTANT
        elif node.parent is not None and node.parent.type == "lexical_declaration" and _is_const(node.parent):
            kind = SymbolKind.CONSTANT
        else:
            kind = SymbolKind.VARIABLE
        return OutlineSymbol(name=name, kind=kind, range=_node_range(node))


def _is_const(declaration: Node) -> bool:
    keyword = declaration.child(0)
    return keyword is not None and keyword.type == "const"


def outline_from_source(source_bytes: bytes, language: str) -> list[OutlineSymbol]:
    if language not in _DECLARATIONS:
        raise ResolutionError(f"No outline support for language '{language}'")
    parser = get_parser(cast(SupportedLanguage, language))
    tree = parser.parse(source_bytes)
    return _OutlineBuilder(language).collect(tree.root_node, None)


def outline_from_file(path: Path) -> list[OutlineSymbol]:
    try:
        language = detect_language_from_path(path)
    except ValueError as exc:
        raise ResolutionError(str(exc)) from None
    try:
        source_bytes = path.read_bytes()
    except OSError as exc:
        raise ResolutionError(f"Cannot read {path}: {exc}") from exc
    return outline_from_source(source_bytes, language)


class TreeSitterSymbolResolver:
    """Implements the ``SymbolResolver`` protocol with tree-sitter parsers."""

    async def outline(self, file_locator: str) -> list[OutlineSymbol]:
        path = locator_to_path(file_locator)
        symbols = await asyncio.to_thread(outline_from_file, path)
        logger.debug("Resolved %d top-level symbols in %s", len(symbols), path)
        return symbols
