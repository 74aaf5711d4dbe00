from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Protocol

from vizual.models import SourceRange


class SymbolKind(IntEnum):
    """Symbol classification, numbered as in the Language Server Protocol."""

    FILE = 1
    MODULE = 2
    NAMESPACE = 3
    PACKAGE = 4
    CLASS = 5
    METHOD = 6
    PROPERTY = 7
    FIELD = 8
    CONSTRUCTOR = 9
    ENUM = 10
    INTERFACE = 11
    FUNCTION = 12
    VARIABLE = 13
    CONSTANT = 14
    STRING = 15
    NUMBER = 16
    BOOLEAN = 17
    ARRAY = 18
    OBJECT = 19
    KEY = 20
    NULL = 21
    ENUM_MEMBER = 22
    STRUCT = 23
    EVENT = 24
    OPERATOR = 25
    TYPE_PARAMETER = 26


@dataclass
class OutlineSymbol:
    name: str
    kind: SymbolKind
    range: SourceRange
    children: list[OutlineSymbol] = field(default_factory=list)


class SymbolResolver(Protocol):
    async def outline(self, file_locator: str) -> list[OutlineSymbol]: ...
