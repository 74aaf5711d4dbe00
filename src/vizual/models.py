from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NodeKind(str, Enum):
    FOLDER = "folder"
    FILE = "file"
    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    VARIABLE = "variable"
    INTERFACE = "interface"
    ENUM = "enum"
    NAMESPACE = "namespace"
    PROPERTY = "property"
    CONSTANT = "constant"
    CONSTRUCTOR = "constructor"
    UNKNOWN = "unknown"


class EdgeKind(str, Enum):
    CONTAINS = "contains"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SourceRange(_CamelModel):
    """Zero-based source span. Lines are compared inclusively on both ends."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def contains_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


class GraphNode(_CamelModel):
    id: str
    label: str
    kind: NodeKind
    locator: str | None = None
    range: SourceRange | None = None
    is_expanded: bool = False
    is_leaf: bool = False
    is_truncated: bool = False
    has_breakpoint: bool = False
    is_active: bool = False
    is_debug_active: bool = False
    is_debug_symbol_active: bool = False
    debug_stack_depth: int | None = Field(default=None, ge=0)


class GraphEdge(_CamelModel):
    id: str
    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")
    kind: EdgeKind = EdgeKind.CONTAINS


class FilterConfig(_CamelModel):
    include_patterns: list[str] = Field(default_factory=lambda: ["**/*"])
    exclude_patterns: list[str] = Field(
        default_factory=lambda: ["**/node_modules/**", "**/.git/**", "**/dist/**", "**/out/**", "**/*.map"]
    )
    max_depth: int = Field(default=10, ge=1)
    max_nodes: int = Field(default=1000, ge=1)


class ColorRule(_CamelModel):
    kind: NodeKind | None = None
    file_extension: str | None = None
    color: str


DEFAULT_FILTERS = FilterConfig()

DEFAULT_COLOR_RULES: list[ColorRule] = [
    ColorRule(kind=NodeKind.FOLDER, color="#FFD700"),
    ColorRule(kind=NodeKind.FILE, color="#87CEEB"),
    ColorRule(kind=NodeKind.CLASS, color="#98FB98"),
    ColorRule(kind=NodeKind.FUNCTION, color="#DDA0DD"),
    ColorRule(kind=NodeKind.METHOD, color="#F0E68C"),
    ColorRule(kind=NodeKind.VARIABLE, color="#FFA07A"),
    ColorRule(kind=NodeKind.INTERFACE, color="#B0E0E6"),
    ColorRule(kind=NodeKind.ENUM, color="#FFB6C1"),
]


def default_color_rules() -> list[ColorRule]:
    return [rule.model_copy() for rule in DEFAULT_COLOR_RULES]
