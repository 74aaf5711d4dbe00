"""Messages exchanged with the renderer.

Inbound messages form a union discriminated on ``type``; field names are
camelCase on the wire.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from vizual.models import ColorRule, FilterConfig, GraphEdge, GraphNode


class WireMessage(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# --- inbound ----------------------------------------------------------------


class ExpandNodeMessage(WireMessage):
    type: Literal["node/expand"]
    node_id: str


class CollapseNodeMessage(WireMessage):
    type: Literal["node/collapse"]
    node_id: str


class OpenNodeMessage(WireMessage):
    type: Literal["node/open"]
    node_id: str
    reveal: bool = False


class SetFiltersMessage(WireMessage):
    type: Literal["filters/set"]
    filters: FilterConfig


class SetColorsMessage(WireMessage):
    type: Literal["colors/set"]
    colors: list[ColorRule]


class SetRootMessage(WireMessage):
    type: Literal["root/set"]
    path: str


class SetActiveModeMessage(WireMessage):
    type: Literal["activeMode/set"]
    value: bool


class FocusEditorMessage(WireMessage):
    type: Literal["editor/focus"]
    locator: str | None = None


class BreakpointSchema(WireMessage):
    locator: str
    line: int = Field(default=0, ge=0)


class SetBreakpointsMessage(WireMessage):
    type: Literal["breakpoints/set"]
    breakpoints: list[BreakpointSchema]


class AttachDebuggerMessage(WireMessage):
    type: Literal["debug/attach"]
    host: str = "127.0.0.1"
    port: int
    arguments: dict[str, Any] = Field(default_factory=dict)


ClientMessage = Annotated[
    Union[
        ExpandNodeMessage,
        CollapseNodeMessage,
        OpenNodeMessage,
        SetFiltersMessage,
        SetColorsMessage,
        SetRootMessage,
        SetActiveModeMessage,
        FocusEditorMessage,
        SetBreakpointsMessage,
        AttachDebuggerMessage,
    ],
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


# --- outbound ---------------------------------------------------------------


class GraphMeta(WireMessage):
    node_count: int
    edge_count: int
    max_nodes: int
    over_limit: bool


class GraphUpdateMessage(WireMessage):
    type: Literal["graph/update"] = "graph/update"
    nodes: list[GraphNode]
    edges: list[GraphEdge]
    meta: GraphMeta


class StateUpdateMessage(WireMessage):
    type: Literal["state/update"] = "state/update"
    filters: FilterConfig
    colors: list[ColorRule]
    root: str
    active_mode: bool


class NoticeMessage(WireMessage):
    type: Literal["notice"] = "notice"
    level: Literal["warning", "error"]
    message: str


class HealthResponse(WireMessage):
    status: str = "ok"
    root: str
    node_count: int
    debug_session: str | None = None
