from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import List, Literal, Optional, Union

from domain.models import Point, RoutedEdge, Size, StateDiagram

LABEL_MAX_LENGTH = 14
LABEL_KEEP_LENGTH = 12

InteractionKind = Literal["idle", "hovering_node", "hovering_edge"]


@dataclass(frozen=True)
class InteractionState:
    kind: InteractionKind = "idle"
    state: Optional[str] = None
    edge_index: Optional[int] = None

    @classmethod
    def idle(cls) -> InteractionState:
        return cls()

    @classmethod
    def hovering_node(cls, state: str) -> InteractionState:
        return cls(kind="hovering_node", state=state)

    @classmethod
    def hovering_edge(cls, edge_index: int) -> InteractionState:
        return cls(kind="hovering_edge", edge_index=edge_index)


@dataclass(frozen=True)
class NodePointerEnter:
    state: str


@dataclass(frozen=True)
class NodePointerLeave:
    state: str


@dataclass(frozen=True)
class EdgePointerEnter:
    edge_index: int


@dataclass(frozen=True)
class EdgePointerLeave:
    edge_index: int


@dataclass(frozen=True)
class CanvasPointerLeave:
    pass


@dataclass(frozen=True)
class NodeClicked:
    state: str


InteractionEvent = Union[
    NodePointerEnter,
    NodePointerLeave,
    EdgePointerEnter,
    EdgePointerLeave,
    CanvasPointerLeave,
    NodeClicked,
]


def transition(current: InteractionState, event: InteractionEvent) -> InteractionState:
    if isinstance(event, NodePointerEnter):
        return InteractionState.hovering_node(event.state)
    if isinstance(event, EdgePointerEnter):
        return InteractionState.hovering_edge(event.edge_index)
    if isinstance(event, NodePointerLeave):
        if current.kind == "hovering_node" and current.state == event.state:
            return InteractionState.idle()
        return current
    if isinstance(event, EdgePointerLeave):
        if current.kind == "hovering_edge" and current.edge_index == event.edge_index:
            return InteractionState.idle()
        return current
    if isinstance(event, CanvasPointerLeave):
        return InteractionState.idle()
    return current


def truncate_label(name: str) -> str:
    if len(name) > LABEL_MAX_LENGTH:
        return name[:LABEL_KEEP_LENGTH] + "..."
    return name


@dataclass(frozen=True)
class NodeView:
    state: str
    label: str
    depth: int
    position: Point
    size: Size
    is_initial: bool
    is_current: bool
    is_hovered: bool
    tooltip: Optional[str] = None


@dataclass(frozen=True)
class EdgeView:
    routed: RoutedEdge
    is_emphasized: bool

    @property
    def element_id(self) -> str:
        return f"edge-{self.routed.index}"

    @property
    def label_visible(self) -> bool:
        return self.is_emphasized


@dataclass(frozen=True)
class DiagramView:
    title: str
    state_count: int
    width: float
    height: float
    nodes: List[NodeView]
    edges: List[EdgeView]
    interaction: InteractionState

    @property
    def is_empty(self) -> bool:
        return not self.nodes


def build_diagram_view(
    diagram: StateDiagram,
    current_state: str | None,
    interaction: InteractionState | None = None,
) -> DiagramView:
    interaction = interaction or InteractionState.idle()
    definition = diagram.definition
    hovered_state = interaction.state if interaction.kind == "hovering_node" else None
    hovered_edge = interaction.edge_index if interaction.kind == "hovering_edge" else None

    nodes: List[NodeView] = []
    for placement in diagram.plan.nodes:
        is_hovered = placement.state == hovered_state
        descriptor = definition.states.get(placement.state)
        description = descriptor.effective_description() if descriptor else None
        nodes.append(
            NodeView(
                state=placement.state,
                label=truncate_label(placement.state),
                depth=placement.depth,
                position=placement.position,
                size=placement.size,
                is_initial=placement.state == definition.initial_state,
                is_current=placement.state == current_state,
                is_hovered=is_hovered,
                tooltip=description if is_hovered else None,
            )
        )

    def touches_hovered_state(routed: RoutedEdge) -> bool:
        return hovered_state is not None and hovered_state in (
            routed.edge.source,
            routed.edge.target,
        )

    edges = [
        EdgeView(
            routed=routed,
            is_emphasized=routed.index == hovered_edge or touches_hovered_state(routed),
        )
        for routed in diagram.edges
    ]
    return DiagramView(
        title=definition.display_name,
        state_count=len(definition.states),
        width=diagram.plan.width,
        height=diagram.plan.height,
        nodes=nodes,
        edges=edges,
        interaction=interaction,
    )


class StateDiagramPresenter:
    """Holds transient pointer state for one mounted diagram.

    The diagram geometry is computed elsewhere and never recomputed here;
    pointer events only move the interaction state machine.
    """

    def __init__(
        self,
        diagram: StateDiagram,
        current_state: str | None = None,
        on_state_click: Callable[[str], None] | None = None,
    ) -> None:
        self.diagram = diagram
        self.current_state = current_state
        self.on_state_click = on_state_click
        self.interaction = InteractionState.idle()
        self._states = set(diagram.graph.nodes)
        self._edge_indexes = {routed.index for routed in diagram.edges}

    def dispatch(self, event: InteractionEvent) -> InteractionState:
        if isinstance(event, (NodePointerEnter, NodePointerLeave, NodeClicked)):
            if event.state not in self._states:
                return self.interaction
        if isinstance(event, (EdgePointerEnter, EdgePointerLeave)):
            if event.edge_index not in self._edge_indexes:
                return self.interaction
        if isinstance(event, NodeClicked) and self.on_state_click is not None:
            self.on_state_click(event.state)
        self.interaction = transition(self.interaction, event)
        return self.interaction

    def reset(self) -> None:
        self.interaction = InteractionState.idle()

    def view(self) -> DiagramView:
        return build_diagram_view(self.diagram, self.current_state, self.interaction)
