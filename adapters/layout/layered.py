from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Tuple

from domain.models import LayoutPlan, NodePlacement, Point, Size, StateGraph
from domain.ports.layout import LayoutEngine


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry shared by the layout engine and the edge router.

    column_spacing: horizontal distance between the left edges of adjacent depth columns.
    row_spacing: vertical distance between the top edges of nodes stacked in one column.
    node_width / node_height: fixed node box used for every state.
    margin: offset of the first column and of the tallest column from the canvas origin.
    offset_unit: lateral step between parallel edges sharing an endpoint pair.
    curvature: share of the horizontal edge span used to bow a curve away from the chord.
    self_loop_size: how far a self-loop bulges out of the node's right side.
    min_width / min_height: canvas floor so tiny diagrams stay legible.
    """

    column_spacing: float = 180.0
    row_spacing: float = 130.0
    node_width: float = 120.0
    node_height: float = 50.0
    margin: float = 80.0
    offset_unit: float = 15.0
    curvature: float = 0.3
    self_loop_size: float = 40.0
    min_width: float = 400.0
    min_height: float = 300.0

    @property
    def node_size(self) -> Size:
        return Size(self.node_width, self.node_height)


class LayeredLayoutEngine(LayoutEngine):
    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def build_plan(self, graph: StateGraph, initial_state: str | None) -> LayoutPlan:
        depths, order, unreachable = self._compute_depths(graph, initial_state)
        columns = self._group_columns(depths, order)
        nodes = self._place_nodes(columns)
        max_depth = len(columns) - 1
        max_column_size = max((len(column) for column in columns), default=0)
        width = max(
            self.config.min_width,
            self.config.margin + (max_depth + 1) * self.config.column_spacing,
        )
        height = max(
            self.config.min_height,
            self.config.margin + max_column_size * self.config.row_spacing,
        )
        return LayoutPlan(
            nodes=nodes,
            columns=columns,
            width=width,
            height=height,
            unreachable=unreachable,
        )

    def _compute_depths(
        self, graph: StateGraph, initial_state: str | None
    ) -> Tuple[Dict[str, int], List[str], List[str]]:
        adjacency: Dict[str, List[str]] = {node: [] for node in graph.nodes}
        for edge in graph.edges:
            if edge.source in adjacency and edge.target in adjacency:
                adjacency[edge.source].append(edge.target)

        depths: Dict[str, int] = {}
        order: List[str] = []
        if initial_state is not None and initial_state in adjacency:
            queue: deque[Tuple[str, int]] = deque([(initial_state, 0)])
            while queue:
                state, depth = queue.popleft()
                if state in depths:
                    continue
                depths[state] = depth
                order.append(state)
                for target in adjacency[state]:
                    if target not in depths:
                        queue.append((target, depth + 1))

        unreachable_depth = max(depths.values()) + 1 if depths else 0
        unreachable = [node for node in graph.nodes if node not in depths]
        for node in unreachable:
            depths[node] = unreachable_depth
            order.append(node)
        return depths, order, unreachable

    def _group_columns(self, depths: Dict[str, int], order: List[str]) -> List[List[str]]:
        if not order:
            return []
        columns: List[List[str]] = [[] for _ in range(max(depths.values()) + 1)]
        for node in order:
            columns[depths[node]].append(node)
        return columns

    def _place_nodes(self, columns: List[List[str]]) -> List[NodePlacement]:
        cfg = self.config
        gap = cfg.row_spacing - cfg.node_height

        def span(count: int) -> float:
            return count * cfg.row_spacing - gap if count else 0.0

        usable = span(max((len(column) for column in columns), default=0))
        placements: List[NodePlacement] = []
        for depth, column in enumerate(columns):
            top = cfg.margin + (usable - span(len(column))) / 2
            x = cfg.margin + depth * cfg.column_spacing
            for idx, state in enumerate(column):
                placements.append(
                    NodePlacement(
                        state=state,
                        depth=depth,
                        position=Point(x, top + idx * cfg.row_spacing),
                        size=cfg.node_size,
                    )
                )
        return placements
