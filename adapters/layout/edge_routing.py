from __future__ import annotations

from collections.abc import Sequence
from typing import Dict, FrozenSet, List

from adapters.layout.layered import LayoutConfig
from domain.models import LayoutPlan, NodePlacement, Point, RoutedEdge, StateEdge
from domain.ports.layout import EdgeRouter


class CurvedEdgeRouter(EdgeRouter):
    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def route(self, plan: LayoutPlan, edges: Sequence[StateEdge]) -> List[RoutedEdge]:
        placements = {node.state: node for node in plan.nodes}
        routable = [
            edge for edge in edges if edge.source in placements and edge.target in placements
        ]

        # A->B and B->A share one corridor, so they fan out together.
        corridors: Dict[FrozenSet[str], List[StateEdge]] = {}
        for edge in routable:
            if not edge.is_self_loop:
                corridors.setdefault(frozenset((edge.source, edge.target)), []).append(edge)

        routed: List[RoutedEdge] = []
        seen_in_corridor: Dict[FrozenSet[str], int] = {}
        for index, edge in enumerate(routable):
            source = placements[edge.source]
            if edge.is_self_loop:
                routed.append(self._self_loop(edge, index, source))
                continue
            key = frozenset((edge.source, edge.target))
            position = seen_in_corridor.get(key, 0)
            seen_in_corridor[key] = position + 1
            group_size = len(corridors[key])
            offset = (position - (group_size - 1) / 2) * self.config.offset_unit
            routed.append(self._curve(edge, index, source, placements[edge.target], offset))
        return routed

    def _curve(
        self,
        edge: StateEdge,
        index: int,
        source: NodePlacement,
        target: NodePlacement,
        offset: float,
    ) -> RoutedEdge:
        start = source.right_center()
        end = target.left_center()
        mid_x = (start.x + end.x) / 2
        mid_y = (start.y + end.y) / 2 + offset
        bow = abs(end.x - start.x) * self.config.curvature
        control = Point(mid_x, mid_y + (bow if offset > 0 else -bow))
        return RoutedEdge(
            edge=edge,
            index=index,
            start=start,
            end=end,
            controls=(control,),
            offset=offset,
            is_self_loop=False,
            label_position=Point(
                0.25 * start.x + 0.5 * control.x + 0.25 * end.x,
                0.25 * start.y + 0.5 * control.y + 0.25 * end.y,
            ),
        )

    def _self_loop(self, edge: StateEdge, index: int, node: NodePlacement) -> RoutedEdge:
        loop = self.config.self_loop_size
        right = node.position.x + node.size.width
        top = node.position.y
        bottom = node.position.y + node.size.height
        return RoutedEdge(
            edge=edge,
            index=index,
            start=Point(right, top),
            end=Point(right, bottom),
            controls=(Point(right + loop, top - loop), Point(right + loop, bottom + loop)),
            offset=0.0,
            is_self_loop=True,
            label_position=Point(right + loop, top + node.size.height / 2),
        )
