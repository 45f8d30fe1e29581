from __future__ import annotations

from typing import Any

from domain.models import Point, RoutedEdge, StateDiagram


def state_diagram_to_dict(diagram: StateDiagram) -> dict[str, Any]:
    plan = diagram.plan
    return {
        "name": diagram.definition.display_name,
        "initial_state": diagram.definition.initial_state,
        "width": plan.width,
        "height": plan.height,
        "columns": [list(column) for column in plan.columns],
        "unreachable": list(plan.unreachable),
        "nodes": [
            {
                "state": node.state,
                "depth": node.depth,
                "x": node.position.x,
                "y": node.position.y,
                "width": node.size.width,
                "height": node.size.height,
            }
            for node in plan.nodes
        ],
        "edges": [_edge_to_dict(routed) for routed in diagram.edges],
    }


def summarize_state_diagram(diagram: StateDiagram) -> dict[str, Any]:
    declared = sum(len(descriptor.actions) for descriptor in diagram.definition.states.values())
    initial = diagram.definition.initial_state
    return {
        "name": diagram.definition.display_name,
        "states": len(diagram.graph.nodes),
        "transitions": len(diagram.graph.edges),
        "dropped_transitions": declared - len(diagram.graph.edges),
        "self_loops": sum(1 for edge in diagram.graph.edges if edge.is_self_loop),
        "initial_state_known": initial is not None and initial in diagram.definition.states,
        "unreachable_states": list(diagram.plan.unreachable),
        "columns": len(diagram.plan.columns),
    }


def _edge_to_dict(routed: RoutedEdge) -> dict[str, Any]:
    return {
        "index": routed.index,
        "source": routed.edge.source,
        "target": routed.edge.target,
        "label": routed.edge.label,
        "self_loop": routed.is_self_loop,
        "offset": routed.offset,
        "path": routed.path,
        "start": _point(routed.start),
        "end": _point(routed.end),
        "controls": [_point(control) for control in routed.controls],
        "label_position": _point(routed.label_position),
    }


def _point(point: Point) -> dict[str, float]:
    return {"x": point.x, "y": point.y}
