from __future__ import annotations

import pytest

from adapters.layout.layered import LayeredLayoutEngine, LayoutConfig
from domain.models import StateEdge, StateGraph
from domain.services.build_state_graph import build_state_graph
from tests.helpers.definition_fixtures import load_definition, make_definition


def _plan_for(engine: LayeredLayoutEngine, transitions: dict, initial_state: str | None):
    definition = make_definition(transitions, initial_state=initial_state)
    return engine.build_plan(build_state_graph(definition), definition.initial_state)


def test_simple_chain_depths(layout_engine: LayeredLayoutEngine) -> None:
    plan = _plan_for(layout_engine, {"A": [("go", "B")], "B": []}, "A")

    assert plan.depths() == {"A": 0, "B": 1}
    assert len(plan.nodes) == 2


def test_cycle_terminates_with_shortest_depths(layout_engine: LayeredLayoutEngine) -> None:
    plan = _plan_for(layout_engine, {"A": [("go", "B")], "B": [("back", "A")]}, "A")

    assert plan.depths() == {"A": 0, "B": 1}
    assert plan.unreachable == []


def test_depth_is_bfs_shortest_path(layout_engine: LayeredLayoutEngine) -> None:
    transitions = {
        "A": [("long", "B"), ("short", "D")],
        "B": [("next", "C")],
        "C": [("next", "D")],
        "D": [],
    }
    plan = _plan_for(layout_engine, transitions, "A")

    assert plan.depths() == {"A": 0, "B": 1, "D": 1, "C": 2}


def test_unreachable_nodes_share_bucket_after_max_depth(
    layout_engine: LayeredLayoutEngine,
) -> None:
    transitions = {
        "A": [("go", "B")],
        "B": [],
        "X": [("go", "Y")],
        "Y": [],
        "Z": [],
    }
    plan = _plan_for(layout_engine, transitions, "A")
    depths = plan.depths()

    assert depths["A"] == 0
    assert depths["B"] == 1
    assert {depths["X"], depths["Y"], depths["Z"]} == {2}
    assert plan.unreachable == ["X", "Y", "Z"]
    assert plan.columns[-1] == ["X", "Y", "Z"]


def test_missing_initial_state_puts_everything_at_depth_zero(
    layout_engine: LayeredLayoutEngine,
) -> None:
    plan = _plan_for(layout_engine, {"A": [("go", "B")], "B": []}, "missing")

    assert plan.depths() == {"A": 0, "B": 0}
    assert plan.columns == [["A", "B"]]
    assert plan.unreachable == ["A", "B"]


def test_absent_initial_state_degrades_the_same_way(layout_engine: LayeredLayoutEngine) -> None:
    plan = _plan_for(layout_engine, {"A": [], "B": []}, None)

    assert set(plan.depths().values()) == {0}


def test_columns_follow_bfs_discovery_order(layout_engine: LayeredLayoutEngine) -> None:
    definition = load_definition("contract.json")
    plan = layout_engine.build_plan(build_state_graph(definition), definition.initial_state)

    assert plan.columns == [
        ["PROPOSED"],
        ["ACTIVE", "REJECTED"],
        ["COMPLETED", "DISPUTED"],
        ["CANCELLED"],
        ["ARCHIVED"],
    ]


def test_coordinates_use_column_spacing_and_vertical_centering(
    layout_engine: LayeredLayoutEngine, layout_config: LayoutConfig
) -> None:
    transitions = {"A": [("x", "B"), ("y", "C"), ("z", "D")], "B": [], "C": [], "D": []}
    plan = _plan_for(layout_engine, transitions, "A")
    a = plan.node("A")
    b, c, d = plan.node("B"), plan.node("C"), plan.node("D")
    assert a is not None and b is not None and c is not None and d is not None

    assert a.position.x == layout_config.margin
    assert b.position.x == layout_config.margin + layout_config.column_spacing
    assert b.position.y == layout_config.margin
    assert c.position.y - b.position.y == layout_config.row_spacing
    assert d.position.y - c.position.y == layout_config.row_spacing
    # The single node in column 0 sits level with the middle of column 1.
    assert a.position.y == c.position.y


def test_canvas_extent_grows_with_columns_and_rows(
    layout_engine: LayeredLayoutEngine, layout_config: LayoutConfig
) -> None:
    transitions = {
        "A": [("1", "B"), ("2", "C"), ("3", "D")],
        "B": [("4", "E")],
        "C": [("5", "F")],
        "D": [],
        "E": [],
        "F": [],
    }
    plan = _plan_for(layout_engine, transitions, "A")

    assert plan.width == layout_config.margin + 3 * layout_config.column_spacing
    assert plan.height == layout_config.margin + 3 * layout_config.row_spacing


def test_single_state_respects_minimum_canvas(
    layout_engine: LayeredLayoutEngine, layout_config: LayoutConfig
) -> None:
    plan = _plan_for(layout_engine, {"A": []}, "A")

    assert plan.width == layout_config.min_width
    assert plan.height == layout_config.min_height


def test_empty_graph_produces_placeholder_canvas(
    layout_engine: LayeredLayoutEngine, layout_config: LayoutConfig
) -> None:
    plan = layout_engine.build_plan(StateGraph(nodes=(), edges=()), "A")

    assert plan.nodes == []
    assert plan.columns == []
    assert (plan.width, plan.height) == (layout_config.min_width, layout_config.min_height)


def test_edges_with_undeclared_endpoints_are_ignored(layout_engine: LayeredLayoutEngine) -> None:
    graph = StateGraph(
        nodes=("A", "B"),
        edges=(StateEdge("A", "ghost", "x"), StateEdge("A", "B", "y")),
    )
    plan = layout_engine.build_plan(graph, "A")

    assert plan.depths() == {"A": 0, "B": 1}


def test_layout_is_deterministic(layout_engine: LayeredLayoutEngine) -> None:
    definition = load_definition("contract.json")
    first = layout_engine.build_plan(build_state_graph(definition), definition.initial_state)
    second = layout_engine.build_plan(
        build_state_graph(load_definition("contract.json")), definition.initial_state
    )

    assert first == second


@pytest.mark.parametrize("node_count", [1, 5, 12])
def test_node_count_matches_states(layout_engine: LayeredLayoutEngine, node_count: int) -> None:
    transitions = {f"S{i}": [("next", f"S{i + 1}")] for i in range(node_count)}
    plan = _plan_for(layout_engine, transitions, "S0")

    assert len(plan.nodes) == node_count
    assert len({node.state for node in plan.nodes}) == node_count


def test_custom_config_changes_geometry() -> None:
    config = LayoutConfig(column_spacing=300.0, margin=10.0)
    engine = LayeredLayoutEngine(config)
    plan = _plan_for(engine, {"A": [("go", "B")], "B": []}, "A")
    b = plan.node("B")

    assert b is not None
    assert b.position.x == 310.0
