from __future__ import annotations

import logging
from typing import List

from domain.models import StateEdge, StateGraph, StateMachineDefinition

logger = logging.getLogger(__name__)


def build_state_graph(definition: StateMachineDefinition) -> StateGraph:
    nodes = tuple(definition.states.keys())
    known = set(nodes)
    edges: List[StateEdge] = []
    for state_name, descriptor in definition.states.items():
        for action in descriptor.actions:
            if action.target is None or action.target not in known:
                logger.debug(
                    "Dropping transition %s -[%s]-> %s: unknown target state",
                    state_name,
                    action.event_name,
                    action.target,
                )
                continue
            edges.append(
                StateEdge(source=state_name, target=action.target, label=action.event_name)
            )
    return StateGraph(nodes=nodes, edges=tuple(edges))
