from __future__ import annotations

import logging
from collections import OrderedDict

from domain.models import StateDiagram, StateMachineDefinition
from domain.ports.layout import EdgeRouter, LayoutEngine
from domain.services.build_state_graph import build_state_graph

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 32


class BuildStateDiagram:
    """Runs graph building, layout and edge routing for one definition.

    Results are memoized per instance by the definition's JSON value, so
    structurally equal definitions share one computed diagram. A cache size of
    zero disables memoization.
    """

    def __init__(
        self,
        layout_engine: LayoutEngine,
        edge_router: EdgeRouter,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        self.layout_engine = layout_engine
        self.edge_router = edge_router
        self.cache_size = max(0, cache_size)
        self._cache: OrderedDict[str, StateDiagram] = OrderedDict()

    def build(self, definition: StateMachineDefinition) -> StateDiagram:
        key = definition.cache_key()
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            return cached

        graph = build_state_graph(definition)
        plan = self.layout_engine.build_plan(graph, definition.initial_state)
        edges = self.edge_router.route(plan, graph.edges)
        diagram = StateDiagram(definition=definition, graph=graph, plan=plan, edges=edges)
        logger.debug(
            "Laid out %d states and %d transitions in %d columns",
            len(plan.nodes),
            len(edges),
            len(plan.columns),
        )

        if self.cache_size:
            self._cache[key] = diagram
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)
        return diagram

    def clear(self) -> None:
        self._cache.clear()
