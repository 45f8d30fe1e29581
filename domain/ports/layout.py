from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from domain.models import LayoutPlan, RoutedEdge, StateEdge, StateGraph


class LayoutEngine(Protocol):
    def build_plan(self, graph: StateGraph, initial_state: str | None) -> LayoutPlan:
        ...


class EdgeRouter(Protocol):
    def route(self, plan: LayoutPlan, edges: Sequence[StateEdge]) -> list[RoutedEdge]:
        ...
