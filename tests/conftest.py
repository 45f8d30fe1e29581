from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from adapters.layout.edge_routing import CurvedEdgeRouter
from adapters.layout.layered import LayeredLayoutEngine, LayoutConfig
from app.config import AppSettings, DiagramSettings, LayoutSettings
from domain.services.build_state_diagram import BuildStateDiagram


def _clear_fiber_diagram_env() -> None:
    for key in list(os.environ):
        if key.startswith("FIBER_DIAGRAM_"):
            os.environ.pop(key, None)


_clear_fiber_diagram_env()


@pytest.fixture(autouse=True)
def clear_fiber_diagram_env() -> Generator[None, None, None]:
    _clear_fiber_diagram_env()
    yield
    _clear_fiber_diagram_env()


@pytest.fixture
def layout_config() -> LayoutConfig:
    return LayoutConfig()


@pytest.fixture
def layout_engine(layout_config: LayoutConfig) -> LayeredLayoutEngine:
    return LayeredLayoutEngine(layout_config)


@pytest.fixture
def edge_router(layout_config: LayoutConfig) -> CurvedEdgeRouter:
    return CurvedEdgeRouter(layout_config)


@pytest.fixture
def diagram_builder(
    layout_engine: LayeredLayoutEngine, edge_router: CurvedEdgeRouter
) -> BuildStateDiagram:
    return BuildStateDiagram(layout_engine, edge_router)


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(diagram=DiagramSettings(layout=LayoutSettings(), cache_size=8))


@pytest.fixture
def app_settings_factory(app_settings: AppSettings) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        diagram = app_settings.diagram.model_copy(update=overrides)
        return app_settings.model_copy(update={"diagram": diagram})

    return _factory
