from __future__ import annotations

from adapters.layout.edge_routing import CurvedEdgeRouter
from adapters.layout.layered import LayeredLayoutEngine
from adapters.svg.renderer import SvgDiagramRenderer
from app.config import AppSettings
from domain.services.build_state_diagram import BuildStateDiagram


def build_diagram_builder(settings: AppSettings) -> BuildStateDiagram:
    layout_config = settings.diagram.layout.to_layout_config()
    return BuildStateDiagram(
        LayeredLayoutEngine(layout_config),
        CurvedEdgeRouter(layout_config),
        cache_size=settings.diagram.cache_size,
    )


def build_svg_renderer(settings: AppSettings, show_all_labels: bool = False) -> SvgDiagramRenderer:
    return SvgDiagramRenderer(
        theme=settings.diagram.theme.to_svg_theme(),
        show_all_labels=show_all_labels,
    )
