from __future__ import annotations

from dataclasses import dataclass

import drawsvg as draw

from domain.models import SvgDocument
from domain.services.present_state_diagram import DiagramView, EdgeView, NodeView

HEADER_HEIGHT = 32.0
LEGEND_HEIGHT = 32.0
INITIAL_MARKER_RADIUS = 4.0
FONT_FAMILY = "Inter, system-ui, sans-serif"


@dataclass(frozen=True)
class SvgTheme:
    background: str = "#0f1115"
    card: str = "#181b22"
    border: str = "#3a3f4b"
    accent: str = "#7c6cf2"
    text_primary: str = "#e8eaf0"
    text_muted: str = "#8a90a0"
    initial_marker: str = "#34c77b"


class SvgDiagramRenderer:
    def __init__(self, theme: SvgTheme | None = None, show_all_labels: bool = False) -> None:
        self.theme = theme or SvgTheme()
        self.show_all_labels = show_all_labels

    def render(self, view: DiagramView) -> SvgDocument:
        width = view.width
        height = HEADER_HEIGHT + view.height + LEGEND_HEIGHT
        d = draw.Drawing(width, height)
        d.append(draw.Rectangle(0, 0, width, height, fill=self.theme.background))
        d.append(
            draw.Text(
                f"{view.title} • {view.state_count} states",
                12,
                16,
                HEADER_HEIGHT / 2,
                fill=self.theme.text_muted,
                font_family=FONT_FAMILY,
                dominant_baseline="middle",
            )
        )

        canvas = draw.Group(id="state-diagram", transform=f"translate(0, {HEADER_HEIGHT})")
        if view.is_empty:
            canvas.append(
                draw.Text(
                    "No states defined",
                    13,
                    width / 2,
                    view.height / 2,
                    fill=self.theme.text_muted,
                    font_family=FONT_FAMILY,
                    text_anchor="middle",
                    dominant_baseline="middle",
                )
            )
        else:
            arrow = self._arrow_marker(self.theme.border)
            arrow_emphasized = self._arrow_marker(self.theme.accent)
            edges = draw.Group(class_="edges")
            for edge in view.edges:
                edges.append(self._edge(edge, arrow_emphasized if edge.is_emphasized else arrow))
            canvas.append(edges)
            nodes = draw.Group(class_="nodes")
            for node in view.nodes:
                nodes.append(self._node(node))
            canvas.append(nodes)
        d.append(canvas)
        d.append(self._legend(HEADER_HEIGHT + view.height))
        return SvgDocument(markup=d.as_svg(), width=width, height=height)

    def _arrow_marker(self, color: str) -> draw.Marker:
        marker = draw.Marker(-10, -3.5, 0, 3.5, orient="auto")
        marker.append(draw.Lines(-10, -3.5, 0, 0, -10, 3.5, close=True, fill=color))
        return marker

    def _edge(self, view: EdgeView, marker: draw.Marker) -> draw.Group:
        routed = view.routed
        group = draw.Group(
            id=view.element_id,
            class_="edge self-loop" if routed.is_self_loop else "edge",
            data_source=routed.edge.source,
            data_target=routed.edge.target,
            data_event=routed.edge.label,
        )
        path = draw.Path(
            d=routed.path,
            fill="none",
            stroke=self.theme.accent if view.is_emphasized else self.theme.border,
            stroke_width=2 if view.is_emphasized else 1.5,
            marker_end=marker,
        )
        path.append_title(f"{routed.edge.source} → {routed.edge.target}: {routed.edge.label}")
        group.append(path)
        if view.label_visible or self.show_all_labels:
            group.append(
                draw.Text(
                    routed.edge.label,
                    11,
                    routed.label_position.x,
                    routed.label_position.y,
                    fill=self.theme.accent if view.is_emphasized else self.theme.text_muted,
                    font_family=FONT_FAMILY,
                    font_weight=500,
                    text_anchor="middle",
                )
            )
        return group

    def _node(self, node: NodeView) -> draw.Group:
        width = node.size.width
        height = node.size.height
        group = draw.Group(
            class_="node",
            transform=f"translate({node.position.x}, {node.position.y})",
            data_state=node.state,
        )
        if node.is_hovered or node.is_current:
            stroke, stroke_width = self.theme.accent, 2
        else:
            stroke, stroke_width = self.theme.border, 1
        body = draw.Rectangle(
            0,
            0,
            width,
            height,
            rx=8,
            fill=self.theme.accent if node.is_current else self.theme.card,
            stroke=stroke,
            stroke_width=stroke_width,
        )
        body.append_title(node.state)
        group.append(body)
        if node.is_initial:
            group.append(
                draw.Circle(
                    -8,
                    height / 2,
                    INITIAL_MARKER_RADIUS,
                    fill=self.theme.initial_marker,
                    class_="initial-marker",
                )
            )
        if node.is_current:
            group.append(
                draw.Rectangle(
                    -3,
                    -3,
                    width + 6,
                    height + 6,
                    rx=10,
                    fill="none",
                    stroke=self.theme.accent,
                    stroke_width=1,
                    opacity=0.5,
                    class_="current-glow",
                )
            )
        group.append(
            draw.Text(
                node.label,
                12,
                width / 2,
                height / 2,
                fill=self.theme.background if node.is_current else self.theme.text_primary,
                font_family=FONT_FAMILY,
                font_weight=600 if node.is_current else 400,
                text_anchor="middle",
                dominant_baseline="middle",
            )
        )
        if node.tooltip:
            group.append(
                draw.Text(
                    node.tooltip,
                    11,
                    0,
                    height + 18,
                    fill=self.theme.text_muted,
                    font_family=FONT_FAMILY,
                    class_="tooltip",
                )
            )
        return group

    def _legend(self, top: float) -> draw.Group:
        y = top + LEGEND_HEIGHT / 2
        legend = draw.Group(class_="legend")
        legend.append(draw.Rectangle(16, y - 6, 12, 12, rx=2, fill=self.theme.accent))
        legend.append(self._legend_text("Current State", 34, y))
        legend.append(draw.Circle(132, y, INITIAL_MARKER_RADIUS, fill=self.theme.initial_marker))
        legend.append(self._legend_text("Initial State", 142, y))
        legend.append(draw.Line(236, y, 268, y, stroke=self.theme.border, stroke_width=2))
        legend.append(self._legend_text("Transition", 274, y))
        return legend

    def _legend_text(self, text: str, x: float, y: float) -> draw.Text:
        return draw.Text(
            text,
            11,
            x,
            y,
            fill=self.theme.text_muted,
            font_family=FONT_FAMILY,
            dominant_baseline="middle",
        )
