from __future__ import annotations

import uuid
import zlib
from collections.abc import Callable
from typing import Dict, List

from domain.models import CUSTOM_DATA_KEY, ExcalidrawDocument, Point, Size
from domain.services.present_state_diagram import DiagramView, EdgeView, NodeView

NODE_COLOR = "#e7f0ff"
CURRENT_NODE_COLOR = "#c9bfff"
INITIAL_MARKER_COLOR = "#34c77b"
EDGE_COLOR = "#1e1e1e"
EMPHASIZED_EDGE_COLOR = "#6a5ae0"
INITIAL_MARKER_SIZE = Size(8, 8)
CURVE_SEGMENTS = 8


class StateDiagramToExcalidrawConverter:
    """Turns a laid-out diagram view into an Excalidraw scene.

    Element ids and seeds are derived from state names and edge indexes, so the
    same view always produces the same scene.
    """

    def __init__(self) -> None:
        self.namespace = uuid.uuid5(uuid.NAMESPACE_DNS, "fiber-state-diagram")

    def convert(self, view: DiagramView) -> ExcalidrawDocument:
        elements: List[dict] = []
        element_index: Dict[str, dict] = {}
        base_metadata = {"definition": view.title}

        def add_element(element: dict) -> None:
            elements.append(element)
            element_index[element["id"]] = element

        node_ids: Dict[str, str] = {}
        for node in view.nodes:
            node_ids[node.state] = self._build_node(node, add_element, base_metadata)

        for edge in view.edges:
            arrow = self._arrow_element(edge, node_ids, base_metadata)
            add_element(arrow)
            self._bind_arrow(element_index, arrow)
            if edge.routed.edge.label:
                label = self._text_element(
                    element_id=self._stable_id("edge-label", str(edge.routed.index)),
                    text=edge.routed.edge.label,
                    center=edge.routed.label_position,
                    container_id=arrow["id"],
                    metadata=self._with_base_metadata({"role": "edge_label"}, base_metadata),
                    font_size=14.0,
                )
                add_element(label)
                arrow["boundElements"].append({"id": label["id"], "type": "text"})

        app_state = {
            "viewBackgroundColor": "#ffffff",
            "gridSize": None,
            "currentItemFontFamily": 1,
            "currentItemFontSize": 16,
            "currentItemStrokeColor": EDGE_COLOR,
        }
        return ExcalidrawDocument(elements=elements, app_state=app_state, files={})

    def _build_node(
        self, node: NodeView, add_element: Callable[[dict], None], base_metadata: dict
    ) -> str:
        node_id = self._stable_id("state", node.state)
        metadata = self._with_base_metadata(
            {
                "role": "state",
                "state": node.state,
                "depth": node.depth,
                "is_initial": node.is_initial,
                "is_current": node.is_current,
            },
            base_metadata,
        )
        rectangle = self._base_shape(
            element_id=node_id,
            type_name="rectangle",
            position=node.position,
            width=node.size.width,
            height=node.size.height,
            metadata=metadata,
            extra={
                "strokeColor": EMPHASIZED_EDGE_COLOR if node.is_current else EDGE_COLOR,
                "strokeWidth": 2 if node.is_current else 1,
                "backgroundColor": CURRENT_NODE_COLOR if node.is_current else NODE_COLOR,
                "fillStyle": "solid",
                "roundness": {"type": 3},
            },
        )
        add_element(rectangle)
        text = self._text_element(
            element_id=self._stable_id("state-label", node.state),
            text=node.label,
            center=self._center(node.position, node.size),
            container_id=node_id,
            metadata=self._with_base_metadata(
                {"role": "state_label", "state": node.state}, base_metadata
            ),
            max_width=node.size.width - 8,
        )
        add_element(text)
        rectangle["boundElements"].append({"id": text["id"], "type": "text"})

        if node.is_initial:
            marker_position = Point(
                node.position.x - 8 - INITIAL_MARKER_SIZE.width / 2,
                node.position.y + node.size.height / 2 - INITIAL_MARKER_SIZE.height / 2,
            )
            add_element(
                self._base_shape(
                    element_id=self._stable_id("initial-marker", node.state),
                    type_name="ellipse",
                    position=marker_position,
                    width=INITIAL_MARKER_SIZE.width,
                    height=INITIAL_MARKER_SIZE.height,
                    metadata=self._with_base_metadata(
                        {"role": "initial_marker", "state": node.state}, base_metadata
                    ),
                    extra={
                        "strokeColor": INITIAL_MARKER_COLOR,
                        "backgroundColor": INITIAL_MARKER_COLOR,
                        "fillStyle": "solid",
                    },
                )
            )
        return node_id

    def _arrow_element(
        self, view: EdgeView, node_ids: Dict[str, str], base_metadata: dict
    ) -> dict:
        routed = view.routed
        start = routed.start
        points = [
            [point.x - start.x, point.y - start.y] for point in routed.sample(CURVE_SEGMENTS)
        ]
        xs = [point[0] for point in points]
        ys = [point[1] for point in points]
        arrow_id = self._stable_id("transition", str(routed.index))
        metadata = self._with_base_metadata(
            {
                "role": "transition",
                "source": routed.edge.source,
                "target": routed.edge.target,
                "event_name": routed.edge.label,
                "self_loop": routed.is_self_loop,
                "offset": routed.offset,
            },
            base_metadata,
        )
        return self._base_shape(
            element_id=arrow_id,
            type_name="arrow",
            position=start,
            width=max(xs) - min(xs),
            height=max(ys) - min(ys),
            metadata=metadata,
            extra={
                "strokeColor": EMPHASIZED_EDGE_COLOR if view.is_emphasized else EDGE_COLOR,
                "strokeWidth": 2 if view.is_emphasized else 1,
                "backgroundColor": "transparent",
                "fillStyle": "solid",
                "roundness": {"type": 2},
                "points": points,
                "startArrowhead": None,
                "endArrowhead": "arrow",
                "startBinding": {
                    "elementId": node_ids[routed.edge.source],
                    "focus": 0.0,
                    "gap": 1,
                },
                "endBinding": {
                    "elementId": node_ids[routed.edge.target],
                    "focus": 0.0,
                    "gap": 1,
                },
            },
        )

    def _text_element(
        self,
        element_id: str,
        text: str,
        center: Point,
        container_id: str | None,
        metadata: dict,
        max_width: float | None = None,
        font_size: float = 16.0,
    ) -> dict:
        width = max(40.0, len(text) * font_size * 0.6)
        if max_width is not None:
            width = min(width, max_width)
        height = font_size * 1.25
        element = self._base_shape(
            element_id=element_id,
            type_name="text",
            position=Point(center.x - width / 2, center.y - height / 2),
            width=width,
            height=height,
            metadata=metadata,
            extra={
                "strokeColor": EDGE_COLOR,
                "backgroundColor": "transparent",
                "fillStyle": "solid",
                "text": text,
                "originalText": text,
                "fontSize": font_size,
                "fontFamily": 1,
                "textAlign": "center",
                "verticalAlign": "middle",
                "baseline": height / 2,
                "containerId": container_id,
                "lineHeight": 1.25,
            },
        )
        return element

    def _base_shape(
        self,
        element_id: str,
        type_name: str,
        position: Point,
        width: float,
        height: float,
        metadata: dict,
        extra: dict | None = None,
    ) -> dict:
        return {
            "id": element_id,
            "type": type_name,
            "x": position.x,
            "y": position.y,
            "width": width,
            "height": height,
            "angle": 0,
            "strokeWidth": 1,
            "strokeStyle": "solid",
            "roughness": 0,
            "opacity": 100,
            "groupIds": [],
            "frameId": None,
            "roundness": None,
            "seed": self._seed(element_id),
            "version": 1,
            "versionNonce": self._seed(element_id, "nonce"),
            "isDeleted": False,
            "boundElements": [],
            "locked": False,
            "customData": {CUSTOM_DATA_KEY: metadata},
            **(extra or {}),
        }

    def _bind_arrow(self, element_index: Dict[str, dict], arrow: dict) -> None:
        arrow_id = arrow["id"]
        for key in ("startBinding", "endBinding"):
            binding = arrow.get(key)
            if not binding:
                continue
            target = element_index.get(binding.get("elementId"))
            if target is None:
                continue
            bound = target.setdefault("boundElements", [])
            if {"id": arrow_id, "type": "arrow"} not in bound:
                bound.append({"id": arrow_id, "type": "arrow"})

    def _center(self, position: Point, size: Size) -> Point:
        return Point(x=position.x + size.width / 2, y=position.y + size.height / 2)

    def _stable_id(self, *parts: str) -> str:
        return str(uuid.uuid5(self.namespace, "|".join(parts)))

    def _seed(self, *parts: str) -> int:
        return zlib.crc32("|".join(parts).encode("utf-8")) % (2**31 - 1) + 1

    def _with_base_metadata(self, metadata: dict, base: dict) -> dict:
        merged = dict(base)
        merged.update(metadata)
        return merged
