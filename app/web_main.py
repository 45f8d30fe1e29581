from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import ORJSONResponse, Response

from adapters.excalidraw.url_encoder import build_excalidraw_url
from adapters.svg.renderer import SvgDiagramRenderer
from app.config import AppSettings, load_settings
from app.diagram_wiring import build_diagram_builder, build_svg_renderer
from domain.models import FiberSnapshot, StateDiagram
from domain.services.build_state_diagram import BuildStateDiagram
from domain.services.convert_state_diagram_to_excalidraw import StateDiagramToExcalidrawConverter
from domain.services.parse_definition import InvalidDefinitionError, parse_fiber_snapshot
from domain.services.present_state_diagram import (
    EdgePointerEnter,
    NodePointerEnter,
    StateDiagramPresenter,
)
from domain.services.serialize_state_diagram import state_diagram_to_dict, summarize_state_diagram

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagramContext:
    settings: AppSettings
    builder: BuildStateDiagram
    svg_renderer: SvgDiagramRenderer
    svg_renderer_all_labels: SvgDiagramRenderer
    to_excalidraw: StateDiagramToExcalidrawConverter


def create_app(settings: AppSettings) -> FastAPI:
    app = FastAPI(title="Fiber State Diagram")
    context = DiagramContext(
        settings=settings,
        builder=build_diagram_builder(settings),
        svg_renderer=build_svg_renderer(settings),
        svg_renderer_all_labels=build_svg_renderer(settings, show_all_labels=True),
        to_excalidraw=StateDiagramToExcalidrawConverter(),
    )
    app.state.context = context

    @app.get("/health")
    def health() -> ORJSONResponse:
        return ORJSONResponse({"status": "ok"})

    @app.post("/api/diagram/layout")
    def api_layout(
        payload: dict[str, Any] = Body(...),
        context: DiagramContext = Depends(get_context),
    ) -> ORJSONResponse:
        snapshot, diagram = build_from_payload(context, payload)
        body = state_diagram_to_dict(diagram)
        body["current_state"] = snapshot.current_state or None
        body["summary"] = summarize_state_diagram(diagram)
        return ORJSONResponse(body)

    @app.post("/api/diagram/svg")
    def api_svg(
        payload: dict[str, Any] = Body(...),
        hovered_state: str | None = Query(default=None),
        hovered_edge: int | None = Query(default=None, ge=0),
        labels: bool = Query(default=False),
        context: DiagramContext = Depends(get_context),
    ) -> Response:
        snapshot, diagram = build_from_payload(context, payload)
        presenter = StateDiagramPresenter(diagram, current_state=snapshot.current_state)
        if hovered_state is not None:
            presenter.dispatch(NodePointerEnter(hovered_state))
        elif hovered_edge is not None:
            presenter.dispatch(EdgePointerEnter(hovered_edge))
        renderer = context.svg_renderer_all_labels if labels else context.svg_renderer
        svg = renderer.render(presenter.view())
        return Response(content=svg.markup, media_type="image/svg+xml")

    @app.post("/api/diagram/excalidraw")
    def api_excalidraw(
        payload: dict[str, Any] = Body(...),
        as_url: bool = Query(default=False),
        context: DiagramContext = Depends(get_context),
    ) -> ORJSONResponse:
        snapshot, diagram = build_from_payload(context, payload)
        presenter = StateDiagramPresenter(diagram, current_state=snapshot.current_state)
        document = context.to_excalidraw.convert(presenter.view())
        if as_url:
            url = build_excalidraw_url(context.settings.diagram.excalidraw_base_url, document)
            return ORJSONResponse({"url": url})
        return ORJSONResponse(document.to_dict())

    return app


def get_context(request: Request) -> DiagramContext:
    return request.app.state.context


def build_from_payload(
    context: DiagramContext, payload: dict[str, Any]
) -> tuple[FiberSnapshot, StateDiagram]:
    try:
        snapshot = parse_fiber_snapshot(payload)
    except InvalidDefinitionError as exc:
        logger.info("Rejected diagram request: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if snapshot.definition is None:
        raise HTTPException(status_code=422, detail="State machine definition is required")
    return snapshot, context.builder.build(snapshot.definition)


app = create_app(load_settings())
