from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from adapters.excalidraw.repository import FileSystemExcalidrawRepository
from adapters.excalidraw.url_encoder import build_excalidraw_url
from adapters.filesystem.fiber_repository import FileSystemFiberSnapshotRepository
from adapters.filesystem.json_utils import write_bytes_atomic, write_json_atomic
from app.config import AppSettings, load_settings
from app.diagram_wiring import build_diagram_builder, build_svg_renderer
from app.log_config import configure_logging
from domain.models import FiberSnapshot
from domain.services.build_state_diagram import BuildStateDiagram
from domain.services.convert_state_diagram_to_excalidraw import StateDiagramToExcalidrawConverter
from domain.services.parse_definition import InvalidDefinitionError
from domain.services.present_state_diagram import build_diagram_view
from domain.services.serialize_state_diagram import state_diagram_to_dict, summarize_state_diagram

app = typer.Typer(no_args_is_help=True)
console = Console()
logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    svg = "svg"
    excalidraw = "excalidraw"
    json = "json"


SUFFIXES = {
    OutputFormat.svg: ".svg",
    OutputFormat.excalidraw: ".excalidraw",
    OutputFormat.json: ".layout.json",
}


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, help="YAML settings file."),
    log_level: Optional[str] = typer.Option(None, help="Override the configured log level."),
) -> None:
    settings = load_settings(config)
    configure_logging(log_level or settings.log_level, console=Console(stderr=True))
    ctx.obj = settings


@app.command("render")
def render(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Definition or fiber snapshot JSON file."),
    output: Optional[Path] = typer.Option(None, help="Target file (defaults next to input)."),
    format: OutputFormat = typer.Option(OutputFormat.svg, help="Output format."),
    current_state: Optional[str] = typer.Option(
        None, help="State to highlight (defaults to the snapshot's current state)."
    ),
    labels: bool = typer.Option(False, help="Show every transition label in the SVG."),
) -> None:
    settings: AppSettings = ctx.obj
    snapshot = _load_snapshot(input_path)
    target = output or input_path.with_suffix(SUFFIXES[format])
    builder = build_diagram_builder(settings)
    _write_output(settings, builder, snapshot, target, format, current_state, labels)
    console.print(f"[green]Wrote[/] {target}")


@app.command("render-all")
def render_all(
    ctx: typer.Context,
    input_dir: Path = typer.Argument(..., help="Directory with definition JSON files."),
    output_dir: Path = typer.Argument(..., help="Directory to write rendered diagrams."),
    format: OutputFormat = typer.Option(OutputFormat.svg, help="Output format."),
    labels: bool = typer.Option(False, help="Show every transition label in the SVG."),
) -> None:
    settings: AppSettings = ctx.obj
    repository = FileSystemFiberSnapshotRepository()
    try:
        pairs = repository.load_all_with_paths(input_dir)
    except InvalidDefinitionError as exc:
        console.print(f"[red]Invalid definition:[/] {exc}")
        raise typer.Exit(code=1) from exc
    if not pairs:
        console.print(f"[yellow]No definition files found in {input_dir}[/]")
        raise typer.Exit(code=0)

    builder = build_diagram_builder(settings)
    output_dir.mkdir(parents=True, exist_ok=True)
    for path, snapshot in pairs:
        if snapshot.definition is None:
            console.print(f"[yellow]Skipped[/] {path}: no definition")
            continue
        target = output_dir / f"{path.stem}{SUFFIXES[format]}"
        _write_output(settings, builder, snapshot, target, format, None, labels)
        console.print(f"[green]Wrote[/] {target}")


@app.command("validate")
def validate(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Definition or fiber snapshot JSON file."),
) -> None:
    settings: AppSettings = ctx.obj
    snapshot = _load_snapshot(input_path)
    diagram = build_diagram_builder(settings).build(snapshot.definition)
    summary = summarize_state_diagram(diagram)

    table = Table(title=f"{summary['name']} ({input_path.name})")
    table.add_column("Check")
    table.add_column("Value")
    table.add_row("States", str(summary["states"]))
    table.add_row("Transitions", str(summary["transitions"]))
    table.add_row("Self-loops", str(summary["self_loops"]))
    table.add_row("Dropped transitions", str(summary["dropped_transitions"]))
    table.add_row("Initial state known", "yes" if summary["initial_state_known"] else "no")
    table.add_row("Unreachable states", ", ".join(summary["unreachable_states"]) or "-")
    table.add_row("Columns", str(summary["columns"]))
    console.print(table)

    if summary["dropped_transitions"] or not summary["initial_state_known"]:
        console.print(f"[yellow]Definition renders with warnings:[/] {input_path}")
    else:
        console.print(f"[green]Valid definition:[/] {input_path}")


@app.command("excalidraw-url")
def excalidraw_url(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Definition or fiber snapshot JSON file."),
    base_url: Optional[str] = typer.Option(None, help="Excalidraw instance to open."),
) -> None:
    settings: AppSettings = ctx.obj
    snapshot = _load_snapshot(input_path)
    diagram = build_diagram_builder(settings).build(snapshot.definition)
    view = build_diagram_view(diagram, snapshot.current_state)
    document = StateDiagramToExcalidrawConverter().convert(view)
    url = build_excalidraw_url(base_url or settings.diagram.excalidraw_base_url, document)
    console.print(url, soft_wrap=True)


def _load_snapshot(input_path: Path) -> FiberSnapshot:
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)
    try:
        snapshot = FileSystemFiberSnapshotRepository().load_by_path(input_path)
    except InvalidDefinitionError as exc:
        console.print(f"[red]Invalid definition:[/] {exc}")
        raise typer.Exit(code=1) from exc
    if snapshot.definition is None:
        console.print(f"[red]No state machine definition in[/] {input_path}")
        raise typer.Exit(code=1)
    return snapshot


def _write_output(
    settings: AppSettings,
    builder: BuildStateDiagram,
    snapshot: FiberSnapshot,
    target: Path,
    format: OutputFormat,
    current_state: str | None,
    labels: bool,
) -> None:
    diagram = builder.build(snapshot.definition)
    if format is OutputFormat.json:
        write_json_atomic(target, state_diagram_to_dict(diagram))
        return
    view = build_diagram_view(diagram, current_state or snapshot.current_state)
    if format is OutputFormat.excalidraw:
        document = StateDiagramToExcalidrawConverter().convert(view)
        FileSystemExcalidrawRepository().save(document, target)
        return
    svg = build_svg_renderer(settings, show_all_labels=labels).render(view)
    write_bytes_atomic(target, svg.markup.encode("utf-8"))
    logger.debug("Rendered %s (%sx%s)", target, svg.width, svg.height)


if __name__ == "__main__":
    app()
