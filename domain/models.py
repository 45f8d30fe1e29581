from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CUSTOM_DATA_KEY = "fiber"
UNNAMED_DEFINITION = "Unnamed"
_GUARD_FIELDS = {"states": {"__all__": {"actions": {"__all__": {"guards"}}}}}


class _DefinitionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class DefinitionMetadata(_DefinitionModel):
    name: Optional[str] = None
    description: Optional[str] = None


class StateMetadata(_DefinitionModel):
    description: Optional[str] = None


class StateAction(_DefinitionModel):
    event_name: str = Field(default="", alias="eventName")
    target: Optional[str] = None
    guards: List[Any] = Field(default_factory=list)

    @field_validator("event_name", mode="before")
    @classmethod
    def normalize_event_name(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("guards", mode="before")
    @classmethod
    def normalize_guards(cls, value: object) -> object:
        return [] if value is None else value


class StateDescriptor(_DefinitionModel):
    description: Optional[str] = None
    metadata: Optional[StateMetadata] = None
    actions: List[StateAction] = Field(default_factory=list)

    @field_validator("actions", mode="before")
    @classmethod
    def normalize_actions(cls, value: object) -> object:
        return [] if value is None else value

    def effective_description(self) -> str | None:
        if self.description:
            return self.description
        if self.metadata and self.metadata.description:
            return self.metadata.description
        return None


class StateMachineDefinition(_DefinitionModel):
    metadata: Optional[DefinitionMetadata] = None
    initial_state: Optional[str] = Field(default=None, alias="initialState")
    states: dict[str, StateDescriptor] = Field(default_factory=dict)

    @field_validator("states", mode="before")
    @classmethod
    def normalize_states(cls, value: object) -> object:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: {} if item is None else item for key, item in value.items()}
        return value

    @property
    def display_name(self) -> str:
        if self.metadata and self.metadata.name:
            return self.metadata.name
        return UNNAMED_DEFINITION

    def cache_key(self) -> str:
        # Guards are opaque and never affect layout.
        return self.model_dump_json(by_alias=True, exclude=_GUARD_FIELDS)


class FiberSnapshot(_DefinitionModel):
    fiber_id: Optional[str] = Field(default=None, alias="fiberId")
    current_state: str = Field(default="", alias="currentState")
    definition: Optional[StateMachineDefinition] = None

    @field_validator("current_state", mode="before")
    @classmethod
    def unwrap_current_state(cls, value: object) -> str:
        if isinstance(value, dict) and "value" in value:
            value = value["value"]
        return "" if value is None else str(value)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class StateEdge:
    source: str
    target: str
    label: str

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


@dataclass(frozen=True)
class StateGraph:
    nodes: tuple[str, ...]
    edges: tuple[StateEdge, ...]


@dataclass(frozen=True)
class NodePlacement:
    state: str
    depth: int
    position: Point
    size: Size

    def right_center(self) -> Point:
        return Point(self.position.x + self.size.width, self.position.y + self.size.height / 2)

    def left_center(self) -> Point:
        return Point(self.position.x, self.position.y + self.size.height / 2)


@dataclass(frozen=True)
class LayoutPlan:
    nodes: List[NodePlacement]
    columns: List[List[str]]
    width: float
    height: float
    unreachable: List[str] = field(default_factory=list)

    def node(self, state: str) -> NodePlacement | None:
        for placement in self.nodes:
            if placement.state == state:
                return placement
        return None

    def depths(self) -> dict[str, int]:
        return {placement.state: placement.depth for placement in self.nodes}


@dataclass(frozen=True)
class RoutedEdge:
    edge: StateEdge
    index: int
    start: Point
    end: Point
    controls: tuple[Point, ...]
    offset: float
    is_self_loop: bool
    label_position: Point

    @property
    def path(self) -> str:
        head = f"M {_fmt(self.start.x)} {_fmt(self.start.y)}"
        coords = " ".join(f"{_fmt(p.x)} {_fmt(p.y)}" for p in (*self.controls, self.end))
        command = "C" if len(self.controls) == 2 else "Q"
        return f"{head} {command} {coords}"

    def point_at(self, t: float) -> Point:
        points = (self.start, *self.controls, self.end)
        # De Casteljau works for both the quadratic and the cubic form.
        while len(points) > 1:
            points = tuple(
                Point(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)
                for a, b in zip(points, points[1:])
            )
        return points[0]

    def sample(self, segments: int = 8) -> List[Point]:
        segments = max(1, segments)
        return [self.point_at(step / segments) for step in range(segments + 1)]


@dataclass(frozen=True)
class StateDiagram:
    definition: StateMachineDefinition
    graph: StateGraph
    plan: LayoutPlan
    edges: List[RoutedEdge]


@dataclass(frozen=True)
class SvgDocument:
    markup: str
    width: float
    height: float


@dataclass(frozen=True)
class ExcalidrawDocument:
    elements: List[dict]
    app_state: dict
    files: dict

    def to_dict(self) -> dict:
        return {
            "type": "excalidraw",
            "version": 2,
            "source": "fiber-state-diagram",
            "elements": self.elements,
            "appState": self.app_state,
            "files": self.files,
        }


def _fmt(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")
