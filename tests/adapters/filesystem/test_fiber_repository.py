from __future__ import annotations

import json
from pathlib import Path

import pytest

from adapters.excalidraw.repository import FileSystemExcalidrawRepository
from adapters.filesystem.fiber_repository import FileSystemFiberSnapshotRepository
from domain.models import ExcalidrawDocument
from domain.services.parse_definition import InvalidDefinitionError
from tests.helpers.definition_fixtures import definition_path


def test_loads_commented_fiber_snapshot() -> None:
    snapshot = FileSystemFiberSnapshotRepository().load_by_path(
        definition_path("agent_identity.fiber.json")
    )

    assert snapshot.fiber_id == "7f3a9c1e-agent-identity"
    assert snapshot.current_state == "ACTIVE"
    assert snapshot.definition is not None
    assert snapshot.definition.initial_state == "REGISTERED"
    assert list(snapshot.definition.states) == ["REGISTERED", "ACTIVE", "SUSPENDED", "WITHDRAWN"]


def test_loads_bare_definition() -> None:
    snapshot = FileSystemFiberSnapshotRepository().load_by_path(definition_path("contract.json"))

    assert snapshot.current_state == ""
    assert snapshot.definition is not None
    assert snapshot.definition.display_name == "Contract"


def test_comment_markers_inside_strings_are_kept(tmp_path: Path) -> None:
    path = tmp_path / "urls.json"
    path.write_text(
        '{\n'
        '  // description lives in metadata\n'
        '  "metadata": {"name": "Links", "description": "see https://example.com"},\n'
        '  "states": {"A": {}} // trailing comment\n'
        '}\n',
        encoding="utf-8",
    )

    definition = FileSystemFiberSnapshotRepository().load_by_path(path).definition

    assert definition is not None
    assert definition.metadata is not None
    assert definition.metadata.description == "see https://example.com"


def test_load_all_with_paths_is_sorted(tmp_path: Path) -> None:
    (tmp_path / "b.json").write_text('{"states": {"B": {}}}', encoding="utf-8")
    (tmp_path / "a.json").write_text('{"states": {"A": {}}}', encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    pairs = FileSystemFiberSnapshotRepository().load_all_with_paths(tmp_path)

    assert [path.name for path, _ in pairs] == ["a.json", "b.json"]


def test_invalid_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(InvalidDefinitionError):
        FileSystemFiberSnapshotRepository().load_by_path(path)


def test_excalidraw_repository_saves_scene_atomically(tmp_path: Path) -> None:
    document = ExcalidrawDocument(
        elements=[{"id": "a", "type": "rectangle"}], app_state={"gridSize": None}, files={}
    )
    target = tmp_path / "out" / "scene.excalidraw"

    FileSystemExcalidrawRepository().save(document, target)

    assert json.loads(target.read_text(encoding="utf-8")) == document.to_dict()
    assert not list((tmp_path / "out").glob("*.tmp"))
