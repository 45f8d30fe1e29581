from __future__ import annotations

import json
from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient
from lzstring import LZString  # type: ignore[import-untyped]

from app.config import AppSettings
from app.web_main import create_app
from tests.helpers.definition_fixtures import load_definition_payload


@pytest.fixture
def client(app_settings: AppSettings) -> TestClient:
    return TestClient(create_app(app_settings))


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_layout_for_bare_definition(client: TestClient) -> None:
    response = client.post("/api/diagram/layout", json=load_definition_payload("contract.json"))

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Contract"
    assert body["current_state"] is None
    assert body["columns"][0] == ["PROPOSED"]
    assert body["summary"]["dropped_transitions"] == 1
    self_loops = [edge for edge in body["edges"] if edge["self_loop"]]
    assert [edge["label"] for edge in self_loops] == ["amend"]
    assert self_loops[0]["path"].startswith("M ")
    assert " C " in self_loops[0]["path"]


def test_layout_for_fiber_envelope(client: TestClient) -> None:
    envelope = {
        "fiberId": "f-1",
        "currentState": {"value": "DISPUTED"},
        "definition": json.dumps(load_definition_payload("contract.json")),
    }

    response = client.post("/api/diagram/layout", json=envelope)

    assert response.status_code == 200
    body = response.json()
    assert body["current_state"] == "DISPUTED"
    assert body["initial_state"] == "PROPOSED"


def test_svg_with_hovered_state(client: TestClient) -> None:
    payload = load_definition_payload("contract.json")

    response = client.post(
        "/api/diagram/svg", params={"hovered_state": "DISPUTED"}, json=payload
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("image/svg+xml")
    assert ">resolve</text>" in response.text
    assert ">accept</text>" not in response.text


def test_svg_with_all_labels(client: TestClient) -> None:
    response = client.post(
        "/api/diagram/svg",
        params={"labels": "true"},
        json=load_definition_payload("contract.json"),
    )

    assert response.status_code == 200
    assert ">accept</text>" in response.text


def test_excalidraw_scene_and_url(client: TestClient) -> None:
    payload = load_definition_payload("contract.json")

    scene = client.post("/api/diagram/excalidraw", json=payload)
    url = client.post("/api/diagram/excalidraw", params={"as_url": "true"}, json=payload)

    assert scene.status_code == 200
    assert scene.json()["type"] == "excalidraw"
    assert url.status_code == 200
    base, encoded = url.json()["url"].split("#json=", 1)
    assert base == "https://excalidraw.com/"
    assert LZString().decompressFromEncodedURIComponent(encoded)


def test_excalidraw_url_uses_configured_base(
    app_settings_factory: Callable[..., AppSettings],
) -> None:
    settings = app_settings_factory(excalidraw_base_url="https://draw.example/")
    client = TestClient(create_app(settings))

    response = client.post(
        "/api/diagram/excalidraw",
        params={"as_url": "true"},
        json=load_definition_payload("contract.json"),
    )

    assert response.json()["url"].startswith("https://draw.example/#json=")


@pytest.mark.parametrize(
    "payload",
    [
        {"states": ["A"]},
        {"fiberId": "f-1", "definition": None},
        {"definition": "{broken"},
    ],
)
def test_invalid_payload_is_unprocessable(client: TestClient, payload: dict) -> None:
    response = client.post("/api/diagram/layout", json=payload)

    assert response.status_code == 422


def test_action_without_target_is_dropped_not_rejected(client: TestClient) -> None:
    payload = {
        "initialState": "A",
        "states": {
            "A": {"actions": [{"eventName": "go", "target": "B"}, {"eventName": "broken"}]},
            "B": {"actions": []},
        },
    }

    response = client.post("/api/diagram/layout", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert [(edge["source"], edge["target"]) for edge in body["edges"]] == [("A", "B")]
    assert body["summary"]["dropped_transitions"] == 1
