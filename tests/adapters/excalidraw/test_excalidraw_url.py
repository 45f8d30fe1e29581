from __future__ import annotations

import json

from lzstring import LZString  # type: ignore[import-untyped]

from adapters.excalidraw.url_encoder import build_excalidraw_url, encode_scene_payload
from domain.models import ExcalidrawDocument


def _document() -> ExcalidrawDocument:
    return ExcalidrawDocument(elements=[], app_state={"theme": "light"}, files={})


def test_encode_scene_payload_decodes_to_scene() -> None:
    document = _document()

    encoded = encode_scene_payload(document)
    decoded = LZString().decompressFromEncodedURIComponent(encoded)

    assert json.loads(decoded) == document.to_dict()


def test_build_excalidraw_url_replaces_fragment() -> None:
    url = build_excalidraw_url("https://excalidraw.example/#room=1", _document())

    assert url.startswith("https://excalidraw.example/#json=")
    assert "room=1" not in url
