from __future__ import annotations

import json
from typing import cast

from lzstring import LZString  # type: ignore[import-untyped]

from domain.models import ExcalidrawDocument


def encode_scene_payload(document: ExcalidrawDocument) -> str:
    payload = json.dumps(document.to_dict(), ensure_ascii=True, separators=(",", ":"))
    encoded = LZString().compressToEncodedURIComponent(payload)
    return cast(str, encoded)


def build_excalidraw_url(base_url: str, document: ExcalidrawDocument) -> str:
    clean_base = base_url.split("#", 1)[0]
    return f"{clean_base}#json={encode_scene_payload(document)}"
