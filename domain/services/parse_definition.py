from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import orjson
from pydantic import ValidationError

from domain.models import FiberSnapshot, StateMachineDefinition

logger = logging.getLogger(__name__)

DefinitionInput = StateMachineDefinition | Mapping[str, Any] | str | bytes


class InvalidDefinitionError(ValueError):
    """Raised when a definition payload cannot be turned into a typed definition."""


def parse_definition(raw: DefinitionInput) -> StateMachineDefinition:
    if isinstance(raw, StateMachineDefinition):
        return raw
    payload = _decode(raw)
    if not isinstance(payload, Mapping):
        msg = f"State machine definition must be a JSON object, got {type(payload).__name__}"
        raise InvalidDefinitionError(msg)
    try:
        return StateMachineDefinition.model_validate(payload)
    except ValidationError as exc:
        msg = f"Invalid state machine definition: {exc.error_count()} validation error(s)"
        raise InvalidDefinitionError(msg) from exc


def parse_definition_safely(raw: DefinitionInput | None) -> StateMachineDefinition | None:
    if raw is None:
        return None
    try:
        return parse_definition(raw)
    except InvalidDefinitionError as exc:
        logger.warning("Skipping state machine definition: %s", exc)
        return None


def parse_fiber_snapshot(raw: Mapping[str, Any] | str | bytes) -> FiberSnapshot:
    """Accept either a fiber envelope or a bare definition.

    Fiber envelopes carry the definition as an object or as a JSON-encoded string
    and the current state either plain or wrapped as ``{"value": ...}``.
    """
    payload = _decode(raw)
    if not isinstance(payload, Mapping):
        msg = f"Fiber snapshot must be a JSON object, got {type(payload).__name__}"
        raise InvalidDefinitionError(msg)
    if "definition" not in payload:
        return FiberSnapshot(
            current_state=_current_state_of(payload),
            definition=parse_definition(_without_keys(payload, "currentState", "current_state")),
        )
    raw_definition = payload.get("definition")
    definition = None if raw_definition is None else parse_definition(raw_definition)
    try:
        return FiberSnapshot.model_validate(
            {
                "fiberId": payload.get("fiberId", payload.get("fiber_id")),
                "currentState": _current_state_of(payload),
                "definition": definition,
            }
        )
    except ValidationError as exc:
        msg = f"Invalid fiber snapshot: {exc.error_count()} validation error(s)"
        raise InvalidDefinitionError(msg) from exc


def _decode(raw: Mapping[str, Any] | str | bytes) -> Any:
    if isinstance(raw, (str, bytes)):
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            msg = f"Definition is not valid JSON: {exc}"
            raise InvalidDefinitionError(msg) from exc
    return raw


def _current_state_of(payload: Mapping[str, Any]) -> Any:
    if "currentState" in payload:
        return payload["currentState"]
    return payload.get("current_state")


def _without_keys(payload: Mapping[str, Any], *keys: str) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if key not in keys}
