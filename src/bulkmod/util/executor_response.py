"""Validation of bulk action executor responses before normalization."""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping

import jsonschema
from jsonschema import ValidationError

from bulkmod.util.logger import get_logger

logger = get_logger("executor_response")

_SNAKE_SEGMENT = re.compile(r"_([a-z])")


def _camel(key: str) -> str:
    return _SNAKE_SEGMENT.sub(lambda match: match.group(1).upper(), key)


def build_response_schema(id_field: str) -> Dict[str, Any]:
    """JSON schema for an executor response whose errors name items by ``id_field``.

    Error entries may also use the generic ``itemId`` field.
    """
    return {
        "type": "object",
        "properties": {
            "processedCount": {"type": "integer", "minimum": 0},
            "failedCount": {"type": "integer", "minimum": 0},
            "errors": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        id_field: {"type": ["string", "integer"]},
                        "itemId": {"type": ["string", "integer"]},
                        "error": {"type": "string"},
                    },
                    "required": ["error"],
                    "anyOf": [{"required": [id_field]}, {"required": ["itemId"]}],
                },
            },
        },
        "required": ["processedCount", "failedCount", "errors"],
    }


def canonicalize_response(raw: Any) -> Any:
    """Rewrite snake_case keys of a response (and its error entries) to camelCase."""
    if not isinstance(raw, Mapping):
        return raw
    payload = {_camel(str(key)): value for key, value in raw.items()}
    errors = payload.get("errors")
    if isinstance(errors, list):
        payload["errors"] = [
            {_camel(str(key)): value for key, value in entry.items()} if isinstance(entry, Mapping) else entry
            for entry in errors
        ]
    return payload


def validate_executor_response(raw: Any, id_field: str) -> Dict[str, Any]:
    """Canonicalize and validate an executor response.

    Args:
        raw: Whatever the executor resolved with.
        id_field: Kind-specific id field of the error entries (``userId``...).

    Returns:
        Dict[str, Any]: The camelCase payload, known to match the schema.

    Raises:
        ValueError: If the response does not match the expected shape.
    """
    payload = canonicalize_response(raw)
    try:
        jsonschema.validate(instance=payload, schema=build_response_schema(id_field))
    except ValidationError as exc:
        logger.warning("[VALIDATE] Executor response rejected: %s", exc.message)
        raise ValueError(exc.message) from exc
    return payload
