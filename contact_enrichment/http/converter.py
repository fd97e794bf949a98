"""Request/response marshaling between typed models and the JSON wire format."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..exceptions import ResponseParseError
from ..models.request import EnrichmentRequest, ParamValue


M = TypeVar("M", bound=BaseModel)


class BodyConverter(ABC):
    """Serializes request parameters and deserializes response bodies."""

    @abstractmethod
    def to_params(self, request: EnrichmentRequest) -> dict[str, str]: ...

    @abstractmethod
    def from_response(self, body: bytes | str, model: type[M]) -> M: ...


def _render(value: ParamValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _drop_blank(value: Any) -> Any:
    """Remove empty-string and null members from JSON objects, recursively."""
    if isinstance(value, dict):
        return {
            key: _drop_blank(item)
            for key, item in value.items()
            if item is not None and item != ""
        }
    if isinstance(value, list):
        return [_drop_blank(item) for item in value]
    return value


class JsonBodyConverter(BodyConverter):
    """JSON converter backed by pydantic models.

    Unknown response fields are ignored by the models; empty strings and nulls
    are treated as absent so field defaults apply.
    """

    def to_params(self, request: EnrichmentRequest) -> dict[str, str]:
        return {
            key: _render(value)
            for key, value in request.query_params().items()
            if value is not None
        }

    def from_response(self, body: bytes | str, model: type[M]) -> M:
        if not body or not body.strip():
            raise ResponseParseError(
                "Empty response body", operation="from_response", details={"model": model.__name__}
            )

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ResponseParseError(
                f"Response body is not valid JSON: {e}",
                operation="from_response",
                details={"model": model.__name__},
                cause=e,
            ) from e

        if not isinstance(payload, dict):
            raise ResponseParseError(
                f"Expected a JSON object, got {type(payload).__name__}",
                operation="from_response",
                details={"model": model.__name__},
            )

        try:
            return model.model_validate(_drop_blank(payload))
        except ValidationError as e:
            raise ResponseParseError(
                f"Response does not match {model.__name__}: {e}",
                operation="from_response",
                details={"model": model.__name__, "error_count": e.error_count()},
                cause=e,
            ) from e
