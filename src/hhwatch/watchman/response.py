"""Parsing and validation of Watchman responses."""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from hhwatch.watchman.errors import MalformedResponseError, ProtocolError
from hhwatch.watchman.observer import WatchmanObserver

logger = logging.getLogger("hhwatch.watchman")

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_response(output: str) -> dict[str, Any]:
    """Parse one response line into a JSON object."""
    logger.debug(f"Watchman response: {output}")
    try:
        response = json.loads(output)
    except ValueError as e:
        logger.error(f"Failed to parse string as JSON: {output}")
        raise MalformedResponseError(f"Invalid JSON from Watchman: {e}", output) from e

    if not isinstance(response, dict):
        logger.error(f"Expected a JSON object from Watchman: {output}")
        raise MalformedResponseError("Watchman response is not an object", output)

    return response


def assert_no_error(response: dict[str, Any], observer: WatchmanObserver) -> None:
    """Report warnings and raise on errors before anything else is read."""
    warning = response.get("warning")
    if warning is not None:
        observer.warning(str(warning))

    error = response.get("error")
    if error is not None:
        observer.error(str(error))
        raise ProtocolError(str(error))


def sanitize_response(output: str, observer: WatchmanObserver) -> dict[str, Any]:
    response = parse_response(output)
    assert_no_error(response, observer)
    return response


def extract(model: type[ModelT], response: dict[str, Any]) -> ModelT:
    """Pull the fields described by ``model`` out of a validated response."""
    try:
        return model.model_validate(response)
    except ValidationError as e:
        raw = json.dumps(response)
        logger.error(f"Unexpected Watchman response shape: {raw}")
        raise MalformedResponseError(
            f"Watchman response missing fields for {model.__name__}: {e}", raw
        ) from e
