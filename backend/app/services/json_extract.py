"""Recover JSON objects from free-form model output."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.services.errors import ParseError, SchemaError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
# Greedy on purpose: first "{" to the last "}" in the text.
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")


def extract_json(text: str, *, stage: str) -> Any:
    """Parse ``text`` as JSON, falling back to a fenced block, then to a brace span.

    Raises :class:`ParseError` naming ``stage`` when all three attempts fail.
    """

    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        pass

    fenced = _FENCED_BLOCK.search(text or "")
    if fenced:
        try:
            return json.loads(fenced.group(1).strip())
        except json.JSONDecodeError:
            logger.debug("Fenced block was not valid JSON", extra={"stage": stage})

    span = _OBJECT_SPAN.search(text or "")
    if span:
        try:
            return json.loads(span.group(0))
        except json.JSONDecodeError:
            logger.debug("Brace span was not valid JSON", extra={"stage": stage})

    raise ParseError(
        f"Could not parse JSON from the {stage} model response", stage=stage
    )


def validate_payload(data: Any, model: Type[ModelT], *, stage: str) -> ModelT:
    """Validate already-parsed data against ``model``, raising :class:`SchemaError`."""

    if not isinstance(data, dict):
        raise SchemaError(
            f"The {stage} model response is not a JSON object", stage=stage
        )
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in exc.errors()
        )
        raise SchemaError(
            f"The {stage} model response has an unexpected shape ({problems})",
            stage=stage,
        ) from exc


__all__ = ["extract_json", "validate_payload"]
