"""core.extraction

Recovers a JSON object embedded in free-form model output.

Models asked for JSON often wrap it in prose ("Sure! {...}") or echo the
example schema. `find_json_object` scans for the first *balanced* `{...}` span,
counting brace depth and skipping braces inside JSON string literals, so nested
objects survive intact and a second object later in the text is ignored.

The older approach of a single greedy `{.*}` match (dot-all) spans from the
first `{` to the last `}` and breaks as soon as a response holds more than one
JSON object; it is not used here.
"""

from __future__ import annotations

import json
import types
import typing
from typing import Any, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError

from ai_tools.core.exceptions import ExtractionError

ModelT = TypeVar('ModelT', bound=BaseModel)


def find_json_object(text: str) -> str | None:
    """Return the first balanced `{...}` span in *text*, or None."""
    start = text.find('{')
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            return text[start : end + 1]
        start = text.find('{', start + 1)
    return None


def _balanced_end(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return index
    return None


def extract_object(text: str, schema: type[ModelT]) -> ModelT:
    """Parse *schema* out of *text*.

    Falls back to the whole text when no `{...}` span is present.

    Raises
    ------
    ExtractionError
        If the candidate does not validate against *schema*.

    """
    candidate = find_json_object(text)
    if candidate is None:
        candidate = text
    try:
        return schema.model_validate_json(candidate)
    except ValidationError as exc:
        raise ExtractionError(f'Could not extract {schema.__name__} from response: {exc}') from exc


# ---------------------------------------------------------------------------
# Example instances for the typed-object prompt
# ---------------------------------------------------------------------------


def example_json(schema: type[BaseModel]) -> str:
    """Serialize an "empty" instance of *schema* as formatting guidance."""
    return json.dumps(_example_for_model(schema))


def _example_for_model(schema: type[BaseModel]) -> dict[str, Any]:
    example: dict[str, Any] = {}
    for name, field in schema.model_fields.items():
        key = field.alias or name
        if not field.is_required():
            default = field.get_default(call_default_factory=True)
            example[key] = default.model_dump(mode='json') if isinstance(default, BaseModel) else default
        else:
            example[key] = _empty_value(field.annotation)
    return example


def _empty_value(annotation: Any) -> Any:  # noqa: PLR0911
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        return _empty_value(args[0]) if args else None
    if origin is typing.Literal:
        return get_args(annotation)[0]
    if origin in (list, tuple, set, frozenset):
        return []
    if origin is dict:
        return {}
    if isinstance(annotation, type):
        if issubclass(annotation, BaseModel):
            return _example_for_model(annotation)
        if issubclass(annotation, bool):
            return False
        if issubclass(annotation, int):
            return 0
        if issubclass(annotation, float):
            return 0.0
        if issubclass(annotation, str):
            return ''
        if issubclass(annotation, (list, tuple, set)):
            return []
        if issubclass(annotation, dict):
            return {}
    return None
