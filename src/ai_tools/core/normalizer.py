"""core.normalizer

Turns a raw transport outcome into a `Result[T]`.

* 2xx and a body that parses into *schema* -> `Success`
* 2xx and an unparsable body -> `Failure(deserialization)`, never an empty object
* non-2xx -> `Failure(provider)` carrying the raw body verbatim
* transport exception -> `Failure(transport)` with an ``Unhandled Error:`` prefix
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ValidationError

from ai_tools.core.results import Failure, FailureKind, Success

if TYPE_CHECKING:
    from ai_tools.core.abc import TransportResponse
    from ai_tools.core.exceptions import TransportError
    from ai_tools.core.results import Result

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)

DESERIALIZATION_FAILED = 'Failed to deserialize response.'
UNHANDLED_ERROR_PREFIX = 'Unhandled Error: '


def provider_failure(response: TransportResponse) -> Failure:
    logger.warning('Provider returned HTTP %s', response.status_code)
    return Failure(kind=FailureKind.provider, message=response.text, status_code=response.status_code)


def normalize(response: TransportResponse, schema: type[ModelT]) -> Result[ModelT]:
    """Parse a JSON response into *schema*."""
    if not response.is_success:
        return provider_failure(response)
    try:
        parsed = schema.model_validate_json(response.body)
    except ValidationError as exc:
        logger.warning('Could not parse %s from a %s response: %s', schema.__name__, response.status_code, exc)
        return Failure(kind=FailureKind.deserialization, message=DESERIALIZATION_FAILED, status_code=response.status_code)
    return Success(value=parsed)


def normalize_bytes(response: TransportResponse) -> Result[bytes]:
    """Raw-body variant for endpoints that answer with binary payloads (audio)."""
    if not response.is_success:
        return provider_failure(response)
    return Success(value=response.body)


def from_transport_error(exc: TransportError) -> Failure:
    return Failure(kind=FailureKind.transport, message=f'{UNHANDLED_ERROR_PREFIX}{exc}')
