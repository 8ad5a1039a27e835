"""core.exceptions

Centralised exception hierarchy for *ai_tools*.

Each error carries an `http_status` attribute so that upper layers (REST API
controllers, FastAPI exception handlers, etc.) can translate exceptions to
appropriate HTTP responses *without* scattering status-code logic throughout
business code.

Most single calls never raise these: they return a `Result` instead (see
`core.results`). The typed-object, multi-turn and string helpers raise, because
there is no partial value to hand back to the caller.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Mapping


# ---------------------------------------------------------------------------
# Base mixin with HTTP status information
# ---------------------------------------------------------------------------


class AiToolsError(Exception):
    """Base class for all *ai_tools* domain errors."""

    #: Default HTTP status if not overridden by subclass.
    http_status: ClassVar[HTTPStatus] = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__name__)

    @property
    def message(self) -> str:
        return str(self)

    def to_json(self) -> dict[str, dict[str, str]]:
        """Unified error body."""
        return {'error': {'type': self.__class__.__name__, 'message': str(self)}}


# ---------------------------------------------------------------------------
# Concrete error classes
# ---------------------------------------------------------------------------


class TransportError(AiToolsError):
    """Connection failure or timeout; the provider never answered."""

    http_status: ClassVar[HTTPStatus] = HTTPStatus.SERVICE_UNAVAILABLE  # 503


class ProviderError(AiToolsError):
    """Provider answered with a non-2xx status. The message is the raw body."""

    http_status: ClassVar[HTTPStatus] = HTTPStatus.BAD_GATEWAY  # 502

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DeserializationError(AiToolsError):
    """2xx response whose body does not parse into the expected shape."""

    http_status: ClassVar[HTTPStatus] = HTTPStatus.BAD_GATEWAY  # 502


class ExtractionError(AiToolsError):
    """No usable JSON object could be recovered from a model's text output."""

    http_status: ClassVar[HTTPStatus] = HTTPStatus.UNPROCESSABLE_ENTITY  # 422


class ChoiceIndexError(AiToolsError, IndexError):
    """Caller asked for a completion choice the provider did not return."""

    http_status: ClassVar[HTTPStatus] = HTTPStatus.BAD_REQUEST  # 400


HTTP_STATUS_MAP: Mapping[type[AiToolsError], HTTPStatus] = {
    TransportError: TransportError.http_status,
    ProviderError: ProviderError.http_status,
    DeserializationError: DeserializationError.http_status,
    ExtractionError: ExtractionError.http_status,
    ChoiceIndexError: ChoiceIndexError.http_status,
}
