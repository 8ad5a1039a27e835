"""core.results

Wire response models and the uniform `Result[T]` shape.

The wire models mirror the provider's JSON field-for-field; unknown fields are
ignored so that provider additions do not break parsing. Fields the core relies
on (`choices`, `data`, `labels`) are required, so a 2xx body without them is a
deserialization failure rather than an empty object.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any, Generic, Literal, NoReturn, TypeVar

from pydantic import BaseModel, ConfigDict

from ai_tools.core.exceptions import (
    AiToolsError,
    ChoiceIndexError,
    DeserializationError,
    ExtractionError,
    ProviderError,
    TransportError,
)

T = TypeVar('T')

# ---------------------------------------------------------------------------
# Chat completion
# ---------------------------------------------------------------------------


class ChoiceMessage(BaseModel):
    role: str | None = None
    content: str | None = None

    model_config = ConfigDict(extra='ignore', frozen=True)


class Choice(BaseModel):
    index: int = 0
    message: ChoiceMessage
    logprobs: Any = None
    finish_reason: str | None = None

    model_config = ConfigDict(extra='ignore', frozen=True)


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    model_config = ConfigDict(extra='ignore', frozen=True)


class ChatCompletion(BaseModel):
    """`POST /chat/completions` response body."""

    id: str | None = None
    object: str | None = None
    created: int | None = None
    model: str | None = None
    choices: list[Choice]
    usage: Usage | None = None
    system_fingerprint: str | None = None

    model_config = ConfigDict(extra='ignore', frozen=True)

    def content(self, choice: int = 0) -> str:
        """Text of the *choice*-th completion.

        Raises
        ------
        ChoiceIndexError
            If the provider returned fewer choices than requested.

        """
        if not 0 <= choice < len(self.choices):
            raise ChoiceIndexError(f'Choice {choice} not available; provider returned {len(self.choices)} choice(s)')
        return self.choices[choice].message.content or ''


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


class ImageData(BaseModel):
    url: str | None = None
    revised_prompt: str | None = None

    model_config = ConfigDict(extra='ignore', frozen=True)


class ImagesResponse(BaseModel):
    """`POST /images/generations` response body."""

    data: list[ImageData]

    model_config = ConfigDict(extra='ignore', frozen=True)

    @property
    def urls(self) -> list[str]:
        return [d.url or '' for d in self.data]

    @property
    def revised_prompts(self) -> list[str | None]:
        return [d.revised_prompt for d in self.data]


class Label(BaseModel):
    name: str

    model_config = ConfigDict(extra='ignore', frozen=True)


class ImageAnalysis(BaseModel):
    """`POST <image endpoint>/analyze` response body."""

    labels: list[Label]

    model_config = ConfigDict(extra='ignore', frozen=True)

    @property
    def names(self) -> list[str]:
        return [label.name for label in self.labels]


# ---------------------------------------------------------------------------
# Speech
# ---------------------------------------------------------------------------


class SpeechOutcome(BaseModel):
    """Synthesized audio plus wherever it was delivered to."""

    audio: bytes
    path: Path | None = None
    url: str | None = None

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Result[T]
# ---------------------------------------------------------------------------


class FailureKind(StrEnum):
    transport = 'transport'
    provider = 'provider'
    deserialization = 'deserialization'
    extraction = 'extraction'


_ERROR_BY_KIND: dict[FailureKind, type[AiToolsError]] = {
    FailureKind.transport: TransportError,
    FailureKind.provider: ProviderError,
    FailureKind.deserialization: DeserializationError,
    FailureKind.extraction: ExtractionError,
}


class Success(BaseModel, Generic[T]):
    value: T

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def is_success(self) -> Literal[True]:
        return True

    def unwrap(self) -> T:
        return self.value


class Failure(BaseModel):
    """Failed call. `message` is never rewritten for provider failures."""

    kind: FailureKind
    message: str
    status_code: int | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_success(self) -> Literal[False]:
        return False

    def error(self) -> AiToolsError:
        """Exception matching this failure's kind."""
        if self.kind is FailureKind.provider:
            return ProviderError(self.message, status_code=self.status_code)
        return _ERROR_BY_KIND[self.kind](self.message)

    def unwrap(self) -> NoReturn:
        raise self.error()


Result = Success[T] | Failure
