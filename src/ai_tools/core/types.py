"""core.types

Shared request DTOs and enums used throughout *ai_tools*.

These models live in the **core** layer so that *services*, *adapters* and the
client facade can depend on them without causing circular imports. Every
model here is an immutable, request-scoped value object.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SYSTEM_PROMPT = 'You are a helpful AI'
DEFAULT_MAX_TOKENS = 300
DEFAULT_IMAGE_SIZE = 1024

#: Canonical not-available marker for URL-typed results.
NOT_AVAILABLE_URL = 'Error'
#: Canonical not-available marker for byte-typed results.
NOT_AVAILABLE_BYTES = b''

# ---------------------------------------------------------------------------
# Chat roles (OpenAI-style for broad compatibility)
# ---------------------------------------------------------------------------


class Role(StrEnum):
    system = 'system'
    user = 'user'
    assistant = 'assistant'


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class Message(BaseModel):
    """Single chat message."""

    role: Role
    content: str

    # Immutable value-object
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Chat request
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    """One chat completion call.

    `max_tokens` is the caller's budget; the effective budget sent to the
    provider is floored by the session default (see
    `core.request_builder.resolve_max_tokens`).
    """

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    turns: tuple[Message, ...] = ()
    image_urls: tuple[str, ...] = ()
    max_tokens: int = Field(DEFAULT_MAX_TOKENS, ge=1)
    json_mode: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_prompt(cls, prompt: str, **kwargs: object) -> ChatRequest:
        """Single user turn under the default system prompt."""
        return cls(turns=(Message(role=Role.user, content=prompt),), **kwargs)


# ---------------------------------------------------------------------------
# Image job
#   The prompt mode is a tagged variant picked once when the job is built.
# ---------------------------------------------------------------------------


class LiteralPrompt(BaseModel):
    """Send the caller's prompt to the image endpoint as-is."""

    kind: Literal['literal'] = 'literal'

    model_config = ConfigDict(frozen=True)


class ImprovedPrompt(BaseModel):
    """Rewrite the prompt with a chat round-trip before generating."""

    kind: Literal['improved'] = 'improved'

    model_config = ConfigDict(frozen=True)


PromptMode = Annotated[LiteralPrompt | ImprovedPrompt, Field(discriminator='kind')]


class ImageJob(BaseModel):
    """Image generation job.

    `reference_urls` are attached to the prompt-improvement chat turn; they are
    not part of the image request itself.
    """

    prompt: str
    count: int = Field(1, ge=1)
    width: int = Field(DEFAULT_IMAGE_SIZE, ge=1)
    height: int = Field(DEFAULT_IMAGE_SIZE, ge=1)
    prompt_mode: PromptMode = Field(default_factory=ImprovedPrompt)
    reference_urls: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @classmethod
    def create(
        cls,
        prompt: str,
        *,
        count: int = 1,
        width: int = DEFAULT_IMAGE_SIZE,
        height: int = DEFAULT_IMAGE_SIZE,
        improve_prompt: bool = True,
        reference_urls: tuple[str, ...] | list[str] = (),
    ) -> ImageJob:
        mode = ImprovedPrompt() if improve_prompt else LiteralPrompt()
        return cls(
            prompt=prompt,
            count=count,
            width=width,
            height=height,
            prompt_mode=mode,
            reference_urls=tuple(reference_urls),
        )


# ---------------------------------------------------------------------------
# Speech job
# ---------------------------------------------------------------------------


class ReturnBytes(BaseModel):
    kind: Literal['bytes'] = 'bytes'

    model_config = ConfigDict(frozen=True)


class WriteFile(BaseModel):
    kind: Literal['file'] = 'file'
    path: Path

    model_config = ConfigDict(frozen=True)


class UploadBlob(BaseModel):
    """Upload to object storage; `name` is sanitized before use."""

    kind: Literal['blob'] = 'blob'
    container: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)


SpeechTarget = Annotated[ReturnBytes | WriteFile | UploadBlob, Field(discriminator='kind')]


class SpeechJob(BaseModel):
    """Text-to-speech job. `voice=None` falls back to the session default."""

    text: str
    voice: str | None = None
    target: SpeechTarget = Field(default_factory=ReturnBytes)

    model_config = ConfigDict(frozen=True)
