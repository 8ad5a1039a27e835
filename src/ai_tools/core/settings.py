"""core.settings

Endpoint / model / credential state shared by every call of a client.

`SessionSnapshot` is an immutable value-object. `Session` is the mutable,
setter-based surface on top: each setter swaps in a new snapshot, and each
public operation reads `Session.snapshot()` exactly once at entry and passes
that snapshot down to all of its sub-calls. A setter racing an in-flight
request is therefore observed either entirely or not at all by that request.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from ai_tools.core.types import DEFAULT_IMAGE_SIZE, DEFAULT_MAX_TOKENS

DEFAULT_CHAT_ENDPOINT = 'https://api.openai.com/v1/chat/completions'
DEFAULT_IMAGE_ENDPOINT = 'https://api.openai.com/v1/images/generations'
DEFAULT_SPEECH_ENDPOINT = 'https://api.openai.com/v1/audio/speech'

# Environment variable -> snapshot field
_ENV_FIELDS: dict[str, str] = {
    'OPENAI_API_KEY': 'api_key',
    'OPENAI_CHAT_ENDPOINT': 'chat_endpoint',
    'OPENAI_IMAGE_ENDPOINT': 'image_endpoint',
    'OPENAI_TTS_ENDPOINT': 'speech_endpoint',
    'OPENAI_CHAT_MODEL': 'chat_model',
    'OPENAI_IMAGE_MODEL': 'image_model',
    'OPENAI_TTS_MODEL': 'speech_model',
    'OPENAI_DEFAULT_MAX_TOKENS': 'default_max_tokens',
    'OPENAI_DEFAULT_IMAGE_WIDTH': 'default_image_width',
    'OPENAI_DEFAULT_IMAGE_HEIGHT': 'default_image_height',
    'OPENAI_VOICE': 'default_voice',
}


class SessionSnapshot(BaseModel):
    """Consistent view of the client configuration for one request."""

    chat_endpoint: str = DEFAULT_CHAT_ENDPOINT
    image_endpoint: str = DEFAULT_IMAGE_ENDPOINT
    speech_endpoint: str = DEFAULT_SPEECH_ENDPOINT
    chat_model: str = 'gpt-4-2024-05-13'
    image_model: str = 'dall-e-3'
    speech_model: str = 'tts-1'
    api_key: str = Field('', repr=False)
    default_max_tokens: int = Field(DEFAULT_MAX_TOKENS, ge=1)
    default_image_width: int = Field(DEFAULT_IMAGE_SIZE, ge=1)
    default_image_height: int = Field(DEFAULT_IMAGE_SIZE, ge=1)
    default_voice: str = 'alloy'
    max_concurrent_downloads: int = Field(4, ge=1, description='Upper bound for parallel image downloads')
    timeout_sec: float = Field(120.0, gt=0.0, description='Per-request transport timeout')

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @classmethod
    def from_env(cls, **overrides: object) -> SessionSnapshot:
        """Build a snapshot from `OPENAI_*` environment variables (and `.env`).

        Unset variables keep the field defaults; *overrides* win over both.
        """
        load_dotenv()
        values: dict[str, object] = {
            field: raw for env_name, field in _ENV_FIELDS.items() if (raw := os.getenv(env_name))
        }
        values.update(overrides)
        return cls.model_validate(values)


class Session:
    """Mutable, last-write-wins configuration holder.

    Setters validate through `SessionSnapshot`, so an invalid value raises
    `pydantic.ValidationError` and leaves the current snapshot untouched.
    """

    def __init__(self, snapshot: SessionSnapshot | None = None) -> None:
        self._snapshot: SessionSnapshot = snapshot or SessionSnapshot()

    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    def _update(self, **changes: object) -> None:
        merged = self._snapshot.model_dump() | changes
        self._snapshot = SessionSnapshot.model_validate(merged)

    # --------------------------- Setters ------------------------------

    def set_chat_endpoint(self, endpoint: str) -> None:
        self._update(chat_endpoint=endpoint)

    def set_image_endpoint(self, endpoint: str) -> None:
        self._update(image_endpoint=endpoint)

    def set_speech_endpoint(self, endpoint: str) -> None:
        self._update(speech_endpoint=endpoint)

    def set_chat_model(self, model: str) -> None:
        self._update(chat_model=model)

    def set_image_model(self, model: str) -> None:
        self._update(image_model=model)

    def set_api_key(self, api_key: str) -> None:
        self._update(api_key=api_key)

    def set_default_max_tokens(self, max_tokens: int) -> None:
        self._update(default_max_tokens=max_tokens)

    def set_default_image_dimensions(self, width: int, height: int) -> None:
        self._update(default_image_width=width, default_image_height=height)

    def set_voice(self, voice: str) -> None:
        self._update(default_voice=voice)

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f'<{self.__class__.__name__} {self._snapshot!r}>'
