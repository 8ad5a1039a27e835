"""core.request_builder

Turns logical intents (`ChatRequest`, `ImageJob`, speech text) into the
provider's wire payloads.

Design choices
==============
* **Budgets are floors.** The session's default token budget and image
  dimensions are minimums: `effective = max(session_default, requested)`. This
  guarantees a minimum response size even when a caller passes a small value.
* **No nulls on the wire.** Optional fields are dropped rather than serialized
  as `null`; some providers reject null enum fields.
* **Sentinel filtering.** Image references equal to `NOT_AVAILABLE_URL` come
  from a failed upstream image step and are never forwarded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict

from ai_tools.core.types import NOT_AVAILABLE_URL, ChatRequest, Message, Role

if TYPE_CHECKING:
    from ai_tools.core.settings import SessionSnapshot
    from ai_tools.core.types import ImageJob

JSON_CONTENT_TYPE = 'application/json'
AUDIO_CONTENT_TYPE = 'audio/mpeg'

# ---------------------------------------------------------------------------
# Wire request models
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_bytes(self) -> bytes:
        return self.model_dump_json(exclude_none=True).encode('utf-8')


class ImageUrlRef(_WireModel):
    url: str


class TextBlock(_WireModel):
    type: Literal['text'] = 'text'
    text: str


class ImageBlock(_WireModel):
    type: Literal['image_url'] = 'image_url'
    image_url: ImageUrlRef


class WireMessage(_WireModel):
    role: Role
    content: str | list[TextBlock | ImageBlock]


class ResponseFormat(_WireModel):
    type: Literal['json_object'] = 'json_object'


class ChatPayload(_WireModel):
    model: str
    messages: list[WireMessage]
    max_tokens: int
    response_format: ResponseFormat | None = None


class ImagePayload(_WireModel):
    model: str
    prompt: str
    n: int
    size: str


class SpeechPayload(_WireModel):
    model: str
    input: str
    voice: str


class AnalysisPayload(_WireModel):
    image_url: str


# ---------------------------------------------------------------------------
# Budget resolution
# ---------------------------------------------------------------------------


def resolve_max_tokens(snapshot: SessionSnapshot, requested: int) -> int:
    return max(snapshot.default_max_tokens, requested)


def resolve_dimensions(snapshot: SessionSnapshot, width: int, height: int) -> tuple[int, int]:
    """Floor each axis independently by the session defaults."""
    return max(snapshot.default_image_width, width), max(snapshot.default_image_height, height)


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def build_chat_payload(request: ChatRequest, snapshot: SessionSnapshot) -> ChatPayload:
    """Build the chat completion payload for *request*.

    Raises
    ------
    ValueError
        If image references are supplied but the conversation has no user turn
        to attach them to.

    """
    messages = [WireMessage(role=Role.system, content=request.system_prompt)]
    messages.extend(WireMessage(role=turn.role, content=turn.content) for turn in request.turns)

    image_urls = [url for url in request.image_urls if url != NOT_AVAILABLE_URL]
    if image_urls:
        last_user = _last_user_index(messages)
        if last_user is None:
            raise ValueError('Image references require at least one user turn')
        text = messages[last_user].content
        blocks: list[TextBlock | ImageBlock] = [TextBlock(text=str(text))]
        blocks.extend(ImageBlock(image_url=ImageUrlRef(url=url)) for url in image_urls)
        messages[last_user] = WireMessage(role=Role.user, content=blocks)

    return ChatPayload(
        model=snapshot.chat_model,
        messages=messages,
        max_tokens=resolve_max_tokens(snapshot, request.max_tokens),
        response_format=ResponseFormat() if request.json_mode else None,
    )


def _last_user_index(messages: list[WireMessage]) -> int | None:
    for index in range(len(messages) - 1, -1, -1):
        if messages[index].role == Role.user:
            return index
    return None


def build_image_payload(job: ImageJob, prompt: str, snapshot: SessionSnapshot) -> ImagePayload:
    """Image payload; *prompt* may differ from `job.prompt` after improvement."""
    width, height = resolve_dimensions(snapshot, job.width, job.height)
    return ImagePayload(model=snapshot.image_model, prompt=prompt, n=job.count, size=f'{width}x{height}')


def build_speech_payload(text: str, voice: str | None, snapshot: SessionSnapshot) -> SpeechPayload:
    return SpeechPayload(model=snapshot.speech_model, input=text, voice=voice or snapshot.default_voice)


def build_analysis_payload(url: str) -> AnalysisPayload:
    return AnalysisPayload(image_url=url)


def conversation_request(messages: list[Message], max_tokens: int) -> ChatRequest:
    """Turn a raw conversation into a `ChatRequest`.

    A leading system message becomes the system prompt; otherwise the default
    system prompt is used.
    """
    if messages and messages[0].role == Role.system:
        return ChatRequest(system_prompt=messages[0].content, turns=tuple(messages[1:]), max_tokens=max_tokens)
    return ChatRequest(turns=tuple(messages), max_tokens=max_tokens)


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


def auth_headers(snapshot: SessionSnapshot, accept: str = JSON_CONTENT_TYPE) -> dict[str, str]:
    return {'Authorization': f'Bearer {snapshot.api_key}', 'Accept': accept}


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------


def improvement_prompt(prompt: str, image_model: str) -> str:
    """Instruction for the prompt-improvement chat round-trip."""
    return (
        f'Please generate an improved image prompt for {image_model} from this information. '
        f'Reply with the prompt only, this will not be read by a human: {prompt}'
    )


def object_prompt(prompt: str, example_json: str) -> str:
    """Instruction for the typed-object path; the example is formatting guidance only."""
    return f'{prompt} Return response in this Json format. This will not be read by a human.{example_json}'
