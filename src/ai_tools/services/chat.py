"""services.chat

Chat completion calls, the typed-object path, image analysis and the health
check.

Calls returning `Result` never raise for provider or transport problems. The
string, typed-object, multi-turn and analysis helpers raise the matching
`AiToolsError` instead, because they have no partial value to return.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel

from ai_tools.core.extraction import example_json, extract_object
from ai_tools.core.normalizer import normalize
from ai_tools.core.request_builder import (
    auth_headers,
    build_analysis_payload,
    build_chat_payload,
    conversation_request,
    object_prompt,
)
from ai_tools.core.results import ChatCompletion, Failure, ImageAnalysis
from ai_tools.core.types import ChatRequest, Message
from ai_tools.services.base import ProviderService

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from ai_tools.core.results import Result
    from ai_tools.core.settings import SessionSnapshot

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)


class ChatService(ProviderService):
    """Chat completion endpoint plus the `/analyze` and `/health` helpers."""

    # ------------------------------------------------------------------
    # Result-returning calls
    # ------------------------------------------------------------------

    async def send(self, request: ChatRequest, snapshot: SessionSnapshot | None = None) -> Result[ChatCompletion]:
        """Build, send and normalize one chat request."""
        snapshot = snapshot or self._session.snapshot()
        payload = build_chat_payload(request, snapshot)
        outcome = await self._exchange('POST', snapshot.chat_endpoint, auth_headers(snapshot), payload.to_bytes())
        if isinstance(outcome, Failure):
            return outcome
        return normalize(outcome, ChatCompletion)

    async def get_chat_response(
        self,
        prompt: str,
        *,
        json_mode: bool = False,
        image_urls: Iterable[str] = (),
        snapshot: SessionSnapshot | None = None,
    ) -> Result[ChatCompletion]:
        request = ChatRequest.from_prompt(prompt, json_mode=json_mode, image_urls=tuple(image_urls))
        return await self.send(request, snapshot)

    async def get_chat_response_structured(self, prompt: str) -> Result[ChatCompletion]:
        return await self.get_chat_response(prompt)

    # ------------------------------------------------------------------
    # Raising helpers
    # ------------------------------------------------------------------

    async def get_chat_response_string(
        self,
        prompt: str,
        choice: int = 0,
        image_urls: Iterable[str] | None = None,
    ) -> str:
        """Text of one completion choice.

        Raises
        ------
        ProviderError, TransportError, DeserializationError
            If the call failed; the upstream message is preserved.
        ChoiceIndexError
            If *choice* is out of range.

        """
        result = await self.get_chat_response(prompt, image_urls=image_urls or ())
        return result.unwrap().content(choice)

    async def get_chat_response_object(self, prompt: str, schema: type[ModelT]) -> ModelT:
        """Ask for *schema* in JSON mode and parse it out of the reply.

        An empty example instance of *schema* is appended to the prompt as
        machine-formatting guidance.
        """
        result = await self.get_chat_response(object_prompt(prompt, example_json(schema)), json_mode=True)
        text = result.unwrap().content(0)
        return extract_object(text, schema)

    async def continue_chat_conversation(
        self,
        messages: Sequence[Message | Mapping[str, str]],
    ) -> ChatCompletion:
        """Send a whole conversation; a leading system message overrides the default."""
        snapshot = self._session.snapshot()
        turns = [m if isinstance(m, Message) else Message.model_validate(m) for m in messages]
        request = conversation_request(turns, snapshot.default_max_tokens)
        result = await self.send(request, snapshot)
        return result.unwrap()

    async def get_multiple_chat_responses(self, prompt: str, count: int) -> list[str]:
        """Run *count* independent completions one after another.

        Failed calls are skipped, so the list may be shorter than *count*.
        """
        snapshot = self._session.snapshot()
        responses: list[str] = []
        for attempt in range(count):
            result = await self.get_chat_response(prompt, snapshot=snapshot)
            if isinstance(result, Failure):
                logger.warning('Completion %d/%d failed: %s', attempt + 1, count, result.message)
                continue
            if result.value.choices:
                responses.append(result.value.content(0))
        return responses

    # ------------------------------------------------------------------
    # Image analysis
    # ------------------------------------------------------------------

    async def analyze_image(self, url: str, request: str | None = None) -> list[str]:
        """Label names for the image at *url*.

        *request*, when given, is sent verbatim as the JSON body instead of the
        default `{"image_url": url}` payload.
        """
        body = request.encode('utf-8') if request is not None else build_analysis_payload(url).to_bytes()
        return await self._analyze(body, content_type=None)

    async def analyze_local_image(self, image_bytes: bytes) -> list[str]:
        return await self._analyze(image_bytes, content_type='image/jpeg')

    async def _analyze(self, body: bytes, content_type: str | None) -> list[str]:
        snapshot = self._session.snapshot()
        headers = auth_headers(snapshot)
        if content_type is not None:
            headers['Content-Type'] = content_type
        outcome = await self._exchange('POST', f'{snapshot.image_endpoint}/analyze', headers, body)
        if isinstance(outcome, Failure):
            raise outcome.error()
        return normalize(outcome, ImageAnalysis).unwrap().names

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def check_api_health(self) -> str:
        """Body of `GET <chat endpoint>/health`, whatever its status."""
        snapshot = self._session.snapshot()
        outcome = await self._exchange('GET', f'{snapshot.chat_endpoint}/health', auth_headers(snapshot))
        if isinstance(outcome, Failure):
            return outcome.message
        return outcome.text
