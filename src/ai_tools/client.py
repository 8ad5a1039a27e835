"""client

`AiTools` - the single public facade over the chat, image and speech services.

Configuration is set through the `set_*` methods (last write wins). Every
operation reads one configuration snapshot when it starts and uses it for all
of its provider calls.

```python
async with AiTools(transport=HttpxTransport()) as tools:
    tools.set_api_key('sk-...')
    text = await tools.get_chat_response_string('Hello')
```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel

from ai_tools.adapters.local_storage import LocalFileSystem
from ai_tools.core.settings import Session, SessionSnapshot
from ai_tools.services.chat import ChatService
from ai_tools.services.images import ImageService
from ai_tools.services.speech import SpeechService, sanitize_blob_file_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from pathlib import Path
    from types import TracebackType

    from ai_tools.core.abc import AbstractFileSystem, AbstractObjectStorage, AbstractTransport
    from ai_tools.core.results import ChatCompletion, ImagesResponse, Result, SpeechOutcome
    from ai_tools.core.types import ChatRequest, ImageJob, Message, SpeechJob

ModelT = TypeVar('ModelT', bound=BaseModel)


class AiTools:
    """Typed async client for chat, image and speech endpoints."""

    sanitize_blob_file_name = staticmethod(sanitize_blob_file_name)

    def __init__(
        self,
        transport: AbstractTransport,
        *,
        settings: SessionSnapshot | None = None,
        storage: AbstractObjectStorage | None = None,
        filesystem: AbstractFileSystem | None = None,
    ) -> None:
        self._session = Session(settings)
        self._transport = transport
        self.chat = ChatService(self._session, transport)
        self.images = ImageService(self._session, transport, self.chat)
        self.speech = SpeechService(
            self._session,
            transport,
            filesystem=filesystem or LocalFileSystem(),
            storage=storage,
        )

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @property
    def settings(self) -> SessionSnapshot:
        return self._session.snapshot()

    def set_chat_endpoint(self, endpoint: str) -> None:
        self._session.set_chat_endpoint(endpoint)

    def set_image_endpoint(self, endpoint: str) -> None:
        self._session.set_image_endpoint(endpoint)

    def set_speech_endpoint(self, endpoint: str) -> None:
        self._session.set_speech_endpoint(endpoint)

    def set_chat_model(self, model: str) -> None:
        self._session.set_chat_model(model)

    def set_image_model(self, model: str) -> None:
        self._session.set_image_model(model)

    def set_api_key(self, api_key: str) -> None:
        self._session.set_api_key(api_key)

    def set_default_max_tokens(self, max_tokens: int) -> None:
        self._session.set_default_max_tokens(max_tokens)

    def set_default_image_dimensions(self, width: int, height: int) -> None:
        self._session.set_default_image_dimensions(width, height)

    def set_voice(self, voice: str) -> None:
        self._session.set_voice(voice)

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def send_chat(self, request: ChatRequest) -> Result[ChatCompletion]:
        return await self.chat.send(request)

    async def get_chat_response(
        self,
        prompt: str,
        *,
        json_mode: bool = False,
        image_urls: Iterable[str] = (),
    ) -> Result[ChatCompletion]:
        return await self.chat.get_chat_response(prompt, json_mode=json_mode, image_urls=image_urls)

    async def get_chat_response_string(
        self,
        prompt: str,
        choice: int = 0,
        image_urls: Iterable[str] | None = None,
    ) -> str:
        return await self.chat.get_chat_response_string(prompt, choice, image_urls)

    async def get_chat_response_object(self, prompt: str, schema: type[ModelT]) -> ModelT:
        return await self.chat.get_chat_response_object(prompt, schema)

    async def get_chat_response_structured(self, prompt: str) -> Result[ChatCompletion]:
        return await self.chat.get_chat_response_structured(prompt)

    async def continue_chat_conversation(self, messages: Sequence[Message | Mapping[str, str]]) -> ChatCompletion:
        return await self.chat.continue_chat_conversation(messages)

    async def get_multiple_chat_responses(self, prompt: str, count: int) -> list[str]:
        return await self.chat.get_multiple_chat_responses(prompt, count)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def run_image_job(self, job: ImageJob) -> Result[ImagesResponse]:
        return await self.images.run(job)

    async def get_image_response(
        self,
        prompt: str,
        count: int = 1,
        *,
        improve_prompt: bool = True,
        width: int = 1024,
        height: int = 1024,
    ) -> Result[ImagesResponse]:
        return await self.images.get_image_response(
            prompt, count, improve_prompt=improve_prompt, width=width, height=height
        )

    async def get_image_url(
        self,
        prompt: str,
        width: int,
        height: int,
        urls: Iterable[str] = (),
        *,
        improve_prompt: bool = True,
    ) -> str:
        return await self.images.get_image_url(prompt, width, height, urls, improve_prompt=improve_prompt)

    async def get_image_urls(
        self,
        prompt: str,
        width: int,
        height: int,
        count: int,
        urls: Iterable[str] = (),
        *,
        improve_prompt: bool = True,
    ) -> list[str]:
        return await self.images.get_image_urls(prompt, width, height, count, urls, improve_prompt=improve_prompt)

    async def download_image(
        self,
        prompt: str,
        width: int,
        height: int,
        urls: Iterable[str] = (),
        *,
        improve_prompt: bool = True,
    ) -> bytes:
        return await self.images.download_image(prompt, width, height, urls, improve_prompt=improve_prompt)

    async def download_images(
        self,
        prompt: str,
        width: int,
        height: int,
        count: int,
        urls: Iterable[str] = (),
        *,
        improve_prompt: bool = True,
    ) -> list[bytes]:
        return await self.images.download_images(prompt, width, height, count, urls, improve_prompt=improve_prompt)

    # ------------------------------------------------------------------
    # Image analysis / health
    # ------------------------------------------------------------------

    async def analyze_image(self, url: str, request: str | None = None) -> list[str]:
        return await self.chat.analyze_image(url, request)

    async def analyze_local_image(self, image_bytes: bytes) -> list[str]:
        return await self.chat.analyze_local_image(image_bytes)

    async def check_api_health(self) -> str:
        return await self.chat.check_api_health()

    # ------------------------------------------------------------------
    # Speech
    # ------------------------------------------------------------------

    async def run_speech_job(self, job: SpeechJob) -> Result[SpeechOutcome]:
        return await self.speech.run(job)

    async def text_to_speech(self, text: str, voice: str | None = None) -> bytes:
        return await self.speech.text_to_speech(text, voice)

    async def stream_audio_to_file(self, text: str, file_path: Path | str, voice: str | None = None) -> None:
        await self.speech.stream_audio_to_file(text, file_path, voice)

    async def stream_audio_to_blob(
        self,
        text: str,
        container_name: str,
        file_name: str,
        voice: str | None = None,
    ) -> str:
        return await self.speech.stream_audio_to_blob(text, container_name, file_name, voice)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> AiTools:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f'<{self.__class__.__name__} transport={self._transport!r}>'
