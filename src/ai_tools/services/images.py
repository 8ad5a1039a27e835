"""services.images

Image generation pipeline.

Per job::

    Start -> (PromptImprovement, if the job's prompt mode asks for it) -> Generate -> Success | Failure

Prompt improvement is a full chat round-trip; its failure short-circuits the
job before anything is sent to the image endpoint. After generation, URL
downloads fan out concurrently (bounded by the session's
`max_concurrent_downloads`) and land in the slot of their source URL. A failed
download yields `NOT_AVAILABLE_BYTES` for its slot only.

No cancellation is threaded through: dropping the awaitable is best-effort and
transport calls already in flight are not interrupted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ai_tools.core.exceptions import ChoiceIndexError
from ai_tools.core.fanout import gather_ordered
from ai_tools.core.normalizer import normalize
from ai_tools.core.request_builder import auth_headers, build_image_payload, improvement_prompt
from ai_tools.core.results import Failure, FailureKind, ImagesResponse
from ai_tools.core.types import (
    NOT_AVAILABLE_BYTES,
    NOT_AVAILABLE_URL,
    ChatRequest,
    ImageJob,
    ImprovedPrompt,
)
from ai_tools.services.base import ProviderService

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ai_tools.core.abc import AbstractTransport
    from ai_tools.core.results import Result
    from ai_tools.core.settings import Session, SessionSnapshot
    from ai_tools.services.chat import ChatService

logger = logging.getLogger(__name__)


class ImageService(ProviderService):
    """Image endpoint calls and the download fan-out."""

    def __init__(self, session: Session, transport: AbstractTransport, chat: ChatService) -> None:
        super().__init__(session, transport)
        self._chat = chat

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def run(self, job: ImageJob, snapshot: SessionSnapshot | None = None) -> Result[ImagesResponse]:
        snapshot = snapshot or self._session.snapshot()
        prompt = job.prompt
        if isinstance(job.prompt_mode, ImprovedPrompt):
            improved = await self._improve_prompt(job, snapshot)
            if isinstance(improved, Failure):
                return improved
            prompt = improved

        payload = build_image_payload(job, prompt, snapshot)
        outcome = await self._exchange('POST', snapshot.image_endpoint, auth_headers(snapshot), payload.to_bytes())
        if isinstance(outcome, Failure):
            return outcome
        return normalize(outcome, ImagesResponse)

    async def _improve_prompt(self, job: ImageJob, snapshot: SessionSnapshot) -> str | Failure:
        request = ChatRequest.from_prompt(
            improvement_prompt(job.prompt, snapshot.image_model),
            image_urls=job.reference_urls,
        )
        result = await self._chat.send(request, snapshot)
        if isinstance(result, Failure):
            logger.warning('Prompt improvement failed, image job aborted: %s', result.message)
            return result
        try:
            improved = result.value.content(0)
        except ChoiceIndexError as exc:
            return Failure(kind=FailureKind.deserialization, message=str(exc))
        logger.debug('Improved image prompt: %s', improved)
        return improved

    # ------------------------------------------------------------------
    # Convenience wrappers
    # ------------------------------------------------------------------

    async def get_image_response(
        self,
        prompt: str,
        count: int = 1,
        *,
        improve_prompt: bool = True,
        width: int = 1024,
        height: int = 1024,
    ) -> Result[ImagesResponse]:
        job = ImageJob.create(prompt, count=count, width=width, height=height, improve_prompt=improve_prompt)
        return await self.run(job)

    async def get_image_url(
        self,
        prompt: str,
        width: int,
        height: int,
        urls: Iterable[str] = (),
        *,
        improve_prompt: bool = True,
    ) -> str:
        """First generated URL, or `NOT_AVAILABLE_URL`."""
        urls = await self.get_image_urls(prompt, width, height, 1, urls, improve_prompt=improve_prompt)
        return urls[0] if urls else NOT_AVAILABLE_URL

    async def get_image_urls(
        self,
        prompt: str,
        width: int,
        height: int,
        count: int,
        urls: Iterable[str] = (),
        *,
        improve_prompt: bool = True,
        snapshot: SessionSnapshot | None = None,
    ) -> list[str]:
        """Generated URLs in provider order, or `[NOT_AVAILABLE_URL]` on failure."""
        job = ImageJob.create(
            prompt,
            count=count,
            width=width,
            height=height,
            improve_prompt=improve_prompt,
            reference_urls=tuple(urls),
        )
        result = await self.run(job, snapshot)
        if isinstance(result, Failure):
            return [NOT_AVAILABLE_URL]
        return [url or NOT_AVAILABLE_URL for url in result.value.urls]

    async def download_image(
        self,
        prompt: str,
        width: int,
        height: int,
        urls: Iterable[str] = (),
        *,
        improve_prompt: bool = True,
    ) -> bytes:
        url = await self.get_image_url(prompt, width, height, urls, improve_prompt=improve_prompt)
        return await self.download_image_from_url(url)

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
        snapshot = self._session.snapshot()
        image_urls = await self.get_image_urls(
            prompt, width, height, count, urls, improve_prompt=improve_prompt, snapshot=snapshot
        )
        return await self.download_all(image_urls, snapshot)

    # ------------------------------------------------------------------
    # Downloads
    # ------------------------------------------------------------------

    async def download_all(self, urls: list[str], snapshot: SessionSnapshot | None = None) -> list[bytes]:
        """Download every URL concurrently; slot order matches *urls*."""
        snapshot = snapshot or self._session.snapshot()
        return await gather_ordered(urls, self.download_image_from_url, limit=snapshot.max_concurrent_downloads)

    async def download_image_from_url(self, url: str) -> bytes:
        """Bytes at *url*, or `NOT_AVAILABLE_BYTES` when it cannot be fetched."""
        if url == NOT_AVAILABLE_URL:
            return NOT_AVAILABLE_BYTES
        outcome = await self._exchange('GET', url, {})
        if isinstance(outcome, Failure):
            logger.warning('Download of %s failed: %s', url, outcome.message)
            return NOT_AVAILABLE_BYTES
        if not outcome.is_success:
            logger.warning('Download of %s returned HTTP %s', url, outcome.status_code)
            return NOT_AVAILABLE_BYTES
        return outcome.body
