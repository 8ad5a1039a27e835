"""services.speech

Text-to-speech pipeline: one synthesis call, then deliver the audio according
to the job's target (return bytes, write a file, or upload a blob).
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from ai_tools.core.normalizer import normalize_bytes
from ai_tools.core.request_builder import AUDIO_CONTENT_TYPE, auth_headers, build_speech_payload
from ai_tools.core.results import Failure, SpeechOutcome, Success
from ai_tools.core.types import SpeechJob, UploadBlob, WriteFile
from ai_tools.services.base import ProviderService

if TYPE_CHECKING:
    from pathlib import Path

    from ai_tools.core.abc import AbstractFileSystem, AbstractObjectStorage, AbstractTransport
    from ai_tools.core.results import Result
    from ai_tools.core.settings import Session, SessionSnapshot

logger = logging.getLogger(__name__)

MAX_BLOB_NAME_LENGTH = 1024
_INVALID_BLOB_CHARS = re.compile(r'[^A-Za-z0-9-]')


def sanitize_blob_file_name(file_name: str) -> str:
    """Replace every character outside `[A-Za-z0-9-]` with `-` and cap the length.

    >>> sanitize_blob_file_name("My File! Name.mp3")
    'My-File--Name-mp3'
    """
    if not file_name:
        raise ValueError('Blob name must not be empty')
    return _INVALID_BLOB_CHARS.sub('-', file_name)[:MAX_BLOB_NAME_LENGTH]


class SpeechService(ProviderService):
    """Speech endpoint plus file / blob delivery."""

    def __init__(
        self,
        session: Session,
        transport: AbstractTransport,
        *,
        filesystem: AbstractFileSystem,
        storage: AbstractObjectStorage | None = None,
    ) -> None:
        super().__init__(session, transport)
        self._filesystem = filesystem
        self._storage = storage

    async def synthesize(
        self,
        text: str,
        voice: str | None = None,
        snapshot: SessionSnapshot | None = None,
    ) -> Result[bytes]:
        snapshot = snapshot or self._session.snapshot()
        payload = build_speech_payload(text, voice, snapshot)
        logger.debug('Speech request: model=%s voice=%s chars=%d', payload.model, payload.voice, len(text))
        outcome = await self._exchange(
            'POST',
            snapshot.speech_endpoint,
            auth_headers(snapshot, accept=AUDIO_CONTENT_TYPE),
            payload.to_bytes(),
        )
        if isinstance(outcome, Failure):
            return outcome
        result = normalize_bytes(outcome)
        if isinstance(result, Success):
            logger.debug('Speech response: %d bytes', len(result.value))
        return result

    async def run(self, job: SpeechJob) -> Result[SpeechOutcome]:
        """Synthesize and deliver.

        Storage and filesystem errors are not provider failures and propagate.
        """
        target = job.target
        storage = self._storage
        if isinstance(target, UploadBlob) and storage is None:
            raise RuntimeError('No object storage configured for blob uploads')

        snapshot = self._session.snapshot()
        result = await self.synthesize(job.text, job.voice, snapshot)
        if isinstance(result, Failure):
            return result
        audio = result.value

        if isinstance(target, WriteFile):
            await self._filesystem.write_all_bytes(target.path, audio)
            return Success(value=SpeechOutcome(audio=audio, path=target.path))
        if isinstance(target, UploadBlob) and storage is not None:
            url = await self._upload(storage, target, audio)
            return Success(value=SpeechOutcome(audio=audio, url=url))
        return Success(value=SpeechOutcome(audio=audio))

    async def _upload(self, storage: AbstractObjectStorage, target: UploadBlob, audio: bytes) -> str:
        object_name = sanitize_blob_file_name(target.name)
        await storage.ensure_container(target.container)
        return await storage.upload(target.container, object_name, audio, AUDIO_CONTENT_TYPE)

    # ------------------------------------------------------------------
    # Raising helpers
    # ------------------------------------------------------------------

    async def text_to_speech(self, text: str, voice: str | None = None) -> bytes:
        result = await self.run(SpeechJob(text=text, voice=voice))
        return result.unwrap().audio

    async def stream_audio_to_file(self, text: str, file_path: Path | str, voice: str | None = None) -> None:
        job = SpeechJob(text=text, voice=voice, target=WriteFile(path=file_path))
        result = await self.run(job)
        result.unwrap()

    async def stream_audio_to_blob(
        self,
        text: str,
        container_name: str,
        file_name: str,
        voice: str | None = None,
    ) -> str:
        """Upload synthesized audio and return the object URL."""
        job = SpeechJob(text=text, voice=voice, target=UploadBlob(container=container_name, name=file_name))
        result = await self.run(job)
        url = result.unwrap().url
        if url is None:  # pragma: no cover - storage contract
            raise RuntimeError('Object storage returned no URL')
        return url
