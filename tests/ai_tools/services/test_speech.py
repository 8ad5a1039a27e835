from __future__ import annotations

import re
from typing import TYPE_CHECKING

import pytest
from scripted_transport import SPEECH_URL

from ai_tools.core.abc import TransportResponse
from ai_tools.core.exceptions import ProviderError, TransportError
from ai_tools.core.results import Failure, FailureKind, Success
from ai_tools.core.types import SpeechJob, UploadBlob, WriteFile
from ai_tools.services.speech import sanitize_blob_file_name

if TYPE_CHECKING:
    from pathlib import Path

    from scripted_transport import ScriptedTransport

    from ai_tools.client import AiTools

AUDIO = b'ID3\x03audio-bytes'


def test_sanitize_blob_file_name() -> None:
    name = sanitize_blob_file_name('My File! Name.mp3')
    assert name == 'My-File--Name-mp3'
    assert re.fullmatch(r'[A-Za-z0-9-]+', name)


def test_sanitize_truncates_and_rejects_empty() -> None:
    assert len(sanitize_blob_file_name('a' * 2000)) == 1024
    with pytest.raises(ValueError, match='empty'):
        sanitize_blob_file_name('')


@pytest.mark.asyncio
async def test_text_to_speech_returns_bytes(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add(SPEECH_URL, TransportResponse(status_code=200, body=AUDIO))

    assert await tools.text_to_speech('hello there') == AUDIO

    call = transport.calls_to(SPEECH_URL)[0]
    assert call.json() == {'model': 'tts-1', 'input': 'hello there', 'voice': 'alloy'}
    assert call.headers['Accept'] == 'audio/mpeg'
    assert call.headers['Authorization'] == 'Bearer sk-test'


@pytest.mark.asyncio
async def test_voice_override_and_session_default(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add(SPEECH_URL, TransportResponse(status_code=200, body=AUDIO))

    await tools.text_to_speech('hi', voice='onyx')
    tools.set_voice('nova')
    await tools.text_to_speech('hi')

    voices = [call.json()['voice'] for call in transport.calls_to(SPEECH_URL)]
    assert voices == ['onyx', 'nova']


@pytest.mark.asyncio
async def test_stream_audio_to_file_overwrites(
    tools: AiTools,
    transport: ScriptedTransport,
    tmp_path: Path,
) -> None:
    target = tmp_path / 'speech.mp3'
    target.write_bytes(b'old content that is longer than the new audio')
    transport.add(SPEECH_URL, TransportResponse(status_code=200, body=AUDIO))

    await tools.stream_audio_to_file('hello', target)

    assert target.read_bytes() == AUDIO


@pytest.mark.asyncio
async def test_stream_audio_to_blob(tools: AiTools, transport: ScriptedTransport, tmp_path: Path) -> None:
    transport.add(SPEECH_URL, TransportResponse(status_code=200, body=AUDIO))

    url = await tools.stream_audio_to_blob('hello', 'audio', 'My File! Name.mp3')

    stored = tmp_path / 'blobs' / 'audio' / 'My-File--Name-mp3'
    assert stored.read_bytes() == AUDIO
    assert url == stored.resolve().as_uri()


@pytest.mark.asyncio
async def test_run_speech_job_variants(tools: AiTools, transport: ScriptedTransport, tmp_path: Path) -> None:
    transport.add(SPEECH_URL, TransportResponse(status_code=200, body=AUDIO))

    as_file = await tools.run_speech_job(SpeechJob(text='a', target=WriteFile(path=tmp_path / 'a.mp3')))
    as_blob = await tools.run_speech_job(SpeechJob(text='b', target=UploadBlob(container='c', name='b.mp3')))
    as_bytes = await tools.run_speech_job(SpeechJob(text='c'))

    assert isinstance(as_file, Success)
    assert as_file.value.path == tmp_path / 'a.mp3'
    assert isinstance(as_blob, Success)
    assert as_blob.value.url is not None
    assert as_blob.value.url.endswith('/c/b-mp3')
    assert isinstance(as_bytes, Success)
    assert (as_bytes.value.audio, as_bytes.value.path, as_bytes.value.url) == (AUDIO, None, None)


@pytest.mark.asyncio
async def test_speech_failure_is_not_delivered(tools: AiTools, transport: ScriptedTransport, tmp_path: Path) -> None:
    transport.add(SPEECH_URL, TransportResponse(status_code=400, body=b'{"error": "invalid voice"}'))
    target = tmp_path / 'never.mp3'

    result = await tools.run_speech_job(SpeechJob(text='a', target=WriteFile(path=target)))

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.provider
    assert result.message == '{"error": "invalid voice"}'
    assert not target.exists()
    with pytest.raises(ProviderError, match='invalid voice'):
        await tools.stream_audio_to_blob('a', 'c', 'x')


@pytest.mark.asyncio
async def test_speech_transport_error_raises_from_helper(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add(SPEECH_URL, TransportError('timed out'))
    with pytest.raises(TransportError, match='Unhandled Error: timed out'):
        await tools.text_to_speech('hello')
