from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from scripted_transport import CHAT_URL, IMAGE_URL, SPEECH_URL, ScriptedTransport

from ai_tools.adapters.local_storage import LocalObjectStorage
from ai_tools.client import AiTools
from ai_tools.core.settings import SessionSnapshot

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def settings() -> SessionSnapshot:
    return SessionSnapshot(
        api_key='sk-test',
        chat_endpoint=CHAT_URL,
        image_endpoint=IMAGE_URL,
        speech_endpoint=SPEECH_URL,
    )


@pytest.fixture
def tools(transport: ScriptedTransport, settings: SessionSnapshot, tmp_path: Path) -> AiTools:
    return AiTools(transport, settings=settings, storage=LocalObjectStorage(tmp_path / 'blobs'))
