"""registry.client_factory

Factory responsible for assembling a ready-to-use `AiTools` facade from
settings and default collaborators (httpx transport, local filesystem,
optional local object storage).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ai_tools.adapters.httpx_transport import HttpxTransport
from ai_tools.adapters.local_storage import LocalObjectStorage
from ai_tools.client import AiTools
from ai_tools.core.settings import SessionSnapshot

if TYPE_CHECKING:
    from pathlib import Path

    from ai_tools.core.abc import AbstractObjectStorage, AbstractTransport


class AiToolsFactory:
    """Factory for `AiTools` clients.

    This class is stateless. An explicit class is provided rather than a bare
    function to leave room for future extensions (e.g. shared transports).
    """

    @staticmethod
    def initialize_client(
        settings: SessionSnapshot | None = None,
        *,
        transport: AbstractTransport | None = None,
        storage: AbstractObjectStorage | None = None,
        storage_root: Path | str | None = None,
    ) -> AiTools:
        """Return an `AiTools` client.

        Parameters
        ----------
        settings
            Configuration snapshot. Defaults to `SessionSnapshot.from_env()`.
        transport
            Custom transport; defaults to `HttpxTransport` using the settings'
            timeout.
        storage
            Object storage used for blob uploads.
        storage_root
            Shortcut for a `LocalObjectStorage` rooted at this directory; ignored
            when *storage* is given.

        """
        resolved = settings or SessionSnapshot.from_env()
        if storage is None and storage_root is not None:
            storage = LocalObjectStorage(storage_root)
        return AiTools(
            transport or HttpxTransport(timeout_sec=resolved.timeout_sec),
            settings=resolved,
            storage=storage,
        )
