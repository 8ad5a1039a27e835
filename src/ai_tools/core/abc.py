"""core.abc

Abstract collaborators the core talks to: transport, object storage and the
local filesystem.

Design goals
============
1. **Narrow seams** - the services only ever call `send()`, `ensure_container()`,
    `upload()` and `write_all_bytes()`. Concrete adapters live in
    `ai_tools.adapters` and can be swapped for tests or other backends.
2. **Uniform transport errors** - `send()` is the public entry point and is
    not overridden; adapters implement `_send()` and raise `TransportError` for
    connectivity failures. Low-level `OSError` / `TimeoutError` escaping an
    adapter are mapped here as well, so the services see one error type.
3. **Single attempt** - nothing in this layer retries.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from ai_tools.core.exceptions import TransportError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)


class TransportResponse(BaseModel):
    """Status code and raw body of one HTTP exchange."""

    status_code: int
    body: bytes = b''

    model_config = ConfigDict(frozen=True)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300  # noqa: PLR2004

    @property
    def text(self) -> str:
        return self.body.decode('utf-8', errors='replace')


class AbstractTransport(ABC):
    """Provider-independent HTTP transport."""

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> TransportResponse:
        """Perform one request.

        Subclasses **must not** override this - override `_send()` instead.

        Raises
        ------
        TransportError
            On connection failure or timeout.

        """
        logger.debug('%s %s (%d bytes)', method, url, len(body or b''))
        try:
            response = await self._send(method, url, dict(headers or {}), body)
        except TransportError:
            logger.warning('%s %s failed at transport level', method, url)
            raise
        except (OSError, TimeoutError) as exc:
            logger.warning('%s %s failed at transport level', method, url)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc
        logger.debug('%s %s -> %s', method, url, response.status_code)
        return response

    @abstractmethod
    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
    ) -> TransportResponse:
        """Adapter-specific implementation (to be overridden)."""

    async def aclose(self) -> None:  # noqa: B027 - optional hook
        """Release pooled connections, if any."""

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f'<{self.__class__.__name__}>'


class AbstractObjectStorage(ABC):
    """Key/blob object store. The core never deletes or lists."""

    @abstractmethod
    async def ensure_container(self, name: str) -> None:
        """Create container *name* if it does not exist yet."""

    @abstractmethod
    async def upload(self, container: str, object_name: str, data: bytes, content_type: str) -> str:
        """Store *data* under *object_name* (overwriting) and return its URL."""


class AbstractFileSystem(ABC):
    @abstractmethod
    async def write_all_bytes(self, path: Path, data: bytes) -> None:
        """Write *data* to *path*, replacing any existing content."""
