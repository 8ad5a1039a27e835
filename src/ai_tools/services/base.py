"""services.base

Shared plumbing for the provider services: one transport exchange per call,
with transport errors turned into `Failure` values instead of exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ai_tools.core.exceptions import TransportError
from ai_tools.core.normalizer import from_transport_error

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ai_tools.core.abc import AbstractTransport, TransportResponse
    from ai_tools.core.results import Failure
    from ai_tools.core.settings import Session


class ProviderService:
    """Base for services that call the provider through a transport."""

    def __init__(self, session: Session, transport: AbstractTransport) -> None:
        self._session = session
        self._transport = transport

    async def _exchange(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> TransportResponse | Failure:
        try:
            return await self._transport.send(method, url, headers, body)
        except TransportError as exc:
            return from_transport_error(exc)

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f'<{self.__class__.__name__} transport={self._transport!r}>'
