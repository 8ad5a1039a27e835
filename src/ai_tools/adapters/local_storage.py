"""adapters.local_storage

Local-disk implementations of the filesystem and object-storage collaborators.

`LocalObjectStorage` maps a container to a directory under *root* and returns
`file://` URLs; it stands in for a blob service in development and tests.
File I/O goes through **aiofiles** so the event loop is never blocked.
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from ai_tools.core.abc import AbstractFileSystem, AbstractObjectStorage

logger = logging.getLogger(__name__)


async def _write(path: Path, data: bytes) -> None:
    async with aiofiles.open(path, 'wb') as fh:
        await fh.write(data)


def _child(parent: Path, name: str, what: str) -> Path:
    """Resolve *name* under *parent*, refusing anything that is not a direct child."""
    path = (parent / name).resolve()
    if path.parent != parent:
        raise ValueError(f'Invalid {what} name: {name!r}')
    return path


class LocalFileSystem(AbstractFileSystem):
    async def write_all_bytes(self, path: Path, data: bytes) -> None:
        await _write(Path(path), data)
        logger.debug('Wrote %d bytes to %s', len(data), path)


class LocalObjectStorage(AbstractObjectStorage):
    """Directory-per-container object store."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).resolve()

    async def ensure_container(self, name: str) -> None:
        await aiofiles.os.makedirs(_child(self._root, name, 'container'), exist_ok=True)

    async def upload(self, container: str, object_name: str, data: bytes, content_type: str) -> str:
        container_path = _child(self._root, container, 'container')
        path = _child(container_path, object_name, 'object')
        if not await aiofiles.os.path.isdir(container_path):
            raise FileNotFoundError(f'Container does not exist: {container}')
        await _write(path, data)
        logger.info('Uploaded %s/%s (%s, %d bytes)', container, object_name, content_type, len(data))
        return path.as_uri()
