"""Remote file system backed by a local directory."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TextIO

from src.bulkops.core.logging import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024


class LocalWriter:
    def __init__(self, handle: TextIO):
        self._handle = handle

    async def write(self, text: str) -> None:
        await asyncio.to_thread(self._handle.write, text)


class LocalFileSystem:
    """Stores artifact files under a base directory.

    Links are paths relative to the base directory. Blocking file I/O runs
    in worker threads.
    """

    def __init__(self, base_path: str | Path, chunk_size: int = CHUNK_SIZE):
        self.base_path = Path(base_path).resolve()
        self.chunk_size = chunk_size

    def _resolve(self, path: str) -> Path:
        target = (self.base_path / path).resolve()
        if not target.is_relative_to(self.base_path):
            raise ValueError(f"Path escapes the storage directory: {path}")
        return target

    async def put(self, content: bytes, path: str) -> str:
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

        await asyncio.to_thread(_write)
        logger.debug("File stored", path=path, size=len(content))
        return path

    @asynccontextmanager
    async def get(self, path: str) -> AsyncIterator[AsyncIterator[str]]:
        target = self._resolve(path)
        handle = await asyncio.to_thread(target.open, "r", encoding="utf-8", newline="")
        try:
            yield self._chunks(handle)
        finally:
            await asyncio.to_thread(handle.close)

    async def _chunks(self, handle: TextIO) -> AsyncIterator[str]:
        while chunk := await asyncio.to_thread(handle.read, self.chunk_size):
            yield chunk

    @asynccontextmanager
    async def writer(self, path: str) -> AsyncIterator[LocalWriter]:
        target = self._resolve(path)

        def _open() -> TextIO:
            target.parent.mkdir(parents=True, exist_ok=True)
            return target.open("w", encoding="utf-8", newline="")

        handle = await asyncio.to_thread(_open)
        try:
            yield LocalWriter(handle)
        finally:
            await asyncio.to_thread(handle.close)

    async def num_of_lines(self, path: str) -> int:
        """Count lines, a final line without a newline included."""
        count = 0
        last = ""
        async with self.get(path) as chunks:
            async for chunk in chunks:
                count += chunk.count("\n")
                last = chunk[-1]
        if last and last != "\n":
            count += 1
        return count

    async def remove(self, *paths: str) -> None:
        for path in paths:
            target = self._resolve(path)
            await asyncio.to_thread(target.unlink, missing_ok=True)
