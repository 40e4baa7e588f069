"""
Handles the low-level saving of media: streaming a URL to disk over HTTP, or
writing bytes the caller already holds.
"""

import asyncio
import logging
from pathlib import Path

import aiofiles
import aiohttp
from rich.markup import escape

from xdl.utils.path import claim_unique_path

log = logging.getLogger(__name__)

_connection_pool: aiohttp.ClientSession | None = None
_pool_lock = asyncio.Lock()

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) "
    "Gecko/20100101 Firefox/121.0"
)


async def get_connection_pool() -> aiohttp.ClientSession:
    """
    Gets or creates a shared aiohttp ClientSession for downloads.

    This function ensures that only one connection pool is created for the
    lifetime of the application run.
    """
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            return _connection_pool

        connector = aiohttp.TCPConnector(
            limit=8,
            ttl_dns_cache=600,  # 10 minutes
            enable_cleanup_closed=True,
        )
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
        _connection_pool = aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )
        log.debug("Created download connection pool.")

    return _connection_pool


async def close_connection_pool() -> None:
    """Closes the shared global connection pool."""
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            await _connection_pool.close()
            log.debug("Shared downloader connection pool closed.")
        _connection_pool = None


def _reserve_path(destination: Path) -> Path:
    """Creates missing folders and claims a free file name for `destination`."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    return claim_unique_path(destination)


class Downloader:
    """A file downloader with retry logic. Existing files are never overwritten."""

    CHUNK_SIZE = 262144  # 256 KB

    def __init__(self, max_attempts: int = 3, base_delay: float = 1.5):
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    async def download_file(self, url: str, destination: Path) -> Path:
        """
        Streams `url` into `destination` (or a free ' (n)' sibling of it).

        Returns:
            The path the file was written to.

        Raises:
            aiohttp.ClientError: If every attempt failed.
        """
        target = await asyncio.to_thread(_reserve_path, Path(destination))
        last_exception: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                session = await get_connection_pool()
                async with session.get(url, allow_redirects=True) as response:
                    response.raise_for_status()
                    async with aiofiles.open(target, "wb") as f:
                        async for chunk in response.content.iter_chunked(
                            self.CHUNK_SIZE
                        ):
                            await f.write(chunk)
                log.debug(f"Saved {escape(url)} to '{escape(str(target))}'.")
                return target
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{escape(target.name)}' failed: {escape(str(e))}. Retrying..."
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))

        await asyncio.to_thread(target.unlink, missing_ok=True)
        raise last_exception

    async def save_bytes(self, data: bytes, destination: Path) -> Path:
        """Writes `data` to `destination` (or a free sibling) and returns the path."""
        target = await asyncio.to_thread(_reserve_path, Path(destination))
        try:
            async with aiofiles.open(target, "wb") as f:
                await f.write(data)
        except OSError:
            await asyncio.to_thread(target.unlink, missing_ok=True)
            raise
        log.debug(f"Saved {len(data)} bytes to '{escape(str(target))}'.")
        return target
