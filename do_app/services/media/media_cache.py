"""
In-memory image cache with shared downloads.

Feed and workout screens request the same thumbnails many times; each
URL is downloaded once and concurrent requests for it await the same
task.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Optional, List, Dict

import httpx

logger = logging.getLogger(__name__)


MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 0.5
DOWNLOAD_TIMEOUT_SECONDS = 30.0
MAX_TOTAL_BYTES = 100 * 1024 * 1024


class MediaCache:
    """
    Bytes cache for remote images.

    Holds at most `limit` images totalling at most `max_bytes`; the least
    recently used image is evicted first. Failed downloads are retried
    after 0.5 s, then 1 s (doubling per attempt).
    """

    def __init__(
        self,
        limit: int = 200,
        max_bytes: int = MAX_TOTAL_BYTES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_delay: float = RETRY_DELAY_SECONDS,
    ):
        self._limit = limit
        self._max_bytes = max_bytes
        self._transport = transport
        self._retry_delay = retry_delay
        self._images: "OrderedDict[str, bytes]" = OrderedDict()
        self._total_bytes = 0
        self._downloads: Dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._images)

    @property
    def total_bytes(self) -> int:
        return self._total_bytes

    def get(self, url: str) -> Optional[bytes]:
        data = self._images.get(url)
        if data is not None:
            self._images.move_to_end(url)
        return data

    async def load_image(self, url: str) -> Optional[bytes]:
        """
        Image bytes for a URL, downloading on a cache miss.

        Args:
            url: Absolute http(s) URL

        Returns:
            Image bytes, or None if the URL is invalid or every attempt failed
        """
        cached = self.get(url)
        if cached is not None:
            logger.debug(f"Media cache hit: {url}")
            return cached

        task = self._downloads.get(url)
        if task is None:
            task = asyncio.ensure_future(self._download(url))
            self._downloads[url] = task
            task.add_done_callback(lambda _: self._downloads.pop(url, None))

        return await asyncio.shield(task)

    async def preload(self, urls: List[str], max_concurrent: int = 6) -> None:
        """Download uncached URLs with at most max_concurrent in flight."""
        pending = [url for url in dict.fromkeys(urls) if url and url not in self._images]
        if not pending:
            return

        semaphore = asyncio.Semaphore(max_concurrent)

        async def load(url: str) -> None:
            async with semaphore:
                await self.load_image(url)

        await asyncio.gather(*(load(url) for url in pending))

    def clear(self) -> None:
        self._images.clear()
        self._total_bytes = 0

    async def _download(self, url: str) -> Optional[bytes]:
        if not url.startswith(("http://", "https://")):
            logger.warning(f"Invalid media URL: {url}")
            return None

        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=DOWNLOAD_TIMEOUT_SECONDS,
            follow_redirects=True,
        ) as client:
            for attempt in range(1, MAX_ATTEMPTS + 1):
                try:
                    response = await client.get(url)
                except httpx.InvalidURL:
                    logger.warning(f"Invalid media URL: {url}")
                    return None
                except httpx.HTTPError as e:
                    logger.warning(f"Media download attempt {attempt}/{MAX_ATTEMPTS} failed for {url}: {e}")
                else:
                    if 200 <= response.status_code < 300 and response.content:
                        self._store(url, response.content)
                        return response.content
                    logger.warning(
                        f"Media download attempt {attempt}/{MAX_ATTEMPTS} for {url} "
                        f"returned {response.status_code}"
                    )

                if attempt < MAX_ATTEMPTS:
                    await asyncio.sleep(self._retry_delay * 2 ** (attempt - 1))

        logger.error(f"Failed to load media after {MAX_ATTEMPTS} attempts: {url}")
        return None

    def _store(self, url: str, data: bytes) -> None:
        if len(data) > self._max_bytes:
            logger.warning(f"Not caching {url}: {len(data)} bytes exceeds the cache size")
            return

        previous = self._images.pop(url, None)
        if previous is not None:
            self._total_bytes -= len(previous)

        self._images[url] = data
        self._total_bytes += len(data)

        while len(self._images) > self._limit or self._total_bytes > self._max_bytes:
            _, evicted = self._images.popitem(last=False)
            self._total_bytes -= len(evicted)
