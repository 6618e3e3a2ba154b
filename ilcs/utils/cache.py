"""HTTP response caching for page downloads."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TTL = 7 * 24 * 3600  # 7 days
DEFAULT_USER_AGENT = "ilcs-pipeline/1.0 (statute index crawler)"


class HttpCache:
    """Disk-backed HTTP response cache over a shared async client.

    Args:
        client: The httpx session used for network fetches. The cache does
            not own it; closing it is the caller's job.
        cache_dir: Directory for cached responses, or None to disable caching.
        ttl: Time-to-live in seconds for cached responses.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache_dir: Path | None = None,
        ttl: int = DEFAULT_TTL,
    ):
        self.client = client
        self.cache_dir = cache_dir
        self.ttl = ttl
        if self.cache_dir is not None:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _cache_key(self, url: str) -> str:
        return hashlib.sha256(url.encode()).hexdigest()

    def _cache_path(self, url: str) -> Path:
        return self.cache_dir / f"{self._cache_key(url)}.html"

    def _meta_path(self, url: str) -> Path:
        return self.cache_dir / f"{self._cache_key(url)}.meta.json"

    def get_cached(self, url: str) -> str | None:
        """Return cached response body if valid, else None."""
        if self.cache_dir is None:
            return None

        meta_path = self._meta_path(url)
        cache_path = self._cache_path(url)
        if not meta_path.exists() or not cache_path.exists():
            return None

        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
            timestamp = float(meta.get("timestamp", 0))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable cache entry for %s: %s", url, e)
            return None

        if time.time() - timestamp > self.ttl:
            logger.debug("Cache expired for %s", url)
            return None

        logger.debug("Cache hit for %s", url)
        return cache_path.read_text(encoding="utf-8")

    def put(self, url: str, body: str, status_code: int = 200) -> None:
        """Store a response in the cache."""
        if self.cache_dir is None:
            return

        self._cache_path(url).write_text(body, encoding="utf-8")
        meta = {
            "url": url,
            "timestamp": time.time(),
            "status_code": status_code,
        }
        self._meta_path(url).write_text(json.dumps(meta), encoding="utf-8")

    async def fetch(self, url: str) -> str:
        """Fetch URL through the cache.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx response.
        """
        cached = self.get_cached(url)
        if cached is not None:
            return cached

        logger.info("Fetching %s", url)
        response = await self.client.get(url)
        response.raise_for_status()

        body = response.text
        self.put(url, body, response.status_code)
        return body
