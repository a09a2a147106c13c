from __future__ import annotations

import logging
import time
from typing import Callable
from urllib.parse import urlsplit

import requests

from ..config import SETTINGS
from ..errors import InvalidConfiguration, SourceFetchError
from ..processing.buffer import PixelBuffer, decode_image
from .cache import CACHE, ResponseCache

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]


def validate_source_url(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise InvalidConfiguration(f"Invalid source_url: {url}")
    return url


class SourceFetcher:
    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        cache: ResponseCache = CACHE,
        backoff: float = 0.4,
    ) -> None:
        self._session_factory = session_factory or requests.Session
        self._session = self._create_session()
        self._cache = cache
        self._backoff = backoff

    def _create_session(self) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"User-Agent": "palette-reducer/1.0"})
        return session

    def fetch_bytes(self, source_url: str) -> bytes:
        target_url = validate_source_url(source_url)
        cached = self._cache.get(target_url)
        if cached is not None:
            return cached

        last_exception: Exception | None = None
        for attempt in range(1, SETTINGS.retries + 2):
            try:
                response = self._session.get(target_url, timeout=SETTINGS.timeout)
                response.raise_for_status()
                self._cache.put(target_url, response.content)
                return response.content
            except requests.RequestException as exc:
                last_exception = exc
                logger.warning("Fetching %s failed (attempt %d): %s", target_url, attempt, exc)
                time.sleep(self._backoff * attempt)
        raise SourceFetchError(f"Could not fetch {target_url}: {last_exception}")

    def fetch_source(self, source_url: str) -> PixelBuffer:
        return decode_image(self.fetch_bytes(source_url))


FETCHER = SourceFetcher()
