from __future__ import annotations

import logging
import os
from typing import Optional, Protocol
from urllib.parse import urlparse

import httpx

log = logging.getLogger(__name__)

try:
    FETCH_TIMEOUT_SECS = float(os.getenv("FETCH_TIMEOUT_SECS", "15") or 15)
except ValueError:
    FETCH_TIMEOUT_SECS = 15.0
FETCH_USER_AGENT = os.getenv("FETCH_USER_AGENT", "Mozilla/5.0 (compatible; SitePromptBuilder/1.0)")


class FetchError(Exception):
    """Any failure to retrieve a page body."""


class ResponseTooLarge(FetchError):
    def __init__(self, url: str, limit: int) -> None:
        super().__init__(f"response from {url!r} exceeded {limit} bytes")
        self.url = url
        self.limit = limit


class Fetcher(Protocol):
    async def fetch(self, url: str, max_bytes: int) -> str:
        ...


def is_http_url(url: Optional[str]) -> bool:
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class HttpxFetcher:
    """Single GET per call; the body is streamed and abandoned once it passes max_bytes."""

    def __init__(
        self,
        timeout: float = FETCH_TIMEOUT_SECS,
        user_agent: str = FETCH_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    async def fetch(self, url: str, max_bytes: int) -> str:
        if not is_http_url(url):
            raise FetchError(f"invalid URL: {url!r}")
        chunks = bytearray()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            ) as client:
                async with client.stream("GET", url) as resp:
                    if resp.status_code >= 400:
                        raise FetchError(f"{url!r} returned HTTP {resp.status_code}")
                    async for chunk in resp.aiter_bytes():
                        chunks.extend(chunk)
                        if len(chunks) > max_bytes:
                            log.debug("fetch: aborting %s after %d bytes", url, len(chunks))
                            raise ResponseTooLarge(url, max_bytes)
                    encoding = resp.encoding or "utf-8"
        # ValueError covers URLs httpx cannot encode (bad IDNA labels, lone surrogates)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError, ValueError) as exc:
            raise FetchError(f"{url!r}: {exc!r}") from exc
        try:
            return bytes(chunks).decode(encoding, errors="replace")
        except LookupError:
            return bytes(chunks).decode("utf-8", errors="replace")
