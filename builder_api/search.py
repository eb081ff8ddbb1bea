from __future__ import annotations

import logging
import os
import re
from typing import List
from urllib.parse import quote_plus

from builder_api.extract import strip_tags
from builder_api.fetching import Fetcher, FetchError

log = logging.getLogger(__name__)

SEARCH_ENDPOINT = os.getenv("SEARCH_ENDPOINT", "https://html.duckduckgo.com/html/")
SEARCH_MAX_BYTES = 500_000
SEARCH_MAX_RESULTS = 2

# DuckDuckGo's HTML interface tags each result title link with class="result__a"
_RESULT_TITLE_RE = re.compile(
    r"""<a\b[^>]*\bclass\s*=\s*["'][^"']*\bresult__a\b[^"']*["'][^>]*>(.*?)</a\s*>""",
    re.IGNORECASE | re.DOTALL,
)


def search_url(query: str) -> str:
    return f"{SEARCH_ENDPOINT}?q={quote_plus(f'{query} website')}"


def parse_result_titles(markup: str, limit: int = SEARCH_MAX_RESULTS) -> List[str]:
    titles: List[str] = []
    for inner in _RESULT_TITLE_RE.findall(markup or ""):
        title = strip_tags(inner)
        if not title:
            continue
        titles.append(title)
        if len(titles) >= limit:
            break
    return titles


async def search_similar_sites(fetcher: Fetcher, query: str) -> str:
    """Titles of the top search hits for the query, one per line; "" on any failure."""
    if not isinstance(query, str) or not query.strip():
        return ""
    url = search_url(query.strip())
    try:
        markup = await fetcher.fetch(url, SEARCH_MAX_BYTES)
    except FetchError as exc:
        log.warning("search: fetch failed query=%r err=%s", query[:60], exc)
        return ""
    titles = parse_result_titles(markup)
    log.info("search: query=%r results=%d", query[:60], len(titles))
    return "\n".join(titles)
