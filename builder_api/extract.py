from __future__ import annotations

import html
import logging
import re
from typing import List, Optional

from builder_api.fetching import Fetcher, FetchError, is_http_url

log = logging.getLogger(__name__)

EXTRACT_MAX_BYTES = 1_000_000
SUMMARY_MAX_CHARS = 300
ELLIPSIS = "…"

_WS_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"<[^>]*>")
_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TITLE_RE = re.compile(r"<title\b[^>]*>(.*?)</title\s*>", re.IGNORECASE | re.DOTALL)
_META_TAG_RE = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_META_NAME_DESC_RE = re.compile(r"""\bname\s*=\s*["']?description["'\s/>]""", re.IGNORECASE)
_META_CONTENT_RE = re.compile(r"""\bcontent\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE | re.DOTALL)
_PARAGRAPH_RE = re.compile(r"<p\b[^>]*>(.*?)</p\s*>", re.IGNORECASE | re.DOTALL)


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def strip_tags(fragment: str) -> str:
    """Drop inner markup, decode entities and normalise whitespace."""
    if not fragment:
        return ""
    text = _SCRIPT_STYLE_RE.sub(" ", fragment)
    text = _TAG_RE.sub(" ", text)
    return collapse_whitespace(html.unescape(text))


def summarize_text(text: str) -> str:
    return text[:SUMMARY_MAX_CHARS] + ELLIPSIS if len(text) > SUMMARY_MAX_CHARS else text


def find_title(markup: str) -> str:
    m = _TITLE_RE.search(markup or "")
    return strip_tags(m.group(1)) if m else ""


def find_meta_description(markup: str) -> str:
    for tag in _META_TAG_RE.findall(markup or ""):
        if not _META_NAME_DESC_RE.search(tag):
            continue
        m = _META_CONTENT_RE.search(tag)
        if m:
            return collapse_whitespace(html.unescape(m.group(1) if m.group(1) is not None else m.group(2)))
    return ""


def find_paragraphs(markup: str, limit: int = 2) -> List[str]:
    found: List[str] = []
    for body in _PARAGRAPH_RE.findall(markup or ""):
        text = strip_tags(body)
        if not text:
            continue
        found.append(text)
        if len(found) >= limit:
            break
    return found


def summarize_markup(markup: str) -> str:
    """Title, meta description and the first two paragraphs, flattened and bounded."""
    pieces: List[str] = []
    title = find_title(markup)
    if title:
        pieces.append(title)
    description = find_meta_description(markup)
    if description:
        pieces.append(description)
    paragraphs = find_paragraphs(markup)
    if paragraphs:
        pieces.append("\n".join(paragraphs))
    return summarize_text(collapse_whitespace("\n".join(pieces)))


async def extract_content(fetcher: Fetcher, page_url: Optional[str]) -> str:
    """Best-effort summary of the page at page_url; every failure yields ""."""
    if not is_http_url(page_url):
        log.debug("extract: skipping invalid url=%r", page_url)
        return ""
    try:
        markup = await fetcher.fetch(page_url.strip(), EXTRACT_MAX_BYTES)
    except FetchError as exc:
        log.warning("extract: fetch failed url=%s err=%s", page_url, exc)
        return ""
    summary = summarize_markup(markup)
    log.info("extract: url=%s summary_chars=%d", page_url, len(summary))
    return summary
