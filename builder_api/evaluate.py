from __future__ import annotations

import logging
import re
from typing import List, Optional

from pydantic import BaseModel, Field

from builder_api.fetching import Fetcher, FetchError, is_http_url

log = logging.getLogger(__name__)

EVALUATE_MAX_BYTES = 1_000_000
MAX_SCORE = 100
# The four checks total 80; a page that passes all of them is topped up to the maximum.
COMPLETE_BONUS = 20

SUGGEST_H1 = "Add at least one main heading."
SUGGEST_H2 = "Use subheadings to structure content."
SUGGEST_IMG = "Include images to make the page visually engaging."
SUGGEST_VIEWPORT = "Ensure the page is mobile-friendly (missing viewport meta tag)."

_H1_RE = re.compile(r"<h1\b", re.IGNORECASE)
_H2_RE = re.compile(r"<h2\b", re.IGNORECASE)
_IMG_RE = re.compile(r"<img\b", re.IGNORECASE)
_VIEWPORT_RE = re.compile(r"""<meta\b[^>]*\bname\s*=\s*["']?viewport\b""", re.IGNORECASE)


class EvaluationResult(BaseModel):
    score: int = Field(0, ge=0, le=MAX_SCORE)
    report: str = ""


def score_markup(markup: str) -> EvaluationResult:
    """Heuristic structural score for raw page markup.

    Each check contributes a fixed number of points or, when it fails, one
    suggestion line. Suggestions keep the check order.
    """
    markup = markup or ""
    score = 0
    suggestions: List[str] = []

    if len(_H1_RE.findall(markup)) >= 1:
        score += 30
    else:
        suggestions.append(SUGGEST_H1)
    if len(_H2_RE.findall(markup)) >= 2:
        score += 20
    else:
        suggestions.append(SUGGEST_H2)
    if len(_IMG_RE.findall(markup)) >= 1:
        score += 20
    else:
        suggestions.append(SUGGEST_IMG)
    if _VIEWPORT_RE.search(markup):
        score += 10
    else:
        suggestions.append(SUGGEST_VIEWPORT)

    if not suggestions:
        score += COMPLETE_BONUS
    return EvaluationResult(score=min(score, MAX_SCORE), report="\n".join(suggestions).strip())


async def evaluate_site(fetcher: Fetcher, site_url: Optional[str]) -> EvaluationResult:
    if not is_http_url(site_url):
        return EvaluationResult(score=0, report=f"Invalid URL: {site_url!r}")
    try:
        markup = await fetcher.fetch(site_url.strip(), EVALUATE_MAX_BYTES)
    except FetchError as exc:
        log.warning("evaluate: fetch failed url=%s err=%s", site_url, exc)
        return EvaluationResult(score=0, report=f"Failed to fetch site: {exc}")
    result = score_markup(markup)
    log.info("evaluate: url=%s score=%d", site_url, result.score)
    return result
