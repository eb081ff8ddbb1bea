import asyncio

import httpx
import pytest

from builder_api.evaluate import evaluate_site
from builder_api.extract import extract_content
from builder_api.fetching import FetchError, HttpxFetcher, ResponseTooLarge, is_http_url


def _fetcher(handler):
    return HttpxFetcher(timeout=5, transport=httpx.MockTransport(handler))


def test_is_http_url():
    assert is_http_url("https://example.com/page")
    assert is_http_url("http://example.com")
    assert not is_http_url("example.com")
    assert not is_http_url("javascript:alert(1)")
    assert not is_http_url("https://")
    assert not is_http_url(None)


def test_fetch_returns_decoded_body_and_sends_user_agent():
    seen = {}

    def handler(request):
        seen["ua"] = request.headers.get("user-agent")
        return httpx.Response(200, text="<title>hi</title>")

    body = asyncio.run(_fetcher(handler).fetch("https://example.com/", 1000))
    assert body == "<title>hi</title>"
    assert "SitePromptBuilder" in seen["ua"]


def test_fetch_aborts_past_byte_cap():
    def handler(request):
        return httpx.Response(200, content=b"x" * 2048)

    with pytest.raises(ResponseTooLarge):
        asyncio.run(_fetcher(handler).fetch("https://example.com/", 1024))


def test_fetch_allows_body_exactly_at_cap():
    def handler(request):
        return httpx.Response(200, content=b"y" * 1024)

    assert len(asyncio.run(_fetcher(handler).fetch("https://example.com/", 1024))) == 1024


def test_http_error_status_is_fetch_error():
    def handler(request):
        return httpx.Response(404, text="gone")

    with pytest.raises(FetchError):
        asyncio.run(_fetcher(handler).fetch("https://example.com/missing", 1000))


def test_transport_error_is_fetch_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(FetchError):
        asyncio.run(_fetcher(handler).fetch("https://example.com/", 1000))


def test_invalid_url_rejected_before_request():
    def handler(request):
        raise AssertionError("should not be called")

    with pytest.raises(FetchError):
        asyncio.run(_fetcher(handler).fetch("mailto:someone@example.com", 1000))


@pytest.mark.parametrize("url", ["http://xn--a.com/", "http://a/\udcff"])
def test_urls_httpx_cannot_encode_are_fetch_errors(url):
    def handler(request):
        return httpx.Response(200, text="<h1>unreachable</h1>")

    assert is_http_url(url)
    with pytest.raises(FetchError):
        asyncio.run(_fetcher(handler).fetch(url, 1000))


@pytest.mark.parametrize("url", ["http://xn--a.com/", "http://a/\udcff"])
def test_extract_and_evaluate_absorb_unencodable_urls(url):
    fetcher = _fetcher(lambda request: httpx.Response(200, text="<h1>unreachable</h1>"))
    assert asyncio.run(extract_content(fetcher, url)) == ""
    result = asyncio.run(evaluate_site(fetcher, url))
    assert result.score == 0
    assert result.report.startswith("Failed to fetch site")
