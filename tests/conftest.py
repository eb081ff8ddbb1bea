from typing import Dict, List, Union

import pytest
from fastapi.testclient import TestClient

from builder_api.fetching import FetchError
from builder_api.main import app, get_fetcher


class FakeFetcher:
    """Serves canned markup by exact URL; unknown URLs fail like a dead host."""

    def __init__(self, pages: Dict[str, Union[str, Exception]] = None) -> None:
        self.pages: Dict[str, Union[str, Exception]] = dict(pages or {})
        self.calls: List[tuple] = []

    async def fetch(self, url: str, max_bytes: int) -> str:
        self.calls.append((url, max_bytes))
        page = self.pages.get(url)
        if page is None:
            raise FetchError(f"no canned page for {url}")
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture()
def make_fetcher():
    return FakeFetcher


@pytest.fixture()
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture()
def client(fake_fetcher):
    app.dependency_overrides[get_fetcher] = lambda: fake_fetcher
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
