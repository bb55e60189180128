import httpx
import pytest
from fastapi.testclient import TestClient

from reader_api.api import app, get_service
from reader_api.cache import ResponseCache
from reader_api.extractor import HeuristicStrategy
from reader_api.fallback import RenderProxyClient
from reader_api.fetch import Fetcher
from reader_api.service import ReaderService

RENDER_BASE = "https://render.test/"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWeb:
    """ canned responses keyed by exact URL; the rendering service answers with `rendition` """

    def __init__(self):
        self.pages = {}
        self.calls = []
        self.rendition = None
        self.render_status = 200

    def add(self, url, body="", status=200, headers=None):
        self.pages[url] = (status, body, headers or {})

    def redirect(self, url, location, status=301):
        self.add(url, status=status, headers={"Location": location})

    @property
    def page_calls(self):
        return [u for u in self.calls if not u.startswith(RENDER_BASE)]

    @property
    def render_calls(self):
        return [u for u in self.calls if u.startswith(RENDER_BASE)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        if url.startswith(RENDER_BASE):
            if self.rendition is None:
                return httpx.Response(503, text="unavailable")
            return httpx.Response(self.render_status, text=self.rendition)
        if url not in self.pages:
            raise httpx.ConnectError("connection refused", request=request)
        status, body, headers = self.pages[url]
        return httpx.Response(status, text=body, headers=headers)


@pytest.fixture
def web():
    return FakeWeb()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def http(web):
    return httpx.AsyncClient(transport=httpx.MockTransport(web.handler), follow_redirects=True)


@pytest.fixture
def service(http, clock):
    return ReaderService(
        fetcher=Fetcher(http, timeout=5),
        proxy=RenderProxyClient(http, base_url=RENDER_BASE, attempts=1),
        cache=ResponseCache(ttl=420, timer=clock),
        strategy=HeuristicStrategy(),
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
