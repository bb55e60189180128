from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlsplit
import asyncio, logging

import httpx

from . import config

log = logging.getLogger("uvicorn.error")

ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_LANGUAGE = "en-US,en;q=0.9"


@dataclass(frozen=True)
class FetchResult:
    ok: bool
    html: str = ""
    final_url: str = ""
    error: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def failure(cls, error: str, status_code: Optional[int] = None) -> "FetchResult":
        return cls(ok=False, error=error, status_code=status_code)


def origin_of(url: str) -> str:
    """ scheme://host[:port] with the host in its ASCII (punycode) form """
    parts = urlsplit(url)
    host = parts.hostname
    if not parts.scheme or not host:
        return ""
    if not host.isascii():
        host = host.encode("idna").decode("ascii")
    if ":" in host:
        host = f"[{host}]"
    try:
        port = f":{parts.port}" if parts.port else ""
    except ValueError:
        port = ""
    return f"{parts.scheme}://{host}{port}"


def browser_headers(url: str, user_agent: str = config.USER_AGENT) -> Dict[str, str]:
    headers = {
        "User-Agent": user_agent,
        "Accept": ACCEPT,
        "Accept-Language": ACCEPT_LANGUAGE,
    }
    referer = origin_of(url)
    if referer:
        headers["Referer"] = referer
    return headers


def make_client(**kwargs) -> httpx.AsyncClient:
    kwargs.setdefault("follow_redirects", True)
    kwargs.setdefault("timeout", config.FETCH_TIMEOUT)
    return httpx.AsyncClient(**kwargs)


class Fetcher:
    """
    GETs a page like a desktop browser would. Never raises: every failure
    (timeout, transport error, non-2xx) comes back as FetchResult(ok=False).
    """

    def __init__(self, client: httpx.AsyncClient, timeout: float = config.FETCH_TIMEOUT,
                 user_agent: str = config.USER_AGENT):
        self.client = client
        self.timeout = timeout
        self.user_agent = user_agent

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchResult:
        timeout = timeout or self.timeout
        try:
            # wall clock for connect + redirects + body
            return await asyncio.wait_for(self._get(url, timeout), timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return FetchResult.failure(f"Request timed out after {timeout:g}s")
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
            return FetchResult.failure(str(e) or e.__class__.__name__)

    async def _get(self, url: str, timeout: float) -> FetchResult:
        r = await self.client.get(
            url,
            headers=browser_headers(url, self.user_agent),
            follow_redirects=True,
            timeout=timeout,
        )
        if not r.is_success:
            return FetchResult.failure(f"HTTP {r.status_code}", r.status_code)
        return FetchResult(ok=True, html=r.text, final_url=str(r.url), status_code=r.status_code)
