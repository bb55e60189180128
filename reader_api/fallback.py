"""
Last-resort path: ask an external page-to-text rendering service for a
markdown rendition of the page and turn it into reader HTML.
"""
from typing import Optional
import logging

import httpx
import markdown
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from . import config
from .errors import RenderProxyError
from .metadata import source_of
from .sanitize import clean_html
from .schemas import ReaderResponse

log = logging.getLogger("uvicorn.error")

MD_EXTENSIONS = ["extra", "sane_lists"]


def markdown_to_html(text: str) -> str:
    return markdown.markdown(text, extensions=MD_EXTENSIONS)


def _retryable(e: BaseException) -> bool:
    return isinstance(e, RenderProxyError) and e.retryable


class RenderProxyClient:
    def __init__(self, client: httpx.AsyncClient, base_url: str = config.RENDER_PROXY_URL,
                 api_key: str = config.RENDER_PROXY_API_KEY,
                 timeout: float = config.RENDER_PROXY_TIMEOUT,
                 attempts: int = config.RENDER_PROXY_ATTEMPTS):
        self.client = client
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.attempts = max(1, attempts)

    def proxy_url(self, url: str) -> str:
        return self.base_url + url

    async def render(self, url: str) -> str:
        """ markdown rendition of url; RenderProxyError when none can be had """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception(_retryable),
            reraise=True,
        ):
            with attempt:
                return await self._render_once(url)

    async def _render_once(self, url: str) -> str:
        headers = {"Accept": "text/plain"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            r = await self.client.get(self.proxy_url(url), headers=headers,
                                      timeout=self.timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            raise RenderProxyError(str(e) or e.__class__.__name__)
        if not r.is_success:
            raise RenderProxyError(f"HTTP {r.status_code}", r.status_code)
        if not r.text.strip():
            raise RenderProxyError("empty rendition", r.status_code)
        return r.text


async def fallback(proxy: RenderProxyClient, url: str, *, final_url: Optional[str] = None,
                   title: Optional[str] = None, byline: Optional[str] = None,
                   lead_image_url: Optional[str] = None,
                   published_at: Optional[str] = None) -> ReaderResponse:
    """
    Build a ReaderResponse from the rendering service. `url` is what gets
    rendered; `final_url` (when the page was fetched) anchors links and
    names the source. Raises RenderProxyError.
    """
    md = await proxy.render(url)
    base = final_url or url
    source = source_of(base)
    log.info(f"[READER] Fallback rendition for {url} ({len(md)} chars)")
    return ReaderResponse(
        title=title or source,
        byline=byline or None,
        leadImageUrl=lead_image_url,
        contentHtml=clean_html(markdown_to_html(md), base),
        textContent=md,
        source=source,
        publishedAt=published_at,
        url=base,
    )
