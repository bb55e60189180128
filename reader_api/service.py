"""
The reader pipeline:

    cache lookup -> fetch (+AMP upgrade) -> extract -> quality gate
        -> (accept | rendering-service fallback) -> sanitize + absolutize
        -> metadata merge -> cache write
"""
from typing import Optional
from urllib.parse import urlsplit
import logging

from . import config
from .amp import resolve_amp
from .cache import ResponseCache, normalize_cache_key
from .dom import parse_document
from .errors import ExtractionFailed, InvalidUrl, RenderProxyError, UpstreamUnavailable
from .extractor import ExtractedArticle, ExtractionStrategy, get_strategy, is_strong
from .fallback import RenderProxyClient, fallback
from .fetch import Fetcher
from .metadata import ArticleMetadata, extract_metadata, source_of
from .sanitize import clean_html
from .schemas import ReaderResponse

log = logging.getLogger("uvicorn.error")

ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: Optional[str]) -> str:
    url = (url or "").strip()
    if not url:
        raise InvalidUrl("URL parameter is required")
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError:
        raise InvalidUrl("Malformed URL")
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidUrl("Only HTTP and HTTPS URLs are allowed")
    if not host:
        raise InvalidUrl("URL has no host")
    return url


class ReaderService:
    def __init__(self, fetcher: Fetcher, proxy: RenderProxyClient, cache: ResponseCache,
                 strategy: Optional[ExtractionStrategy] = None,
                 min_text_length: int = config.MIN_TEXT_LENGTH):
        self.fetcher = fetcher
        self.proxy = proxy
        self.cache = cache
        self.strategy = strategy or get_strategy()
        self.min_text_length = min_text_length

    async def read(self, url: Optional[str]) -> ReaderResponse:
        target = validate_url(url)
        key = normalize_cache_key(target)
        hit = self.cache.get(key)
        if hit is not None:
            log.info(f"[READER] Cache hit: {key}")
            return hit

        log.info(f"[READER] Fetching content from: {target}")
        out = await self._run(target)
        self.cache.set(key, out)
        return out

    async def _run(self, url: str) -> ReaderResponse:
        page = await self.fetcher.fetch(url)
        if not page.ok:
            log.warning(f"[READER] Primary fetch failed for {url}: {page.error}")
            try:
                return await fallback(self.proxy, url)
            except RenderProxyError as e:
                log.warning(f"[READER] Fallback failed for {url}: {e}")
                raise UpstreamUnavailable(page.error)

        page = await resolve_amp(page, self.fetcher)
        final_url = page.final_url or url
        meta = self._metadata(page.html, final_url)
        article = self._extract(page.html, final_url)

        if not is_strong(article, self.min_text_length):
            strength = article.strength if article else 0
            log.info(f"[READER] Weak extraction ({strength} chars) for {final_url}; using fallback")
            try:
                return await fallback(
                    self.proxy, url, final_url=final_url,
                    title=meta.title or (article.title if article else None),
                    byline=meta.byline or (article.byline if article else None),
                    lead_image_url=meta.lead_image_url,
                    published_at=meta.published_at,
                )
            except RenderProxyError as e:
                log.warning(f"[READER] Fallback failed for {url}: {e}")
                raise ExtractionFailed(str(e))

        log.info(f"[READER] Successfully extracted content from: {final_url}")
        return ReaderResponse(
            title=meta.title or article.title or meta.source,
            byline=meta.byline or article.byline,
            leadImageUrl=meta.lead_image_url,
            contentHtml=clean_html(article.content_html, final_url),
            textContent=article.text_content,
            source=meta.source,
            publishedAt=meta.published_at,
            url=final_url,
        )

    def _metadata(self, html: str, final_url: str) -> ArticleMetadata:
        try:
            return extract_metadata(parse_document(html), final_url)
        except Exception as e:
            log.warning(f"[READER] Metadata extraction failed for {final_url}: {e}")
            return ArticleMetadata(source=source_of(final_url))

    def _extract(self, html: str, final_url: str) -> Optional[ExtractedArticle]:
        try:
            return self.strategy.extract(html, final_url)
        except Exception:
            # treated like a weak extraction so the fallback still gets a chance
            log.exception(f"[READER] {self.strategy.name} extractor crashed on {final_url}")
            return None
