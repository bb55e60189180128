from typing import Optional
from urllib.parse import urljoin
import logging

from .dom import parse_document
from .fetch import FetchResult, Fetcher

log = logging.getLogger("uvicorn.error")


def find_amp_url(html: str, base_url: str) -> Optional[str]:
    """ absolute URL of <link rel="amphtml">, if the page advertises one """
    doc = parse_document(html)
    for link in doc.iter("link"):
        rels = (link.get("rel") or "").lower().split()
        href = (link.get("href") or "").strip()
        if "amphtml" in rels and href:
            return urljoin(base_url, href)
    return None


async def resolve_amp(page: FetchResult, fetcher: Fetcher) -> FetchResult:
    """
    Swap a fetched page for its AMP rendition when one exists and can be
    fetched. Any failure keeps the original page.
    """
    if not page.ok:
        return page
    base = page.final_url
    try:
        amp_url = find_amp_url(page.html, base)
    except Exception as e:
        log.warning(f"[READER] AMP fetch failed for {base}: {e}")
        return page
    if not amp_url or amp_url == base:
        return page

    log.info(f"[READER] AMP version found: {amp_url}")
    amp = await fetcher.fetch(amp_url)
    if not amp.ok:
        log.warning(f"[READER] Failed to fetch AMP version: {amp.error}")
        return page
    return FetchResult(ok=True, html=amp.html, final_url=amp.final_url or amp_url,
                       status_code=amp.status_code)
