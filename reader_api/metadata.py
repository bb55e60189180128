"""
Page metadata (title, byline, lead image, publish date) from <meta> tags and
structural hints. Each field has an ordered list of small extractors; the
first one returning a non-empty value wins.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence
from urllib.parse import urlsplit
import logging

from .dom import collapse_ws, text_of
from .sanitize import resolve_url

log = logging.getLogger("uvicorn.error")

Extractor = Callable[[object], Optional[str]]

_MAX_BYLINE = 200


@dataclass(frozen=True)
class ArticleMetadata:
    source: str
    title: Optional[str] = None
    byline: Optional[str] = None
    lead_image_url: Optional[str] = None
    published_at: Optional[str] = None


def _lower(attr: str) -> str:
    return f"translate(@{attr}, 'ABCDEFGHIJKLMNOPQRSTUVWXYZ', 'abcdefghijklmnopqrstuvwxyz')"


def meta_content(key: str, value: str) -> Extractor:
    """ content of <meta {key}="{value}"> (case-insensitive value) """
    query = f'//meta[{_lower(key)}="{value.lower()}"]/@content'

    def extract(doc) -> Optional[str]:
        for content in doc.xpath(query):
            if collapse_ws(content):
                return collapse_ws(content)
        return None
    return extract


def element_text(tag: str) -> Extractor:
    def extract(doc) -> Optional[str]:
        el = doc.find(f".//{tag}")
        return text_of(el) if el is not None else None
    return extract


def keyword_text(*keywords: str, attrs: Sequence[str] = ("class", "id")) -> Extractor:
    """ text of the first element whose class/id contains one of keywords """
    tests = " or ".join(f'contains({_lower(a)}, "{k}")' for k in keywords for a in attrs)
    query = f"//body//*[{tests}]"

    def extract(doc) -> Optional[str]:
        for el in doc.xpath(query):
            text = text_of(el)
            if text:
                return text
        return None
    return extract


def time_datetime(doc) -> Optional[str]:
    for value in doc.xpath("//time/@datetime"):
        if collapse_ws(value):
            return collapse_ws(value)
    return None


def image_by_class(*keywords: str) -> Extractor:
    tests = " or ".join(f'contains({_lower("class")}, "{k}")' for k in keywords)
    query = f"//img[{tests}]"

    def extract(doc) -> Optional[str]:
        for img in doc.xpath(query):
            src = (img.get("src") or img.get("data-src") or "").strip()
            if src:
                return src
        return None
    return extract


TITLE_EXTRACTORS: Sequence[Extractor] = (
    meta_content("property", "og:title"),
    meta_content("name", "twitter:title"),
    element_text("title"),
    element_text("h1"),
)

BYLINE_EXTRACTORS: Sequence[Extractor] = (
    keyword_text("byline"),
    keyword_text("author"),
    keyword_text("writer"),
    meta_content("name", "author"),
    meta_content("property", "article:author"),
)

LEAD_IMAGE_EXTRACTORS: Sequence[Extractor] = (
    meta_content("property", "og:image"),
    meta_content("name", "twitter:image"),
    meta_content("property", "article:image"),
    image_by_class("hero"),
    image_by_class("lead"),
    image_by_class("main"),
)

PUBLISHED_EXTRACTORS: Sequence[Extractor] = (
    meta_content("property", "article:published_time"),
    meta_content("name", "publish_date"),
    meta_content("name", "date"),
    time_datetime,
    keyword_text("date", attrs=("class",)),
    keyword_text("published", attrs=("class",)),
)


def first_non_empty(doc, extractors: Sequence[Extractor]) -> Optional[str]:
    for fn in extractors:
        try:
            value = fn(doc)
        except Exception as e:
            log.warning(f"[READER] metadata extractor {getattr(fn, '__qualname__', fn)} failed: {e}")
            continue
        if value:
            return value
    return None


def source_of(url: str) -> str:
    return urlsplit(url).hostname or ""


def extract_metadata(doc, final_url: str) -> ArticleMetadata:
    byline = first_non_empty(doc, BYLINE_EXTRACTORS)
    if byline and len(byline) > _MAX_BYLINE:
        byline = byline[:_MAX_BYLINE].rstrip()
    image = first_non_empty(doc, LEAD_IMAGE_EXTRACTORS)
    return ArticleMetadata(
        source=source_of(final_url),
        title=first_non_empty(doc, TITLE_EXTRACTORS),
        byline=byline,
        lead_image_url=resolve_url(image, final_url) if image else None,
        published_at=first_non_empty(doc, PUBLISHED_EXTRACTORS),
    )
