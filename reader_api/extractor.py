"""
Main-content extraction.

Every strategy takes raw page HTML plus the URL it was served from and
returns an ExtractedArticle (or None when nothing article-like was found).
`heuristic` is an in-house readability scorer over lxml; `readability` and
`trafilatura` wrap the libraries of the same name.
"""
from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import Dict, Optional, Protocol
import logging, re

from lxml import etree, html as lxml_html
from readability import Document
from readability.readability import Unparseable
import trafilatura

from . import config
from .dom import collapse_ws, parse_document, parse_fragment, plain_text, remove_node, text_of

log = logging.getLogger("uvicorn.error")

JUNK_TAGS = ("script", "style", "noscript", "iframe")


@dataclass(frozen=True)
class ExtractedArticle:
    title: str
    content_html: str
    text_content: str
    byline: Optional[str] = None

    @property
    def strength(self) -> int:
        return len(self.text_content.strip())


def is_strong(article: Optional[ExtractedArticle], min_length: int = config.MIN_TEXT_LENGTH) -> bool:
    return article is not None and bool(article.content_html.strip()) and article.strength >= min_length


class ExtractionStrategy(Protocol):
    name: str

    def extract(self, html: str, base_url: str) -> Optional[ExtractedArticle]: ...


def strip_junk(doc) -> None:
    """ drop nodes that never hold article text and skew scoring """
    for el in list(doc.iter(*JUNK_TAGS, etree.Comment)):
        remove_node(el)


def preclean(html: str):
    doc = parse_document(html)
    strip_junk(doc)
    return doc


# -------- title ----------
_TITLE_SEP = re.compile(r"\s+[|\-–—»:]{1,2}\s+")


def document_title(doc) -> str:
    raw = ""
    title = doc.find(".//title")
    if title is not None:
        raw = text_of(title)
    if not raw:
        h1 = doc.find(".//h1")
        return text_of(h1) if h1 is not None else ""
    # "Story headline | Site name" -> "Story headline"
    parts = _TITLE_SEP.split(raw)
    if len(parts) > 1 and len(parts[0].split()) >= 3:
        return parts[0].strip()
    return raw


def _rel_author(doc) -> Optional[str]:
    for el in doc.xpath('//*[@rel="author" or @itemprop="author"]'):
        name = text_of(el)
        if name and len(name) < 100:
            return name
    return None


# -------- heuristic scorer ----------
UNLIKELY = re.compile(
    r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|extra|footer|"
    r"gdpr|header|legends|menu|related|remark|replies|rss|shoutbox|sidebar|skyscraper|social|"
    r"sponsor|supplemental|ad-break|agegate|pagination|pager|popup|yom-remote|newsletter|"
    r"subscribe|cookie|share",
    re.I,
)
MAYBE_CANDIDATE = re.compile(r"and|article|body|column|content|main|shadow", re.I)
POSITIVE = re.compile(r"article|body|content|entry|hentry|h-entry|main|page|post|text|blog|story", re.I)
NEGATIVE = re.compile(
    r"-ad-|hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|foot|footer|footnote|"
    r"gdpr|masthead|media|meta|outbrain|promo|related|scroll|share|shoutbox|sidebar|skyscraper|"
    r"sponsor|shopping|tags|tool|widget",
    re.I,
)
DIV_BLOCK_CHILDREN = frozenset([
    "a", "article", "blockquote", "dl", "div", "figure", "img", "ol", "p", "pre", "section",
    "table", "ul", "h1", "h2", "h3", "h4", "h5", "h6",
])
SCORE_TAGS = ("p", "pre", "td")
TAG_WEIGHTS = {
    "article": 10, "div": 5, "pre": 3, "td": 3, "blockquote": 3,
    "address": -3, "ol": -3, "ul": -3, "dl": -3, "dd": -3, "dt": -3, "li": -3, "form": -3,
    "h1": -5, "h2": -5, "h3": -5, "h4": -5, "h5": -5, "h6": -5, "th": -5,
}
CHROME_TAGS = ("nav", "aside", "footer", "button", "input", "select", "textarea")
MIN_PARAGRAPH = 25


def class_weight(el) -> int:
    weight = 0
    for attr in ("class", "id"):
        value = el.get(attr)
        if not value:
            continue
        if NEGATIVE.search(value):
            weight -= 25
        if POSITIVE.search(value):
            weight += 25
    return weight


def link_density(el) -> float:
    text_len = len(text_of(el))
    if not text_len:
        return 0.0
    link_len = sum(len(text_of(a)) for a in el.iter("a"))
    return link_len / text_len


def _is_hidden(el) -> bool:
    style = (el.get("style") or "").replace(" ", "").lower()
    return (
        el.get("hidden") is not None
        or el.get("aria-hidden") == "true"
        or "display:none" in style
        or "visibility:hidden" in style
    )


class HeuristicStrategy:
    """
    Readability-style scoring: paragraphs vote for their parent (full score)
    and grandparent (half score), votes are discounted by link density, and
    the best container is merged with related siblings.
    """
    name = "heuristic"

    def extract(self, html: str, base_url: str) -> Optional[ExtractedArticle]:
        doc = preclean(html)
        title = document_title(doc)
        byline = _rel_author(doc)
        body = doc.find("body")
        if body is None:
            body = doc

        self._drop_unlikely(body)
        self._retag_text_divs(body)
        candidates = self._score(body)
        if not candidates:
            return None

        top = max(candidates, key=candidates.get)
        container = self._merge_siblings(top, candidates)
        self._clean_conditionally(container)

        text = plain_text(container)
        if not text:
            return None
        content = lxml_html.tostring(container, encoding="unicode", method="html")
        return ExtractedArticle(title=title, byline=byline, content_html=content, text_content=text)

    def _drop_unlikely(self, body) -> None:
        for el in list(body.iterdescendants()):
            if not isinstance(el.tag, str) or el.tag in ("html", "body", "article", "main"):
                continue
            if el.tag in CHROME_TAGS or _is_hidden(el):
                remove_node(el)
                continue
            match = f"{el.get('class') or ''} {el.get('id') or ''}"
            if UNLIKELY.search(match) and not MAYBE_CANDIDATE.search(match):
                remove_node(el)

    def _retag_text_divs(self, body) -> None:
        # a div holding only inline content is a paragraph in disguise
        for div in list(body.iter("div")):
            if not any(isinstance(c.tag, str) and c.tag in DIV_BLOCK_CHILDREN for c in div):
                div.tag = "p"

    def _score(self, body) -> Dict[object, float]:
        candidates: Dict[object, float] = {}
        for node in body.iter(*SCORE_TAGS):
            text = text_of(node)
            if len(text) < MIN_PARAGRAPH:
                continue
            parent = node.getparent()
            if parent is None:
                continue
            score = 1 + text.count(",") + min(len(text) // 100, 3)
            grandparent = parent.getparent()
            for ancestor, divider in ((parent, 1), (grandparent, 2)):
                if ancestor is None or not isinstance(ancestor.tag, str) or ancestor.tag == "html":
                    continue
                if ancestor not in candidates:
                    candidates[ancestor] = TAG_WEIGHTS.get(ancestor.tag, 0) + class_weight(ancestor)
                candidates[ancestor] += score / divider
        for el in candidates:
            candidates[el] *= 1 - link_density(el)
        return candidates

    def _merge_siblings(self, top, candidates: Dict[object, float]):
        top_score = candidates[top]
        threshold = max(10, top_score * 0.2)
        container = lxml_html.Element("div")
        parent = top.getparent()
        siblings = list(parent) if parent is not None and parent.tag != "html" else [top]
        for sibling in siblings:
            if not isinstance(sibling.tag, str):
                continue
            keep = sibling is top
            if not keep:
                bonus = top_score * 0.2 if sibling.get("class") and sibling.get("class") == top.get("class") else 0
                keep = candidates.get(sibling, 0) + bonus >= threshold
            if not keep and sibling.tag == "p":
                text = text_of(sibling)
                density = link_density(sibling)
                if len(text) > 80 and density < 0.25:
                    keep = True
                elif text and density == 0 and re.search(r"\.( |$)", text):
                    keep = True
            if keep:
                clone = deepcopy(sibling)
                clone.tail = None
                if clone.tag == "body":
                    clone.tag = "div"
                container.append(clone)
        return container

    def _clean_conditionally(self, container) -> None:
        for el in list(container.iterdescendants("div", "section", "ul", "ol", "table", "h1", "h2")):
            if el.getparent() is container:
                continue
            weight = class_weight(el)
            if weight < 0:
                remove_node(el)
                continue
            density = link_density(el)
            if el.tag in ("h1", "h2"):
                if density > 0.33:
                    remove_node(el)
            elif density > 0.5 and weight < 25:
                remove_node(el)
            elif (
                el.tag in ("div", "section")
                and len(text_of(el)) < MIN_PARAGRAPH
                and el.find(".//img") is None
            ):
                remove_node(el)


# -------- library strategies ----------
class ReadabilityStrategy:
    name = "readability"

    def extract(self, html: str, base_url: str) -> Optional[ExtractedArticle]:
        doc = preclean(html)
        cleaned = lxml_html.tostring(doc, encoding="unicode", method="html")
        try:
            rd = Document(cleaned, url=base_url)
            content = rd.summary(html_partial=True)
            title = collapse_ws(rd.short_title())
        except Unparseable as e:
            log.warning(f"[READER] readability could not parse {base_url}: {e}")
            return None
        text = plain_text(parse_fragment(content))
        if not text:
            return None
        return ExtractedArticle(title=title or document_title(doc), byline=_rel_author(doc),
                                content_html=content, text_content=text)


class TrafilaturaStrategy:
    name = "trafilatura"

    def extract(self, html: str, base_url: str) -> Optional[ExtractedArticle]:
        doc = preclean(html)
        cleaned = lxml_html.tostring(doc, encoding="unicode", method="html")
        body = trafilatura.extract(
            cleaned, url=base_url, output_format="html",
            include_comments=False, include_tables=False,
            include_images=True, include_links=True, favor_precision=True,
        )
        if not body:
            return None
        # trafilatura wraps its output in a full document
        out = parse_document(body)
        root = out.find("body")
        if root is None:
            root = out
        content = "".join(lxml_html.tostring(c, encoding="unicode", method="html") for c in root)
        text = plain_text(root)
        if not text:
            return None
        meta = trafilatura.extract_metadata(cleaned, default_url=base_url)
        return ExtractedArticle(
            title=collapse_ws(meta.title if meta else None) or document_title(doc),
            byline=collapse_ws(meta.author if meta else None) or None,
            content_html=content,
            text_content=text,
        )


STRATEGIES = {
    HeuristicStrategy.name: HeuristicStrategy,
    ReadabilityStrategy.name: ReadabilityStrategy,
    TrafilaturaStrategy.name: TrafilaturaStrategy,
}


def get_strategy(name: str = config.EXTRACTOR) -> ExtractionStrategy:
    try:
        return STRATEGIES[name.strip().lower()]()
    except KeyError:
        raise ValueError(f"unknown extractor {name!r}; expected one of {sorted(STRATEGIES)}")


def extract(html: str, base_url: str, strategy: Optional[ExtractionStrategy] = None) -> Optional[ExtractedArticle]:
    return (strategy or get_strategy()).extract(html, base_url)
