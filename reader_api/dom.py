from typing import Optional
import re

from lxml import etree, html as lxml_html

_WS = re.compile(r"\s+")


def parse_document(markup: str):
    """ lxml document for arbitrary (possibly broken) page HTML """
    if not markup or not markup.strip():
        markup = "<html><head></head><body></body></html>"
    try:
        return lxml_html.document_fromstring(markup)
    except ValueError:
        # str input carrying an <?xml encoding=...?> declaration
        return lxml_html.document_fromstring(markup.encode("utf-8"))
    except etree.ParserError:
        return lxml_html.document_fromstring("<html><body></body></html>")


def parse_fragment(markup: str):
    """ wraps a fragment in a single <div> so it can be walked and re-serialized """
    return lxml_html.fragment_fromstring(markup or "", create_parent="div")


def serialize_children(container) -> str:
    parts = [container.text or ""]
    for child in container:
        parts.append(lxml_html.tostring(child, encoding="unicode", method="html"))
    return "".join(parts)


def collapse_ws(s: Optional[str]) -> str:
    if not s:
        return ""
    return _WS.sub(" ", s).strip()


def text_of(el) -> str:
    return collapse_ws(el.text_content())


def remove_node(el) -> None:
    """ detach el and its subtree, keeping the text that follows it """
    parent = el.getparent()
    if parent is None:
        return
    if el.tail:
        prev = el.getprevious()
        if prev is not None:
            prev.tail = (prev.tail or "") + el.tail
        else:
            parent.text = (parent.text or "") + el.tail
    parent.remove(el)


BLOCK_TAGS = frozenset([
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt", "figcaption",
    "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "li", "main",
    "nav", "ol", "p", "pre", "section", "table", "tr", "ul",
])


def plain_text(el) -> str:
    """ text of a subtree with block elements on their own lines """
    parts = []
    for event, node in etree.iterwalk(el, events=("start", "end")):
        tag = node.tag if isinstance(node.tag, str) else None
        if event == "start":
            if tag in BLOCK_TAGS:
                parts.append("\n")
            if tag and node.text:
                parts.append(_WS.sub(" ", node.text))
        else:
            if tag in BLOCK_TAGS or tag == "br":
                parts.append("\n")
            if node is not el and node.tail:
                parts.append(_WS.sub(" ", node.tail))
    # source newlines are already spaces; only block and br markers break lines
    lines = (collapse_ws(line) for line in "".join(parts).split("\n"))
    return "\n".join(line for line in lines if line)
