"""
Allow-list HTML sanitizer and URL absolutizer for extracted article bodies.

Both work on fragments: the input is whatever an extraction strategy (or the
markdown converter) produced, the output is a fragment string with no
<html>/<body> wrapper.
"""
from typing import Optional
from urllib.parse import urljoin
import re

from .dom import parse_fragment, remove_node, serialize_children

ALLOWED_TAGS = frozenset([
    "p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li", "blockquote",
    "strong", "em", "a", "img", "br", "hr", "figure", "figcaption", "div", "span",
])
ALLOWED_ATTRS = frozenset(["href", "src", "alt", "title", "width", "height"])

# removed together with everything inside them; any other unknown tag is unwrapped
DROP_WITH_CONTENT = frozenset([
    "script", "style", "noscript", "iframe", "object", "embed", "applet", "template",
    "svg", "math", "input", "button", "textarea", "select", "option", "video", "audio",
    "noembed", "noframes", "plaintext", "xmp", "frame", "frameset", "link", "meta", "base",
    "head", "title",
])

URL_ATTRS = frozenset(["href", "src"])
SAFE_SCHEMES = frozenset(["http", "https", "mailto", "tel"])

_CTRL = re.compile(r"[\x00-\x20\x7f]+")
_SCHEME = re.compile(r"^([a-z][a-z0-9+.\-]*):", re.I)
_DATA_IMAGE = re.compile(r"^data:image/(png|jpe?g|gif|webp|avif|bmp);", re.I)


def is_safe_url(value: str, tag: str, attr: str) -> bool:
    compact = _CTRL.sub("", value or "")
    m = _SCHEME.match(compact)
    if not m:
        return True  # relative
    scheme = m.group(1).lower()
    if scheme in SAFE_SCHEMES:
        return True
    return scheme == "data" and tag == "img" and attr == "src" and bool(_DATA_IMAGE.match(compact))


def _clean_attrs(el) -> None:
    for name in list(el.attrib):
        key = name.lower()
        if key.startswith("on") or key not in ALLOWED_ATTRS:
            del el.attrib[name]
        elif key in URL_ATTRS and not is_safe_url(el.attrib[name], el.tag, key):
            del el.attrib[name]


def sanitize(markup: str) -> str:
    root = parse_fragment(markup)
    for el in list(root.iterdescendants()):
        if not isinstance(el.tag, str):
            remove_node(el)  # comments, processing instructions
        elif el.tag.lower() in DROP_WITH_CONTENT:
            remove_node(el)
        elif el.tag.lower() not in ALLOWED_TAGS:
            _clean_attrs(el)
            el.drop_tag()
        else:
            _clean_attrs(el)
    return serialize_children(root)


def resolve_url(value: str, base_url: str) -> str:
    try:
        return urljoin(base_url, value)
    except ValueError:
        return value


def _image_source(img) -> Optional[str]:
    src = (img.get("src") or "").strip()
    lazy = (img.get("data-src") or "").strip()
    # lazy-loaded images carry a placeholder (or nothing) in src
    if lazy and (not src or src.startswith("data:")):
        return lazy
    return src or None


def absolutize(markup: str, base_url: str) -> str:
    root = parse_fragment(markup)
    for el in root.iter():
        if not isinstance(el.tag, str):
            continue
        if el.tag == "img":
            src = _image_source(el)
            if src:
                el.set("src", resolve_url(src, base_url))
        elif el.tag == "a":
            href = (el.get("href") or "").strip()
            if href:
                el.set("href", resolve_url(href, base_url))
        for attr in ("srcset", "data-srcset"):
            el.attrib.pop(attr, None)
    return serialize_children(root)


def clean_html(markup: str, base_url: str) -> str:
    return sanitize(absolutize(markup, base_url))
