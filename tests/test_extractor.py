import pytest

from pages import ARTICLE_HTML, ARTICLE_URL, SHORT_HTML
from reader_api.dom import parse_document, parse_fragment, plain_text
from reader_api.extractor import (
    ExtractedArticle, HeuristicStrategy, ReadabilityStrategy, TrafilaturaStrategy,
    document_title, extract, get_strategy, is_strong, strip_junk,
)


def test_heuristic_finds_article_body():
    art = HeuristicStrategy().extract(ARTICLE_HTML, ARTICLE_URL)
    assert art is not None
    assert art.title == "Rain delays the season opener at Silverstone"
    assert "Heavy rain swept across the circuit" in art.text_content
    assert "intermediate tyres" in art.text_content
    assert "Home" not in art.text_content
    assert "Copyright" not in art.text_content
    assert "injected" not in art.content_html
    assert "window.tracking" not in art.content_html
    assert art.strength >= 300
    assert is_strong(art)


def test_heuristic_prefers_dense_text_over_link_lists():
    links = "".join(f'<li><a href="/s/{i}">Another story headline number {i}, read it</a></li>' for i in range(20))
    body = " ".join(["The committee met again on Tuesday, and members argued about the budget."] * 8)
    html = f"""<html><body>
      <div class="more"><ul>{links}</ul></div>
      <div class="story"><p>{body}</p><p>{body}</p></div>
    </body></html>"""
    art = HeuristicStrategy().extract(html, "https://x.example/a")
    assert "committee met again" in art.text_content
    assert "Another story headline" not in art.text_content


def test_heuristic_merges_related_siblings():
    para = "Officials said the bridge would reopen next month, after repairs, inspections and tests."
    html = f"""<html><body><div>
      <div class="part"><p>{para}</p><p>{para}</p><p>{para}</p></div>
      <div class="part"><p>{para}</p><p>{para}</p></div>
    </div></body></html>"""
    art = HeuristicStrategy().extract(html, "https://x.example/a")
    assert art.text_content.count("Officials said") == 5


def test_short_page_is_weak():
    art = HeuristicStrategy().extract(SHORT_HTML, "https://live.example/blog")
    assert art is not None
    assert art.strength < 300
    assert not is_strong(art)


def test_empty_page_yields_nothing():
    assert HeuristicStrategy().extract("", "https://x.example/") is None
    assert HeuristicStrategy().extract("<html><body><nav>menu</nav></body></html>", "https://x.example/") is None


def test_quality_gate_threshold():
    art = ExtractedArticle(title="t", content_html="<p>x</p>", text_content="  " + "a" * 300 + "  ")
    assert art.strength == 300
    assert is_strong(art, 300)
    assert not is_strong(art, 301)
    assert not is_strong(None)
    assert not is_strong(ExtractedArticle(title="t", content_html="", text_content="a" * 500))


def test_strip_junk_removes_non_content():
    doc = parse_document("<html><head><style>x</style></head><body><p>a<script>b</script>c</p>"
                         "<noscript>n</noscript><iframe src='x'></iframe><!-- c --></body></html>")
    strip_junk(doc)
    for tag in ("script", "style", "noscript", "iframe"):
        assert doc.find(f".//{tag}") is None
    assert doc.find(".//p").text_content() == "ac"


@pytest.mark.parametrize("raw, expected", [
    ("Rain delays the season opener | Example News", "Rain delays the season opener"),
    ("Home | Example News", "Home | Example News"),
    ("A plain title", "A plain title"),
])
def test_document_title(raw, expected):
    doc = parse_document(f"<html><head><title>{raw}</title></head><body></body></html>")
    assert document_title(doc) == expected


def test_document_title_falls_back_to_h1():
    doc = parse_document("<html><body><h1>Only a heading</h1></body></html>")
    assert document_title(doc) == "Only a heading"


def test_get_strategy():
    assert isinstance(get_strategy("heuristic"), HeuristicStrategy)
    assert isinstance(get_strategy("Readability"), ReadabilityStrategy)
    assert isinstance(get_strategy("trafilatura"), TrafilaturaStrategy)
    with pytest.raises(ValueError):
        get_strategy("nope")


def test_extract_uses_given_strategy():
    class Fixed:
        name = "fixed"

        def extract(self, html, base_url):
            return ExtractedArticle(title=base_url, content_html="<p>x</p>", text_content="x")

    assert extract("<p>ignored</p>", "https://x.example/", strategy=Fixed()).title == "https://x.example/"


def test_readability_strategy():
    art = ReadabilityStrategy().extract(ARTICLE_HTML, ARTICLE_URL)
    assert art is not None
    assert "Heavy rain swept across the circuit" in art.text_content
    assert "window.tracking" not in art.content_html


def test_trafilatura_strategy():
    art = TrafilaturaStrategy().extract(ARTICLE_HTML, ARTICLE_URL)
    assert art is not None
    assert "Heavy rain swept across the circuit" in art.text_content
    assert "<html" not in art.content_html


def test_plain_text_ignores_source_line_breaks():
    frag = parse_fragment("<p>cars on intermediate\n   tyres today</p><p>second <b>bold</b>\nline<br>after break</p>")
    assert plain_text(frag) == "cars on intermediate tyres today\nsecond bold line\nafter break"
