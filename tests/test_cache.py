from reader_api.cache import ResponseCache, normalize_cache_key
from reader_api.schemas import ReaderResponse


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _resp(url="https://x.com/a"):
    return ReaderResponse(contentHtml="<p>x</p>", textContent="x", url=url, source="x.com")


def test_utm_params_are_dropped():
    assert normalize_cache_key("https://x.com/a?utm_source=foo") == "https://x.com/a"
    assert normalize_cache_key("https://x.com/a?id=3&utm_medium=mail&utm_foo=1") == "https://x.com/a?id=3"
    assert normalize_cache_key("https://x.com/a?b=2&a=1") == "https://x.com/a?b=2&a=1"


def test_non_tracking_params_keep_keys_distinct():
    assert normalize_cache_key("https://x.com/a?id=1") != normalize_cache_key("https://x.com/a?id=2")


def test_hit_then_expiry():
    clock = Clock()
    cache = ResponseCache(ttl=420, timer=clock)
    cache.set("k", _resp())
    clock.now = 419
    assert cache.get("k") == _resp()
    clock.now = 421
    assert cache.get("k") is None
    assert len(cache) == 0


def test_overwrite_replaces_whole_entry():
    cache = ResponseCache(ttl=60, timer=Clock())
    cache.set("k", _resp("https://x.com/a"))
    cache.set("k", _resp("https://x.com/b"))
    assert cache.get("k").url == "https://x.com/b"


def test_sweep_drops_expired_entries():
    clock = Clock()
    cache = ResponseCache(ttl=100, timer=clock)
    cache.set("old", _resp())
    clock.now = 50
    cache.set("new", _resp())
    clock.now = 120
    assert cache.sweep() == 1
    assert cache.get("new") is not None


def test_kept_query_text_is_untouched():
    assert normalize_cache_key("https://x.com/a?q=a%20b&flag&utm_source=x") == "https://x.com/a?q=a%20b&flag"
    assert normalize_cache_key("https://x.com/a?q=a+b&UTM_Medium=mail#top") == "https://x.com/a?q=a+b#top"
