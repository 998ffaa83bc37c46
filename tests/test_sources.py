import pytest

from feedpull.sources import new_source, resolve_source


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("example.com", ("https://example.com", "https://example.com", "example.com")),
        ("www.example.com/blog/", ("https://www.example.com/blog", "https://www.example.com", "example.com")),
        ("https://www.example.com/feed", ("https://www.example.com/feed", "https://www.example.com", "example.com")),
        ("http://news.example.org", ("http://news.example.org", "http://news.example.org", "news.example.org")),
    ],
)
def test_resolve_source(raw, expected):
    assert tuple(resolve_source(raw)) == expected


@pytest.mark.parametrize("raw", ["example.com", "www.example.com/a/b", "blog.example.net/"])
def test_missing_scheme_gets_https(raw):
    resolved = resolve_source(raw)
    assert resolved.canonical_url.startswith("https://")
    assert resolved.domain.startswith("https://")
    assert not resolved.display_name.startswith("www.")


def test_www_kept_in_domain():
    resolved = resolve_source("www.example.com")
    assert resolved.domain == "https://www.example.com"
    assert resolved.display_name == "example.com"


@pytest.mark.parametrize("raw", ["example.com/feed", "https://www.example.com/rss/", "http://a.example.org"])
def test_resolve_is_idempotent(raw):
    first = resolve_source(raw)
    assert resolve_source(first.canonical_url) == first
    assert resolve_source(resolve_source(first.canonical_url).canonical_url) == first


def test_new_source_has_no_metadata_yet():
    source = new_source("example.com")
    assert source.display_name == "example.com"
    assert source.icon_url is None
    assert source.accent_color is None
    assert source.error is None
