"""Tests for URL slugs, normalization and crawl scope."""

from docs_crawler.urls import to_slug, normalize_url, is_in_scope

BASE = "https://docs.example.com/docs/"


class TestToSlug:
    def test_strips_scheme_and_replaces_runs(self):
        assert to_slug("https://example.com/docs/") == "example_com_docs_"
        assert to_slug("http://Example.com/Docs/Intro?x=1") == "example_com_docs_intro_x_1"

    def test_is_deterministic(self):
        assert to_slug(BASE) == to_slug(BASE)

    def test_only_safe_characters(self):
        slug = to_slug("https://docs.example.com/a b/ü/%20")
        assert all(c.isalnum() or c == "_" for c in slug)
        assert slug == slug.lower()

    def test_trailing_slash_changes_the_key(self):
        assert to_slug("https://example.com/docs") != to_slug("https://example.com/docs/")


class TestNormalizeUrl:
    def test_strips_fragment(self):
        assert normalize_url("https://docs.example.com/docs/a#install", BASE) == "https://docs.example.com/docs/a"

    def test_strips_one_trailing_slash(self):
        assert normalize_url("https://docs.example.com/docs/a/", BASE) == "https://docs.example.com/docs/a"

    def test_base_url_kept_verbatim(self):
        assert normalize_url(BASE, BASE) == BASE

    def test_is_idempotent(self):
        once = normalize_url("https://docs.example.com/docs/a/#top", BASE)
        assert normalize_url(once, BASE) == once


class TestIsInScope:
    def test_under_base_path(self):
        assert is_in_scope("https://docs.example.com/docs/getting-started", BASE)

    def test_base_itself_without_slash(self):
        assert is_in_scope("https://docs.example.com/docs", BASE)

    def test_other_host_rejected(self):
        assert not is_in_scope("https://other.example.com/docs/intro", BASE)

    def test_docs_like_segment_outside_base_path(self):
        assert is_in_scope("https://docs.example.com/v2/api/reference", BASE)
        assert is_in_scope("https://docs.example.com/v2/guide/intro", BASE)

    def test_unrelated_path_rejected(self):
        assert not is_in_scope("https://docs.example.com/blog/post", BASE)

    def test_prefix_sibling_rejected(self):
        assert not is_in_scope("https://docs.example.com/docsearch", BASE)

    def test_non_http_scheme_rejected(self):
        assert not is_in_scope("ftp://docs.example.com/docs/file", BASE)
