# tests/test_normalizer.py
"""Tests for the canonical normalizer."""
from __future__ import annotations

from app.core.resolver.domain import ContentKind, RawMedia
from app.core.resolver.normalizer import dedupe_urls, normalize


class TestDedupeUrls:

    def test_order_preserving(self):
        assert dedupe_urls(["x", "x", "y"]) == ["x", "y"]

    def test_keeps_first_occurrence(self):
        assert dedupe_urls(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_drops_blanks_and_non_strings(self):
        assert dedupe_urls(["", None, "  ", 5, "u"]) == ["u"]

    def test_none(self):
        assert dedupe_urls(None) == []


class TestNormalize:

    def test_dedup_into_canonical(self, reel_class):
        media = normalize(RawMedia(media_urls=["x", "x", "y"]), reel_class)
        assert media.media_urls == ("x", "y")
        assert media.is_carousel is True
        assert media.success is True

    def test_single_url_not_carousel(self, reel_class):
        media = normalize(RawMedia(media_urls=["x", "x"]), reel_class)
        assert media.media_urls == ("x",)
        assert media.is_carousel is False

    def test_no_urls_is_no_match(self, reel_class):
        assert normalize(RawMedia(media_urls=[]), reel_class) is None
        assert normalize(RawMedia(media_urls=["", None]), reel_class) is None

    def test_defaults(self, reel_class):
        media = normalize(RawMedia(media_urls=["https://cdn/v.mp4"]), reel_class)
        assert media.kind == ContentKind.REEL
        assert media.author == "Unknown"
        assert media.caption == ""
        assert media.thumbnail_url == "https://cdn/v.mp4"

    def test_provider_values_kept(self, reel_class):
        raw = RawMedia(
            media_urls=["u1"],
            author=" natgeo ",
            caption="A caption",
            thumbnail_url="https://cdn/t.jpg",
            kind=ContentKind.POST,
        )
        media = normalize(raw, reel_class)
        assert media.author == "natgeo"
        assert media.caption == "A caption"
        assert media.thumbnail_url == "https://cdn/t.jpg"
        assert media.kind == ContentKind.POST

    def test_blank_author_defaults(self, reel_class):
        media = normalize(RawMedia(media_urls=["u"], author="   "), reel_class)
        assert media.author == "Unknown"
