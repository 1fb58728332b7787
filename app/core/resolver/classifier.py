# app/core/resolver/classifier.py
"""
URL classification: input URL -> (platform, kind, content id).

Pure and deterministic.  Patterns are tried in order and the first match
wins, so specific paths (highlights before stories, reels before the
catch-all profile path) must stay above the generic ones.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from app.core.resolver.domain import ContentClass, ContentKind, Platform
from app.core.resolver.errors import InvalidUrl

MAX_URL_LENGTH = 2048

_INSTAGRAM_HOSTS = frozenset({"instagram.com", "www.instagram.com", "m.instagram.com"})
_TIKTOK_HOSTS = frozenset({"tiktok.com", "www.tiktok.com", "m.tiktok.com"})
_TIKTOK_SHORT_HOSTS = frozenset({"vm.tiktok.com", "vt.tiktok.com"})

# First path segments that are Instagram pages, not usernames
_INSTAGRAM_RESERVED = frozenset({
    "about", "accounts", "api", "challenge", "developer", "direct", "emails",
    "explore", "legal", "oauth", "p", "privacy", "reel", "reels", "session",
    "stories", "terms", "tv", "web",
})

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


@dataclass(frozen=True)
class _Pattern:
    platform: Platform
    hosts: frozenset[str]
    path: re.Pattern
    kind: ContentKind


_PATTERNS: tuple[_Pattern, ...] = (
    # Instagram
    _Pattern(Platform.INSTAGRAM, _INSTAGRAM_HOSTS,
             re.compile(r"^/stories/highlights/(?P<id>[\w.-]+)(?:/.*)?$", re.ASCII), ContentKind.HIGHLIGHT),
    _Pattern(Platform.INSTAGRAM, _INSTAGRAM_HOSTS,
             re.compile(r"^/stories/[\w.]+/(?P<id>\d+)(?:/.*)?$", re.ASCII), ContentKind.STORY),
    _Pattern(Platform.INSTAGRAM, _INSTAGRAM_HOSTS,
             re.compile(r"^/stories/(?!highlights$)(?P<id>[\w.]+)$", re.ASCII), ContentKind.STORY),
    _Pattern(Platform.INSTAGRAM, _INSTAGRAM_HOSTS,
             re.compile(r"^/(?:[\w.]+/)?(?:reel|reels|tv)/(?P<id>[\w-]+)(?:/.*)?$", re.ASCII), ContentKind.REEL),
    _Pattern(Platform.INSTAGRAM, _INSTAGRAM_HOSTS,
             re.compile(r"^/(?:[\w.]+/)?p/(?P<id>[\w-]+)(?:/.*)?$", re.ASCII), ContentKind.POST),
    # Catch-all: any remaining path under a username ("/natgeo/tagged") is the profile
    _Pattern(Platform.INSTAGRAM, _INSTAGRAM_HOSTS,
             re.compile(r"^/(?P<id>[A-Za-z0-9._]{1,30})(?:/.*)?$"), ContentKind.PROFILE),
    # TikTok
    _Pattern(Platform.TIKTOK, _TIKTOK_HOSTS,
             re.compile(r"^/@[\w.-]+/video/(?P<id>\d+)(?:/.*)?$", re.ASCII), ContentKind.REEL),
    _Pattern(Platform.TIKTOK, _TIKTOK_HOSTS,
             re.compile(r"^/@[\w.-]+/photo/(?P<id>\d+)(?:/.*)?$", re.ASCII), ContentKind.POST),
    _Pattern(Platform.TIKTOK, _TIKTOK_SHORT_HOSTS,
             re.compile(r"^/(?P<id>[A-Za-z0-9]+)$"), ContentKind.REEL),
    _Pattern(Platform.TIKTOK, _TIKTOK_HOSTS,
             re.compile(r"^/@(?P<id>[\w.-]+)$", re.ASCII), ContentKind.PROFILE),
)


def _split_url(url: str, max_length: int) -> tuple[str, str]:
    """Return (lowercase host, normalized path without trailing slash)."""
    if not isinstance(url, str):
        raise InvalidUrl("URL must be a string")

    text = url.strip()
    if not text:
        raise InvalidUrl("URL is required")
    if len(text) > max_length:
        raise InvalidUrl(f"URL is longer than {max_length} characters")

    if not _SCHEME_RE.match(text):
        text = "https://" + text

    try:
        parts = urlsplit(text)
    except ValueError as exc:
        raise InvalidUrl(f"Malformed URL: {exc}") from exc

    if parts.scheme.lower() not in ("http", "https"):
        raise InvalidUrl(f"Unsupported scheme: {parts.scheme}")

    host = (parts.hostname or "").lower()
    segments = [s for s in parts.path.split("/") if s]
    return host, "/" + "/".join(segments)


def classify(url: str, max_length: int = MAX_URL_LENGTH) -> ContentClass:
    """
    Classify a social media URL.

    Raises:
        InvalidUrl: the URL is empty, malformed, or matches no known pattern.
    """
    host, path = _split_url(url, max_length)

    for pattern in _PATTERNS:
        if host not in pattern.hosts:
            continue
        match = pattern.path.match(path)
        if match is None:
            continue

        content_id = match.group("id")
        if (
            pattern.platform == Platform.INSTAGRAM
            and pattern.kind == ContentKind.PROFILE
            and content_id.lower() in _INSTAGRAM_RESERVED
        ):
            continue

        return ContentClass(
            platform=pattern.platform,
            kind=pattern.kind,
            content_id=content_id,
        )

    raise InvalidUrl("URL does not point to supported Instagram or TikTok content")
