# app/core/resolver/normalizer.py
from __future__ import annotations

from typing import Optional

from app.core.resolver.domain import (
    DEFAULT_AUTHOR,
    CanonicalMedia,
    ContentClass,
    RawMedia,
)


def _clean_text(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def dedupe_urls(urls) -> list[str]:
    """Drop blanks and non-strings, keep first occurrence order."""
    seen: set[str] = set()
    result: list[str] = []
    for url in urls or ():
        url = _clean_text(url)
        if url is None or url in seen:
            continue
        seen.add(url)
        result.append(url)
    return result


def normalize(raw: RawMedia, content_class: ContentClass) -> Optional[CanonicalMedia]:
    """
    Turn an adapter's RawMedia into CanonicalMedia.

    Returns None when no usable media URL remains, which callers treat as
    "no match".  ``is_carousel`` and ``success`` are derived from the URL
    list on CanonicalMedia itself.
    """
    media_urls = dedupe_urls(raw.media_urls)
    if not media_urls:
        return None

    return CanonicalMedia(
        kind=raw.kind or content_class.kind,
        author=_clean_text(raw.author) or DEFAULT_AUTHOR,
        caption=_clean_text(raw.caption) or "",
        thumbnail_url=_clean_text(raw.thumbnail_url) or media_urls[0],
        media_urls=tuple(media_urls),
    )
