# app/infra/providers/snapinsta.py
"""
SnapInsta scrape provider.

POST https://snapinsta.app/api/ajaxSearch  (form: q=<url>, t=media, lang=en)
-> { "status": "ok", "data": "<html fragment with Download buttons>" }
"""
from __future__ import annotations

from typing import Optional

from app.core.resolver.domain import (
    CanonicalMedia,
    ContentClass,
    ContentKind,
    Platform,
    RawMedia,
)
from app.core.resolver.normalizer import normalize
from app.infra.providers.base import BaseProvider
from app.infra.providers.html import extract_download_links, extract_first_image


class SnapInstaProvider(BaseProvider):
    name = "snapinsta"
    platform = Platform.INSTAGRAM
    kinds = frozenset({ContentKind.POST, ContentKind.REEL, ContentKind.STORY, ContentKind.HIGHLIGHT})

    endpoint = "https://snapinsta.app/api/ajaxSearch"

    async def try_resolve(
        self,
        url: str,
        content_class: ContentClass,
        timeout: float,
    ) -> Optional[CanonicalMedia]:
        data = await self._fetch(
            "POST",
            self.endpoint,
            timeout=timeout,
            data={"q": url, "t": "media", "lang": "en"},
        )
        data = self._require_mapping(data)

        html = data.get("data")
        if data.get("status") != "ok" or not isinstance(html, str) or not html.strip():
            return None

        videos, images = extract_download_links(html)
        raw = RawMedia(
            media_urls=videos or images,
            thumbnail_url=extract_first_image(html),
        )
        return normalize(raw, content_class)
