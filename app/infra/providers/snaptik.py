# app/infra/providers/snaptik.py
"""
SnapTik scrape provider.

GET https://snaptik.app/abc2.php?url=<url>&lang=en -> HTML page with
"Download Video" buttons.  Every button points at the same video on a
different mirror, so only the first one is kept.
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


class SnapTikProvider(BaseProvider):
    name = "snaptik"
    platform = Platform.TIKTOK
    kinds = frozenset({ContentKind.REEL})

    endpoint = "https://snaptik.app/abc2.php"

    async def try_resolve(
        self,
        url: str,
        content_class: ContentClass,
        timeout: float,
    ) -> Optional[CanonicalMedia]:
        html = await self._fetch(
            "GET",
            self.endpoint,
            timeout=timeout,
            expect="text",
            params={"url": url, "lang": "en"},
        )
        if not html.strip():
            return None

        videos, _ = extract_download_links(html)
        if not videos:
            return None

        raw = RawMedia(
            media_urls=videos[:1],
            thumbnail_url=extract_first_image(html),
        )
        return normalize(raw, content_class)
