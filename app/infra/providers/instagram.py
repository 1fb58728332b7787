# app/infra/providers/instagram.py
"""
Instagram media providers backed by JSON APIs.

RapidAPI downloader:
    GET https://{host}/get-info-rapidapi?url=...
    { "download_url": "...", "media": [{"url": ...}], "username", "caption", "thumbnail" }

InstaDownloader:
    POST https://instadownloader.co/api/instagram   {"url": ...}
    { "success": true, "data": { "video_url" | "image_url" | "media": [...], ... } }
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
from app.infra.providers.base import DEFAULT_USER_AGENT, BaseProvider, first_str


class InstagramRapidApiProvider(BaseProvider):
    """RapidAPI "Instagram Downloader" (posts and reels)."""

    name = "instagram_rapidapi"
    platform = Platform.INSTAGRAM
    kinds = frozenset({ContentKind.POST, ContentKind.REEL})

    def __init__(self, api_key: str, host: str, user_agent: str = DEFAULT_USER_AGENT):
        super().__init__(user_agent)
        self._api_key = api_key
        self._host = host

    def _auth_headers(self) -> dict[str, str]:
        return {
            "X-RapidAPI-Key": self._api_key,
            "X-RapidAPI-Host": self._host,
        }

    async def try_resolve(
        self,
        url: str,
        content_class: ContentClass,
        timeout: float,
    ) -> Optional[CanonicalMedia]:
        data = await self._fetch(
            "GET",
            f"https://{self._host}/get-info-rapidapi",
            timeout=timeout,
            params={"url": url},
            headers=self._auth_headers(),
        )
        data = self._require_mapping(data)

        # Primary URL is mandatory; carousel items are extra
        primary = first_str(data.get("download_url"))
        if primary is None:
            return None

        media_urls = [primary]
        items = data.get("media")
        if isinstance(items, list):
            for item in items:
                if isinstance(item, dict):
                    media_urls.append(item.get("url"))

        raw = RawMedia(
            media_urls=media_urls,
            author=first_str(data.get("username"), data.get("author")),
            caption=first_str(data.get("caption"), data.get("title")),
            thumbnail_url=first_str(data.get("thumbnail"), data.get("cover_url")),
        )
        return normalize(raw, content_class)


class InstaDownloaderProvider(BaseProvider):
    """instadownloader.co JSON API."""

    name = "instadownloader"
    platform = Platform.INSTAGRAM
    kinds = frozenset({ContentKind.POST, ContentKind.REEL, ContentKind.STORY, ContentKind.HIGHLIGHT})

    endpoint = "https://instadownloader.co/api/instagram"

    async def try_resolve(
        self,
        url: str,
        content_class: ContentClass,
        timeout: float,
    ) -> Optional[CanonicalMedia]:
        data = await self._fetch("POST", self.endpoint, timeout=timeout, json={"url": url})
        data = self._require_mapping(data)

        payload = data.get("data")
        if not data.get("success") or not isinstance(payload, dict):
            return None

        # Single video wins over single image; carousel list is the last resort
        media_urls: list = []
        single = first_str(payload.get("video_url"), payload.get("image_url"))
        if single:
            media_urls.append(single)
        elif isinstance(payload.get("media"), list):
            for item in payload["media"]:
                media_urls.append(item.get("url") if isinstance(item, dict) else item)

        raw = RawMedia(
            media_urls=media_urls,
            author=first_str(payload.get("username")),
            caption=first_str(payload.get("caption")),
            thumbnail_url=first_str(payload.get("thumbnail")),
        )
        return normalize(raw, content_class)
