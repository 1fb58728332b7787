# app/infra/providers/tiktok.py
"""
TikTok media providers.

Both upstreams speak the TikWM response shape:

    { "code": 0, "data": {
        "play", "hdplay", "wmplay", "cover", "title",
        "images": [...],                     # photo posts
        "author": {"nickname", "unique_id"} } }

RapidAPI "TikTok Video No Watermark":  POST https://{host}/   (form: url, hd=1)
TikWM:                                 POST https://www.tikwm.com/api/  (form: url, hd=1)
"""
from __future__ import annotations

from typing import Any, Mapping, Optional
from urllib.parse import urljoin

from app.core.resolver.domain import (
    CanonicalMedia,
    ContentClass,
    ContentKind,
    Platform,
    RawMedia,
)
from app.core.resolver.normalizer import normalize
from app.infra.logging_config import get_logger
from app.infra.providers.base import DEFAULT_USER_AGENT, BaseProvider, first_str

logger = get_logger(__name__)

TIKWM_BASE_URL = "https://www.tikwm.com"

# Returned by TikWM but not part of canonical media
TIKWM_UNMAPPED_FIELDS = (
    "music", "music_info", "duration", "size", "hd_size",
    "play_count", "digg_count", "comment_count", "share_count", "download_count",
)


def _absolute(value: Any, base_url: str | None) -> Optional[str]:
    value = first_str(value)
    if value and base_url and value.startswith("/"):
        return urljoin(base_url, value)
    return value


def tikwm_raw_media(payload: Mapping[str, Any], base_url: str | None = None) -> RawMedia:
    """Map a TikWM-shaped ``data`` object onto RawMedia."""
    author = payload.get("author")
    if not isinstance(author, dict):
        author = {}

    images = payload.get("images")
    if isinstance(images, list) and images:
        media_urls = [_absolute(img, base_url) for img in images]
        kind = ContentKind.POST
    else:
        # No-watermark first
        video = (
            _absolute(payload.get("hdplay"), base_url)
            or _absolute(payload.get("play"), base_url)
            or _absolute(payload.get("wmplay"), base_url)
        )
        media_urls = [video] if video else []
        kind = ContentKind.REEL

    dropped = sorted(k for k in TIKWM_UNMAPPED_FIELDS if payload.get(k) not in (None, ""))
    if dropped:
        logger.debug("TikWM fields not mapped: %s", ", ".join(dropped))

    return RawMedia(
        media_urls=media_urls,
        author=first_str(author.get("nickname"), author.get("unique_id")),
        caption=first_str(payload.get("title")),
        thumbnail_url=_absolute(payload.get("cover"), base_url),
        kind=kind,
    )


class TikTokRapidApiProvider(BaseProvider):
    name = "tiktok_rapidapi"
    platform = Platform.TIKTOK
    kinds = frozenset({ContentKind.REEL, ContentKind.POST})

    def __init__(self, api_key: str, host: str, user_agent: str = DEFAULT_USER_AGENT):
        super().__init__(user_agent)
        self._api_key = api_key
        self._host = host

    async def try_resolve(
        self,
        url: str,
        content_class: ContentClass,
        timeout: float,
    ) -> Optional[CanonicalMedia]:
        data = await self._fetch(
            "POST",
            f"https://{self._host}/",
            timeout=timeout,
            data={"url": url, "hd": "1"},
            headers={
                "X-RapidAPI-Key": self._api_key,
                "X-RapidAPI-Host": self._host,
            },
        )
        data = self._require_mapping(data)

        payload = data.get("data")
        if not isinstance(payload, dict):
            return None
        return normalize(tikwm_raw_media(payload), content_class)


class TikWmProvider(BaseProvider):
    name = "tikwm"
    platform = Platform.TIKTOK
    kinds = frozenset({ContentKind.REEL, ContentKind.POST})

    endpoint = f"{TIKWM_BASE_URL}/api/"

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
            data={"url": url, "hd": "1"},
        )
        data = self._require_mapping(data)

        payload = data.get("data")
        if data.get("code") != 0 or not isinstance(payload, dict):
            return None
        # TikWM sometimes returns site-relative media paths
        return normalize(tikwm_raw_media(payload, base_url=TIKWM_BASE_URL), content_class)
