# app/infra/providers/avatar.py
"""
Profile photo as media.

Wraps a profile lookup so that Instagram profile URLs resolve to the
account's avatar through the regular media fallback chain.  One adapter
per profile provider keeps "one upstream call per attempt".
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
from app.core.resolver.ports import ProfileProvider


class ProfileAvatarProvider:
    platform = Platform.INSTAGRAM
    kinds = frozenset({ContentKind.PROFILE})

    def __init__(self, lookup: ProfileProvider):
        self.lookup = lookup
        self.name = f"{lookup.name}_avatar"

    async def try_resolve(
        self,
        url: str,
        content_class: ContentClass,
        timeout: float,
    ) -> Optional[CanonicalMedia]:
        profile = await self.lookup.try_lookup(content_class.content_id, timeout)
        if profile is None or not profile.avatar_url:
            return None

        raw = RawMedia(
            media_urls=[profile.avatar_url],
            author=profile.username,
            caption=profile.full_name,
            thumbnail_url=profile.avatar_url,
            kind=ContentKind.PROFILE,
        )
        return normalize(raw, content_class)
