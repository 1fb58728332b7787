# app/infra/providers/__init__.py
"""
Upstream extraction providers.

Strategy pattern: each upstream service has one provider class that turns
its response shape into CanonicalMedia (or ProfileResult).  The fallback
chain in app.core.resolver decides the order they are tried in.
"""
from app.infra.providers.base import BaseProvider
from app.infra.providers.avatar import ProfileAvatarProvider
from app.infra.providers.instagram import InstaDownloaderProvider, InstagramRapidApiProvider
from app.infra.providers.snapinsta import SnapInstaProvider
from app.infra.providers.tiktok import TikTokRapidApiProvider, TikWmProvider
from app.infra.providers.snaptik import SnapTikProvider
from app.infra.providers.profiles import InstagramApiProfileProvider, InstagramWebProfileProvider
from app.infra.providers.registry import build_media_providers, build_profile_providers

__all__ = [
    "BaseProvider",
    "ProfileAvatarProvider",
    "InstagramRapidApiProvider",
    "InstaDownloaderProvider",
    "SnapInstaProvider",
    "TikTokRapidApiProvider",
    "TikWmProvider",
    "SnapTikProvider",
    "InstagramWebProfileProvider",
    "InstagramApiProfileProvider",
    "build_media_providers",
    "build_profile_providers",
]
