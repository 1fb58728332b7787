# app/infra/providers/registry.py
"""
Provider registry: settings -> ordered provider lists.

Adding an upstream means writing one provider class and adding one factory
entry here; the priority order comes from configuration
(``INSTAGRAM_PROVIDERS``, ``TIKTOK_PROVIDERS``, ``PROFILE_PROVIDERS``).
"""
from __future__ import annotations

from typing import Callable, Optional

from app.config import Settings
from app.core.resolver.ports import MediaProvider, ProfileProvider
from app.infra.logging_config import get_logger
from app.infra.providers.avatar import ProfileAvatarProvider
from app.infra.providers.instagram import InstaDownloaderProvider, InstagramRapidApiProvider
from app.infra.providers.profiles import InstagramApiProfileProvider, InstagramWebProfileProvider
from app.infra.providers.snapinsta import SnapInstaProvider
from app.infra.providers.snaptik import SnapTikProvider
from app.infra.providers.tiktok import TikTokRapidApiProvider, TikWmProvider

logger = get_logger(__name__)


def _rapidapi_only(factory: Callable[[Settings], object]) -> Callable[[Settings], Optional[object]]:
    def build(s: Settings):
        if not s.rapidapi_enabled:
            return None
        return factory(s)
    return build


MEDIA_FACTORIES: dict[str, Callable[[Settings], Optional[MediaProvider]]] = {
    "instagram_rapidapi": _rapidapi_only(lambda s: InstagramRapidApiProvider(
        api_key=s.rapidapi_key, host=s.rapidapi_instagram_host, user_agent=s.user_agent,
    )),
    "instadownloader": lambda s: InstaDownloaderProvider(user_agent=s.user_agent),
    "snapinsta": lambda s: SnapInstaProvider(user_agent=s.user_agent),
    "tiktok_rapidapi": _rapidapi_only(lambda s: TikTokRapidApiProvider(
        api_key=s.rapidapi_key, host=s.rapidapi_tiktok_host, user_agent=s.user_agent,
    )),
    "tikwm": lambda s: TikWmProvider(user_agent=s.user_agent),
    "snaptik": lambda s: SnapTikProvider(user_agent=s.user_agent),
    "instagram_web_avatar": lambda s: ProfileAvatarProvider(
        InstagramWebProfileProvider(user_agent=s.user_agent),
    ),
    "instagram_api_avatar": lambda s: ProfileAvatarProvider(
        InstagramApiProfileProvider(app_id=s.instagram_app_id, user_agent=s.user_agent),
    ),
}

PROFILE_FACTORIES: dict[str, Callable[[Settings], Optional[ProfileProvider]]] = {
    "instagram_web": lambda s: InstagramWebProfileProvider(user_agent=s.user_agent),
    "instagram_api": lambda s: InstagramApiProfileProvider(
        app_id=s.instagram_app_id, user_agent=s.user_agent,
    ),
}


def build_media_providers(settings: Settings) -> list[MediaProvider]:
    """All configured media providers, grouped by platform, each group in priority order."""
    providers: list[MediaProvider] = []
    for platform in ("instagram", "tiktok"):
        for name in settings.media_provider_order(platform):
            factory = MEDIA_FACTORIES.get(name)
            if factory is None:
                logger.warning("Unknown media provider '%s' for %s - skipped", name, platform)
                continue
            provider = factory(settings)
            if provider is None:
                logger.info("Media provider '%s' not configured - skipped", name)
                continue
            if provider.platform.value != platform:
                logger.warning(
                    "Media provider '%s' serves %s, not %s - skipped",
                    name, provider.platform.value, platform,
                )
                continue
            providers.append(provider)

    logger.info("Media providers registered: %s", [p.name for p in providers])
    return providers


def build_profile_providers(settings: Settings) -> list[ProfileProvider]:
    providers: list[ProfileProvider] = []
    for name in settings.profile_provider_order():
        factory = PROFILE_FACTORIES.get(name)
        if factory is None:
            logger.warning("Unknown profile provider '%s' - skipped", name)
            continue
        providers.append(factory(settings))

    logger.info("Profile providers registered: %s", [p.name for p in providers])
    return providers
