# app/infra/providers/profiles.py
"""
Instagram profile metadata providers.

Web JSON view:
    GET https://www.instagram.com/{username}/?__a=1&__d=dis
    -> { "graphql": { "user": {...} } }  or  { "user": {...} }

Web profile info API:
    GET https://i.instagram.com/api/v1/users/web_profile_info/?username=...
    (X-IG-App-ID header) -> { "data": { "user": {...} } }

Both user objects share the field names mapped in ``user_to_profile``.
Instagram answers logged-out traffic with an HTML login page and status
200, which surfaces here as ParseError.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from app.core.resolver.domain import ProfileResult
from app.infra.providers.base import DEFAULT_USER_AGENT, BaseProvider, as_int, first_str


def _edge_count(user: Mapping[str, Any], key: str) -> int:
    edge = user.get(key)
    if isinstance(edge, dict):
        return as_int(edge.get("count"))
    return 0


def user_to_profile(user: Mapping[str, Any], username: str) -> Optional[ProfileResult]:
    """Map an Instagram user object; None when it has no avatar to offer."""
    avatar = first_str(user.get("profile_pic_url_hd"), user.get("profile_pic_url"))
    if avatar is None:
        return None

    return ProfileResult(
        username=first_str(user.get("username")) or username,
        full_name=first_str(user.get("full_name")) or "",
        avatar_url=avatar,
        is_private=bool(user.get("is_private", False)),
        follower_count=_edge_count(user, "edge_followed_by"),
        following_count=_edge_count(user, "edge_follow"),
        verified=True,
    )


class InstagramWebProfileProvider(BaseProvider):
    name = "instagram_web"

    async def try_lookup(self, username: str, timeout: float) -> Optional[ProfileResult]:
        data = await self._fetch(
            "GET",
            f"https://www.instagram.com/{username}/",
            timeout=timeout,
            params={"__a": "1", "__d": "dis"},
        )
        data = self._require_mapping(data)

        graphql = data.get("graphql")
        user = graphql.get("user") if isinstance(graphql, dict) else None
        if not isinstance(user, dict):
            user = data.get("user")
        if not isinstance(user, dict):
            return None
        return user_to_profile(user, username)


class InstagramApiProfileProvider(BaseProvider):
    name = "instagram_api"

    endpoint = "https://i.instagram.com/api/v1/users/web_profile_info/"

    def __init__(self, app_id: str, user_agent: str = DEFAULT_USER_AGENT):
        super().__init__(user_agent)
        self._app_id = app_id

    async def try_lookup(self, username: str, timeout: float) -> Optional[ProfileResult]:
        data = await self._fetch(
            "GET",
            self.endpoint,
            timeout=timeout,
            params={"username": username},
            headers={"X-IG-App-ID": self._app_id},
        )
        data = self._require_mapping(data)

        payload = data.get("data")
        user = payload.get("user") if isinstance(payload, dict) else None
        if not isinstance(user, dict):
            return None
        return user_to_profile(user, username)
