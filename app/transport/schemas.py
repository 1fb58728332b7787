# app/transport/schemas.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.core.resolver.domain import (
    AttemptOutcome,
    CanonicalMedia,
    ContentKind,
    ProfileResult,
    ProviderAttempt,
    ResolutionResult,
    ResolutionStatus,
)


class CamelModel(BaseModel):
    """JSON surface uses camelCase keys; Python side stays snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# REQUESTS
# ============================================================================

class MediaResolveIn(CamelModel):
    url: str  # length is enforced by the classifier (InvalidUrl)
    kind_hint: ContentKind | None = None


class ProfileResolveIn(CamelModel):
    username: str


# ============================================================================
# RESPONSES
# ============================================================================

class MediaOut(CamelModel):
    success: bool
    kind: ContentKind
    author: str
    caption: str
    thumbnail_url: str | None
    media_urls: list[str]
    is_carousel: bool

    @classmethod
    def from_domain(cls, media: CanonicalMedia) -> "MediaOut":
        return cls(
            success=media.success,
            kind=media.kind,
            author=media.author,
            caption=media.caption,
            thumbnail_url=media.thumbnail_url,
            media_urls=list(media.media_urls),
            is_carousel=media.is_carousel,
        )


class AttemptOut(CamelModel):
    provider_name: str
    outcome: AttemptOutcome
    latency_ms: float

    @classmethod
    def from_domain(cls, attempt: ProviderAttempt) -> "AttemptOut":
        return cls(
            provider_name=attempt.provider_name,
            outcome=attempt.outcome,
            latency_ms=attempt.latency_ms,
        )


class ResolutionOut(CamelModel):
    status: ResolutionStatus
    media: MediaOut | None = None
    attempts: list[AttemptOut] = []

    @classmethod
    def from_domain(cls, result: ResolutionResult) -> "ResolutionOut":
        return cls(
            status=result.status,
            media=MediaOut.from_domain(result.media) if result.media else None,
            attempts=[AttemptOut.from_domain(a) for a in result.attempts],
        )


class ProfileOut(CamelModel):
    username: str
    full_name: str
    avatar_url: str | None
    is_private: bool
    follower_count: int
    following_count: int
    verified: bool

    @classmethod
    def from_domain(cls, profile: ProfileResult) -> "ProfileOut":
        return cls(
            username=profile.username,
            full_name=profile.full_name,
            avatar_url=profile.avatar_url,
            is_private=profile.is_private,
            follower_count=profile.follower_count,
            following_count=profile.following_count,
            verified=profile.verified,
        )
