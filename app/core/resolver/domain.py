# app/core/resolver/domain.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# ============================================================================
# ENUMS
# ============================================================================

class Platform(str, Enum):
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"


class ContentKind(str, Enum):
    POST = "post"
    REEL = "reel"
    STORY = "story"
    HIGHLIGHT = "highlight"
    PROFILE = "profile"


class AttemptOutcome(str, Enum):
    MATCHED = "matched"
    NO_MATCH = "noMatch"
    TRANSPORT_ERROR = "transportError"
    PARSE_ERROR = "parseError"


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    NOT_FOUND = "notFound"
    ALL_PROVIDERS_FAILED = "allProvidersFailed"


DEFAULT_AUTHOR = "Unknown"


# ============================================================================
# REQUEST / CLASSIFICATION
# ============================================================================

@dataclass(frozen=True)
class MediaRequest:
    source_url: str
    requested_kind: Optional[ContentKind] = None


@dataclass(frozen=True)
class ContentClass:
    """Platform, kind and id derived from a URL. Never carries request state."""
    platform: Platform
    kind: ContentKind
    content_id: str


# ============================================================================
# CANONICAL SCHEMA
# ============================================================================

@dataclass
class RawMedia:
    """
    Adapter-side staging record.

    Adapters fill what their provider returned and hand it to the
    normalizer; nothing downstream of the normalizer sees this type.
    """
    media_urls: list = field(default_factory=list)
    author: Optional[str] = None
    caption: Optional[str] = None
    thumbnail_url: Optional[str] = None
    kind: Optional[ContentKind] = None


@dataclass(frozen=True)
class CanonicalMedia:
    kind: ContentKind
    author: str
    caption: str
    thumbnail_url: Optional[str]
    media_urls: tuple[str, ...]

    @property
    def success(self) -> bool:
        return len(self.media_urls) > 0

    @property
    def is_carousel(self) -> bool:
        return len(self.media_urls) > 1


@dataclass(frozen=True)
class ProviderAttempt:
    provider_name: str
    outcome: AttemptOutcome
    latency_ms: float


@dataclass(frozen=True)
class ResolutionResult:
    status: ResolutionStatus
    media: Optional[CanonicalMedia] = None
    attempts: tuple[ProviderAttempt, ...] = ()

    @property
    def resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED


# ============================================================================
# PROFILES
# ============================================================================

@dataclass(frozen=True)
class ProfileResult:
    username: str
    full_name: str = ""
    avatar_url: Optional[str] = None
    is_private: bool = False
    follower_count: int = 0
    following_count: int = 0
    verified: bool = False  # True only when a real lookup produced the data
