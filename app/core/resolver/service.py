# app/core/resolver/service.py
"""
Resolution service: the boundary between transport and the fallback chain.

Validates input, classifies URLs before any network call, runs the
orchestrator under an aggregate time budget and converts unexpected
failures into InternalError.  Expected failures ("no provider could
resolve this") come back as data, never as exceptions.
"""
from __future__ import annotations

import asyncio
import dataclasses
import re
from typing import Optional, Sequence

from app.core.resolver.classifier import MAX_URL_LENGTH, classify
from app.core.resolver.domain import (
    ContentKind,
    MediaRequest,
    ProfileResult,
    ProviderAttempt,
    ResolutionResult,
    ResolutionStatus,
)
from app.core.resolver.errors import GatewayError, InternalError, InvalidUsername
from app.core.resolver.orchestrator import FallbackChain, FallbackOrchestrator
from app.core.resolver.ports import ProfileProvider
from app.infra.logging_config import LogContext, get_logger
from app.infra.metrics import ResolverMetrics

logger = get_logger(__name__)

_USERNAME_RE = re.compile(r"^[A-Za-z0-9._]{1,30}$")

PLACEHOLDER_AVATAR_URL = "https://i.instagram.com/api/v1/users/web_profile_info/?username={username}"


def clean_username(username: str) -> str:
    """Strip whitespace and a leading '@'; reject anything Instagram would not accept."""
    if not isinstance(username, str):
        raise InvalidUsername("Username must be a string")
    cleaned = username.strip().lstrip("@")
    if not cleaned:
        raise InvalidUsername("Username is required")
    if not _USERNAME_RE.match(cleaned):
        raise InvalidUsername("Username may contain only letters, digits, '.' and '_' (max 30)")
    return cleaned


def placeholder_profile(username: str) -> ProfileResult:
    """Unverified stand-in returned when every real profile lookup failed."""
    return ProfileResult(
        username=username,
        full_name="",
        avatar_url=PLACEHOLDER_AVATAR_URL.format(username=username),
        is_private=False,
        follower_count=0,
        following_count=0,
        verified=False,
    )


class ResolutionService:
    """
    Application service for media and profile resolution.

    All collaborators are injected; the service holds no per-request state.
    """

    def __init__(
        self,
        *,
        orchestrator: FallbackOrchestrator,
        profile_providers: Sequence[ProfileProvider] = (),
        profile_chain: FallbackChain | None = None,
        metrics: ResolverMetrics | None = None,
        max_url_length: int = MAX_URL_LENGTH,
    ) -> None:
        self.orchestrator = orchestrator
        self.profile_providers = list(profile_providers)
        self.profile_chain = profile_chain or orchestrator.chain
        self.metrics = metrics or orchestrator.chain.metrics
        self.max_url_length = max_url_length

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    async def resolve_media(
        self,
        source_url: str,
        kind_hint: Optional[ContentKind] = None,
        request_id: str | None = None,
    ) -> ResolutionResult:
        """
        Classify ``source_url`` and resolve it through the provider chain.

        Raises:
            InvalidUrl: before any provider is contacted.
            InternalError: the chain produced an inconsistent result.
        """
        request = MediaRequest(
            source_url=source_url.strip() if isinstance(source_url, str) else source_url,
            requested_kind=kind_hint,
        )
        content_class = classify(request.source_url, self.max_url_length)

        log = LogContext(
            logger,
            request_id=request_id,
            platform=content_class.platform.value,
            content_id=content_class.content_id,
        )
        log.info(f"Resolving {content_class.platform.value} {content_class.kind.value}")

        attempts: list[ProviderAttempt] = []
        budget = self.orchestrator.budget_for(content_class)

        try:
            result = await asyncio.wait_for(
                self.orchestrator.resolve(request.source_url, content_class, attempts, log),
                budget,
            )
        except asyncio.TimeoutError:
            log.warning(f"Aggregate budget of {budget:.1f}s exhausted after {len(attempts)} attempt(s)")
            result = ResolutionResult(
                status=ResolutionStatus.ALL_PROVIDERS_FAILED,
                attempts=tuple(attempts),
            )
        except GatewayError:
            raise
        except Exception as exc:
            log.error(f"Orchestrator failed: {exc.__class__.__name__}: {exc}", exc_info=True)
            raise InternalError("Media resolution failed unexpectedly") from exc

        self._check_result(result)

        if result.media is not None and request.requested_kind is not None:
            result = dataclasses.replace(
                result,
                media=dataclasses.replace(result.media, kind=request.requested_kind),
            )

        self.metrics.resolution(content_class.platform.value, result.status.value)
        log.info(f"Resolution finished: status={result.status.value} attempts={len(result.attempts)}")
        return result

    @staticmethod
    def _check_result(result: ResolutionResult) -> None:
        if result.status == ResolutionStatus.RESOLVED:
            if result.media is None or not result.media.success:
                raise InternalError("Resolved result carries no media")
        elif result.media is not None:
            raise InternalError(f"{result.status.value} result carries media")

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def resolve_profile(self, username: str, request_id: str | None = None) -> ProfileResult:
        """
        Look up profile metadata, falling back to an unverified placeholder.

        Raises:
            InvalidUsername: username is empty or malformed.
        """
        cleaned = clean_username(username)
        log = LogContext(logger, request_id=request_id, platform="instagram")
        log.info(f"Resolving profile {cleaned}")

        attempts: list[ProviderAttempt] = []
        budget = self.profile_chain.timeout * len(self.profile_providers) + 0.5

        async def call(provider: ProfileProvider, timeout: float):
            return await provider.try_lookup(cleaned, timeout)

        profile = None
        if self.profile_providers:
            try:
                profile = await asyncio.wait_for(
                    self.profile_chain.run(self.profile_providers, call, attempts, log),
                    budget,
                )
            except asyncio.TimeoutError:
                log.warning(f"Profile budget of {budget:.1f}s exhausted")
            except Exception as exc:
                log.error(f"Profile chain failed: {exc.__class__.__name__}: {exc}", exc_info=True)
                raise InternalError("Profile resolution failed unexpectedly") from exc

        if profile is None:
            log.warning(f"All profile lookups failed after {len(attempts)} attempt(s); returning placeholder")
            self.metrics.profile_fallback()
            return placeholder_profile(cleaned)

        return profile
