# app/core/resolver/ports.py
from __future__ import annotations
from typing import Optional, Protocol

from app.core.resolver.domain import (
    CanonicalMedia,
    ContentClass,
    ContentKind,
    Platform,
    ProfileResult,
)


class MediaProvider(Protocol):
    """
    One upstream extraction service.

    ``try_resolve`` makes exactly one outbound call and never retries.

    Returns:
        CanonicalMedia on success, None when the provider has nothing for the URL.

    Raises:
        TransportError: network failure, non-2xx status, timeout.
        ParseError: 2xx response in a shape this provider does not produce.
    """

    name: str
    platform: Platform
    kinds: frozenset[ContentKind]

    async def try_resolve(
        self,
        url: str,
        content_class: ContentClass,
        timeout: float,
    ) -> Optional[CanonicalMedia]: ...


class ProfileProvider(Protocol):
    """Profile metadata lookup; same error contract as MediaProvider."""

    name: str

    async def try_lookup(self, username: str, timeout: float) -> Optional[ProfileResult]: ...
