# app/infra/providers/base.py
"""
Shared plumbing for upstream extraction providers.

Each provider makes exactly one HTTP call per invocation through
``BaseProvider._fetch``, which maps every failure onto the two provider
error types:

- TransportError: connection failure, timeout, non-2xx status
- ParseError: 2xx body that cannot be decoded as the expected format

Providers never retry; the fallback chain decides what happens next.
"""
from __future__ import annotations

import asyncio
from typing import Any, Literal, Mapping, Optional

import aiohttp

from app.core.resolver.domain import ContentKind, Platform
from app.core.resolver.errors import ParseError, TransportError
from app.infra.http_client import get_provider_session
from app.infra.logging_config import get_logger, truncate_for_log

logger = get_logger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def first_str(*values: Any) -> Optional[str]:
    """Return the first non-empty string among values."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def as_int(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


class BaseProvider:
    """Base class for media and profile providers."""

    name: str = ""
    platform: Platform = Platform.INSTAGRAM
    kinds: frozenset[ContentKind] = frozenset()

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT):
        self.user_agent = user_agent

    def _require_mapping(self, data: Any, what: str = "response") -> Mapping[str, Any]:
        if not isinstance(data, Mapping):
            raise ParseError(
                f"{self.name}: expected JSON object in {what}, got {type(data).__name__}",
                provider=self.name,
            )
        return data

    async def _fetch(
        self,
        method: Literal["GET", "POST"],
        url: str,
        *,
        timeout: float,
        expect: Literal["json", "text"] = "json",
        headers: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """
        Perform the provider's single HTTP call.

        Args:
            method: "GET" or "POST".
            url: Endpoint URL.
            timeout: Total seconds for this call.
            expect: Decode body as "json" or return "text".
            headers: Extra headers (User-Agent is always set).
            **kwargs: Passed to aiohttp (params, json, data).

        Raises:
            TransportError, ParseError
        """
        session = get_provider_session()
        send = session.get if method == "GET" else session.post
        request_headers = {"User-Agent": self.user_agent, **(headers or {})}

        try:
            async with send(
                url,
                headers=request_headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
                **kwargs,
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise TransportError(
                        f"{self.name} returned HTTP {resp.status}",
                        provider=self.name,
                        status=resp.status,
                    )

                if expect == "text":
                    try:
                        body = await resp.text()
                    except ValueError as exc:
                        raise ParseError(
                            f"{self.name}: undecodable body: {exc}", provider=self.name,
                        ) from exc
                    logger.debug("%s response: %s", self.name, truncate_for_log(body))
                    return body

                try:
                    data = await resp.json(content_type=None)
                except ValueError as exc:
                    raise ParseError(
                        f"{self.name}: response is not JSON: {exc}", provider=self.name,
                    ) from exc
                logger.debug("%s response: %s", self.name, truncate_for_log(repr(data)))
                return data

        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"{self.name} timed out after {timeout:.1f}s", provider=self.name,
            ) from exc
        except aiohttp.ClientError as exc:
            raise TransportError(
                f"{self.name} network error: {exc}", provider=self.name,
            ) from exc
