# app/core/resolver/orchestrator.py
"""
Fallback orchestration across upstream providers.

Providers form a declarative, ordered list.  Each one is tried with a
bounded timeout; every call is recorded as a ProviderAttempt and the
chain stops at the first success.

Modes
~~~~~
- **sequential** (default): one provider at a time, in priority order.
- **concurrent**: all eligible providers start at once, but results are
  consumed in priority order, so the winner is always the highest-priority
  success.  Providers still running when a winner is found are cancelled.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Literal, Optional, Sequence

from app.core.resolver.domain import (
    AttemptOutcome,
    ContentClass,
    ProviderAttempt,
    ResolutionResult,
    ResolutionStatus,
)
from app.core.resolver.errors import ParseError, TransportError
from app.core.resolver.ports import MediaProvider
from app.infra.logging_config import LogContext, get_logger
from app.infra.metrics import ResolverMetrics

logger = get_logger(__name__)

ProviderCall = Callable[[Any, float], Awaitable[Any]]

_BUDGET_GRACE_SECONDS = 0.5


def _is_success(result: Any) -> bool:
    if result is None:
        return False
    # CanonicalMedia exposes success; profile results are successful when present
    return bool(getattr(result, "success", True))


class FallbackChain:
    """Runs one capability across an ordered provider list."""

    def __init__(
        self,
        *,
        timeout: float,
        mode: Literal["sequential", "concurrent"] = "sequential",
        metrics: ResolverMetrics | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self.mode = mode
        self.metrics = metrics or ResolverMetrics()

    async def _invoke(
        self,
        provider: Any,
        call: ProviderCall,
        log: LogContext,
    ) -> tuple[Any, AttemptOutcome, float]:
        """Call one provider; never raises except on cancellation."""
        start = time.perf_counter()
        result = None

        try:
            result = await asyncio.wait_for(call(provider, self.timeout), self.timeout)
        except asyncio.TimeoutError:
            outcome = AttemptOutcome.TRANSPORT_ERROR
            log.warning(f"Provider timed out after {self.timeout:.1f}s")
        except TransportError as exc:
            outcome = AttemptOutcome.TRANSPORT_ERROR
            log.warning(f"Provider transport error: {exc}")
        except ParseError as exc:
            outcome = AttemptOutcome.PARSE_ERROR
            log.warning(f"Provider parse error: {exc}")
        except Exception as exc:
            outcome = AttemptOutcome.PARSE_ERROR
            log.warning(
                f"Provider raised unexpectedly: {exc.__class__.__name__}: {exc}",
                exc_info=True,
            )
        else:
            if _is_success(result):
                outcome = AttemptOutcome.MATCHED
            else:
                outcome = AttemptOutcome.NO_MATCH
                result = None

        latency_ms = (time.perf_counter() - start) * 1000
        return result, outcome, latency_ms

    def _record(
        self,
        provider: Any,
        outcome: AttemptOutcome,
        latency_ms: float,
        attempts: list[ProviderAttempt],
        log: LogContext,
    ) -> None:
        attempts.append(ProviderAttempt(
            provider_name=provider.name,
            outcome=outcome,
            latency_ms=round(latency_ms, 2),
        ))
        self.metrics.provider_attempt(provider.name, outcome.value, latency_ms / 1000)
        log.info(f"Provider attempt: outcome={outcome.value} latency={latency_ms:.0f}ms")

    async def run(
        self,
        providers: Sequence[Any],
        call: ProviderCall,
        attempts: list[ProviderAttempt],
        log: LogContext | None = None,
    ) -> Optional[Any]:
        """
        Run ``call`` against providers until one succeeds.

        Args:
            providers: Ordered providers, highest priority first.
            call: ``call(provider, timeout)`` awaitable for one provider.
            attempts: List that receives one ProviderAttempt per completed call,
                in execution order. Owned by the caller so partial history
                survives an outer timeout.

        Returns:
            The winning provider's result, or None if every provider failed.
        """
        log = log or LogContext(logger)
        if self.mode == "concurrent" and len(providers) > 1:
            return await self._run_concurrent(providers, call, attempts, log)

        for provider in providers:
            provider_log = log.bind(provider=provider.name)
            result, outcome, latency_ms = await self._invoke(provider, call, provider_log)
            self._record(provider, outcome, latency_ms, attempts, provider_log)
            if outcome == AttemptOutcome.MATCHED:
                return result
        return None

    async def _run_concurrent(
        self,
        providers: Sequence[Any],
        call: ProviderCall,
        attempts: list[ProviderAttempt],
        log: LogContext,
    ) -> Optional[Any]:
        logs = [log.bind(provider=p.name) for p in providers]
        tasks = [
            asyncio.create_task(self._invoke(p, call, plog))
            for p, plog in zip(providers, logs)
        ]
        try:
            for provider, task, provider_log in zip(providers, tasks, logs):
                result, outcome, latency_ms = await task
                self._record(provider, outcome, latency_ms, attempts, provider_log)
                if outcome == AttemptOutcome.MATCHED:
                    return result
            return None
        finally:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)


class FallbackOrchestrator:
    """
    Resolves media by walking the provider chain for the URL's platform.

    Only providers registered for the content's platform and declaring its
    kind take part.  Never raises to the caller (cancellation aside).
    """

    def __init__(
        self,
        providers: Sequence[MediaProvider],
        chain: FallbackChain,
    ) -> None:
        self.providers = list(providers)
        self.chain = chain

    def eligible(self, content_class: ContentClass) -> list[MediaProvider]:
        return [
            p for p in self.providers
            if p.platform == content_class.platform and content_class.kind in p.kinds
        ]

    def budget_for(self, content_class: ContentClass) -> float:
        """Aggregate time budget: sum of per-provider timeouts plus a small grace."""
        count = len(self.eligible(content_class))
        return self.chain.timeout * count + _BUDGET_GRACE_SECONDS

    async def resolve(
        self,
        url: str,
        content_class: ContentClass,
        attempts: list[ProviderAttempt] | None = None,
        log: LogContext | None = None,
    ) -> ResolutionResult:
        attempts = attempts if attempts is not None else []
        log = (log or LogContext(logger)).bind(
            platform=content_class.platform.value,
            content_id=content_class.content_id,
        )

        providers = self.eligible(content_class)
        if not providers:
            log.info(f"No provider handles {content_class.kind.value} content")
            return ResolutionResult(status=ResolutionStatus.NOT_FOUND, attempts=tuple(attempts))

        async def call(provider: MediaProvider, timeout: float):
            return await provider.try_resolve(url, content_class, timeout)

        media = await self.chain.run(providers, call, attempts, log)

        if media is None:
            log.warning(f"All {len(providers)} providers failed")
            return ResolutionResult(
                status=ResolutionStatus.ALL_PROVIDERS_FAILED,
                attempts=tuple(attempts),
            )

        return ResolutionResult(
            status=ResolutionStatus.RESOLVED,
            media=media,
            attempts=tuple(attempts),
        )
