# app/core/resolver/__init__.py
"""
Resolution core -- provider-agnostic domain logic.

Canonical imports:
    from app.core.resolver import ResolutionService, classify
    from app.core.resolver.domain import ContentClass, CanonicalMedia
    from app.core.resolver.ports import MediaProvider
"""
from app.core.resolver.domain import (  # noqa: F401
    AttemptOutcome,
    CanonicalMedia,
    ContentClass,
    ContentKind,
    MediaRequest,
    Platform,
    ProfileResult,
    ProviderAttempt,
    RawMedia,
    ResolutionResult,
    ResolutionStatus,
)
from app.core.resolver.errors import (  # noqa: F401
    GatewayError,
    InternalError,
    InvalidRequest,
    InvalidUrl,
    InvalidUsername,
    ParseError,
    ProviderError,
    TransportError,
)
from app.core.resolver.classifier import classify  # noqa: F401
from app.core.resolver.normalizer import normalize  # noqa: F401
from app.core.resolver.orchestrator import FallbackChain, FallbackOrchestrator  # noqa: F401
from app.core.resolver.service import ResolutionService  # noqa: F401
