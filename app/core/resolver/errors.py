# app/core/resolver/errors.py
"""
Typed errors for the resolution gateway.

``GatewayError`` subtypes carry the HTTP status and error code the
transport layer renders.  ``ProviderError`` subtypes never leave the
fallback chain: they are recorded as attempt outcomes and the chain
moves on to the next provider.
"""
from __future__ import annotations


class GatewayError(Exception):
    """Base class for errors surfaced to the caller."""

    status_code: int = 500
    code: str = "InternalError"

    def __init__(self, detail: str = "Internal error"):
        self.detail = detail
        super().__init__(detail)


class InvalidUrl(GatewayError):
    """URL does not match any known platform pattern (400)."""

    status_code = 400
    code = "InvalidUrl"


class InvalidUsername(GatewayError):
    """Profile username is empty or malformed (400)."""

    status_code = 400
    code = "InvalidUsername"


class InvalidRequest(GatewayError):
    """Request body failed validation (400)."""

    status_code = 400
    code = "InvalidRequest"


class InternalError(GatewayError):
    """Defect inside the service itself (500)."""

    status_code = 500
    code = "InternalError"


# ============================================================================
# PROVIDER ERRORS (internal to the fallback chain)
# ============================================================================

class ProviderError(Exception):
    """
    Base error for a single provider call.

    Attributes:
        provider: Name of the provider that failed.
    """

    def __init__(self, message: str, provider: str = ""):
        self.provider = provider
        super().__init__(message)


class TransportError(ProviderError):
    """Network failure, non-success status or timeout."""

    def __init__(self, message: str, provider: str = "", status: int | None = None):
        self.status = status
        super().__init__(message, provider)


class ParseError(ProviderError):
    """Provider answered, but the body is not the shape it should be."""
