# tests/test_middleware.py
"""Tests for app/transport/middleware.py: request ID, error handling, headers."""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.transport.middleware import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
    SecurityHeadersMiddleware,
)


def _build_app(raise_for: set[str] | None = None, hsts: bool = False, logging_enabled: bool = True):
    """Build a minimal FastAPI app with middleware for testing."""
    app = FastAPI()
    # Order matters: ErrorHandling wraps RequestID
    app.add_middleware(SecurityHeadersMiddleware, hsts=hsts)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware, enabled=logging_enabled)
    app.add_middleware(RequestIDMiddleware)

    raise_for = raise_for or set()

    @app.get("/test")
    def test_endpoint():
        if "/test" in raise_for:
            raise RuntimeError("boom")
        return {"ok": True}

    @app.post("/api/media/resolve")
    def resolve_endpoint():
        if "/api/media/resolve" in raise_for:
            raise RuntimeError("provider secret leaked")
        return {"status": "resolved"}

    return app


# ============================================================================
# RequestIDMiddleware
# ============================================================================

class TestRequestIDMiddleware:
    def test_generates_request_id(self):
        app = _build_app()
        client = TestClient(app)
        resp = client.get("/test")
        assert resp.status_code == 200
        assert "X-Request-ID" in resp.headers
        # Should be a UUID-style string
        rid = resp.headers["X-Request-ID"]
        assert len(rid) >= 32  # UUID has 36 chars with dashes

    def test_preserves_existing_request_id(self):
        app = _build_app()
        client = TestClient(app)
        custom_id = "my-custom-request-id-123"
        resp = client.get("/test", headers={"X-Request-ID": custom_id})
        assert resp.status_code == 200
        assert resp.headers["X-Request-ID"] == custom_id

    def test_logging_disabled_passes_through(self):
        app = _build_app(logging_enabled=False)
        client = TestClient(app)
        resp = client.get("/test")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}


# ============================================================================
# ErrorHandlingMiddleware
# ============================================================================

class TestErrorHandlingMiddleware:
    def test_normal_request_passes_through(self):
        app = _build_app()
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.get("/test")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}

    def test_generic_error_returns_500(self):
        app = _build_app(raise_for={"/test"})
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.get("/test")
        assert resp.status_code == 500
        data = resp.json()
        assert data["error"] == "InternalError"
        assert "request_id" in data

    def test_error_body_hides_exception_text(self):
        app = _build_app(raise_for={"/api/media/resolve"})
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.post("/api/media/resolve", headers={"X-Request-ID": "rid-1"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "InternalError", "request_id": "rid-1"}
        assert "secret" not in resp.text


# ============================================================================
# SecurityHeadersMiddleware
# ============================================================================

class TestSecurityHeadersMiddleware:
    def test_json_api_headers(self):
        client = TestClient(_build_app())
        resp = client.get("/test")
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["Cache-Control"] == "no-store"
        assert "Strict-Transport-Security" not in resp.headers

    def test_hsts_when_enabled(self):
        client = TestClient(_build_app(hsts=True))
        resp = client.get("/test")
        assert resp.headers["Strict-Transport-Security"].startswith("max-age=")
