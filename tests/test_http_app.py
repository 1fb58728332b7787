# tests/test_http_app.py
"""
Tests for the JSON HTTP surface.

The app is built with an injected ResolutionService backed by scripted
providers, so no upstream traffic happens.
"""
from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.config import Settings
from app.core.resolver.domain import ContentKind, Platform
from app.core.resolver.errors import TransportError
from app.core.resolver.orchestrator import FallbackChain, FallbackOrchestrator
from app.core.resolver.service import ResolutionService
from app.infra.http_client import close_all_sessions, get_provider_session
from app.infra.providers.avatar import ProfileAvatarProvider
from app.transport.http_app import (
    ClientDisconnected,
    build_service,
    create_app,
    lifespan,
    run_until_disconnect,
)
from tests.fakes import FakeProfileProvider, FakeProvider, make_media, make_profile


def _client(*providers, profile_providers=(), settings=None):
    service = ResolutionService(
        orchestrator=FallbackOrchestrator(providers, FallbackChain(timeout=1.0)),
        profile_providers=profile_providers,
    )
    app = create_app(settings or Settings(_env_file=None), service=service)
    return TestClient(app, raise_server_exceptions=False)


# ============================================================================
# Health and metrics
# ============================================================================

class TestHealth:

    def test_health(self):
        response = _client().get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_request_id_generated(self):
        response = _client().get("/health")
        assert response.headers.get("X-Request-ID")

    def test_request_id_echoed(self):
        response = _client().get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_metrics_after_resolution(self):
        client = _client(FakeProvider("primary", result=make_media("u")))
        client.post("/api/media/resolve", json={"url": "https://instagram.com/p/ABC/"})

        data = client.get("/metrics").json()

        assert data["counters"]["provider_attempts_total{outcome=matched,provider=primary}"] == 1
        assert data["counters"]["resolutions_total{platform=instagram,status=resolved}"] == 1
        assert data["histograms"]["provider_latency_seconds{provider=primary}"]["count"] == 1


# ============================================================================
# POST /api/media/resolve
# ============================================================================

class TestResolveMedia:

    def test_resolved(self):
        client = _client(
            FakeProvider("a", error=TransportError("down", provider="a")),
            FakeProvider("b", result=make_media("x", "y", kind=ContentKind.REEL, author="natgeo")),
        )

        response = client.post("/api/media/resolve", json={"url": "https://instagram.com/reel/ABC123/"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "resolved"
        assert body["media"] == {
            "success": True,
            "kind": "reel",
            "author": "natgeo",
            "caption": "",
            "thumbnailUrl": "x",
            "mediaUrls": ["x", "y"],
            "isCarousel": True,
        }
        assert [(a["providerName"], a["outcome"]) for a in body["attempts"]] == [
            ("a", "transportError"),
            ("b", "matched"),
        ]
        assert all("latencyMs" in a for a in body["attempts"])

    def test_all_providers_failed_is_200(self):
        client = _client(FakeProvider("a", result=None), FakeProvider("b", result=None))

        response = client.post("/api/media/resolve", json={"url": "https://instagram.com/p/ABC/"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "allProvidersFailed"
        assert body["media"] is None
        assert len(body["attempts"]) == 2

    def test_not_found_for_profile_url(self):
        client = _client(FakeProvider("a", result=make_media("u"), kinds={ContentKind.POST}))

        response = client.post("/api/media/resolve", json={"url": "https://instagram.com/natgeo/"})

        assert response.status_code == 200
        assert response.json()["status"] == "notFound"

    @pytest.mark.parametrize("url", [
        "https://www.instagram.com/natgeo/",
        "https://www.instagram.com/natgeo/reels/",
        "https://www.instagram.com/natgeo/tagged/",
    ])
    def test_profile_url_resolves_to_avatar(self, url):
        client = _client(ProfileAvatarProvider(FakeProfileProvider("web", result=make_profile())))

        response = client.post("/api/media/resolve", json={"url": url})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "resolved"
        assert body["media"]["kind"] == "profile"
        assert body["media"]["mediaUrls"] == ["https://cdn.example/avatar.jpg"]
        assert body["attempts"][0]["providerName"] == "web_avatar"

    def test_tiktok(self):
        client = _client(
            FakeProvider("ig", result=make_media("i")),
            FakeProvider("tt", result=make_media("t", kind=ContentKind.REEL), platform=Platform.TIKTOK),
        )
        response = client.post("/api/media/resolve", json={"url": "https://vm.tiktok.com/ZMeAbC/"})
        assert response.json()["media"]["mediaUrls"] == ["t"]

    def test_kind_hint(self):
        client = _client(FakeProvider("a", result=make_media("u", kind=ContentKind.REEL)))
        response = client.post(
            "/api/media/resolve",
            json={"url": "https://instagram.com/reel/ABC/", "kindHint": "post"},
        )
        assert response.json()["media"]["kind"] == "post"

    def test_invalid_url(self):
        provider = FakeProvider("a", result=make_media("u"))
        client = _client(provider)

        response = client.post("/api/media/resolve", json={"url": "https://example.com/not-a-platform"})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidUrl"
        assert provider.calls == 0

    def test_oversized_url_is_invalid_url(self):
        url = "https://instagram.com/p/" + "A" * 9000
        response = _client().post("/api/media/resolve", json={"url": url})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidUrl"

    @pytest.mark.parametrize("body", [
        {},
        {"url": 123},
        {"url": "https://instagram.com/p/ABC/", "kindHint": "carousel"},
    ])
    def test_invalid_body(self, body):
        response = _client().post("/api/media/resolve", json=body)
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"

    def test_not_json(self):
        response = _client().post(
            "/api/media/resolve",
            content=b"url=https://instagram.com/p/ABC/",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 400

    def test_internal_error_is_500(self):
        client = _client(FakeProvider("a", result=make_media("u")))
        service = client.app.state.service

        async def broken(*args, **kwargs):
            raise RuntimeError("boom")

        with patch.object(service.orchestrator, "resolve", broken):
            response = client.post("/api/media/resolve", json={"url": "https://instagram.com/p/ABC/"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "InternalError"
        assert "boom" not in response.text

    def test_security_headers(self):
        response = _client().get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store"


# ============================================================================
# POST /api/profile/resolve
# ============================================================================

class TestResolveProfile:

    def test_real_profile(self):
        client = _client(profile_providers=[FakeProfileProvider("web", result=make_profile())])

        response = client.post("/api/profile/resolve", json={"username": "@natgeo"})

        assert response.status_code == 200
        assert response.json() == {
            "username": "natgeo",
            "fullName": "National Geographic",
            "avatarUrl": "https://cdn.example/avatar.jpg",
            "isPrivate": False,
            "followerCount": 100,
            "followingCount": 10,
            "verified": True,
        }

    def test_placeholder(self):
        client = _client(profile_providers=[FakeProfileProvider("web", result=None)])

        response = client.post("/api/profile/resolve", json={"username": "natgeo"})

        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "natgeo"
        assert body["verified"] is False
        assert body["followerCount"] == 0
        assert body["avatarUrl"]

    def test_invalid_username(self):
        response = _client().post("/api/profile/resolve", json={"username": "not valid!"})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidUsername"

    def test_oversized_username_is_invalid_username(self):
        response = _client().post("/api/profile/resolve", json={"username": "a" * 9000})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidUsername"

    def test_missing_username(self):
        response = _client().post("/api/profile/resolve", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"


# ============================================================================
# Wiring and disconnect handling
# ============================================================================

class TestWiring:

    def test_build_service_from_settings(self):
        settings = Settings(_env_file=None, rapidapi_key=None, orchestrator_mode="concurrent")
        service = build_service(settings, metrics=None)

        names = [p.name for p in service.orchestrator.providers]
        assert names == [
            "instadownloader", "snapinsta", "instagram_web_avatar", "instagram_api_avatar",
            "tikwm", "snaptik",
        ]
        assert service.orchestrator.chain.mode == "concurrent"
        assert service.profile_chain.mode == "sequential"
        assert [p.name for p in service.profile_providers] == ["instagram_web", "instagram_api"]

    def test_create_app_builds_service(self):
        app = create_app(Settings(_env_file=None))
        assert isinstance(app, FastAPI)
        assert isinstance(app.state.service, ResolutionService)
        assert app.state.service.metrics is app.state.metrics

    def test_production_hides_docs(self):
        settings = Settings(_env_file=None, app_env="prod", allowed_origins=["https://widget.example"])
        client = TestClient(create_app(settings))
        assert client.get("/docs").status_code == 404
        assert "Strict-Transport-Security" in client.get("/health").headers

    def test_production_without_providers_fails_fast(self):
        settings = Settings(_env_file=None, app_env="prod", instagram_providers="instagram_rapidapi")
        with pytest.raises(RuntimeError):
            create_app(settings)

    @pytest.mark.asyncio
    async def test_shutdown_closes_provider_session(self):
        app = create_app(Settings(_env_file=None))

        async with lifespan(app):
            session = get_provider_session()
            assert not session.closed

        assert session.closed
        assert get_provider_session() is not session
        await close_all_sessions()


class _FakeRequest:
    def __init__(self, disconnected):
        self._disconnected = disconnected
        self.state = type("State", (), {})()

    async def is_disconnected(self):
        return self._disconnected


class TestRunUntilDisconnect:

    @pytest.mark.asyncio
    async def test_returns_result(self):
        async def work():
            return 42

        assert await run_until_disconnect(_FakeRequest(False), work()) == 42

    @pytest.mark.asyncio
    async def test_cancels_work_on_disconnect(self):
        cancelled = asyncio.Event()

        async def work():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(ClientDisconnected):
            await run_until_disconnect(_FakeRequest(True), work())

        await asyncio.wait_for(cancelled.wait(), 1)
