# tests/conftest.py
"""Pytest configuration and fixtures"""
import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.config import Settings  # noqa: E402
from app.core.resolver.domain import ContentClass, ContentKind, Platform  # noqa: E402


@pytest.fixture
def settings():
    """Settings isolated from the developer's .env"""
    return Settings(_env_file=None)


@pytest.fixture
def reel_class():
    return ContentClass(platform=Platform.INSTAGRAM, kind=ContentKind.REEL, content_id="ABC123")


@pytest.fixture
def reel_url():
    return "https://instagram.com/reel/ABC123/"
