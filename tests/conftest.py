"""Shared fixtures for the image request tests."""

import pytest

from image_request.core.settings import HandlerSettings
from image_request.testing.fakes import FakeLogger

SOURCE_BUCKETS = "validBucket, bucket-name-here, fallbackBucket"


@pytest.fixture
def fake_logger():
    return FakeLogger()


@pytest.fixture
def make_settings():
    """Build HandlerSettings with test defaults, ignoring the process environment."""

    def _make(**overrides):
        values = {
            "source_buckets": SOURCE_BUCKETS,
            "enable_signature": False,
            "enable_default_fallback_image": False,
            "auto_webp": False,
        }
        values.update(overrides)
        return HandlerSettings(**values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()
