"""
Pytest configuration and fixtures for PostHog Replicate tests.
"""

import sys
from pathlib import Path

import pytest

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from posthog_replicate import CorrelationStore, Replicate, Settings
from posthog_replicate.telemetry.structured_logging import configure_event_log
from tests.helpers import FakeReplicateClient, RecordingPostHog


@pytest.fixture
def posthog():
    """Recording PostHog client."""
    return RecordingPostHog()


@pytest.fixture
def replicate_client():
    """Fake Replicate client."""
    return FakeReplicateClient()


@pytest.fixture
def test_settings():
    """Settings isolated from the environment."""
    return Settings(
        privacy_mode=False,
        correlation_max_size=100,
        correlation_ttl_seconds=3600.0,
        event_log_path=None,
    )


@pytest.fixture
def wrapper(posthog, replicate_client, test_settings):
    """Instrumented client around the fake Replicate client."""
    return Replicate(posthog, replicate_client, settings=test_settings)


@pytest.fixture
def store():
    """Small correlation store."""
    return CorrelationStore(max_size=10, ttl_seconds=60.0)


@pytest.fixture(autouse=True)
def reset_event_log():
    """Detach the JSON Lines event mirror after each test."""
    yield
    configure_event_log(None)
