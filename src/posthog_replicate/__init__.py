"""PostHog LLM analytics for the Replicate Python client."""

from posthog_replicate.client import Replicate, TrackedPredictions
from posthog_replicate.core import CorrelationStore, Settings, settings
from posthog_replicate.domain import (
    BASE_URL,
    EVENT_NAME,
    PROVIDER,
    CaptureContext,
    ConfigurationError,
    PostHogReplicateError,
    TrackingParams,
    TrackingParamsError,
)
from posthog_replicate.telemetry import Timer, capture_generation, configure_event_log

__all__ = [
    "BASE_URL",
    "EVENT_NAME",
    "PROVIDER",
    "CaptureContext",
    "ConfigurationError",
    "CorrelationStore",
    "PostHogReplicateError",
    "Replicate",
    "Settings",
    "Timer",
    "TrackedPredictions",
    "TrackingParams",
    "TrackingParamsError",
    "capture_generation",
    "configure_event_log",
    "settings",
]
