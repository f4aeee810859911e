"""Core helpers for the PostHog Replicate integration."""

from posthog_replicate.core.config import Settings, settings
from posthog_replicate.core.correlation import CorrelationStore
from posthog_replicate.core.utils import extract_http_status, get_field, http_status_for

__all__ = [
    "CorrelationStore",
    "Settings",
    "extract_http_status",
    "get_field",
    "http_status_for",
    "settings",
]
