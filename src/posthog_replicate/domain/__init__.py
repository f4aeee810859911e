"""Domain values and exceptions for the PostHog Replicate integration."""

from posthog_replicate.domain.exceptions import (
    ConfigurationError,
    PostHogReplicateError,
    TrackingParamsError,
)
from posthog_replicate.domain.value_objects import (
    ANONYMOUS_DISTINCT_ID,
    BASE_URL,
    EVENT_NAME,
    PROVIDER,
    TERMINAL_STATUSES,
    UNKNOWN_MODEL,
    CaptureContext,
    TrackingParams,
)

__all__ = [
    "ANONYMOUS_DISTINCT_ID",
    "BASE_URL",
    "EVENT_NAME",
    "PROVIDER",
    "TERMINAL_STATUSES",
    "UNKNOWN_MODEL",
    "CaptureContext",
    "ConfigurationError",
    "PostHogReplicateError",
    "TrackingParams",
    "TrackingParamsError",
]
