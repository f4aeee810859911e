"""Telemetry utilities (event capture, latency timer, structured event log)."""

from posthog_replicate.telemetry.capture import (
    build_properties,
    capture_generation,
    format_error,
    format_input,
    format_output,
)
from posthog_replicate.telemetry.structured_logging import configure_event_log, log_capture_event
from posthog_replicate.telemetry.timer import Timer

__all__ = [
    "Timer",
    "build_properties",
    "capture_generation",
    "configure_event_log",
    "format_error",
    "format_input",
    "format_output",
    "log_capture_event",
]
