"""Formatting and emission of ``$ai_generation`` events.

This module turns a CaptureContext into the property set expected by
PostHog's LLM analytics and hands it to the PostHog client.

Key behaviors:
    - Core properties are always present: provider, model, latency, HTTP
      status, base URL and error flag
    - Input and output are wrapped in a single role-tagged message so they
      match the conversational shape PostHog's LLM analytics expects, even
      though Replicate inputs are arbitrary objects
    - Privacy mode drops input and output entirely
    - Caller custom properties are merged last and may override anything
    - Emission is best-effort: a failing PostHog client is logged, never raised

Property order:
    $ai_provider, $ai_model, $ai_latency, $ai_http_status, $ai_base_url,
    $ai_is_error, [$ai_error], [$ai_input], [$ai_output_choices],
    [$ai_trace_id], [$ai_stream], [$ai_prediction_id], integration
    properties, caller properties
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from posthog_replicate.domain.value_objects import (
    ANONYMOUS_DISTINCT_ID,
    BASE_URL,
    EVENT_NAME,
    PROVIDER,
    CaptureContext,
)
from posthog_replicate.telemetry.structured_logging import log_capture_event

if TYPE_CHECKING:
    from posthog import Posthog

logger = logging.getLogger(__name__)


def format_input(value: Any) -> list[dict[str, Any]]:
    """Wrap a model input as a single user message."""
    return [{"role": "user", "content": value}]


def format_output(value: Any) -> list[dict[str, Any]]:
    """Wrap a model output as a single assistant message."""
    return [{"role": "assistant", "content": value}]


def format_error(error: Any) -> str | dict[str, Any] | list[Any]:
    """Format an error for the ``$ai_error`` property.

    Checked in order:
        1. Exceptions become ``{"name", "message", "stack"}``
        2. Strings pass through unchanged
        3. Mappings and lists pass through unchanged
        4. Tuples become lists
        5. Anything else is coerced with ``str()``

    The last step is lossy for structured objects that are not mappings;
    that is the accepted fallback.
    """
    match error:
        case BaseException():
            return {
                "name": type(error).__name__,
                "message": str(error),
                "stack": "".join(
                    traceback.format_exception(type(error), error, error.__traceback__)
                ),
            }
        case str():
            return error
        case Mapping():
            return dict(error)
        case list():
            return error
        case tuple():
            return list(error)
        case _:
            return str(error)


def resolve_privacy_mode(
    context: CaptureContext, posthog_client: Posthog | None = None, default: bool = False
) -> bool:
    """Decide whether input/output must be left out of the event.

    A per-call ``posthog_privacy_mode`` always wins. Otherwise privacy mode is
    on when either the configured default or the PostHog client's own
    ``privacy_mode`` flag is set.
    """
    if context.tracking.privacy_mode is not None:
        return bool(context.tracking.privacy_mode)
    return default or getattr(posthog_client, "privacy_mode", False) is True


def build_properties(context: CaptureContext, privacy_mode: bool = False) -> dict[str, Any]:
    """Build the ``$ai_generation`` property set for ``context``.

    Args:
        context: Outcome of the operation being reported.
        privacy_mode: Leave ``$ai_input`` and ``$ai_output_choices`` out.

    Returns:
        Property dictionary ready for ``posthog.capture``.
    """
    properties: dict[str, Any] = {
        "$ai_provider": PROVIDER,
        "$ai_model": context.model,
        "$ai_latency": context.latency,
        "$ai_http_status": context.http_status,
        "$ai_base_url": BASE_URL,
        "$ai_is_error": context.is_error,
    }

    if context.is_error and context.error is not None:
        properties["$ai_error"] = format_error(context.error)

    if not privacy_mode:
        if context.input is not None:
            properties["$ai_input"] = format_input(context.input)
        if context.output is not None:
            properties["$ai_output_choices"] = format_output(context.output)

    if context.tracking.trace_id:
        properties["$ai_trace_id"] = context.tracking.trace_id
    if context.stream is not None:
        properties["$ai_stream"] = context.stream
    if context.prediction_id:
        properties["$ai_prediction_id"] = context.prediction_id

    properties.update(context.extra_properties)
    if context.tracking.properties:
        properties.update(context.tracking.properties)

    return properties


def capture_generation(
    posthog_client: Posthog, context: CaptureContext, default_privacy_mode: bool = False
) -> dict[str, Any] | None:
    """Send one ``$ai_generation`` event for ``context``.

    Never raises: this runs while the wrapped call is returning or raising,
    and must not replace its result or its exception.

    Args:
        posthog_client: ``posthog.Posthog`` instance (or anything with a
            compatible ``capture``).
        context: Outcome of the operation being reported.
        default_privacy_mode: Privacy mode used when the call did not set one.

    Returns:
        The properties that were handed to PostHog, or None if the event
        could not be built.

    Side effects:
        - Calls ``posthog_client.capture`` (PostHog batches and flushes on
          its own; the caller must shut the client down before exit)
        - Writes the event to the JSON Lines mirror when configured
        - Logs, and swallows, any exception raised while building or
          sending the event
    """
    try:
        privacy_mode = resolve_privacy_mode(context, posthog_client, default_privacy_mode)
        properties = build_properties(context, privacy_mode=privacy_mode)
        distinct_id = context.tracking.distinct_id or ANONYMOUS_DISTINCT_ID
        groups = context.tracking.groups
    except Exception:
        logger.exception("Failed to build %s event for %s", EVENT_NAME, context.model)
        return None

    try:
        posthog_client.capture(
            event=EVENT_NAME,
            distinct_id=distinct_id,
            properties=properties,
            groups=groups,
        )
    except Exception:
        logger.exception("Failed to capture %s event for %s", EVENT_NAME, context.model)
    else:
        logger.debug(
            "Captured %s for %s (status=%s, error=%s, latency=%.3fs)",
            EVENT_NAME,
            context.model,
            context.http_status,
            context.is_error,
            context.latency,
        )

    try:
        log_capture_event(
            {
                "event": EVENT_NAME,
                "distinct_id": distinct_id,
                "properties": properties,
                "groups": groups,
            }
        )
    except Exception:
        logger.exception("Failed to write %s event to the event log", EVENT_NAME)

    return properties


__all__ = [
    "build_properties",
    "capture_generation",
    "format_error",
    "format_input",
    "format_output",
    "resolve_privacy_mode",
]
