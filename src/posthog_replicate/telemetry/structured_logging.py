"""Optional JSON Lines mirror of emitted PostHog events.

When an event log path is configured, every ``$ai_generation`` event handed
to PostHog is also written to a local file, one JSON object per line. This
is useful to inspect exactly what the integration sends without access to
the PostHog project.

Log File Configuration:
    - Location: ``Settings.event_log_path`` (``POSTHOG_REPLICATE_EVENT_LOG_PATH``)
    - Format: JSON Lines (one JSON object per line)
    - Encoding: UTF-8
    - Process-wide: one mirror file is shared by every wrapper instance
    - Disabled until a path is configured; ``configure_event_log(None)``
      switches it off again

Design Principles:
    - Isolation: Non-propagating logger to avoid duplicate logs
    - Reliability: Errors in logging don't affect the wrapped call
    - Lazy: No file is opened until a path is configured

Event Schema:
    - event: PostHog event name
    - distinct_id: Distinct id the event was captured for
    - properties: Event properties as sent to PostHog
    - groups: Group mapping, if any
    - timestamp: ISO 8601 timestamp (auto-injected if missing)
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

EVENT_LOGGER = logging.getLogger("posthog_replicate.events")
EVENT_LOGGER.setLevel(logging.INFO)
EVENT_LOGGER.propagate = False

_configured_path: Path | None = None


def configure_event_log(path: Path | str | None) -> None:
    """Point the event mirror at ``path``, or disable it with None.

    Replaces any previously attached file handler. Calling again with the
    path already in use is a no-op.

    Side effects:
        Creates the parent directory of ``path`` if it doesn't exist.
    """
    global _configured_path

    resolved = Path(path).expanduser().resolve() if path is not None else None
    if resolved == _configured_path:
        return

    for handler in list(EVENT_LOGGER.handlers):
        EVENT_LOGGER.removeHandler(handler)
        handler.close()

    _configured_path = resolved
    if resolved is None:
        return

    resolved.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(resolved, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    EVENT_LOGGER.addHandler(handler)


def _json_default(value: Any) -> Any:
    """Fallback serializer for values json can't handle.

    Datetimes go through Pydantic for proper timezone handling; everything
    else (Path, exceptions, SDK objects in model output) becomes its string
    representation.
    """
    match value:
        case datetime():
            return TypeAdapter(datetime).dump_python(value, mode="json")
        case _:
            return str(value)


def log_capture_event(event: dict[str, Any]) -> None:
    """Write one captured event to the mirror file, if enabled.

    Args:
        event: Event payload. A ``timestamp`` key is added if missing
            (mutates the input dict).
    """
    if not EVENT_LOGGER.handlers:
        return
    event.setdefault("timestamp", datetime.now(UTC).isoformat())
    EVENT_LOGGER.info(json.dumps(event, default=_json_default))


__all__ = ["EVENT_LOGGER", "configure_event_log", "log_capture_event"]
