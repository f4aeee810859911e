"""Value objects for the PostHog Replicate integration.

This module defines the immutable values that flow between the wrapper, the
correlation store and the event formatter.

Design Principles:
    - Immutability: Tracking parameters are frozen dataclasses (slots=True)
    - Split once: Tracking keyword arguments are separated from pass-through
      keyword arguments at the wrapper boundary and never re-derived
    - No identity: Value objects are compared by value, not reference

Key Value Objects:
    - TrackingParams: Caller-supplied PostHog tracking options for one call
    - CaptureContext: Everything known about one completed operation
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from posthog_replicate.domain.exceptions import TrackingParamsError

PROVIDER = "replicate"
"""Value of ``$ai_provider`` on every emitted event."""

BASE_URL = "https://api.replicate.com"
"""Value of ``$ai_base_url`` on every emitted event."""

EVENT_NAME = "$ai_generation"
"""PostHog event name used for every capture."""

ANONYMOUS_DISTINCT_ID = "anonymous"
"""Distinct id used when the caller does not supply one."""

UNKNOWN_MODEL = "unknown"

TERMINAL_STATUSES = frozenset({"succeeded", "failed", "canceled"})
"""Prediction statuses after which the status never changes again."""

TRACKING_KWARGS = {
    "posthog_distinct_id": "distinct_id",
    "posthog_trace_id": "trace_id",
    "posthog_properties": "properties",
    "posthog_groups": "groups",
    "posthog_privacy_mode": "privacy_mode",
}
"""Keyword argument name -> TrackingParams field."""

MAPPING_KWARGS = frozenset({"posthog_properties", "posthog_groups"})


def _merge_mappings(
    stored: dict[str, Any] | None, override: dict[str, Any] | None
) -> dict[str, Any] | None:
    if stored is None and override is None:
        return None
    return {**(stored or {}), **(override or {})}


@dataclass(slots=True, frozen=True)
class TrackingParams:
    """PostHog tracking options supplied with a single wrapped call.

    Every field is optional. ``None`` means "not supplied", which lets a
    later call's parameters be layered over parameters remembered from an
    earlier call without losing either.

    Attributes:
        distinct_id: End-user identifier. Emitted as "anonymous" when None.
        trace_id: Groups related events together.
        properties: Custom event properties, merged last into the payload.
        groups: Group type -> group key for PostHog group analytics.
        privacy_mode: When True, input and output are left out of the event.
    """

    distinct_id: str | None = None
    trace_id: str | None = None
    properties: dict[str, Any] | None = None
    groups: dict[str, Any] | None = None
    privacy_mode: bool | None = None

    @classmethod
    def split(cls, kwargs: Mapping[str, Any]) -> tuple[TrackingParams, dict[str, Any]]:
        """Separate ``posthog_*`` keyword arguments from the rest.

        Args:
            kwargs: Keyword arguments as received by a wrapped method.

        Returns:
            Tuple of (tracking parameters, keyword arguments to forward to
            the Replicate client unchanged).

        Raises:
            TrackingParamsError: If ``posthog_properties`` or
                ``posthog_groups`` is given and is not a mapping.
        """
        tracking: dict[str, Any] = {}
        passthrough: dict[str, Any] = {}
        for key, value in kwargs.items():
            if key not in TRACKING_KWARGS:
                passthrough[key] = value
                continue
            if key in MAPPING_KWARGS and value is not None:
                if not isinstance(value, Mapping):
                    msg = f"{key} must be a mapping, got {type(value).__name__}"
                    raise TrackingParamsError(msg)
                value = dict(value)
            tracking[TRACKING_KWARGS[key]] = value
        return cls(**tracking), passthrough

    def is_empty(self) -> bool:
        """Return True when every tracking option is at its default."""
        return (
            not self.distinct_id
            and not self.trace_id
            and not self.properties
            and not self.groups
            and not self.privacy_mode
        )

    def merged_over(self, stored: TrackingParams) -> TrackingParams:
        """Layer these parameters over previously stored ones.

        Fields set on ``self`` win. ``properties`` and ``groups`` are merged
        key by key, again with ``self`` winning on conflicting keys.
        """
        return TrackingParams(
            distinct_id=self.distinct_id if self.distinct_id is not None else stored.distinct_id,
            trace_id=self.trace_id if self.trace_id is not None else stored.trace_id,
            properties=_merge_mappings(stored.properties, self.properties),
            groups=_merge_mappings(stored.groups, self.groups),
            privacy_mode=(
                self.privacy_mode if self.privacy_mode is not None else stored.privacy_mode
            ),
        )


@dataclass(slots=True)
class CaptureContext:
    """Outcome of one logical operation, ready to be formatted.

    ``None`` on any optional field means "absent": the matching event
    property is not emitted.

    Attributes:
        model: Model, version or deployment identifier.
        latency: Seconds from call start to completion or error.
        http_status: 200 on success, extracted from the error otherwise.
        is_error: Whether the operation failed.
        error: Raw error value. Only used when is_error is True.
        input: Input given to the model.
        output: Model output.
        stream: True for streams, False for run, None otherwise.
        prediction_id: Prediction id for prediction create/get events.
        tracking: Tracking parameters in effect for this operation.
        extra_properties: Integration-owned properties (for example
            ``$ai_async_prediction``). Caller properties are merged after them.
    """

    model: str
    latency: float
    http_status: int = 200
    is_error: bool = False
    error: Any = None
    input: Any = None
    output: Any = None
    stream: bool | None = None
    prediction_id: str | None = None
    tracking: TrackingParams = field(default_factory=TrackingParams)
    extra_properties: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "ANONYMOUS_DISTINCT_ID",
    "BASE_URL",
    "EVENT_NAME",
    "PROVIDER",
    "TERMINAL_STATUSES",
    "TRACKING_KWARGS",
    "UNKNOWN_MODEL",
    "CaptureContext",
    "TrackingParams",
]
