"""PostHog-instrumented ``predictions`` namespace.

Wraps ``replicate.Client().predictions`` so that prediction creation and
prediction fetches each emit one ``$ai_generation`` event.

Key behaviors:
    - ``create``/``async_create`` emit immediately on creation, without
      output (the prediction has not run yet), flagged with
      ``$ai_async_prediction``
    - Tracking parameters given to ``create`` are remembered per prediction id
      and reused by later ``get``/``async_get`` calls for the same id
    - ``get``/``async_get`` forget the prediction id once a terminal status
      (succeeded, failed, canceled) is observed
    - ``cancel``, ``list`` and everything else pass through untouched

Concurrency:
    - Each call builds its own CaptureContext; the correlation store is the
      only shared state and is lock-protected
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial
from typing import Any

from posthog_replicate.core.correlation import CorrelationStore
from posthog_replicate.core.utils import get_field, http_status_for, model_identifier
from posthog_replicate.domain.value_objects import (
    TERMINAL_STATUSES,
    UNKNOWN_MODEL,
    CaptureContext,
    TrackingParams,
)
from posthog_replicate.telemetry.timer import Timer

logger = logging.getLogger(__name__)

FAILED_STATUS = "failed"
SUCCEEDED_STATUS = "succeeded"
FAILED_PREDICTION_MESSAGE = "Prediction failed"


def _creation_model(args: tuple[Any, ...], params: dict[str, Any]) -> str:
    """Identify the model a prediction is being created for."""
    for key in ("model", "version", "deployment"):
        identifier = model_identifier(params.get(key))
        if identifier:
            return identifier
    if args:
        identifier = model_identifier(args[0])
        if identifier:
            return identifier
    return UNKNOWN_MODEL


def _prediction_model(prediction: Any) -> str:
    """Identify the model of a fetched prediction record."""
    return (
        model_identifier(get_field(prediction, "model"))
        or model_identifier(get_field(prediction, "version"))
        or UNKNOWN_MODEL
    )


class TrackedPredictions:
    """Drop-in replacement for ``replicate.Client().predictions``.

    Attributes:
        _predictions: The wrapped Replicate predictions namespace.
        _capture: Callback that builds a CaptureContext from the given
            factory and emits one event for it.
        _store: Correlation store shared with the owning wrapper.
    """

    def __init__(
        self,
        predictions: Any,
        capture: Callable[[Callable[[], CaptureContext]], Any],
        store: CorrelationStore,
    ) -> None:
        self._predictions = predictions
        self._capture = capture
        self._store = store

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._predictions, name)

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    def _remember(self, prediction: Any, tracking: TrackingParams) -> str | None:
        prediction_id = get_field(prediction, "id")
        if prediction_id is None:
            if not tracking.is_empty():
                logger.warning("Created prediction has no id; fetch events won't be correlated")
            return None
        prediction_id = str(prediction_id)
        self._store.put(prediction_id, tracking)
        return prediction_id

    def _creation_context(
        self,
        args: tuple[Any, ...],
        params: dict[str, Any],
        prediction_id: str | None,
        error: BaseException | None,
        latency: float,
        tracking: TrackingParams,
    ) -> CaptureContext:
        return CaptureContext(
            model=_creation_model(args, params),
            latency=latency,
            http_status=200 if error is None else http_status_for(error),
            is_error=error is not None,
            error=error,
            input=params.get("input"),
            prediction_id=prediction_id,
            tracking=tracking,
            extra_properties={"$ai_async_prediction": True},
        )

    def create(self, *args: Any, **kwargs: Any) -> Any:
        """Create a prediction and return without waiting for it to finish.

        Accepts everything ``replicate.Client().predictions.create`` accepts,
        plus the ``posthog_*`` tracking keyword arguments.

        Returns:
            The Prediction returned by Replicate, unmodified.

        Raises:
            Whatever Replicate raises, unmodified, after the event is emitted.

        Side effects:
            - Emits one ``$ai_generation`` event flagged ``$ai_async_prediction``
            - Remembers the tracking parameters for the new prediction id
        """
        tracking, params = TrackingParams.split(kwargs)
        timer = Timer.start()
        prediction_id: str | None = None
        error: BaseException | None = None

        try:
            prediction = self._predictions.create(*args, **params)
            prediction_id = self._remember(prediction, tracking)
            return prediction
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._capture(
                partial(
                    self._creation_context,
                    args,
                    params,
                    prediction_id,
                    error,
                    timer.elapsed(),
                    tracking,
                )
            )

    async def async_create(self, *args: Any, **kwargs: Any) -> Any:
        """Async variant of :meth:`create`."""
        tracking, params = TrackingParams.split(kwargs)
        timer = Timer.start()
        prediction_id: str | None = None
        error: BaseException | None = None

        try:
            prediction = await self._predictions.async_create(*args, **params)
            prediction_id = self._remember(prediction, tracking)
            return prediction
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._capture(
                partial(
                    self._creation_context,
                    args,
                    params,
                    prediction_id,
                    error,
                    timer.elapsed(),
                    tracking,
                )
            )

    # ------------------------------------------------------------------
    # get
    # ------------------------------------------------------------------

    def _tracking_for(self, prediction_id: str, kwargs: dict[str, Any]) -> tuple[TrackingParams, dict[str, Any]]:
        call_tracking, params = TrackingParams.split(kwargs)
        return call_tracking.merged_over(self._store.get(prediction_id)), params

    def _settle(self, prediction_id: str, prediction: Any) -> None:
        if get_field(prediction, "status") in TERMINAL_STATUSES:
            self._store.delete(prediction_id)

    def _fetch_context(
        self,
        prediction_id: str,
        prediction: Any,
        error: BaseException | None,
        latency: float,
        tracking: TrackingParams,
    ) -> CaptureContext:
        status = get_field(prediction, "status")
        failed = status == FAILED_STATUS

        if error is not None:
            detail: Any = error
        elif failed:
            detail = get_field(prediction, "error") or FAILED_PREDICTION_MESSAGE
        else:
            detail = None

        extra: dict[str, Any] = {
            "$ai_prediction_get": True,
            "$ai_prediction_completed": status in TERMINAL_STATUSES,
        }
        if status is not None:
            extra["$ai_prediction_status"] = str(status)

        return CaptureContext(
            model=_prediction_model(prediction),
            latency=latency,
            http_status=200 if error is None else http_status_for(error),
            is_error=error is not None or failed,
            error=detail,
            input=get_field(prediction, "input"),
            output=get_field(prediction, "output") if status == SUCCEEDED_STATUS else None,
            prediction_id=prediction_id,
            tracking=tracking,
            extra_properties=extra,
        )

    def get(self, id: str, **kwargs: Any) -> Any:  # noqa: A002 - mirrors the Replicate SDK
        """Fetch a prediction's current state.

        Tracking parameters remembered from :meth:`create` are applied;
        ``posthog_*`` keyword arguments given here take precedence.

        Returns:
            The Prediction returned by Replicate, unmodified.

        Raises:
            Whatever Replicate raises, unmodified, after the event is emitted.

        Side effects:
            - Emits one ``$ai_generation`` event; ``$ai_is_error`` is also set
              when the prediction itself failed
            - Forgets the prediction id once its status is terminal
        """
        tracking, params = self._tracking_for(id, kwargs)
        timer = Timer.start()
        prediction: Any = None
        error: BaseException | None = None

        try:
            prediction = self._predictions.get(id, **params)
            self._settle(id, prediction)
            return prediction
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._capture(
                partial(self._fetch_context, id, prediction, error, timer.elapsed(), tracking)
            )

    async def async_get(self, id: str, **kwargs: Any) -> Any:  # noqa: A002
        """Async variant of :meth:`get`."""
        tracking, params = self._tracking_for(id, kwargs)
        timer = Timer.start()
        prediction: Any = None
        error: BaseException | None = None

        try:
            prediction = await self._predictions.async_get(id, **params)
            self._settle(id, prediction)
            return prediction
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._capture(
                partial(self._fetch_context, id, prediction, error, timer.elapsed(), tracking)
            )


__all__ = ["TrackedPredictions"]
