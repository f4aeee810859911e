"""PostHog-instrumented Replicate client.

This module provides ``Replicate``, a drop-in replacement for
``replicate.Client`` that emits one PostHog ``$ai_generation`` event per
model run, stream, prediction creation and prediction fetch.

Key behaviors:
    - Composition: the Replicate client is held, never subclassed; anything
      not instrumented here is forwarded to it unchanged
    - Tracking options are plain ``posthog_*`` keyword arguments on each call,
      stripped before the call reaches Replicate; malformed options raise
      TrackingParamsError before Replicate is called
    - Results and exceptions are returned/raised exactly as Replicate
      produced them; the event is emitted before an exception propagates
    - Streams emit their single event when the stream ends, fails or is
      closed by the consumer

Usage:
    from posthog import Posthog
    from posthog_replicate import Replicate

    posthog = Posthog("<project_api_key>", host="https://us.i.posthog.com")
    replicate = Replicate(posthog)

    output = replicate.run(
        "openai/clip",
        input={"image": "https://example.com/image.jpg"},
        posthog_distinct_id="user_123",
    )

    posthog.shutdown()  # flush buffered events before exit

Thread safety:
    - Safe to share between threads and asyncio tasks; each call keeps its
      capture state in its own frame

Event log:
    - The JSON Lines mirror is process-wide. Building an instance whose
      settings name an ``event_log_path`` points the mirror at that file for
      every instance; instances built without a path leave it as it is
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator, Callable, Iterator
from functools import partial
from typing import TYPE_CHECKING, Any

import replicate

from posthog_replicate.client.predictions import TrackedPredictions
from posthog_replicate.core.config import Settings
from posthog_replicate.core.correlation import CorrelationStore
from posthog_replicate.core.utils import chunk_text, http_status_for, is_output_chunk, model_identifier
from posthog_replicate.domain.exceptions import ConfigurationError
from posthog_replicate.domain.value_objects import (
    EVENT_NAME,
    UNKNOWN_MODEL,
    CaptureContext,
    TrackingParams,
)
from posthog_replicate.telemetry.capture import capture_generation
from posthog_replicate.telemetry.structured_logging import configure_event_log
from posthog_replicate.telemetry.timer import Timer

if TYPE_CHECKING:
    from posthog import Posthog

logger = logging.getLogger(__name__)


class Replicate:
    """Replicate client that reports every model execution to PostHog.

    Instrumented: ``run``, ``async_run``, ``stream``, ``async_stream``,
    ``predictions.create``, ``predictions.async_create``,
    ``predictions.get``, ``predictions.async_get``.

    Passed through untouched: every other attribute of ``replicate.Client``
    (``models``, ``deployments``, ``hardware``, ``collections``,
    ``trainings``, ``files``, ``webhooks``, ``predictions.cancel``,
    ``predictions.list``, ...).

    Attributes:
        settings: Integration settings in effect for this instance.
        correlation: Store linking prediction ids to their tracking options.
        predictions: Instrumented predictions namespace.

    Lifecycle:
        The PostHog client is owned by the caller. Call
        ``posthog.shutdown()`` (or :meth:`flush`) before the process exits,
        otherwise buffered events may be lost.
    """

    def __init__(
        self,
        posthog_client: Posthog,
        client: Any = None,
        *,
        settings: Settings | None = None,
        correlation_store: CorrelationStore | None = None,
        **client_kwargs: Any,
    ) -> None:
        """Initialize the instrumented client.

        Args:
            posthog_client: ``posthog.Posthog`` instance events are sent to.
            client: Existing ``replicate.Client`` to wrap. If None, one is
                built from ``client_kwargs`` (the API token defaults to the
                ``REPLICATE_API_TOKEN`` environment variable).
            settings: Integration settings. If None, uses the cached
                environment-derived settings. A set ``event_log_path``
                redirects the process-wide event mirror to that file.
            correlation_store: Store for prediction tracking options. If None,
                a new store bounded by ``settings`` is created.
            **client_kwargs: Passed to ``replicate.Client`` when ``client``
                is None (``api_token``, ``base_url``, ``timeout``, ...).

        Raises:
            ConfigurationError: If ``posthog_client`` has no ``capture``
                method, or if both ``client`` and ``client_kwargs`` are given.
        """
        if not callable(getattr(posthog_client, "capture", None)):
            msg = "posthog_client must be a PostHog client with a capture() method"
            raise ConfigurationError(msg)
        if client is not None and client_kwargs:
            msg = f"Unexpected client options with an existing client: {sorted(client_kwargs)}"
            raise ConfigurationError(msg)

        self._posthog = posthog_client
        self._client = client if client is not None else replicate.Client(**client_kwargs)
        self.settings = settings or Settings.get_settings()
        self.correlation = correlation_store or CorrelationStore(
            max_size=self.settings.correlation_max_size,
            ttl_seconds=self.settings.correlation_ttl_seconds,
        )
        if self.settings.event_log_path is not None:
            configure_event_log(self.settings.event_log_path)

        self.predictions = TrackedPredictions(
            self._client.predictions, self._capture, self.correlation
        )

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._client, name)

    @property
    def client(self) -> Any:
        """The wrapped ``replicate.Client``."""
        return self._client

    @property
    def posthog_client(self) -> Posthog:
        """The PostHog client events are sent to."""
        return self._posthog

    def flush(self) -> None:
        """Flush events buffered by the PostHog client."""
        self._posthog.flush()

    def _capture(self, build_context: Callable[[], CaptureContext]) -> None:
        try:
            context = build_context()
        except Exception:
            logger.exception("Failed to build %s event", EVENT_NAME)
            return
        capture_generation(self._posthog, context, self.settings.privacy_mode)

    @staticmethod
    def _execution_context(
        ref: Any,
        input: Any,  # noqa: A002
        output: Any,
        error: BaseException | None,
        latency: float,
        tracking: TrackingParams,
        stream: bool,
    ) -> CaptureContext:
        return CaptureContext(
            model=model_identifier(ref) or UNKNOWN_MODEL,
            latency=latency,
            http_status=200 if error is None else http_status_for(error),
            is_error=error is not None,
            error=error,
            input=input,
            output=output if error is None else None,
            stream=stream,
            tracking=tracking,
        )

    # ------------------------------------------------------------------
    # run
    # ------------------------------------------------------------------

    def run(self, ref: Any, input: Any = None, **kwargs: Any) -> Any:  # noqa: A002
        """Run a model and wait for its output.

        Args:
            ref: Model reference ("owner/name" or "owner/name:version").
            input: Model input.
            **kwargs: Options for ``replicate.Client.run`` plus the
                ``posthog_*`` tracking options.

        Returns:
            The model output, unmodified.

        Raises:
            Whatever Replicate raises, unmodified, after the event is emitted.
        """
        tracking, params = TrackingParams.split(kwargs)
        timer = Timer.start()
        output: Any = None
        error: BaseException | None = None

        try:
            output = self._client.run(ref, input=input, **params)
            return output
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._capture(
                partial(
                    self._execution_context,
                    ref, input, output, error, timer.elapsed(), tracking, stream=False
                )
            )

    async def async_run(self, ref: Any, input: Any = None, **kwargs: Any) -> Any:  # noqa: A002
        """Async variant of :meth:`run`.

        Task cancellation is reported as an error event before the
        ``CancelledError`` propagates.
        """
        tracking, params = TrackingParams.split(kwargs)
        timer = Timer.start()
        output: Any = None
        error: BaseException | None = None

        try:
            output = await self._client.async_run(ref, input=input, **params)
            return output
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._capture(
                partial(
                    self._execution_context,
                    ref, input, output, error, timer.elapsed(), tracking, stream=False
                )
            )

    # ------------------------------------------------------------------
    # stream
    # ------------------------------------------------------------------

    def stream(self, ref: Any, input: Any = None, **kwargs: Any) -> Iterator[Any]:  # noqa: A002
        """Stream a model's output as server-sent events.

        Every event from Replicate is yielded unchanged and in order. The
        data of ``output`` events is collected and reported as the event
        output once the stream ends.

        Yields:
            ``ServerSentEvent`` objects exactly as Replicate produced them.

        Raises:
            Whatever Replicate raises, unmodified, after the event is emitted.

        Note:
            Closing the generator early is not an error; the output
            collected so far is reported.
        """
        tracking, params = TrackingParams.split(kwargs)
        timer = Timer.start()
        collected: list[str] = []
        error: BaseException | None = None

        try:
            for chunk in self._client.stream(ref, input=input, **params):
                if is_output_chunk(chunk):
                    collected.append(chunk_text(chunk))
                yield chunk
        except GeneratorExit:
            raise
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._capture(
                partial(
                    self._execution_context,
                    ref,
                    input,
                    "".join(collected) or None,
                    error,
                    timer.elapsed(),
                    tracking,
                    stream=True,
                )
            )

    async def async_stream(
        self, ref: Any, input: Any = None, **kwargs: Any  # noqa: A002
    ) -> AsyncIterator[Any]:
        """Async variant of :meth:`stream`.

        Mirrors ``replicate.Client.async_stream``: await the call to get the
        async iterator.

        Example:
            >>> async for event in await replicate.async_stream("meta/llama", input={...}):
            ...     print(str(event), end="")

        Raises:
            TrackingParamsError: When awaited, if a tracking option is
                malformed.
        """
        tracking, params = TrackingParams.split(kwargs)
        return self._tracked_async_stream(ref, input, tracking, params)

    async def _tracked_async_stream(
        self,
        ref: Any,
        input: Any,  # noqa: A002
        tracking: TrackingParams,
        params: dict[str, Any],
    ) -> AsyncIterator[Any]:
        timer = Timer.start()
        collected: list[str] = []
        error: BaseException | None = None

        try:
            upstream = self._client.async_stream(ref, input=input, **params)
            if inspect.isawaitable(upstream):
                upstream = await upstream
            async for chunk in upstream:
                if is_output_chunk(chunk):
                    collected.append(chunk_text(chunk))
                yield chunk
        except GeneratorExit:
            raise
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._capture(
                partial(
                    self._execution_context,
                    ref,
                    input,
                    "".join(collected) or None,
                    error,
                    timer.elapsed(),
                    tracking,
                    stream=True,
                )
            )


__all__ = ["Replicate"]
