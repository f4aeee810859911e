"""Reusable test doubles for PostHog Replicate tests.

Provides a recording PostHog client and a scriptable Replicate client
exposing the sync and async surfaces that the wrapper instruments.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from types import SimpleNamespace
from typing import Any


class EventType(Enum):
    """Mirrors replicate.stream.ServerSentEvent.EventType."""

    OUTPUT = "output"
    LOGS = "logs"
    ERROR = "error"
    DONE = "done"


def sse(event: str, data: str, id: str = "") -> SimpleNamespace:
    """Build a ServerSentEvent-shaped chunk with an Enum event type."""
    return SimpleNamespace(event=EventType(event), data=data, id=id)


class APIError(Exception):
    """Error shaped like replicate.exceptions.ReplicateError."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        if status is not None:
            self.status = status


class RecordingPostHog:
    """PostHog double that records every capture call."""

    def __init__(self) -> None:
        self.captures: list[dict[str, Any]] = []
        self.flushed = 0
        self.privacy_mode = False
        self.fail_with: Exception | None = None

    def capture(self, event=None, distinct_id=None, properties=None, groups=None, **kwargs):
        if self.fail_with is not None:
            raise self.fail_with
        self.captures.append(
            {
                "event": event,
                "distinct_id": distinct_id,
                "properties": properties,
                "groups": groups,
            }
        )

    def flush(self) -> None:
        self.flushed += 1

    def shutdown(self) -> None:
        self.flush()

    @property
    def last(self) -> dict[str, Any]:
        assert self.captures, "no event captured"
        return self.captures[-1]


class FakePredictions:
    """Scriptable stand-in for replicate.Client().predictions."""

    def __init__(self) -> None:
        self.created: list[dict[str, Any]] = []
        self.create_result: Any = {"id": "pred_123", "status": "starting"}
        self.create_error: BaseException | None = None
        self.records: dict[str, Any] = {}
        self.get_error: BaseException | None = None
        self.get_calls: list[tuple[str, dict[str, Any]]] = []
        self.canceled: list[str] = []

    def create(self, *args, **kwargs):
        self.created.append({"args": args, **kwargs})
        if self.create_error is not None:
            raise self.create_error
        return self.create_result

    async def async_create(self, *args, **kwargs):
        await asyncio.sleep(0)
        return self.create(*args, **kwargs)

    def get(self, id, **kwargs):
        self.get_calls.append((id, kwargs))
        if self.get_error is not None:
            raise self.get_error
        return self.records[id]

    async def async_get(self, id, **kwargs):
        await asyncio.sleep(0)
        return self.get(id, **kwargs)

    def cancel(self, id):
        self.canceled.append(id)
        return {"id": id, "status": "canceled"}

    def list(self):
        return list(self.records.values())


class FakeReplicateClient:
    """Scriptable stand-in for replicate.Client."""

    def __init__(self) -> None:
        self.run_result: Any = {"result": "test output"}
        self.run_error: BaseException | None = None
        self.run_delay: float = 0.0
        self.run_calls: list[tuple[Any, Any, dict[str, Any]]] = []
        self.stream_chunks: list[Any] = [
            sse("output", "Hello "),
            sse("logs", "loading weights"),
            sse("output", "World"),
            sse("done", ""),
        ]
        self.stream_error: BaseException | None = None
        self.stream_calls: list[tuple[Any, Any, dict[str, Any]]] = []
        self.predictions = FakePredictions()
        self.models = SimpleNamespace(name="models-namespace")
        self.deployments = SimpleNamespace(name="deployments-namespace")
        self.hardware = SimpleNamespace(name="hardware-namespace")
        self.collections = SimpleNamespace(name="collections-namespace")
        self.webhooks = SimpleNamespace(name="webhooks-namespace")

    def run(self, ref, input=None, **params):
        self.run_calls.append((ref, input, params))
        if self.run_error is not None:
            raise self.run_error
        return self.run_result

    async def async_run(self, ref, input=None, **params):
        if self.run_delay:
            await asyncio.sleep(self.run_delay)
        return self.run(ref, input=input, **params)

    def stream(self, ref, input=None, **params):
        self.stream_calls.append((ref, input, params))
        for chunk in self.stream_chunks:
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error

    async def async_stream(self, ref, input=None, **params):
        # The real SDK returns the async iterator from a coroutine
        return self._async_events(ref, input, params)

    async def _async_events(self, ref, input, params):
        self.stream_calls.append((ref, input, params))
        for chunk in self.stream_chunks:
            await asyncio.sleep(0)
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error

