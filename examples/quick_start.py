"""
Quick Start Example - PostHog analytics for Replicate

This example runs a model, streams a language model, and polls an async
prediction, reporting each call to PostHog as a $ai_generation event.

Requires:
    REPLICATE_API_TOKEN  Replicate API token
    POSTHOG_API_KEY      PostHog project API key
    POSTHOG_HOST         PostHog host (default: https://us.i.posthog.com)
"""

import os
import time

from posthog import Posthog

from posthog_replicate import Replicate


def example_run(client: Replicate):
    """Run a model and wait for its output."""
    print("Example 1: run()")
    print("-" * 40)

    output = client.run(
        "openai/clip",
        input={"image": "https://replicate.delivery/pbxt/example/cat.jpg"},
        posthog_distinct_id="user_123",
        posthog_trace_id="quick-start",
        posthog_properties={"example": "run"},
    )
    print(f"Output: {output}")
    print()


def example_stream(client: Replicate):
    """Stream a language model and print tokens as they arrive."""
    print("Example 2: stream()")
    print("-" * 40)

    for event in client.stream(
        "meta/meta-llama-3-8b-instruct",
        input={"prompt": "Write a haiku about analytics."},
        posthog_distinct_id="user_123",
        posthog_trace_id="quick-start",
    ):
        print(str(event), end="", flush=True)
    print("\n")


def example_prediction(client: Replicate):
    """Create a prediction, then poll it until it finishes."""
    print("Example 3: predictions.create() / predictions.get()")
    print("-" * 40)

    # Tracking options given here are reused by every get() for this id
    prediction = client.predictions.create(
        model="black-forest-labs/flux-schnell",
        input={"prompt": "A beautiful sunset"},
        posthog_distinct_id="user_123",
        posthog_trace_id="quick-start",
    )

    while prediction.status not in ("succeeded", "failed", "canceled"):
        time.sleep(1)
        prediction = client.predictions.get(prediction.id)

    print(f"Status: {prediction.status}")
    print(f"Output: {prediction.output}")
    print()


if __name__ == "__main__":
    posthog = Posthog(
        os.environ["POSTHOG_API_KEY"],
        host=os.environ.get("POSTHOG_HOST", "https://us.i.posthog.com"),
    )
    client = Replicate(posthog)

    try:
        example_run(client)
        example_stream(client)
        example_prediction(client)
    finally:
        # Flush buffered events before exiting
        posthog.shutdown()
