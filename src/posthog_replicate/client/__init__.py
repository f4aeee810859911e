"""Instrumented client interfaces for Replicate."""

from posthog_replicate.client.predictions import TrackedPredictions
from posthog_replicate.client.replicate import Replicate

__all__ = ["Replicate", "TrackedPredictions"]
