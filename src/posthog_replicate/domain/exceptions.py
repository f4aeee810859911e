"""Exceptions raised by the PostHog Replicate integration itself.

Errors coming from Replicate are never wrapped in these classes: they reach
the caller exactly as the Replicate client raised them. Only misuse of this
package raises the exceptions below.

Exception Hierarchy:
    - PostHogReplicateError: Base exception for all package errors
    - ConfigurationError: The wrapper was built with unusable collaborators
    - TrackingParamsError: A ``posthog_*`` keyword argument has the wrong type
"""


class PostHogReplicateError(Exception):
    """Base exception for all errors raised by this package."""


class ConfigurationError(PostHogReplicateError):
    """Raised when the wrapper cannot be constructed.

    Common causes:
        - No PostHog client was given
        - The given PostHog client has no ``capture`` method
    """


class TrackingParamsError(PostHogReplicateError, TypeError):
    """Raised when a tracking keyword argument cannot be used.

    Raised before the Replicate call is made, so nothing reaches Replicate
    and no event is emitted.
    """


__all__ = ["ConfigurationError", "PostHogReplicateError", "TrackingParamsError"]
