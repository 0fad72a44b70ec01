"""
Error taxonomy for the relevance engine.

InputError and EmptyInputError are per-chunk / per-user problems with the data.
ExternalServiceError wraps provider failures (LLM, embeddings) and is always
recoverable by falling back to a prior-stage score. DataConsistencyError is
raised by stores on duplicate or illegal writes and treated as a no-op by callers.
"""


class RelevanceError(Exception):
    """Base class for all relevance engine errors."""


class InputError(RelevanceError, ValueError):
    """Missing embedding, malformed text, or mismatched vector dimensions."""


class EmptyInputError(InputError):
    """An aggregate (e.g. a centroid) was requested over zero inputs."""


class ExternalServiceError(RelevanceError):
    """An external provider failed, timed out, or returned an unusable response."""

    def __init__(self, message: str, provider: str = "", retryable: bool = True):
        super().__init__(message)
        self.provider = provider
        self.retryable = retryable


class DataConsistencyError(RelevanceError):
    """Duplicate Signal for a (user, chunk) pair, or an illegal state transition."""


class SignalNotFoundError(RelevanceError, LookupError):
    """Feedback arrived for a Signal id the store does not know."""


__all__ = [
    "RelevanceError",
    "InputError",
    "EmptyInputError",
    "ExternalServiceError",
    "DataConsistencyError",
    "SignalNotFoundError",
]
