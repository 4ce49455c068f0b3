class JobRouterError(Exception):
    """Base exception for the job router service."""


class RetrievalError(JobRouterError):
    """Raised when the job store or vector search cannot serve a request."""


class CompletionError(JobRouterError):
    """Raised when the completion endpoint returns no usable message."""
