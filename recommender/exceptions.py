"""
Recommendation client exceptions.

None of these are retried by the client; callers decide what to show the user.
"""


class RecommendationError(Exception):
    """Base exception for failed prediction calls."""
    pass


class NetworkTimeoutError(RecommendationError, TimeoutError):
    """Raised when the service does not answer within the deadline."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Request timed out after {timeout_seconds:g}s")


class ServiceConnectionError(RecommendationError):
    """Raised when the request fails before any response arrives."""
    pass


class ServerStatusError(RecommendationError):
    """Raised when the service answers with a non-200 status. Keeps the raw body."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Server {status}: {body}")


class ResponseDecodeError(RecommendationError):
    """Raised when a 200 body cannot be decoded into a prediction response."""
    pass
