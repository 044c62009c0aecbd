"""Exception hierarchy for the recommendation service."""


class RecommendationError(Exception):
    """Base class for all recommendation service errors."""


class StoreError(RecommendationError):
    """A query against the interaction store failed."""


class StoreUnavailableError(StoreError):
    """The store could not be reached (connection refused, timeout, dropped connection)."""


class StoreQueryError(StoreError):
    """A single store query failed while the store itself was reachable."""


class RecommendationGenerationError(RecommendationError):
    """Top-level failure surfaced to callers of generate_recommendations."""

    def __init__(self, message: str = "Failed to generate recommendations", code: str = "RECOMMENDATION_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self):
        return f"<RecommendationGenerationError(code='{self.code}', message='{self.message}')>"
