"""Human-in-the-loop review of ambiguous duplicate groups."""

from pubdedupe.review.models import (
    DEFAULT_PAGE_SIZE,
    ReviewDecision,
    ReviewPage,
    ReviewSessionError,
    ReviewSessionState,
    ReviewStatus,
)
from pubdedupe.review.session import ReviewSession

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "ReviewDecision",
    "ReviewPage",
    "ReviewSession",
    "ReviewSessionError",
    "ReviewSessionState",
    "ReviewStatus",
]
