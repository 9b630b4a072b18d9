"""Entity package: Review."""

from .entity import PublicReview, Review
from .repository import ReviewRepository
from .table import ReviewTable

__all__ = ["PublicReview", "Review", "ReviewRepository", "ReviewTable"]
