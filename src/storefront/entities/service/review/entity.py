"""Entity: Review."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.storefront.entities.core._base import Entity


class Review(Entity):
    product_id: str
    user_id: str | None = None
    reviewer_name: str = Field(min_length=1, max_length=100)
    reviewer_email: str | None = None
    rating: int = Field(ge=1, le=5)
    title: str | None = Field(default=None, max_length=200)
    comment: str | None = Field(default=None, max_length=2000)
    is_approved: bool = False


class PublicReview(BaseModel):
    """Review as shown on the storefront, without reviewer contact details."""

    id: str
    product_id: str
    reviewer_name: str
    rating: int
    title: str | None = None
    comment: str | None = None
    is_approved: bool
    created_at: datetime

    @classmethod
    def from_review(cls, review: Review) -> "PublicReview":
        return cls.model_validate(review.model_dump(exclude={"user_id", "reviewer_email"}))
