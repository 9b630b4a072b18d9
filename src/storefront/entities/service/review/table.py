"""Review database table model."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class ReviewTable(EntityTable, table=True):
    product_id: str = Field(foreign_key="producttable.id", index=True)
    user_id: str | None = Field(default=None, foreign_key="usertable.id")
    reviewer_name: str
    reviewer_email: str | None = None
    rating: int
    title: str | None = None
    comment: str | None = None
    is_approved: bool = Field(default=False, index=True)
