"""Review repository."""

from sqlmodel import Session, col, func, select

from src.storefront.entities.service.review.entity import Review
from src.storefront.entities.service.review.table import ReviewTable


class ReviewRepository:
    """Data-access layer for product reviews."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_approved(self, product_id: str, limit: int = 50) -> list[Review]:
        statement = (
            select(ReviewTable)
            .where(
                (ReviewTable.product_id == product_id)
                & (ReviewTable.is_approved == True)  # noqa: E712
            )
            .order_by(col(ReviewTable.created_at).desc())
            .limit(limit)
        )
        return [
            Review.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def rating_summary(self, product_id: str) -> dict[str, float | int]:
        average, total = self._session.exec(
            select(func.avg(ReviewTable.rating), func.count(ReviewTable.id)).where(
                (ReviewTable.product_id == product_id)
                & (ReviewTable.is_approved == True)  # noqa: E712
            )
        ).one()
        return {"average": round(float(average or 0), 1), "count": int(total)}

    def create(self, review: Review) -> Review:
        row = ReviewTable.model_validate(review.model_dump())
        self._session.add(row)
        self._session.flush()
        return Review.model_validate(row, from_attributes=True)

    def list_pending(self, limit: int = 100) -> list[Review]:
        """Reviews awaiting moderation, oldest first."""
        statement = (
            select(ReviewTable)
            .where(ReviewTable.is_approved == False)  # noqa: E712
            .order_by(col(ReviewTable.created_at))
            .limit(limit)
        )
        return [
            Review.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def set_approved(self, review_id: str, approved: bool = True) -> Review | None:
        row = self._session.get(ReviewTable, review_id)
        if row is None:
            return None
        row.is_approved = approved
        self._session.add(row)
        self._session.flush()
        return Review.model_validate(row, from_attributes=True)

    def delete(self, review_id: str) -> bool:
        row = self._session.get(ReviewTable, review_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True
