import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from serviceqr.core.responses import MutationResult, error_message
from serviceqr.core.sanitize import sanitize_text
from serviceqr.models import Feedback, Restaurant, ServiceRequest, Table
from serviceqr.schemas.feedback import FeedbackResponse, FeedbackStats, FeedbackWithDetails

logger = logging.getLogger(__name__)


class FeedbackService:
    def __init__(self, db: Session):
        self.db = db

    def create_feedback(
        self,
        table_id: int,
        service_request_id: Optional[int],
        rating: int,
        comment: Optional[str] = None,
    ) -> MutationResult:
        """Store a guest rating. Feedback is never edited afterwards."""
        try:
            feedback = Feedback(
                table_id=table_id,
                service_request_id=service_request_id,
                rating=rating,
                comment=sanitize_text(comment),
            )
        except ValueError as e:
            return MutationResult.fail(str(e))

        try:
            if service_request_id is not None:
                owner = (
                    self.db.query(ServiceRequest.table_id)
                    .filter(ServiceRequest.id == service_request_id)
                    .scalar()
                )
                if owner != table_id:
                    return MutationResult.fail("Service request does not belong to this table")

            self.db.add(feedback)
            self.db.commit()
            self.db.refresh(feedback)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Error submitting feedback for table {table_id}")
            return MutationResult.fail(error_message(e))

        logger.info(f"Feedback {feedback.id} ({feedback.rating}/5) received for table {table_id}")
        return MutationResult.ok(FeedbackResponse.model_validate(feedback).model_dump())

    def get_by_restaurant(self, restaurant_id: int, limit: int = 50) -> List[FeedbackWithDetails]:
        """Latest feedback of a restaurant, newest first."""
        rows = (
            self.db.query(Feedback, Table, Restaurant, ServiceRequest.type)
            .join(Table, Feedback.table_id == Table.id)
            .join(Restaurant, Table.restaurant_id == Restaurant.id)
            .outerjoin(ServiceRequest, Feedback.service_request_id == ServiceRequest.id)
            .filter(Restaurant.id == restaurant_id)
            .order_by(Feedback.created_at.desc(), Feedback.id.desc())
            .limit(limit)
            .all()
        )
        return [
            FeedbackWithDetails(
                id=feedback.id,
                table_id=feedback.table_id,
                service_request_id=feedback.service_request_id,
                rating=feedback.rating,
                comment=feedback.comment,
                created_at=feedback.created_at,
                table_number=table.table_number,
                restaurant_id=restaurant.id,
                restaurant_name=restaurant.name,
                restaurant_slug=restaurant.slug,
                service_type=service_type,
            )
            for feedback, table, restaurant, service_type in rows
        ]

    def get_stats(self, restaurant_id: int) -> FeedbackStats:
        """Count, mean rating (one decimal) and 1-5 distribution."""
        ratings = [
            r for (r,) in self.db.query(Feedback.rating)
            .join(Table, Feedback.table_id == Table.id)
            .filter(Table.restaurant_id == restaurant_id)
            .all()
        ]
        total = len(ratings)
        average = sum(ratings) / total if total else 0

        distribution = {star: 0 for star in range(1, 6)}
        for rating in ratings:
            if rating in distribution:
                distribution[rating] += 1

        return FeedbackStats(total=total, average=round(average, 1), distribution=distribution)
