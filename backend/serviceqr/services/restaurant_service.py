"""Restaurant lookups and theme updates."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from serviceqr.core.responses import MutationResult, error_message
from serviceqr.models.restaurant import Restaurant
from serviceqr.schemas.restaurant import RestaurantResponse
from serviceqr.schemas.theme import ThemeConfig
from serviceqr.services.theme_engine import changed_fields

logger = logging.getLogger(__name__)


def get_restaurant_by_slug(db: Session, slug: str) -> Optional[Restaurant]:
    """Fetch a restaurant by its slug, None when unknown or unreadable."""
    if not slug:
        return None
    try:
        return db.query(Restaurant).filter(Restaurant.slug == slug).first()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Error looking up restaurant '{slug}'")
        return None


def get_restaurant_by_id(db: Session, restaurant_id: int) -> Optional[Restaurant]:
    return db.query(Restaurant).filter(Restaurant.id == restaurant_id).first()


def update_restaurant_theme(db: Session, restaurant_id: int, theme_config: ThemeConfig) -> MutationResult:
    """Replace a restaurant's stored theme override.

    The whole override is written; two concurrent saves are last-write-wins.
    """
    override = theme_config.to_override()
    try:
        restaurant = get_restaurant_by_id(db, restaurant_id)
        if restaurant is None:
            logger.warning(f"Theme update for unknown restaurant {restaurant_id}")
            return MutationResult.fail("No restaurant found with that ID.")

        changed = changed_fields(restaurant.theme_config, override)
        restaurant.theme_config = override
        db.commit()
        db.refresh(restaurant)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error updating theme for restaurant {restaurant_id}")
        return MutationResult.fail(error_message(e))

    logger.info(f"Theme updated for restaurant '{restaurant.slug}' (changed: {', '.join(changed) or 'none'})")
    return MutationResult.ok(RestaurantResponse.model_validate(restaurant).model_dump())
