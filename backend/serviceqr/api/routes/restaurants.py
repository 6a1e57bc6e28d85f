"""Restaurant page context and theme routes."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from serviceqr.core.responses import mutation_response
from serviceqr.db.session import DbSession
from serviceqr.schemas.restaurant import RestaurantResponse
from serviceqr.schemas.theme import ThemeConfig
from serviceqr.services.restaurant_service import get_restaurant_by_slug, update_restaurant_theme
from serviceqr.services.theme_engine import build_page_theme

router = APIRouter()


def _restaurant_or_404(db: DbSession, slug: str):
    restaurant = get_restaurant_by_slug(db, slug)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant


def page_context(restaurant, **extra) -> dict:
    """Restaurant plus its compiled theme, as a page shell renders it."""
    context = {
        "restaurant": RestaurantResponse.model_validate(restaurant).model_dump(),
        "theme": build_page_theme(restaurant.theme_config).to_dict(),
    }
    context.update(extra)
    return context


@router.get("/restaurants/{slug}")
def get_restaurant_page(slug: str, db: DbSession):
    """Restaurant landing page context."""
    return page_context(_restaurant_or_404(db, slug))


@router.get("/restaurants/{slug}/theme")
def get_restaurant_theme(slug: str, db: DbSession):
    restaurant = _restaurant_or_404(db, slug)
    return build_page_theme(restaurant.theme_config).to_dict()


@router.get("/restaurants/{slug}/theme.css", response_class=PlainTextResponse)
def get_restaurant_stylesheet(slug: str, db: DbSession):
    """CSS variables and background rules for the restaurant's pages."""
    restaurant = _restaurant_or_404(db, slug)
    stylesheet = build_page_theme(restaurant.theme_config).stylesheet
    return PlainTextResponse(stylesheet, media_type="text/css")


@router.put("/restaurants/{restaurant_id}/theme")
def save_restaurant_theme(restaurant_id: int, theme: ThemeConfig, db: DbSession):
    """Replace the restaurant's theme override. Last save wins."""
    return mutation_response(update_restaurant_theme(db, restaurant_id, theme))
