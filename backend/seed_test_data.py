"""Seed demo restaurants for local development.

Creates the example tenants linked from the landing page (mario-bistro,
sakura-sushi, the-grill) with a few tables each, so guest and dashboard
URLs work against a fresh database. Running it twice is harmless.

Usage:
    cd backend
    python seed_test_data.py
"""

import sys
import os

# Ensure the backend package is importable
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from serviceqr.db.session import SessionLocal, engine
from serviceqr.db.base import Base
from serviceqr.models import Restaurant, Table


DEMO_RESTAURANTS = [
    {
        "slug": "mario-bistro",
        "name": "Mario's Bistro",
        "theme_config": {
            "primary_color": "#ea580c",
            "secondary_color": "#dc2626",
            "primary_hover": "#c2410c",
            "primary_light": "#fdba74",
            "font_pairing": "elegant",
        },
        "tables": ["1", "2", "3", "4", "Patio 1", "Patio 2"],
    },
    {
        "slug": "sakura-sushi",
        "name": "Sakura Sushi",
        "theme_config": {
            "primary_color": "#ec4899",
            "secondary_color": "#f472b6",
            "glass_blur": "md",
            "border_radius": "pill",
        },
        "tables": ["1", "2", "3", "Bar 1"],
    },
    {
        "slug": "the-grill",
        "name": "The Grill",
        "theme_config": {
            "primary_color": "#d97706",
            "background_color": "#1c1917",
            "overlay_opacity": 60,
            "border_radius": "square",
            "font_pairing": "playful",
        },
        "tables": ["1", "2", "3", "4", "5"],
    },
]


def seed():
    """Insert demo data, creating tables first for SQLite."""
    if engine.url.get_backend_name() == "sqlite":
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        created = _seed_all(db)
        db.commit()
        print(f"Seed data committed successfully ({created} new rows).")
    except Exception as e:
        db.rollback()
        print(f"Error seeding data: {e}")
        raise
    finally:
        db.close()


def _seed_all(db) -> int:
    """Add any demo restaurant or table that is missing. Returns the number of new rows."""
    created = 0
    for spec in DEMO_RESTAURANTS:
        restaurant = db.query(Restaurant).filter(Restaurant.slug == spec["slug"]).first()
        if restaurant is None:
            restaurant = Restaurant(slug=spec["slug"], name=spec["name"], theme_config=spec["theme_config"])
            db.add(restaurant)
            db.flush()
            created += 1
            print(f"  + Restaurant {spec['slug']}")

        existing = {t.table_number for t in restaurant.tables}
        for number in spec["tables"]:
            if number in existing:
                continue
            db.add(Table(
                restaurant_id=restaurant.id,
                table_number=number,
                qr_code_id=f"{spec['slug']}-table-{number.lower().replace(' ', '-')}",
            ))
            created += 1
        db.flush()
    return created


if __name__ == "__main__":
    print("=" * 60)
    print("ServiceQR - Seed Demo Data")
    print("=" * 60)
    seed()
