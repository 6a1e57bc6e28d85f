"""Tests for restaurant pages, theme persistence and app-level endpoints."""

import io
import wave

from serviceqr.models import Restaurant
from serviceqr.schemas.theme import ThemeConfig
from serviceqr.services.restaurant_service import get_restaurant_by_slug, update_restaurant_theme
from serviceqr.services.sound import notification_tone_wav


class TestRestaurantService:

    def test_lookup_by_slug(self, db_session, mario_bistro):
        assert get_restaurant_by_slug(db_session, "mario-bistro").id == mario_bistro.id
        assert get_restaurant_by_slug(db_session, "ghost") is None
        assert get_restaurant_by_slug(db_session, "") is None

    def test_lookup_database_error_reads_as_unknown(self, db_session, mario_bistro, broken_reads):
        broken_reads(Restaurant)
        assert get_restaurant_by_slug(db_session, "mario-bistro") is None

    def test_theme_update_stores_sparse_override(self, db_session, mario_bistro):
        result = update_restaurant_theme(
            db_session, mario_bistro.id, ThemeConfig(secondary_color="#222222", overlay_opacity=0),
        )
        assert result.success
        db_session.refresh(mario_bistro)
        assert mario_bistro.theme_config == {"secondary_color": "#222222", "overlay_opacity": 0}

    def test_theme_update_unknown_restaurant(self, db_session):
        result = update_restaurant_theme(db_session, 404, ThemeConfig())
        assert not result.success
        assert result.error == "No restaurant found with that ID."

    def test_last_write_wins(self, db_session, mario_bistro):
        update_restaurant_theme(db_session, mario_bistro.id, ThemeConfig(primary_color="#111111"))
        update_restaurant_theme(db_session, mario_bistro.id, ThemeConfig(primary_color="#999999"))
        db_session.refresh(mario_bistro)
        assert mario_bistro.theme_config == {"primary_color": "#999999"}


class TestRestaurantRoutes:

    def test_page_context(self, client, mario_bistro):
        res = client.get("/api/v1/restaurants/mario-bistro")
        assert res.status_code == 200
        data = res.json()
        assert data["restaurant"]["name"] == "Mario's Bistro"
        theme = data["theme"]
        assert theme["theme"]["primary_color"] == "#b91c1c"
        assert theme["theme"]["secondary_color"] == "#8b5cf6"
        assert "--overlay-opacity: 0;" in theme["css_variables"]
        assert theme["glass_classes"].startswith("bg-white/10")

    def test_page_context_missing(self, client):
        assert client.get("/api/v1/restaurants/ghost").status_code == 404

    def test_theme(self, client, sakura_sushi):
        res = client.get("/api/v1/restaurants/sakura-sushi/theme")
        assert res.status_code == 200
        assert res.json()["theme"]["primary_color"] == "#6366f1"

    def test_stylesheet(self, client, mario_bistro):
        res = client.get("/api/v1/restaurants/mario-bistro/theme.css")
        assert res.status_code == 200
        assert res.headers["content-type"].startswith("text/css")
        assert res.text.startswith(":root {")
        assert "--primary: #b91c1c;" in res.text

    def test_save_theme_round_trip(self, client, sakura_sushi):
        res = client.put(f"/api/v1/restaurants/{sakura_sushi.id}/theme", json={
            "primary_color": "#0ea5e9",
            "bg_image_url": "https://cdn.example.com/sakura.jpg",
            "glass_blur": "md",
            "border_radius": "pill",
            "font_pairing": "elegant",
        })
        assert res.status_code == 200
        assert res.json()["success"] is True

        css = client.get("/api/v1/restaurants/sakura-sushi/theme.css").text
        assert "--primary: #0ea5e9;" in css
        assert "--radius: 9999px;" in css
        assert "background-image: url(https://cdn.example.com/sakura.jpg);" in css
        assert "background-color" not in css

        theme = client.get("/api/v1/restaurants/sakura-sushi/theme").json()
        assert theme["fonts"]["heading"] == "Playfair Display"
        assert theme["glass_effect"]["backdrop_blur"] == "8px"

    def test_save_theme_unknown_restaurant(self, client):
        res = client.put("/api/v1/restaurants/404/theme", json={"primary_color": "#000"})
        assert res.status_code == 400
        assert res.json()["error"] == "No restaurant found with that ID."

    def test_save_theme_rejects_unknown_enum(self, client, sakura_sushi):
        res = client.put(f"/api/v1/restaurants/{sakura_sushi.id}/theme", json={"glass_blur": "huge"})
        assert res.status_code == 422


class TestAppEndpoints:

    def test_health(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json()["status"] == "healthy"

    def test_readiness(self, client):
        res = client.get("/health/ready")
        assert res.status_code == 200
        assert res.json()["checks"]["database"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["message"] == "ServiceQR API"

    def test_security_headers(self, client):
        res = client.get("/health")
        assert res.headers["X-Content-Type-Options"] == "nosniff"
        assert res.headers["X-Frame-Options"] == "DENY"
        assert res.headers["Content-Security-Policy"] == "default-src 'none'; frame-ancestors 'none'"

    def test_tone(self, client):
        res = client.get("/api/v1/dashboard/tone.wav")
        assert res.status_code == 200
        assert res.headers["content-type"] == "audio/wav"
        assert res.content[:4] == b"RIFF"


def test_tone_shape():
    with wave.open(io.BytesIO(notification_tone_wav()), "rb") as wav:
        assert wav.getnchannels() == 1
        assert wav.getsampwidth() == 2
        assert wav.getnframes() == wav.getframerate() // 2
