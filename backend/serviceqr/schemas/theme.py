"""Theme configuration schemas"""
from pydantic import BaseModel, ConfigDict
from typing import Literal, Optional


GlassBlur = Literal["none", "sm", "md", "lg", "xl"]
BorderStyle = Literal["square", "rounded", "pill"]
ButtonStyle = Literal["rounded", "square", "pill"]
FontPairing = Literal["modern", "elegant", "playful"]


class ThemeConfig(BaseModel):
    """Sparse per-restaurant theme override, as saved by the settings editor.

    Colors and the overlay percentage are not range- or format-checked;
    whatever the editor sends is stored and rendered as-is.
    """
    # Colors
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    primary_hover: Optional[str] = None
    primary_light: Optional[str] = None
    background_color: Optional[str] = None
    foreground_color: Optional[str] = None

    # Advanced design
    bg_image_url: Optional[str] = None
    overlay_opacity: Optional[int] = None  # 0-90
    glass_blur: Optional[GlassBlur] = None
    border_radius: Optional[BorderStyle] = None

    # Legacy
    font_family: Optional[str] = None
    button_style: Optional[ButtonStyle] = None

    # Typography
    font_pairing: Optional[FontPairing] = None

    model_config = ConfigDict(extra="ignore")

    def to_override(self) -> dict:
        """Only the fields the editor actually set."""
        return self.model_dump(exclude_none=True)
