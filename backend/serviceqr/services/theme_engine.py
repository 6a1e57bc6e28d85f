"""
Theme Engine
Default resolution and presentation artifacts for per-restaurant branding
"""
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, List, Mapping, Optional, Union

from serviceqr.schemas.theme import ThemeConfig


@dataclass(frozen=True)
class ResolvedTheme:
    """A theme with every field populated.

    Values are carried exactly as stored; nothing here checks color syntax,
    enum membership or the overlay range.
    """
    # Colors
    primary_color: str
    secondary_color: str
    primary_hover: str
    primary_light: str
    background_color: str
    foreground_color: str

    # Advanced design
    bg_image_url: str  # "" means no background image
    overlay_opacity: int
    glass_blur: str
    border_radius: str

    # Legacy
    font_family: str
    button_style: str

    # Typography
    font_pairing: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_THEME = ResolvedTheme(
    primary_color="#6366f1",
    secondary_color="#8b5cf6",
    primary_hover="#4f46e5",
    primary_light="#a5b4fc",
    background_color="#0f172a",
    foreground_color="#f8fafc",
    bg_image_url="",
    overlay_opacity=40,
    glass_blur="lg",
    border_radius="rounded",
    font_family="Inter",
    button_style="rounded",
    font_pairing="modern",
)

THEME_FIELDS = tuple(f.name for f in fields(ResolvedTheme))

# Fields where an explicit zero is a real value, not "unset"
PRESENCE_CHECKED_FIELDS = frozenset({"overlay_opacity"})

FONT_PAIRINGS: Dict[str, Dict[str, Any]] = {
    "modern": {
        "heading": "Inter",
        "body": "Inter",
        "weights": [400, 500, 600, 700],
    },
    "elegant": {
        "heading": "Playfair Display",
        "body": "Lato",
        "weights": [400, 500, 600, 700],
    },
    "playful": {
        "heading": "Poppins",
        "body": "Nunito",
        "weights": [400, 500, 600, 700],
    },
}

BLUR_PIXELS = {"sm": 4, "md": 8, "lg": 16, "xl": 24}

ThemeInput = Union[ThemeConfig, ResolvedTheme, Mapping[str, Any], None]


def _as_mapping(theme_config: ThemeInput) -> Mapping[str, Any]:
    if theme_config is None:
        return {}
    if isinstance(theme_config, ResolvedTheme):
        return theme_config.to_dict()
    if isinstance(theme_config, ThemeConfig):
        return theme_config.model_dump()
    return theme_config


def resolve_theme(theme_config: ThemeInput = None) -> ResolvedTheme:
    """Merge a partial theme override with DEFAULT_THEME.

    String fields fall back to the default when missing, None or empty.
    ``overlay_opacity`` only falls back when missing or None, so a stored 0
    is kept. Resolving an already resolved theme returns an equal value.
    """
    override = _as_mapping(theme_config)
    resolved = {}
    for name in THEME_FIELDS:
        value = override.get(name)
        if name in PRESENCE_CHECKED_FIELDS:
            resolved[name] = value if value is not None else getattr(DEFAULT_THEME, name)
        else:
            resolved[name] = value or getattr(DEFAULT_THEME, name)
    return ResolvedTheme(**resolved)


def font_pairing_for(theme: ResolvedTheme) -> Dict[str, Any]:
    """Heading/body fonts for the theme, modern pairing when unknown."""
    return FONT_PAIRINGS.get(theme.font_pairing, FONT_PAIRINGS["modern"])


# =============================================================================
# PRESENTATION COMPILER
# =============================================================================

def border_radius_value(style: str) -> str:
    """CSS radius for a corner style."""
    if style == "square":
        return "0px"
    if style == "pill":
        return "9999px"
    return "1rem"


def blur_pixels(blur: str) -> int:
    return BLUR_PIXELS.get(blur, 0)


def generate_css_variables(theme: ResolvedTheme) -> str:
    """One custom property per semantic role, ready for a ``:root`` block."""
    bg_image = f"url({theme.bg_image_url})" if theme.bg_image_url else "none"
    variables = [
        ("--primary", theme.primary_color),
        ("--primary-hover", theme.primary_hover),
        ("--primary-light", theme.primary_light),
        ("--secondary", theme.secondary_color),
        ("--background", theme.background_color),
        ("--foreground", theme.foreground_color),
        ("--radius", border_radius_value(theme.border_radius)),
        ("--bg-image", bg_image),
        ("--overlay-opacity", f"{theme.overlay_opacity / 100:g}"),
    ]
    return "\n".join(f"{name}: {value};" for name, value in variables)


def glass_classes(theme: ResolvedTheme) -> str:
    """Utility class tokens shared by every card-like container."""
    blur_class = "" if theme.glass_blur == "none" else f"backdrop-blur-{theme.glass_blur}"
    if theme.border_radius == "square":
        radius_class = "rounded-none"
    elif theme.border_radius == "pill":
        radius_class = "rounded-3xl"
    else:
        radius_class = "rounded-2xl"

    tokens = ["bg-white/10", blur_class, "border", "border-white/20", "shadow-xl", radius_class]
    return " ".join(t for t in tokens if t)


def glass_effect(theme: ResolvedTheme) -> Dict[str, str]:
    """Inline-style equivalent of glass_classes()."""
    return {
        "background": "rgba(255, 255, 255, 0.1)",
        "backdrop_blur": f"{blur_pixels(theme.glass_blur)}px",
        "border": "1px solid rgba(255, 255, 255, 0.2)",
        "shadow": "0 25px 50px -12px rgba(0, 0, 0, 0.25)",
    }


def generate_background_styles(theme: ResolvedTheme) -> str:
    """Page background: an image with a dark overlay, or a flat color.

    Exactly one of the two branches is emitted.
    """
    if theme.bg_image_url:
        return (
            "body {\n"
            f"  background-image: url({theme.bg_image_url});\n"
            "  background-size: cover;\n"
            "  background-position: center;\n"
            "  background-attachment: fixed;\n"
            "}\n"
            "body::before {\n"
            "  content: '';\n"
            "  position: fixed;\n"
            "  top: 0;\n"
            "  left: 0;\n"
            "  right: 0;\n"
            "  bottom: 0;\n"
            f"  background: rgba(0, 0, 0, {theme.overlay_opacity / 100:g});\n"
            "  z-index: -1;\n"
            "}\n"
        )
    return (
        "body {\n"
        f"  background-color: {theme.background_color};\n"
        "}\n"
    )


@dataclass(frozen=True)
class PageTheme:
    """Everything a page shell needs to render a restaurant's branding."""
    theme: ResolvedTheme
    css_variables: str
    background_styles: str
    glass_classes: str
    glass_effect: Dict[str, str]
    fonts: Dict[str, Any]

    @property
    def stylesheet(self) -> str:
        indented = "\n".join(f"  {line}" for line in self.css_variables.splitlines())
        return f":root {{\n{indented}\n}}\n{self.background_styles}"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["stylesheet"] = self.stylesheet
        return data


def build_page_theme(theme_config: ThemeInput = None) -> PageTheme:
    """Resolve a stored override and compile every presentation artifact."""
    theme = resolve_theme(theme_config)
    return PageTheme(
        theme=theme,
        css_variables=generate_css_variables(theme),
        background_styles=generate_background_styles(theme),
        glass_classes=glass_classes(theme),
        glass_effect=glass_effect(theme),
        fonts=font_pairing_for(theme),
    )


def changed_fields(previous: Optional[Mapping[str, Any]], current: Mapping[str, Any]) -> List[str]:
    """Names of theme fields whose resolved value differs between two overrides."""
    before = resolve_theme(previous)
    after = resolve_theme(current)
    return [name for name in THEME_FIELDS if getattr(before, name) != getattr(after, name)]
