"""Theme lookup tables for generated presentations."""
from dataclasses import dataclass
from typing import Dict, List, Union

from .config import PresentationTheme
from .errors import ConfigValidationError

PALETTE_SLOTS = (
    "heading", "subheading", "body", "background",
    "accent1", "accent2", "accent3", "accent4", "accent5",
)


@dataclass(frozen=True)
class FontSet:
    heading: str
    body: str
    accent: str


@dataclass(frozen=True)
class ThemeDefinition:
    name: str
    properties: Dict[str, str]
    color_palette: Dict[str, str]  # PALETTE_SLOTS → RRGGBB
    font_set: FontSet

    @property
    def heading_color(self) -> str:
        return self.color_palette["heading"]

    @property
    def body_color(self) -> str:
        return self.color_palette["body"]

    @property
    def background(self) -> str:
        return self.color_palette["background"]

    def palette_list(self) -> List[str]:
        return [self.color_palette[slot] for slot in PALETTE_SLOTS]


def _palette(*colors: str) -> Dict[str, str]:
    return dict(zip(PALETTE_SLOTS, colors))


THEMES: Dict[PresentationTheme, ThemeDefinition] = {
    PresentationTheme.DEFAULT: ThemeDefinition(
        name="Default",
        properties={"title": "Default Theme", "backgroundColor": "FFFFFF", "accentColor": "4472C4", "fontFamily": "Arial"},
        color_palette=_palette("0F3C5F", "4472C4", "333333", "FFFFFF", "4472C4", "5B9BD5", "8FAADC", "BDD7EE", "DEEBF7"),
        font_set=FontSet(heading="Arial", body="Arial", accent="Arial"),
    ),
    PresentationTheme.PROFESSIONAL: ThemeDefinition(
        name="Professional",
        properties={"title": "Professional Theme", "backgroundColor": "FFFFFF", "accentColor": "2E75B6", "fontFamily": "Arial"},
        color_palette=_palette("0F3C5F", "2E75B6", "333333", "FFFFFF", "2E75B6", "5B9BD5", "9CC3E5", "DEEBF6", "F2F9FC"),
        font_set=FontSet(heading="Arial", body="Arial", accent="Arial"),
    ),
    PresentationTheme.CREATIVE: ThemeDefinition(
        name="Creative",
        properties={"title": "Creative Theme", "backgroundColor": "F9F9F9", "accentColor": "FF5733", "fontFamily": "Calibri"},
        color_palette=_palette("6B5B95", "A084CA", "333333", "F9F9F9", "FF5733", "FFC300", "DAF7A6", "C70039", "900C3F"),
        font_set=FontSet(heading="Calibri", body="Calibri", accent="Calibri Light"),
    ),
    PresentationTheme.MINIMAL: ThemeDefinition(
        name="Minimal",
        properties={"title": "Minimal Theme", "backgroundColor": "FFFFFF", "accentColor": "999999", "fontFamily": "Helvetica"},
        color_palette=_palette("333333", "666666", "333333", "FFFFFF", "999999", "CCCCCC", "EEEEEE", "F5F5F5", "FAFAFA"),
        font_set=FontSet(heading="Helvetica", body="Helvetica", accent="Helvetica Neue"),
    ),
}


def theme_for(theme: Union[PresentationTheme, str]) -> ThemeDefinition:
    """
    Look up a theme by enum member or (case-insensitive) name.

    Raises:
        ConfigValidationError: If the theme is unknown
    """
    if not isinstance(theme, PresentationTheme):
        name = str(theme).strip().lower()
        matches = [t for t in PresentationTheme if name in (t.value, t.name.lower())]
        if not matches:
            raise ConfigValidationError(
                f"Theme '{theme}' not found. Available themes: {list_available_themes()}"
            )
        theme = matches[0]
    return THEMES[theme]


def list_available_themes() -> List[str]:
    return [t.value for t in THEMES]


def validate_theme(theme: Union[PresentationTheme, str]) -> bool:
    """True if *theme* names a known theme."""
    try:
        theme_for(theme)
        return True
    except ConfigValidationError:
        return False
