"""
Position tables for each slide layout variant.

``x``, ``y`` and ``h`` are inches from the slide's top-left corner; ``w`` is
a fraction of the slide width.  Lookups only: element style overrides are
merged on top by the slide assembler.
"""
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional, Tuple

from .config import SlideLayout
from .errors import ConfigValidationError

PIXELS_PER_INCH = 96

# (width, height) in inches
SLIDE_SIZES: Dict[SlideLayout, Tuple[float, float]] = {
    SlideLayout.STANDARD: (10.0, 7.5),     # 4:3
    SlideLayout.WIDE: (13.333, 7.5),       # 16:9
    SlideLayout.CUSTOM: (13.333, 7.5),
}


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: Optional[float] = None

    def as_options(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class LayoutPositions:
    title: Rect
    text: Rect
    image: Rect
    table: Rect
    list: Rect
    link: Rect

    def for_kind(self, kind: str) -> Rect:
        return getattr(self, kind)


_BASE = LayoutPositions(
    title=Rect(0.5, 0.5, 0.90, 1.0),
    text=Rect(0.5, 1.5, 0.90),
    image=Rect(1.0, 2.0, 0.80),
    table=Rect(0.5, 2.0, 0.90),
    list=Rect(0.5, 2.0, 0.90),
    link=Rect(0.5, 2.0, 0.90),
)

POSITIONS: Dict[SlideLayout, LayoutPositions] = {
    SlideLayout.STANDARD: _BASE,
    SlideLayout.WIDE: replace(_BASE, image=Rect(1.0, 2.0, 0.85)),
    SlideLayout.CUSTOM: LayoutPositions(
        title=Rect(0.5, 0.5, 0.95, 1.0),
        text=Rect(0.5, 1.5, 0.95),
        image=Rect(0.5, 2.0, 0.90),
        table=Rect(0.5, 2.0, 0.95),
        list=Rect(0.5, 2.0, 0.95),
        link=Rect(0.5, 2.0, 0.95),
    ),
}


def px_to_in(pixels: float) -> float:
    return pixels / PIXELS_PER_INCH


def positions_for(layout: SlideLayout) -> LayoutPositions:
    try:
        return POSITIONS[layout]
    except KeyError:
        raise ConfigValidationError(f"Unknown layout variant: {layout!r}") from None


def slide_size(layout: SlideLayout) -> Tuple[float, float]:
    try:
        return SLIDE_SIZES[layout]
    except KeyError:
        raise ConfigValidationError(f"Unknown layout variant: {layout!r}") from None
