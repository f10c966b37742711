"""
Conversion configuration.

A :class:`ConversionConfig` is built once per conversion and never mutated;
use :func:`reset_to_defaults` or :func:`dataclasses.replace` to derive a
variant.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import soupsieve

from .errors import ConfigValidationError

logger = logging.getLogger(__name__)


class SlideLayout(str, Enum):
    STANDARD = "standard"
    WIDE = "wide"
    CUSTOM = "custom"


class PresentationTheme(str, Enum):
    DEFAULT = "default"
    PROFESSIONAL = "professional"
    CREATIVE = "creative"
    MINIMAL = "minimal"


class SplitStrategy(str, Enum):
    BY_H1 = "by_h1"
    BY_H2 = "by_h2"
    BY_CUSTOM_SELECTOR = "by_custom_selector"
    NO_SPLIT = "no_split"


ELEMENT_KINDS = ("text", "image", "table", "list", "link")

LAYOUT_LABELS = {
    SlideLayout.STANDARD: "Standard (4:3)",
    SlideLayout.WIDE: "Widescreen (16:9)",
    SlideLayout.CUSTOM: "Custom",
}

SPLIT_LABELS = {
    SplitStrategy.BY_H1: "By H1 headings",
    SplitStrategy.BY_H2: "By H2 headings",
    SplitStrategy.BY_CUSTOM_SELECTOR: "By custom selector",
    SplitStrategy.NO_SPLIT: "No splitting (single slide)",
}


@dataclass(frozen=True)
class ImageProcessingOptions:
    max_width: Optional[int] = 800
    max_height: Optional[int] = 600
    preserve_aspect_ratio: bool = True
    quality: int = 80  # 1-100, JPEG re-encode quality


@dataclass(frozen=True)
class ConversionConfig:
    """Options for one HTML → deck conversion.

    Parameters
    ----------
    layout
        Slide layout variant; selects the position table and slide size.
    include_images
        Render ``image`` elements.  When ``False`` they are skipped.
    image_options
        Resize / re-encode settings for embedded images.
    theme
        Named color/font theme.
    split_strategy
        How the document is cut into slides.
    custom_selector
        CSS selector used by :attr:`SplitStrategy.BY_CUSTOM_SELECTOR`.
        ``None`` falls back to ``h1``.
    preserve_links
        Render ``link`` elements as hyperlinks.
    style_overrides
        Per element kind (``text``, ``image``, …) option overrides that win
        over the layout table.
    image_fetch_timeout
        Seconds allowed for fetching one remote image.
    """

    layout: SlideLayout = SlideLayout.STANDARD
    include_images: bool = True
    image_options: ImageProcessingOptions = field(default_factory=ImageProcessingOptions)
    theme: PresentationTheme = PresentationTheme.DEFAULT
    split_strategy: SplitStrategy = SplitStrategy.BY_H1
    custom_selector: Optional[str] = None
    preserve_links: bool = True
    style_overrides: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    image_fetch_timeout: float = 10.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversionConfig":
        """Build a config from plain values (enum names are case-insensitive)."""
        values = dict(data)
        if "layout" in values:
            values["layout"] = _coerce_enum(SlideLayout, values["layout"], "layout")
        if "theme" in values:
            values["theme"] = _coerce_enum(PresentationTheme, values["theme"], "theme")
        if "split_strategy" in values:
            values["split_strategy"] = _coerce_enum(SplitStrategy, values["split_strategy"], "split_strategy")
        if isinstance(values.get("image_options"), Mapping):
            values["image_options"] = ImageProcessingOptions(**values["image_options"])

        unknown = set(values) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigValidationError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**values)

    def validate(self) -> "ConversionConfig":
        """Raise :class:`ConfigValidationError` on any invalid value; return self."""
        if not isinstance(self.layout, SlideLayout):
            raise ConfigValidationError(f"Unknown layout variant: {self.layout!r}")
        if not isinstance(self.theme, PresentationTheme):
            raise ConfigValidationError(f"Unknown theme: {self.theme!r}")
        if not isinstance(self.split_strategy, SplitStrategy):
            raise ConfigValidationError(f"Unknown split strategy: {self.split_strategy!r}")

        if self.split_strategy is SplitStrategy.BY_CUSTOM_SELECTOR and self.custom_selector:
            try:
                soupsieve.compile(self.custom_selector)
            except soupsieve.SelectorSyntaxError as exc:
                raise ConfigValidationError(
                    f"Invalid custom selector {self.custom_selector!r}: {exc}"
                ) from exc

        opts = self.image_options
        if not 1 <= opts.quality <= 100:
            raise ConfigValidationError(f"Image quality must be between 1 and 100, got {opts.quality}")
        for name in ("max_width", "max_height"):
            value = getattr(opts, name)
            if value is not None and value <= 0:
                raise ConfigValidationError(f"image_options.{name} must be positive, got {value}")

        if self.image_fetch_timeout <= 0:
            raise ConfigValidationError("image_fetch_timeout must be positive")

        for kind, override in self.style_overrides.items():
            if kind not in ELEMENT_KINDS:
                raise ConfigValidationError(
                    f"Style override for unknown element kind {kind!r}; expected one of {ELEMENT_KINDS}"
                )
            if not isinstance(override, Mapping):
                raise ConfigValidationError(f"Style override for {kind!r} must be a mapping")
        return self


def _coerce_enum(enum_cls, value, name):
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text.lower() in (member.value, member.name.lower()):
            return member
    choices = ", ".join(m.value for m in enum_cls)
    raise ConfigValidationError(f"Invalid {name} {value!r}; choose one of: {choices}")


def default_config() -> ConversionConfig:
    return ConversionConfig()


def reset_to_defaults(**overrides) -> ConversionConfig:
    """Return the default config with *overrides* applied."""
    config = default_config()
    if overrides:
        config = replace(config, **overrides)
    return config


def describe_config(config: ConversionConfig) -> str:
    """Human-readable one-line summary of *config*."""
    from .theme_loader import theme_for

    parts = [
        f"Layout: {LAYOUT_LABELS.get(config.layout, config.layout)}",
        f"Theme: {theme_for(config.theme).name}",
        f"Split: {SPLIT_LABELS.get(config.split_strategy, config.split_strategy)}",
    ]
    if config.split_strategy is SplitStrategy.BY_CUSTOM_SELECTOR:
        parts[-1] += f" ({config.custom_selector or 'h1'})"
    parts.append(f"Images: {'Included' if config.include_images else 'Excluded'}")
    parts.append(f"Links: {'Preserved' if config.preserve_links else 'Removed'}")
    return ", ".join(parts)


def as_dict(config: ConversionConfig) -> Dict[str, Any]:
    """Plain-value dump, the inverse of :meth:`ConversionConfig.from_dict`."""
    opts = config.image_options
    return {
        "layout": config.layout.value,
        "include_images": config.include_images,
        "image_options": {
            "max_width": opts.max_width,
            "max_height": opts.max_height,
            "preserve_aspect_ratio": opts.preserve_aspect_ratio,
            "quality": opts.quality,
        },
        "theme": config.theme.value,
        "split_strategy": config.split_strategy.value,
        "custom_selector": config.custom_selector,
        "preserve_links": config.preserve_links,
        "style_overrides": {k: dict(v) for k, v in config.style_overrides.items()},
        "image_fetch_timeout": config.image_fetch_timeout,
    }
