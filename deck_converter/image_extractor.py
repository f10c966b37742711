"""Image resource extraction from ``<img>`` elements."""
import logging
from typing import List, Optional

from bs4 import Tag

from .css_utils import length_to_px, parse_style
from .errors import ImageExtractionError
from .models import ImageResource

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 300
DEFAULT_HEIGHT = 200


def _dimension(img: Tag, name: str, style: dict, fallback: int) -> int:
    # explicit attribute > inline-style size > fallback
    return length_to_px(img.get(name)) or length_to_px(style.get(name)) or fallback


def extract_image(img: Tag) -> Optional[ImageResource]:
    """Build an :class:`ImageResource` for *img*, or ``None`` when it has no ``src``."""
    src = (img.get("src") or "").strip()
    if not src:
        return None

    try:
        style = parse_style(img.get("style"))
        width = _dimension(img, "width", style, DEFAULT_WIDTH)
        height = _dimension(img, "height", style, DEFAULT_HEIGHT)

        hints = {"alignment": (img.get("align") or "center").lower()}
        border = img.get("border") or style.get("border")
        if border:
            hints["border"] = border
        hspace = length_to_px(img.get("hspace"))
        if hspace:
            hints["margin"] = f"0 {hspace}px"
        elif style.get("margin"):
            hints["margin"] = style["margin"]

        return ImageResource(
            src=src,
            alt=img.get("alt") or "",
            width=width,
            height=height,
            data_uri=src if src.startswith("data:") else None,
            style=hints,
        )
    except (AttributeError, TypeError, ValueError) as exc:
        raise ImageExtractionError(f"Failed to extract image {src[:60]!r}: {exc}") from exc


def extract_images(root: Tag) -> List[ImageResource]:
    """All images under *root* that carry a ``src``, in document order."""
    images = []
    for img in root.find_all("img"):
        try:
            resource = extract_image(img)
        except ImageExtractionError as exc:
            logger.warning(str(exc))
            continue
        if resource is not None:
            images.append(resource)
    return images
