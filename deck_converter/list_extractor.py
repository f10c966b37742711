"""
List extraction, bullet mapping and item formatting.
"""
import copy
import logging
import re
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from .css_utils import font_size_to_pt, normalize_alignment, parse_style, to_hex_color
from .errors import ListExtractionError
from .models import BulletDescriptor, BulletKind, ListResource

logger = logging.getLogger(__name__)

DISC_GLYPH = "•"
NESTED_PREFIX = f"    {DISC_GLYPH} "
DEFAULT_FONT_SIZE_PT = 18
DEFAULT_COLOR = "333333"

# ``type`` attribute (and a few CSS list-style names) → bullet kind
ORDERED_TYPES = {
    "1": BulletKind.DECIMAL,
    "decimal": BulletKind.DECIMAL,
    "A": BulletKind.UPPER_LETTER,
    "upper-alpha": BulletKind.UPPER_LETTER,
    "upper-latin": BulletKind.UPPER_LETTER,
    "a": BulletKind.LOWER_LETTER,
    "lower-alpha": BulletKind.LOWER_LETTER,
    "lower-latin": BulletKind.LOWER_LETTER,
    "I": BulletKind.UPPER_ROMAN,
    "upper-roman": BulletKind.UPPER_ROMAN,
    "i": BulletKind.LOWER_ROMAN,
    "lower-roman": BulletKind.LOWER_ROMAN,
}

_HSPACE = re.compile(r"[ \t\r\f\v\u00a0]+")


def _own_items(lst: Tag) -> List[Tag]:
    return [li for li in lst.find_all("li") if li.find_parent(["ul", "ol"]) is lst]


def extract_list(lst: Tag) -> ListResource:
    """Build a :class:`ListResource` from a ``<ul>`` or ``<ol>`` element."""
    try:
        ordered = lst.name == "ol"
        inline = parse_style(lst.get("style"))
        style = {
            "type": lst.get("type") or ("1" if ordered else "disc"),
            "start": lst.get("start") or "1",
            "fontSize": inline.get("font-size"),
            "fontFamily": inline.get("font-family") or "Arial",
            "color": inline.get("color"),
            "backgroundColor": inline.get("background-color") or "transparent",
            "lineHeight": inline.get("line-height") or "normal",
            "textAlign": inline.get("text-align") or "left",
            "className": " ".join(lst.get("class") or []),
        }
        items = [li.decode_contents().strip() for li in _own_items(lst)]
        return ListResource(items=items, ordered=ordered, style=style)
    except (AttributeError, TypeError, ValueError) as exc:
        raise ListExtractionError(f"Failed to extract list: {exc}") from exc


def extract_lists(root: Tag) -> List[ListResource]:
    """Top-level lists under *root*; lists nested in an item are folded into it."""
    lists = []
    for lst in root.find_all(["ul", "ol"]):
        if lst.find_parent(["ul", "ol"]) is not None:
            continue
        try:
            lists.append(extract_list(lst))
        except ListExtractionError as exc:
            logger.warning(str(exc))
    return lists


# ----------------------------------------------------------------------
# Item formatting
# ----------------------------------------------------------------------

def strip_markup(markup: str) -> str:
    """Plain text of *markup*; ``<br>`` → newline, paragraphs end in a blank line."""
    soup = BeautifulSoup(markup, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with(NavigableString("\n"))
    for p in soup.find_all("p"):
        p.append(NavigableString("\n\n"))
    text = soup.get_text()

    lines = [_HSPACE.sub(" ", line).strip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def handle_nested_lists(item: str) -> str:
    """Fold nested lists of one item into indented bullet lines.

    ``"Main<ul><li>a</li><li>b</li></ul>"`` → ``"Main\\n    • a\\n    • b"``.
    Items without nested lists are returned unchanged.
    """
    soup = BeautifulSoup(item, "html.parser")
    nested = [lst for lst in soup.find_all(["ul", "ol"]) if lst.find_parent(["ul", "ol"]) is None]
    if not nested:
        return item

    lines = []
    for lst in nested:
        for li in lst.find_all("li"):
            own = copy.copy(li)
            for sub in own.find_all(["ul", "ol"]):
                sub.decompose()
            text = " ".join(strip_markup(own.decode_contents()).split())
            if text:
                lines.append(NESTED_PREFIX + text)
        lst.decompose()

    main = " ".join(strip_markup(soup.decode()).split())
    return "\n".join([main] + lines if main else lines)


def format_list_items(items: List[str]) -> List[str]:
    """Plain-text items: nested lists flattened, inline markup stripped."""
    formatted = []
    for item in items:
        if re.search(r"<\s*(ul|ol)\b", item, re.IGNORECASE):
            formatted.append(handle_nested_lists(item))
        else:
            formatted.append(strip_markup(item))
    return formatted


def determine_bullet_type(lst: ListResource) -> BulletDescriptor:
    """Bullet descriptor for *lst*; unknown types fall back to decimal."""
    if not lst.ordered:
        return BulletDescriptor(kind=BulletKind.DISC, glyph=DISC_GLYPH)

    list_type = str(lst.style.get("type") or "1").strip()
    kind = ORDERED_TYPES.get(list_type) or ORDERED_TYPES.get(list_type.lower(), BulletKind.DECIMAL)

    start = None
    raw_start = str(lst.style.get("start") or "1").strip()
    if raw_start != "1":
        try:
            start = int(raw_start)
        except ValueError:
            logger.warning(f"Ignoring invalid list start value {raw_start!r}")
    return BulletDescriptor(kind=kind, start=start)


def process_list(lst: ListResource) -> ListResource:
    """Copy of *lst* with formatted, plain-text items."""
    try:
        return ListResource(
            items=format_list_items(lst.items),
            ordered=lst.ordered,
            style=dict(lst.style),
        )
    except (AttributeError, TypeError, ValueError) as exc:
        raise ListExtractionError(f"Failed to format list items: {exc}") from exc


def apply_list_styling(lst: ListResource, positions: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Backend options for *lst*."""
    try:
        options: Dict[str, Any] = {"x": 0.5, "y": 2.0, "w": 0.9}
        if positions:
            options.update(positions)
        size = font_size_to_pt(lst.style.get("fontSize"))
        options["font_size"] = size if size else DEFAULT_FONT_SIZE_PT
        options["color"] = to_hex_color(lst.style.get("color")) or DEFAULT_COLOR
        options["font_face"] = (lst.style.get("fontFamily") or "Arial").split(",")[0].strip(" '\"")
        options["align"] = normalize_alignment(lst.style.get("textAlign")) or "left"
        options["bullet"] = determine_bullet_type(lst)
        return options
    except (AttributeError, TypeError) as exc:
        raise ListExtractionError(f"Failed to style list: {exc}") from exc
