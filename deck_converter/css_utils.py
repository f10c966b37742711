"""
Inline-CSS helpers shared by the extractors and the PPTX backend.

Everything here works on ``style="..."`` attribute strings and single CSS
values; there is no stylesheet cascade.
"""
import re
from typing import Dict, Optional

NAMED_COLORS = {
    "black": "000000",
    "white": "FFFFFF",
    "red": "FF0000",
    "green": "008000",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "orange": "FFA500",
    "purple": "800080",
    "gray": "808080",
    "grey": "808080",
    "navy": "000080",
    "teal": "008080",
    "maroon": "800000",
    "silver": "C0C0C0",
}

ALIGNMENTS = {
    "left": "left",
    "start": "left",
    "center": "center",
    "middle": "center",
    "right": "right",
    "end": "right",
    "justify": "justify",
}

_DECLARATION = re.compile(r'\s*([-a-zA-Z]+)\s*:\s*([^;]+);?')
_LENGTH = re.compile(r'^\s*(-?\d+(?:\.\d+)?)\s*(px|pt|em|rem|%)?\s*$', re.IGNORECASE)
_RGB = re.compile(r'rgba?\s*\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*[\d.]+\s*)?\)', re.IGNORECASE)


def parse_style(style: Optional[str]) -> Dict[str, str]:
    """``"color: red; FONT-SIZE: 12px"`` → ``{'color': 'red', 'font-size': '12px'}``."""
    if not style:
        return {}
    return {name.lower(): value.strip() for name, value in _DECLARATION.findall(style)}


def to_hex_color(value: Optional[str]) -> Optional[str]:
    """Normalize a CSS color to ``RRGGBB`` (upper-case, no '#').  Unknown → None."""
    if not value:
        return None
    val = value.strip().lower()
    if val in ("transparent", "inherit", "initial", "currentcolor", "none"):
        return None

    if val.startswith("#"):
        hexval = val[1:]
        if len(hexval) == 3:
            hexval = "".join(c * 2 for c in hexval)
        if len(hexval) == 8:  # #rrggbbaa
            hexval = hexval[:6]
        if len(hexval) == 6 and re.fullmatch(r'[0-9a-f]{6}', hexval):
            return hexval.upper()
        return None

    rgb_match = _RGB.match(val)
    if rgb_match:
        r, g, b = (min(int(rgb_match.group(i)), 255) for i in range(1, 4))
        return f"{r:02X}{g:02X}{b:02X}"

    if re.fullmatch(r'[0-9a-f]{6}', val):
        return val.upper()

    return NAMED_COLORS.get(val)


def font_size_to_pt(value: Optional[str], *, base_pt: float = 12.0) -> Optional[float]:
    """Convert a CSS font size to points (px × 0.75, em relative to *base_pt*)."""
    if not value:
        return None
    match = _LENGTH.match(str(value))
    if not match:
        return None
    number = float(match.group(1))
    unit = (match.group(2) or "pt").lower()
    if number <= 0:
        return None
    if unit == "px":
        return round(number * 0.75 * 2) / 2  # nearest 0.5pt
    if unit in ("em", "rem"):
        return round(number * base_pt * 2) / 2
    if unit == "%":
        return round(number / 100 * base_pt * 2) / 2
    return number


def length_to_px(value: Optional[str]) -> Optional[int]:
    """``'120px'`` / ``'120'`` → 120.  Percentages and other units → None."""
    if value is None:
        return None
    match = _LENGTH.match(str(value))
    if not match or (match.group(2) or "px").lower() != "px":
        return None
    number = int(float(match.group(1)))
    return number if number > 0 else None


def normalize_alignment(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return ALIGNMENTS.get(value.strip().lower())


def is_bold_weight(value: Optional[str]) -> bool:
    if not value:
        return False
    val = value.strip().lower()
    if val in ("bold", "bolder"):
        return True
    return val.isdigit() and int(val) >= 700
