"""Hyperlink extraction and URL normalization."""
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from .errors import LinkExtractionError
from .models import LinkResource

logger = logging.getLogger(__name__)

LINK_COLOR = "0000FF"
LINK_FONT_SIZE_PT = 18

_HAS_SCHEME = re.compile(r"^[a-z]+:", re.IGNORECASE)
_HTTP = re.compile(r"^http://", re.IGNORECASE)
_HTTPS = re.compile(r"^https://", re.IGNORECASE)


def normalize_url(href: Optional[str]) -> str:
    """Normalize *href* for use as a hyperlink target.

    * empty → ``#``; fragments and root-relative paths are kept as-is
    * bare hosts get ``https://``; ``http://`` is upgraded to ``https://``
    * any other scheme (``mailto:``, ``ftp:``, …) is left alone

    Applying it twice gives the same result as applying it once.
    """
    url = (href or "").strip()
    if not url:
        return "#"
    if url.startswith("#"):
        return url
    if _HTTP.match(url):
        return "https://" + url[len("http://"):]
    if _HTTPS.match(url):
        return url
    if _HAS_SCHEME.match(url):
        return url
    if url.startswith("/"):
        return url
    return "https://" + url


def is_valid_url(url: str) -> bool:
    parts = urlsplit(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def extract_domain(url: str) -> str:
    """Host part of *url* (after normalization), or ``""``."""
    return urlsplit(normalize_url(url)).hostname or ""


def extract_link_text(markup: str) -> str:
    return " ".join(BeautifulSoup(markup, "html.parser").get_text().split())


def extract_link(anchor: Tag) -> Optional[LinkResource]:
    """:class:`LinkResource` for ``<a href>``; ``None`` if it has no target or text."""
    href = (anchor.get("href") or "").strip()
    text = " ".join(anchor.get_text().split())
    if not href or not text:
        return None
    return LinkResource(text=text, href=normalize_url(href))


def extract_links(root: Tag) -> List[LinkResource]:
    links = []
    for anchor in root.find_all("a"):
        link = extract_link(anchor)
        if link is not None:
            links.append(link)
    return links


def process_link(link: LinkResource) -> LinkResource:
    """Copy of *link* with plain text and a normalized href."""
    try:
        text = link.text
        if "<" in text:
            text = extract_link_text(text)
        return LinkResource(text=text or link.href, href=normalize_url(link.href))
    except (AttributeError, TypeError) as exc:
        raise LinkExtractionError(f"Failed to process link {link!r}: {exc}") from exc


def apply_link_styling(link: LinkResource, positions: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    options: Dict[str, Any] = {"x": 0.5, "y": 2.0, "w": 0.9}
    if positions:
        options.update(positions)
    options.update(
        font_size=LINK_FONT_SIZE_PT,
        color=LINK_COLOR,
        underline=True,
        hyperlink={"url": link.href, "tooltip": link.href},
    )
    return options
