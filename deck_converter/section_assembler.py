"""
Binds extracted resources to sections as ordered slide elements.

Each section fragment is walked once, in document order, with an explicit
stack.  Text blocks become ``text`` elements; ``img``, ``table``, ``ul/ol``
and ``a[href]`` become their own element kinds.  Tables and lists are
consumed whole; text blocks are only searched further for images and links.
"""
import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from .config import ConversionConfig
from .errors import ExtractionError
from .image_extractor import extract_image
from .link_extractor import extract_link
from .list_extractor import extract_list
from .models import (
    UNTITLED,
    DocumentResources,
    ImageElement,
    LinkElement,
    ListElement,
    Section,
    SlideElement,
    TableElement,
    TextElement,
    TextResource,
)
from .table_extractor import extract_table
from .text_extractor import HEADING_TAGS, is_text_node, collapse_whitespace, generate_from_html

logger = logging.getLogger(__name__)

SKIP_TAGS = {
    "script", "style", "head", "title", "meta", "link", "noscript",
    "template", "iframe", "object", "embed", "svg", "canvas", "hr", "br",
}
TEXT_BLOCK_TAGS = {
    "p", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre",
    "figcaption", "caption", "dt", "dd", "address", "summary", "legend", "label",
}
INLINE_TAGS = {
    "a", "abbr", "b", "bdi", "bdo", "cite", "code", "del", "dfn", "em", "font",
    "i", "img", "ins", "kbd", "mark", "q", "s", "samp", "small", "span",
    "strike", "strong", "sub", "sup", "time", "u", "var", "br", "wbr",
}
STRUCTURED_TAGS = ["ul", "ol", "table"]


def _is_text_block(tag: Tag) -> bool:
    """Block of running text: a text tag, a lone inline tag, or a container
    holding nothing but text and inline markup.  Anything wrapping a list or
    table is walked instead so those keep their own elements."""
    if tag.find(STRUCTURED_TAGS) is not None:
        return False
    if tag.name in TEXT_BLOCK_TAGS or tag.name in INLINE_TAGS:
        return True
    return all(
        not isinstance(child, Tag) or child.name in INLINE_TAGS
        for child in tag.contents
    )


def _override(config: Optional[ConversionConfig], kind: str) -> Optional[Dict[str, Any]]:
    if config is None or kind not in config.style_overrides:
        return None
    return dict(config.style_overrides[kind])


class SectionAssembler:
    """Fills :attr:`Section.elements` from the section's source fragment."""

    def __init__(self, config: Optional[ConversionConfig] = None, debug: bool = False):
        self.config = config
        self.debug = debug

    def assemble(self, sections: List[Section]) -> List[Section]:
        return [self.assemble_section(section) for section in sections]

    def assemble_section(self, section: Section) -> Section:
        soup = BeautifulSoup(section.source_fragment, "html.parser")
        title_node = self._find_title_node(soup, section)
        elements: List[SlideElement] = []

        stack = [(child, False) for child in reversed(soup.contents)]
        while stack:
            node, in_text = stack.pop()

            if is_text_node(node):
                content = collapse_whitespace(str(node))
                if content and not in_text:
                    elements.append(self._element(TextElement, "text", TextResource(content=content)))
                continue
            if not isinstance(node, Tag) or node.name in SKIP_TAGS or node is title_node:
                continue

            name = node.name
            if name == "img":
                self._add(elements, ImageElement, "image", extract_image, node)
                continue
            if name == "table":
                self._add(elements, TableElement, "table", extract_table, node)
                continue
            if name in ("ul", "ol"):
                self._add(elements, ListElement, "list", extract_list, node)
                continue

            if name == "a":
                link = self._add(elements, LinkElement, "link", extract_link, node)
                if link is None and not in_text:
                    self._add_text(elements, node)
                in_text = True
            elif not in_text and _is_text_block(node):
                self._add_text(elements, node)
                in_text = True

            stack.extend((child, in_text) for child in reversed(node.contents))

        if self.debug:
            kinds = [e.kind for e in elements]
            logger.info(f"📄 Section '{section.title}': {len(elements)} elements {kinds}")

        return Section(
            title=section.title,
            source_fragment=section.source_fragment,
            elements=elements,
            title_tag=section.title_tag,
        )

    # ------------------------------------------------------------------

    def _find_title_node(self, soup: BeautifulSoup, section: Section) -> Optional[Tag]:
        if section.title_tag not in HEADING_TAGS:
            return None
        for candidate in soup.find_all(section.title_tag):
            if collapse_whitespace(candidate.get_text()) == section.title:
                return candidate
        return None

    def _element(self, element_cls, kind: str, resource):
        return element_cls(resource=resource, style=_override(self.config, kind))

    def _add(self, elements, element_cls, kind, extractor, node):
        try:
            resource = extractor(node)
        except ExtractionError as exc:
            logger.warning(f"Skipping {kind} element: {exc}")
            return None
        if resource is not None:
            elements.append(self._element(element_cls, kind, resource))
        return resource

    def _add_text(self, elements, node: Tag):
        try:
            resource = generate_from_html(node)
        except ExtractionError as exc:
            logger.warning(f"Falling back to plain text for <{node.name}>: {exc}")
            resource = TextResource(content=collapse_whitespace(node.get_text()))
        if resource.content:
            elements.append(self._element(TextElement, "text", resource))


def synthesize_section(resources: DocumentResources, config: Optional[ConversionConfig] = None) -> Section:
    """An ``Untitled`` section built from document-wide resources, grouped by kind."""
    def element(cls, kind, resource):
        return cls(resource=resource, style=_override(config, kind))

    elements: List[SlideElement] = []
    elements += [element(TextElement, "text", r) for r in resources.texts]
    elements += [element(ImageElement, "image", r) for r in resources.images]
    elements += [element(TableElement, "table", r) for r in resources.tables]
    elements += [element(ListElement, "list", r) for r in resources.lists]
    elements += [element(LinkElement, "link", r) for r in resources.links]
    return Section(title=UNTITLED, elements=elements)
