"""
Structural HTML parser: validation, tree building and section splitting.

Validation is a cheap safety net rather than a grammar.  The checks that
make up the net are plain :class:`MalformationCheck` values so callers can
tighten or relax it without subclassing.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import soupsieve
from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from .config import ConversionConfig, SplitStrategy
from .errors import ConfigValidationError, ParseError
from .image_extractor import extract_images
from .link_extractor import extract_links
from .list_extractor import extract_lists
from .models import UNTITLED, Document, DocumentResources, HTMLContent, Section
from .section_assembler import SectionAssembler
from .table_extractor import extract_tables
from .text_extractor import HEADING_TAGS, collapse_whitespace, extract_formatted_text

logger = logging.getLogger(__name__)

EMPTY_INPUT_MESSAGE = "HTML content is empty or not a string"
INVALID_STRUCTURE_MESSAGE = "Invalid HTML structure"
CONTEXT_CHARS = 40

HEADING_SELECTORS = {
    SplitStrategy.BY_H1: "h1",
    SplitStrategy.BY_H2: "h2",
}
TITLE_CASCADE = ("h1", "h2", "h3")


@dataclass(frozen=True)
class MalformationCheck:
    """One malformation heuristic.  ``find`` returns the offset of the
    offending markup, or ``None`` when the document passes."""
    name: str
    description: str
    find: Callable[[str], Optional[int]]


_OPEN_RAW_TEXT = re.compile(r"<(script|style)\b[^>]*>", re.IGNORECASE)
_UNCLOSED_BLOCK = re.compile(
    r"<(div|section|article|main|header|footer|nav|aside|table|h[1-6])\b[^>]*>[^<]*$",
    re.IGNORECASE,
)
_OPAQUE = re.compile(r"<!--.*?-->|<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_NESTED_BRACKETS = re.compile(r"<[a-zA-Z/!][^<>]*<[^<>]*>")


def find_unterminated_raw_text(raw: str) -> Optional[int]:
    for match in _OPEN_RAW_TEXT.finditer(raw):
        closing = re.compile(rf"</{match.group(1)}\s*>", re.IGNORECASE)
        if not closing.search(raw, match.end()):
            return match.start()
    return None


def find_unclosed_trailing_block(raw: str) -> Optional[int]:
    match = _UNCLOSED_BLOCK.search(raw.rstrip())
    return match.start() if match else None


def find_nested_angle_brackets(raw: str) -> Optional[int]:
    # Blank out comments and script/style bodies, keeping offsets intact
    masked = _OPAQUE.sub(lambda m: " " * len(m.group(0)), raw)
    match = _NESTED_BRACKETS.search(masked)
    return match.start() if match else None


DEFAULT_MALFORMATION_CHECKS: Tuple[MalformationCheck, ...] = (
    MalformationCheck("raw-text", "unterminated <script> or <style> block", find_unterminated_raw_text),
    MalformationCheck("unclosed-block", "block element is never closed", find_unclosed_trailing_block),
    MalformationCheck("nested-brackets", "unescaped '<' inside a tag", find_nested_angle_brackets),
)


def _position(raw: str, offset: int) -> Tuple[int, int]:
    line = raw.count("\n", 0, offset) + 1
    column = offset - (raw.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _outer_html(node) -> str:
    if isinstance(node, Tag):
        return node.decode()
    return node.output_ready()


def _section_title(header: Tag) -> Tuple[str, Optional[str]]:
    """Title text for a section boundary and the heading tag that carries it.

    A heading boundary is its own title.  A container boundary (``section``,
    ``.slide``) stays content; its first heading names it, else its text.
    """
    if header.name in HEADING_TAGS:
        return collapse_whitespace(header.get_text()), header.name
    heading = header.find(list(HEADING_TAGS))
    if heading is not None:
        return collapse_whitespace(heading.get_text()), heading.name
    return collapse_whitespace(header.get_text(" ")), None


class HTMLParser:
    """
    Turns raw markup into a :class:`Document` and splits it into sections.
    """

    def __init__(
        self,
        *,
        malformation_checks: Optional[Sequence[MalformationCheck]] = None,
        debug: bool = False,
    ):
        self.malformation_checks = tuple(
            DEFAULT_MALFORMATION_CHECKS if malformation_checks is None else malformation_checks
        )
        self.debug = debug

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _find_problem(self, raw) -> Optional[ParseError]:
        if not isinstance(raw, str) or not raw.strip():
            return ParseError(EMPTY_INPUT_MESSAGE)
        for check in self.malformation_checks:
            offset = check.find(raw)
            if offset is not None:
                return ParseError(
                    f"{INVALID_STRUCTURE_MESSAGE}: {check.description}",
                    position=_position(raw, offset),
                    context=raw[offset:offset + CONTEXT_CHARS],
                )
        return None

    def validate_html(self, raw) -> bool:
        return self._find_problem(raw) is None

    def get_validation_error(self, raw) -> Optional[str]:
        """Diagnostic for *raw*, or ``None`` if it passes validation."""
        problem = self._find_problem(raw)
        return problem.diagnostic if problem else None

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, raw: str) -> Document:
        problem = self._find_problem(raw)
        if problem is not None:
            raise problem
        try:
            soup = BeautifulSoup(raw, "html.parser")
        except ParserRejectedMarkup as exc:
            raise ParseError(f"{INVALID_STRUCTURE_MESSAGE}: {exc}") from exc
        if self.debug:
            logger.info(f"🔍 Parsed document ({len(raw)} chars)")
        return Document(raw=raw, soup=soup)

    def extract_title(self, document: Document) -> Tuple[str, Optional[str]]:
        """Title cascade: first h1, h2, h3, then ``<title>``, else ``Untitled``.

        Returns the title and the tag it was taken from (``None`` for
        ``<title>`` and the fallback).
        """
        body = document.body
        for tag in TITLE_CASCADE:
            node = body.find(tag)
            if node is not None:
                text = collapse_whitespace(node.get_text())
                if text:
                    return text, tag
        if document.soup.title is not None:
            text = collapse_whitespace(document.soup.title.get_text())
            if text:
                return text, None
        return UNTITLED, None

    def _whole_document_section(self, document: Document) -> Section:
        title, title_tag = self.extract_title(document)
        return Section(title=title, source_fragment=document.body.decode_contents(), title_tag=title_tag)

    def extract_sections(
        self,
        document: Document,
        strategy: SplitStrategy = SplitStrategy.BY_H1,
        custom_selector: Optional[str] = None,
    ) -> List[Section]:
        """Split *document* into ordered sections (never an empty list)."""
        body = document.body
        if not body.decode_contents().strip():
            return [Section(title=UNTITLED, source_fragment="")]

        if strategy is SplitStrategy.NO_SPLIT:
            return [self._whole_document_section(document)]

        selector = HEADING_SELECTORS.get(strategy) or custom_selector or "h1"
        try:
            headers = body.select(selector)
        except soupsieve.SelectorSyntaxError as exc:
            raise ConfigValidationError(f"Invalid section selector {selector!r}: {exc}") from exc

        if not headers:
            if self.debug:
                logger.info(f"No '{selector}' headings found; using a single section")
            return [self._whole_document_section(document)]

        sections = []
        for index, header in enumerate(headers):
            next_header = headers[index + 1] if index + 1 < len(headers) else None
            parts = [header.decode()]
            sibling = header.next_sibling
            while sibling is not None and sibling is not next_header:
                if next_header is not None and isinstance(sibling, Tag) and any(
                    d is next_header for d in sibling.descendants
                ):
                    break
                parts.append(_outer_html(sibling))
                sibling = sibling.next_sibling

            title, title_tag = _section_title(header)
            sections.append(Section(
                title=title or f"Section {index + 1}",
                source_fragment="".join(parts),
                title_tag=title_tag,
            ))

        if self.debug:
            logger.info(f"✂️  Split document into {len(sections)} sections using '{selector}'")
        return sections

    def extract_resources(self, document: Document) -> DocumentResources:
        """Document-wide resources, independent of section boundaries."""
        body = document.body
        return DocumentResources(
            texts=extract_formatted_text(body),
            images=extract_images(body),
            tables=extract_tables(body),
            lists=extract_lists(body),
            links=extract_links(body),
        )

    def parse_html(
        self,
        raw: str,
        strategy: Optional[SplitStrategy] = None,
        custom_selector: Optional[str] = None,
        config: Optional[ConversionConfig] = None,
    ) -> HTMLContent:
        """Parse, split and populate sections in one go."""
        config = config or ConversionConfig()
        strategy = strategy or config.split_strategy
        custom_selector = custom_selector or config.custom_selector

        document = self.parse(raw)
        sections = self.extract_sections(document, strategy, custom_selector)
        sections = SectionAssembler(config, debug=self.debug).assemble(sections)
        return HTMLContent(
            raw=raw,
            document=document,
            sections=sections,
            resources=self.extract_resources(document),
        )
