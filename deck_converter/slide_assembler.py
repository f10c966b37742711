"""
Slide assembly: turns parsed sections into backend calls.

One slide per section, elements in document order.  A failure while
processing a single element is logged and the element is drawn in its
unprocessed form; only configuration and backend failures abort.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from .backend import Options, PresentationBackend
from .config import ConversionConfig, PresentationTheme, SlideLayout
from .css_utils import font_size_to_pt, to_hex_color
from .errors import AssemblyError, BackendError, ExtractionError, TextExtractionError
from .image_processor import ImageProcessor
from .layout_engine import LayoutPositions, positions_for, px_to_in
from .link_extractor import apply_link_styling, process_link
from .list_extractor import apply_list_styling, process_list
from .models import (
    UNTITLED,
    FormatDescriptor,
    HTMLContent,
    ImageElement,
    ImageResource,
    LinkElement,
    ListElement,
    Section,
    SlideElement,
    TableElement,
    TextElement,
    TextResource,
)
from .section_assembler import synthesize_section
from .table_extractor import apply_table_styling, process_table
from .theme_loader import ThemeDefinition, theme_for

logger = logging.getLogger(__name__)

TITLE_FONT_SIZE_PT = 24
HEADING_FONT_SIZES = {1: 24, 2: 20, 3: 18, 4: 16, 5: 16, 6: 16}
DEFAULT_TEXT_SIZE_PT = 18


def text_options(fmt: FormatDescriptor, theme: ThemeDefinition) -> Options:
    """Map a :class:`FormatDescriptor` onto backend text options."""
    try:
        heading = fmt.heading_level
        if heading:
            size = HEADING_FONT_SIZES.get(heading, DEFAULT_TEXT_SIZE_PT)
        else:
            size = font_size_to_pt(fmt.font_size) or DEFAULT_TEXT_SIZE_PT

        default_color = theme.heading_color if heading else theme.body_color
        family = (fmt.font_family or "").split(",")[0].strip(" '\"")
        default_face = theme.font_set.heading if heading else theme.font_set.body

        return {
            "font_size": size,
            "font_face": family or default_face,
            "color": to_hex_color(fmt.color) or default_color,
            "bold": bool(fmt.bold or heading),
            "italic": bool(fmt.italic),
            "underline": bool(fmt.underline),
            "strike": bool(fmt.strikethrough),
            "superscript": bool(fmt.superscript),
            "subscript": bool(fmt.subscript),
            "align": fmt.alignment or "left",
        }
    except (AttributeError, TypeError, ValueError) as exc:
        raise TextExtractionError(f"Failed to map text formatting: {exc}") from exc


class SlideAssembler:
    """
    Orchestrates one conversion.

    Parameters
    ----------
    backend
        Presentation backend receiving the slides.
    image_processor
        Resizes images before embedding; a default :class:`ImageProcessor` is
        created when omitted.
    positions
        ``layout → LayoutPositions`` lookup.
    theme_lookup
        ``theme → ThemeDefinition`` lookup.
    """

    def __init__(
        self,
        backend: PresentationBackend,
        *,
        image_processor: Optional[ImageProcessor] = None,
        positions: Callable[[SlideLayout], LayoutPositions] = positions_for,
        theme_lookup: Callable[[PresentationTheme], ThemeDefinition] = theme_for,
        debug: bool = False,
    ):
        self.backend = backend
        self.image_processor = image_processor or ImageProcessor(debug=debug)
        self.positions = positions
        self.theme_lookup = theme_lookup
        self.debug = debug

    async def assemble(self, content: HTMLContent, config: ConversionConfig) -> Any:
        """Render *content* and return the backend's presentation handle."""
        config.validate()
        positions = self.positions(config.layout)
        theme = self.theme_lookup(config.theme)

        handle = self._call_backend("create presentation", self.backend.create_presentation, theme, config.layout)

        sections = content.sections
        if not sections:
            logger.info("No sections found; building one slide from document-wide resources")
            sections = [synthesize_section(content.resources, config)]

        processed = await self._process_images(sections, config)

        for index, section in enumerate(sections, start=1):
            self._render_section(handle, section, config, positions, theme, processed)
            if self.debug:
                logger.info(f"✅ Slide {index}/{len(sections)}: {section.title}")
        return handle

    # ------------------------------------------------------------------

    def _call_backend(self, what: str, func, *args):
        try:
            return func(*args)
        except BackendError:
            raise
        except Exception as exc:
            raise BackendError(f"Failed to {what}: {exc}") from exc

    async def _process_images(self, sections: List[Section], config: ConversionConfig) -> Dict[int, Any]:
        """Process every image of the deck concurrently; keyed by element id."""
        if not config.include_images:
            return {}
        elements = [e for s in sections for e in s.elements if isinstance(e, ImageElement)]
        if not elements:
            return {}
        results = await self.image_processor.process_images(
            [e.resource for e in elements],
            config.image_options,
            timeout=config.image_fetch_timeout,
        )
        for result in results:
            if isinstance(result, asyncio.CancelledError):
                raise result
        return {id(e): r for e, r in zip(elements, results)}

    def _render_section(
        self,
        handle: Any,
        section: Section,
        config: ConversionConfig,
        positions: LayoutPositions,
        theme: ThemeDefinition,
        processed: Dict[int, Any],
    ):
        slide = self._call_backend("add slide", self.backend.add_slide, handle, section.title, config.layout)

        if section.title != UNTITLED:
            title_options = positions.title.as_options()
            title_options.update(
                font_size=TITLE_FONT_SIZE_PT,
                font_face=theme.font_set.heading,
                color=theme.heading_color,
                bold=True,
                align="center",
            )
            title = TextResource(content=section.title, format=FormatDescriptor(bold=True))
            self._call_backend("add title", self.backend.add_text, slide, title, title_options)

        for element in section.elements:
            self._render_element(slide, element, config, positions, theme, processed)

    def _render_element(
        self,
        slide: Any,
        element: SlideElement,
        config: ConversionConfig,
        positions: LayoutPositions,
        theme: ThemeDefinition,
        processed: Dict[int, Any],
    ):
        rect = positions.for_kind(element.kind).as_options()

        if isinstance(element, TextElement):
            resource = element.resource
            try:
                options = dict(rect, **text_options(resource.format, theme))
                if resource.runs:
                    options["runs"] = [text_options(run.format, theme) for run in resource.runs]
            except ExtractionError as exc:
                logger.warning(f"Rendering text with default formatting: {exc}")
                options = dict(rect)
            render = self.backend.add_text

        elif isinstance(element, ImageElement):
            if not config.include_images:
                return
            resource = self._processed_image(element, processed)
            options = dict(rect, w_in=px_to_in(resource.width), h_in=px_to_in(resource.height))
            render = self.backend.add_image

        elif isinstance(element, TableElement):
            try:
                resource = process_table(element.resource)
                options = apply_table_styling(resource, rect)
            except ExtractionError as exc:
                logger.warning(f"Rendering table without styling: {exc}")
                resource, options = element.resource, dict(rect)
            render = self.backend.add_table

        elif isinstance(element, ListElement):
            try:
                resource = process_list(element.resource)
                options = apply_list_styling(resource, rect)
            except ExtractionError as exc:
                logger.warning(f"Rendering list without formatting: {exc}")
                resource, options = element.resource, dict(rect)
            render = self.backend.add_list

        elif isinstance(element, LinkElement):
            if not config.preserve_links:
                return
            try:
                resource = process_link(element.resource)
                options = apply_link_styling(resource, rect)
            except ExtractionError as exc:
                logger.warning(f"Rendering link without styling: {exc}")
                resource, options = element.resource, dict(rect)
            render = self.backend.add_hyperlink

        else:
            raise AssemblyError(f"Unknown slide element {type(element).__name__}")

        if element.style:
            options.update(element.style)
        self._call_backend(f"add {element.kind}", render, slide, resource, options)

    def _processed_image(self, element: ImageElement, processed: Dict[int, Any]) -> ImageResource:
        result = processed.get(id(element))
        if isinstance(result, ImageResource):
            return result
        if isinstance(result, BaseException):
            logger.warning(f"Using original image geometry: {result}")
        return element.resource
