#!/usr/bin/env python3
"""
python-pptx implementation of :class:`PresentationBackend`.

Elements are stacked top to bottom: each slide keeps a vertical cursor and an
element is placed at its layout ``y`` or just below the previous element,
whichever is lower.
"""

import io
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.text import MSO_ANCHOR, MSO_AUTO_SIZE, PP_ALIGN
from pptx.oxml import parse_xml
from pptx.oxml.ns import nsdecls, qn
from pptx.util import Emu, Inches, Pt

from .backend import Options, PresentationBackend
from .config import SlideLayout
from .image_processor import decode_data_uri
from .layout_engine import px_to_in, slide_size
from .models import ImageResource, LinkResource, ListResource, PPTXOutput, TableResource, TextResource, BulletKind
from .paths import default_file_name, resolve_asset, source_kind
from .table_extractor import format_rows
from .theme_loader import ThemeDefinition

logger = logging.getLogger(__name__)

BLANK_LAYOUT = 6
ELEMENT_GAP_IN = 0.15
TABLE_ROW_HEIGHT_IN = 0.4
TABLE_FONT_SIZE_PT = 12
DEFAULT_FONT_SIZE_PT = 18

ALIGN_MAP = {
    "left": PP_ALIGN.LEFT,
    "center": PP_ALIGN.CENTER,
    "right": PP_ALIGN.RIGHT,
    "justify": PP_ALIGN.JUSTIFY,
}

AUTONUM_SCHEMES = {
    BulletKind.DECIMAL: "arabicPeriod",
    BulletKind.UPPER_LETTER: "alphaUcPeriod",
    BulletKind.LOWER_LETTER: "alphaLcPeriod",
    BulletKind.UPPER_ROMAN: "romanUcPeriod",
    BulletKind.LOWER_ROMAN: "romanLcPeriod",
}


# Helper function to convert pixels to inches
def px(pixels):
    return Inches(px_to_in(pixels))


@dataclass
class PresentationHandle:
    prs: Any
    theme: ThemeDefinition
    layout: SlideLayout
    slide_width_in: float
    slide_height_in: float


@dataclass
class SlideHandle:
    slide: Any
    presentation: PresentationHandle
    title: str
    cursor_y: float = 0.0  # inches; bottom of the last placed element


class PPTXBackend(PresentationBackend):
    """
    Writes slides with python-pptx.

    Parameters
    ----------
    base_dir
        Directory that relative image paths are resolved against.
    debug
        Log every shape that is added.
    """

    def __init__(self, *, base_dir: Optional[Path] = None, debug: bool = False):
        self.base_dir = Path(base_dir) if base_dir else None
        self.debug = debug

    # ------------------------------------------------------------------
    # Presentation / slides
    # ------------------------------------------------------------------

    def create_presentation(self, theme: ThemeDefinition, layout: SlideLayout = SlideLayout.STANDARD) -> PresentationHandle:
        prs = Presentation()
        width_in, height_in = slide_size(layout)
        prs.slide_width = Inches(width_in)
        prs.slide_height = Inches(height_in)

        props = prs.core_properties
        props.author = "deck_converter"
        props.subject = "HTML to PPTX conversion"
        props.keywords = theme.name

        if self.debug:
            logger.info(f"🎨 New presentation: {theme.name} theme, {width_in}x{height_in} in")
        return PresentationHandle(prs, theme, layout, width_in, height_in)

    def add_slide(self, handle: PresentationHandle, title: str, layout: SlideLayout) -> SlideHandle:
        if layout is not handle.layout:
            logger.debug(f"Slide layout {layout} differs from presentation layout {handle.layout}; slide size is per deck")
        slide = handle.prs.slides.add_slide(handle.prs.slide_layouts[BLANK_LAYOUT])

        background = slide.background
        fill = background.fill
        fill.solid()
        fill.fore_color.rgb = RGBColor.from_string(handle.theme.background)

        return SlideHandle(slide=slide, presentation=handle, title=title)

    def save(self, handle: PresentationHandle, file_name: Optional[str] = None) -> PPTXOutput:
        buffer = io.BytesIO()
        handle.prs.save(buffer)
        return PPTXOutput(
            blob=buffer.getvalue(),
            file_name=file_name or default_file_name(),
            slide_count=len(handle.prs.slides),
        )

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def _frame(self, slide: SlideHandle, options: Options, height_in: float) -> Dict[str, float]:
        """Resolve x / y / w / h in inches and advance the slide cursor."""
        pres = slide.presentation
        x = float(options.get("x", 0.5))
        y = max(float(options.get("y", 1.5)), slide.cursor_y)
        if "w_in" in options:
            w = float(options["w_in"])
        else:
            w = float(options.get("w", 0.9)) * pres.slide_width_in
        w = max(min(w, pres.slide_width_in - x), 0.5)
        h = float(options.get("h") or height_in)

        slide.cursor_y = y + h + ELEMENT_GAP_IN
        return {"x": x, "y": y, "w": w, "h": h}

    @staticmethod
    def _estimate_text_height(text: str, font_size_pt: float, width_in: float) -> float:
        chars_per_line = max(int(width_in * 72 / (font_size_pt * 0.5)), 1)
        lines = sum(max(1, math.ceil(len(line) / chars_per_line)) for line in text.split("\n"))
        return lines * font_size_pt * 1.2 / 72 + 0.1

    def _textbox(self, slide: SlideHandle, frame: Dict[str, float]):
        textbox = slide.slide.shapes.add_textbox(
            Inches(frame["x"]), Inches(frame["y"]), Inches(frame["w"]), Inches(frame["h"])
        )
        text_frame = textbox.text_frame
        text_frame.word_wrap = True
        text_frame.auto_size = MSO_AUTO_SIZE.SHAPE_TO_FIT_TEXT
        text_frame.margin_left = text_frame.margin_right = Inches(0.05)
        text_frame.margin_top = text_frame.margin_bottom = Inches(0.02)
        return textbox

    def _text_frame_for(self, slide: SlideHandle, options: Options, text: str):
        pres = slide.presentation
        font_size = float(options.get("font_size") or DEFAULT_FONT_SIZE_PT)
        width = float(options["w_in"]) if "w_in" in options else float(options.get("w", 0.9)) * pres.slide_width_in
        frame = self._frame(slide, options, self._estimate_text_height(text, font_size, width))
        return self._textbox(slide, frame).text_frame

    # ------------------------------------------------------------------
    # Fonts
    # ------------------------------------------------------------------

    def _style_run(self, run, opts: Options):
        font = run.font
        if opts.get("font_size"):
            font.size = Pt(float(opts["font_size"]))
        if opts.get("font_face"):
            font.name = opts["font_face"]
        if opts.get("bold"):
            font.bold = True
        if opts.get("italic"):
            font.italic = True
        if opts.get("underline"):
            font.underline = True
        if opts.get("strike"):
            # font.strike is not exposed by python-pptx
            font._element.attrib["strike"] = "sngStrike"
        if opts.get("superscript"):
            font._element.set("baseline", "30000")
        elif opts.get("subscript"):
            font._element.set("baseline", "-25000")
        if opts.get("color"):
            font.color.rgb = RGBColor.from_string(opts["color"])

        link = opts.get("hyperlink")
        if link and link.get("url"):
            run.hyperlink.address = link["url"]
            if link.get("tooltip"):
                run.hyperlink._hlinkClick.set("tooltip", link["tooltip"])

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def add_text(self, slide: SlideHandle, resource: TextResource, options: Options) -> None:
        text_frame = self._text_frame_for(slide, options, resource.content)
        paragraph = text_frame.paragraphs[0]
        paragraph.alignment = ALIGN_MAP.get(options.get("align") or "left", PP_ALIGN.LEFT)

        run_options: List[Options] = options.get("runs") or []
        if resource.runs and len(run_options) == len(resource.runs):
            for run_resource, opts in zip(resource.runs, run_options):
                run = paragraph.add_run()
                run.text = run_resource.content
                self._style_run(run, opts)
        else:
            run = paragraph.add_run()
            run.text = resource.content
            self._style_run(run, options)

        if self.debug:
            logger.info(f"📝 Text: {resource.content[:50]!r}")

    def add_hyperlink(self, slide: SlideHandle, resource: LinkResource, options: Options) -> None:
        text_frame = self._text_frame_for(slide, options, resource.text)
        paragraph = text_frame.paragraphs[0]
        paragraph.alignment = ALIGN_MAP.get(options.get("align") or "left", PP_ALIGN.LEFT)
        run = paragraph.add_run()
        run.text = resource.text
        opts = dict(options)
        opts.setdefault("hyperlink", {"url": resource.href, "tooltip": resource.href})
        self._style_run(run, opts)

    def add_list(self, slide: SlideHandle, resource: ListResource, options: Options) -> None:
        text = "\n".join(resource.items)
        text_frame = self._text_frame_for(slide, options, text)
        bullet = options.get("bullet")
        align = ALIGN_MAP.get(options.get("align") or "left", PP_ALIGN.LEFT)

        for index, item in enumerate(resource.items):
            paragraph = text_frame.paragraphs[0] if index == 0 else text_frame.add_paragraph()
            if bullet is not None:
                self._set_bullet(paragraph, bullet, options.get("font_face"))
            paragraph.alignment = align
            for line_index, line in enumerate(item.split("\n")):
                if line_index:
                    paragraph.add_line_break()
                run = paragraph.add_run()
                run.text = line
                self._style_run(run, options)

    def _set_bullet(self, paragraph, bullet, font_face: Optional[str]):
        """Raw-XML bullet: ``a:buChar`` for discs, ``a:buAutoNum`` for numbering."""
        pPr = paragraph._p.get_or_add_pPr()
        pPr.set("marL", str(Emu(Inches(0.35))))
        pPr.set("indent", str(-Emu(Inches(0.3))))
        for tag in ("a:buNone", "a:buChar", "a:buAutoNum", "a:buFont"):
            for existing in pPr.findall(qn(tag)):
                pPr.remove(existing)

        if bullet.kind is BulletKind.DISC:
            pPr.append(parse_xml(f'<a:buFont {nsdecls("a")} typeface="{font_face or "Arial"}"/>'))
            pPr.append(parse_xml(f'<a:buChar {nsdecls("a")} char="{bullet.glyph or "•"}"/>'))
        else:
            scheme = AUTONUM_SCHEMES.get(bullet.kind, "arabicPeriod")
            start = f' startAt="{bullet.start}"' if bullet.start else ""
            pPr.append(parse_xml(f'<a:buAutoNum {nsdecls("a")} type="{scheme}"{start}/>'))

    def _image_source(self, resource: ImageResource):
        """A path or stream python-pptx can read, or None if the bytes are not at hand."""
        src = resource.data_uri or resource.src
        kind = source_kind(src)
        if kind == "data":
            return io.BytesIO(decode_data_uri(src)[1])
        if kind == "local":
            path = Path(resolve_asset(src, base_dir=self.base_dir))
            return str(path) if path.exists() else None
        return None

    def add_image(self, slide: SlideHandle, resource: ImageResource, options: Options) -> None:
        pres = slide.presentation
        x = float(options.get("x", 1.0))
        width = float(options.get("w_in") or px(resource.width).inches)
        height = float(options.get("h_in") or px(resource.height).inches)

        # Scale down (keeping the ratio) to the layout width and the slide bottom
        max_width = float(options.get("w", 0.8)) * pres.slide_width_in
        max_height = pres.slide_height_in - max(float(options.get("y", 2.0)), slide.cursor_y) - 0.2
        scale = min(1.0, max_width / width if width else 1.0)
        if max_height > 0.5:
            scale = min(scale, max_height / height if height else 1.0)
        width, height = width * scale, height * scale

        frame = self._frame(slide, {"x": x, "y": options.get("y", 2.0), "w_in": width, "h": height}, height)

        try:
            source = self._image_source(resource)
        except ValueError as exc:
            logger.warning(f"Unreadable image data for {resource.src[:60]!r}: {exc}")
            source = None

        if source is not None:
            try:
                slide.slide.shapes.add_picture(
                    source, Inches(frame["x"]), Inches(frame["y"]), Inches(frame["w"]), Inches(frame["h"])
                )
                if self.debug:
                    logger.info(f"🖼️  Image {frame['w']:.2f}x{frame['h']:.2f} in")
                return
            except (OSError, ValueError, KeyError) as exc:
                logger.warning(f"Failed to embed image {resource.src[:60]!r}: {exc}")

        # Placeholder keeps the geometry visible when the bytes are unusable
        textbox = self._textbox(slide, frame)
        textbox.text_frame.auto_size = MSO_AUTO_SIZE.NONE
        name = resource.alt or Path(resource.src.split("?")[0]).name or "image"
        textbox.text_frame.text = f"[Image: {name}]"

    def add_table(self, slide: SlideHandle, resource: TableResource, options: Options) -> None:
        header_cells = options.get("header_cells")
        if header_cells is None:
            header_cells = [{"text": h, "bold": True} for h in resource.headers] if any(resource.headers) else []
        body_cells = options.get("body_cells")
        if body_cells is None:
            body_cells = format_rows(resource.rows)

        n_rows = (1 if header_cells else 0) + len(body_cells)
        n_cols = max([len(header_cells)] + [len(r) for r in body_cells] + [1])
        if n_rows == 0:
            logger.warning("Skipping empty table")
            return

        pres = slide.presentation
        available = float(options.get("w", 0.9)) * pres.slide_width_in
        widths = list(options.get("col_widths") or [])
        if len(widths) != n_cols:
            widths = [available / n_cols] * n_cols
        total = sum(widths)
        if total > available:
            widths = [w * available / total for w in widths]

        frame = self._frame(
            slide,
            {"x": options.get("x", 0.5), "y": options.get("y", 2.0), "w_in": sum(widths)},
            TABLE_ROW_HEIGHT_IN * n_rows,
        )
        shape = slide.slide.shapes.add_table(
            n_rows, n_cols, Inches(frame["x"]), Inches(frame["y"]), Inches(frame["w"]), Inches(frame["h"])
        )
        table = shape.table

        # Disable PowerPoint's automatic table styling
        table.first_row = False
        table.first_col = False
        table.last_row = False
        table.last_col = False
        table.horz_banding = False
        table.vert_banding = False

        for column, width in zip(table.columns, widths):
            column.width = Inches(width)

        grid = ([header_cells] if header_cells else []) + list(body_cells)
        for row_idx, row in enumerate(grid):
            for col_idx in range(n_cols):
                spec = row[col_idx] if col_idx < len(row) else {"text": ""}
                self._fill_cell(table.cell(row_idx, col_idx), spec)

        header_offset = 1 if header_cells else 0
        for merge in options.get("merged_cells") or []:
            first_row = merge["row"] - 1 + header_offset
            first_col = merge["col"]
            last_row = min(first_row + merge.get("rowspan", 1) - 1, n_rows - 1)
            last_col = min(first_col + merge.get("colspan", 1) - 1, n_cols - 1)
            if first_row >= n_rows or first_col >= n_cols or (first_row, first_col) == (last_row, last_col):
                continue
            try:
                table.cell(first_row, first_col).merge(table.cell(last_row, last_col))
            except ValueError as exc:
                logger.warning(f"Skipping overlapping merge {merge}: {exc}")

        border = options.get("border") or {}
        if border.get("pt", 1):
            self._apply_table_borders(table, border.get("color", "000000"), border.get("pt", 1))

    def _fill_cell(self, cell, spec: Dict[str, Any]):
        cell.text = str(spec.get("text", ""))
        paragraph = cell.text_frame.paragraphs[0]
        paragraph.alignment = ALIGN_MAP.get(spec.get("align") or "left", PP_ALIGN.LEFT)
        cell.vertical_anchor = {"top": MSO_ANCHOR.TOP, "bottom": MSO_ANCHOR.BOTTOM}.get(
            spec.get("valign"), MSO_ANCHOR.MIDDLE
        )
        for run in paragraph.runs:
            self._style_run(run, {"font_size": TABLE_FONT_SIZE_PT, "bold": spec.get("bold"), "color": spec.get("color")})
        if spec.get("fill"):
            cell.fill.solid()
            cell.fill.fore_color.rgb = RGBColor.from_string(spec["fill"])
        else:
            cell.fill.background()

    # ------------------------------------------------------------------
    # Table border helpers
    # ------------------------------------------------------------------

    def _apply_table_borders(self, table, color_hex: str = "000000", width_pt: float = 1):
        """Solid borders on every cell edge, written as raw ``a:ln*`` XML."""
        color_hex = color_hex.lstrip('#').upper()
        width_emu = int(Pt(width_pt))

        for row in table.rows:
            for cell in row.cells:
                tcPr = cell._tc.get_or_add_tcPr()
                # a:ln* must precede the cell fill inside a:tcPr
                for index, side in enumerate(("lnL", "lnR", "lnT", "lnB")):
                    existing = tcPr.find(qn(f"a:{side}"))
                    if existing is not None:
                        tcPr.remove(existing)
                    tcPr.insert(index, parse_xml(
                        f'<a:{side} w="{width_emu}" {nsdecls("a")}>'
                        f'<a:solidFill><a:srgbClr val="{color_hex}"/></a:solidFill>'
                        f'<a:prstDash val="solid"/>'
                        f'</a:{side}>'
                    ))

