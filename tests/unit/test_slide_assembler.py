"""Tests for slide assembly against an in-memory recording backend."""

import asyncio
from dataclasses import replace

import pytest

from deck_converter.config import (
    ConversionConfig,
    ImageProcessingOptions,
    PresentationTheme,
    SplitStrategy,
)
from deck_converter.errors import AssemblyError, BackendError, ConfigValidationError
from deck_converter.html_parser import HTMLParser
from deck_converter.image_processor import ImageProcessor
from deck_converter.layout_engine import Rect, positions_for
from deck_converter.models import BulletKind, HTMLContent, Section
from deck_converter.slide_assembler import SlideAssembler
from deck_converter.theme_loader import theme_for


class BrokenDecoder:
    def decode(self, data):
        raise ValueError("decoder rejected the bytes")


def _assemble(backend, html, config=None, **kwargs):
    config = config or ConversionConfig()
    content = HTMLParser().parse_html(html, config=config)
    assembler = SlideAssembler(backend, **kwargs)
    return asyncio.run(assembler.assemble(content, config))


def _names(backend):
    return [call[0] for call in backend.calls]


def _elements(handle, slide=0):
    return handle["slides"][slide]["elements"]


def test_one_slide_per_section_in_order(recording_backend):
    handle = _assemble(recording_backend, "<h1>Intro</h1><p>Hello</p><h1>Details</h1><p>World</p>")

    assert _names(recording_backend) == [
        "create_presentation",
        "add_slide", "add_text", "add_text",
        "add_slide", "add_text", "add_text",
    ]
    assert [s["title"] for s in handle["slides"]] == ["Intro", "Details"]

    title, body = _elements(handle)
    assert title[1].content == "Intro"
    assert title[2]["font_size"] == 24
    assert title[2]["bold"] is True
    assert title[2]["align"] == "center"
    assert body[1].content == "Hello"


def test_elements_are_rendered_in_document_order(recording_backend, png_uri):
    html = (
        "<h1>T</h1><p>intro</p>"
        f'<img src="{png_uri()}">'
        "<table><tr><th>H</th></tr><tr><td>1</td></tr></table>"
        '<ol type="A" start="3"><li>x</li></ol>'
        '<p>see <a href="example.com">the site</a></p>'
    )
    handle = _assemble(recording_backend, html)

    assert [kind for kind, _, _ in _elements(handle)] == ["text", "text", "image", "table", "list", "text", "link"]
    _, table, table_options = _elements(handle)[3]
    assert table.headers == ["H"]
    assert table_options["header_cells"][0]["bold"] is True
    _, lst, list_options = _elements(handle)[4]
    assert list_options["bullet"].kind is BulletKind.UPPER_LETTER
    assert list_options["bullet"].start == 3
    _, link, link_options = _elements(handle)[6]
    assert link.href == "https://example.com"
    assert link_options["hyperlink"]["url"] == "https://example.com"


def test_untitled_section_has_no_title_text(recording_backend):
    config = ConversionConfig(split_strategy=SplitStrategy.NO_SPLIT)
    handle = _assemble(recording_backend, "<p>just a paragraph</p>", config)

    assert _names(recording_backend) == ["create_presentation", "add_slide", "add_text"]
    assert handle["slides"][0]["title"] == "Untitled"
    assert _elements(handle)[0][1].content == "just a paragraph"


def test_images_can_be_left_out(recording_backend):
    config = ConversionConfig(include_images=False)
    _assemble(recording_backend, '<h1>T</h1><img src="missing.png"><p>x</p>', config)
    assert "add_image" not in _names(recording_backend)
    assert _names(recording_backend).count("add_text") == 2


@pytest.mark.parametrize("preserve,expected", [(True, 1), (False, 0)])
def test_links_follow_preserve_links(recording_backend, preserve, expected):
    config = ConversionConfig(preserve_links=preserve)
    _assemble(recording_backend, '<h1>T</h1><p><a href="example.com">Example</a></p>', config)
    assert _names(recording_backend).count("add_hyperlink") == expected
    assert _names(recording_backend).count("add_text") == 2


def test_heading_and_inline_styles_map_to_text_options(recording_backend):
    html = "<h1>T</h1><h2>Sub</h2><p style=\"color: #ff0000; font-size: 16px\">x</p><p>a <b>b</b></p>"
    handle = _assemble(recording_backend, html)
    theme = theme_for(PresentationTheme.DEFAULT)

    _, subheading, paragraph, mixed = _elements(handle)
    assert subheading[2]["font_size"] == 20
    assert subheading[2]["bold"] is True
    assert subheading[2]["color"] == theme.heading_color
    assert paragraph[2]["font_size"] == 12.0
    assert paragraph[2]["color"] == "FF0000"
    assert paragraph[2]["bold"] is False
    assert paragraph[2]["font_face"] == theme.font_set.body
    assert [run["bold"] for run in mixed[2]["runs"]] == [False, True]


def test_theme_is_passed_to_the_backend(recording_backend):
    config = ConversionConfig(theme=PresentationTheme.CREATIVE)
    _assemble(recording_backend, "<h1>T</h1>", config)
    _, theme, layout = recording_backend.calls[0]
    assert theme.name == "Creative"
    assert layout is config.layout


def test_style_overrides_win_over_layout(recording_backend):
    config = ConversionConfig(style_overrides={"text": {"color": "00FF00", "y": 3.0}})
    handle = _assemble(recording_backend, "<h1>T</h1><p>x</p>", config)
    title, body = _elements(handle)
    assert body[2]["color"] == "00FF00"
    assert body[2]["y"] == 3.0
    assert title[2]["color"] == theme_for(PresentationTheme.DEFAULT).heading_color


def test_injected_positions(recording_backend):
    positions = replace(positions_for(ConversionConfig().layout), text=Rect(2.0, 4.0, 0.5))
    handle = _assemble(recording_backend, "<h1>T</h1><p>x</p>", positions=lambda layout: positions)
    _, body = _elements(handle)
    assert (body[2]["x"], body[2]["y"], body[2]["w"]) == (2.0, 4.0, 0.5)


def test_processed_image_geometry(recording_backend, png_uri):
    handle = _assemble(recording_backend, f'<h1>T</h1><img src="{png_uri(1600, 800)}">')
    _, image, options = _elements(handle)[1]
    assert (image.width, image.height) == (800, 400)
    assert options["w_in"] == pytest.approx(800 / 96)
    assert options["h_in"] == pytest.approx(400 / 96)


def test_failed_image_keeps_original_geometry(recording_backend, png_uri):
    html = f'<h1>T</h1><img src="{png_uri()}" width="120" height="60"><p>after</p>'
    handle = _assemble(recording_backend, html, image_processor=ImageProcessor(decoder=BrokenDecoder()))

    assert _names(recording_backend)[-2:] == ["add_image", "add_text"]
    _, image, options = _elements(handle)[1]
    assert (image.width, image.height) == (120, 60)
    assert options["w_in"] == 1.25
    assert options["h_in"] == 0.625


def test_zero_sections_fall_back_to_document_resources(recording_backend, png_uri):
    html = (
        '<p>one</p><a href="example.com">Example</a>'
        "<ul><li>a</li></ul>"
        "<table><tr><td>1</td></tr></table>"
        f'<img src="{png_uri()}">'
    )
    content = HTMLParser().parse_html(html)
    content.sections = []

    handle = asyncio.run(SlideAssembler(recording_backend).assemble(content, ConversionConfig()))

    assert handle["slides"][0]["title"] == "Untitled"
    assert _names(recording_backend) == [
        "create_presentation", "add_slide",
        "add_text", "add_image", "add_table", "add_list", "add_hyperlink",
    ]


def test_invalid_config_fails_before_any_backend_call(recording_backend):
    content = HTMLParser().parse_html("<h1>T</h1>")
    config = ConversionConfig(image_options=ImageProcessingOptions(quality=0))
    with pytest.raises(ConfigValidationError):
        asyncio.run(SlideAssembler(recording_backend).assemble(content, config))
    assert recording_backend.calls == []


def test_backend_failure_is_fatal(failing_backend):
    backend = failing_backend("add_table")
    with pytest.raises(BackendError) as excinfo:
        _assemble(backend, "<h1>T</h1><p>x</p><table><tr><td>1</td></tr></table><p>never</p>")

    assert excinfo.value.stage == "backend"
    assert "add table" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert _names(backend)[-1] == "add_text"


def test_unknown_element_kind(recording_backend):
    class ChartElement:
        kind = "text"
        style = None

    parser = HTMLParser()
    content = HTMLContent(
        raw="<p>x</p>",
        document=parser.parse("<p>x</p>"),
        sections=[Section(title="Charts", elements=[ChartElement()])],
    )
    with pytest.raises(AssemblyError):
        asyncio.run(SlideAssembler(recording_backend).assemble(content, ConversionConfig()))
