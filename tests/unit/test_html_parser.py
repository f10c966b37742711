"""Tests for HTML validation, parsing and section splitting."""

import pytest

from deck_converter.config import ConversionConfig, SplitStrategy
from deck_converter.errors import ConfigValidationError, ParseError
from deck_converter.html_parser import (
    EMPTY_INPUT_MESSAGE,
    HTMLParser,
    MalformationCheck,
)


@pytest.fixture
def parser():
    return HTMLParser()


class TestValidation:

    @pytest.mark.parametrize("html", [
        "<p>ok</p>",
        "<h1>Title</h1><p>a &lt; b</p>",
        "<p>a < b</p>",
        "<script>if (a<b) { go(); }</script><p>x</p>",
        "<!-- <weird <comment> --><p>x</p>",
        "<ul><li>one<li>two</ul>",
    ])
    def test_valid_documents(self, parser, html):
        assert parser.validate_html(html)
        assert parser.get_validation_error(html) is None

    @pytest.mark.parametrize("html", [
        "<script>var a = 1;",
        "<p>x</p><style>p { color: red; }",
        "<div><h1>Unclosed Tag",
        "<div <p>>broken</div>",
    ])
    def test_malformed_documents(self, parser, html):
        assert not parser.validate_html(html)
        assert parser.get_validation_error(html).startswith("Invalid HTML structure")

    @pytest.mark.parametrize("raw", ["", "   \n", None, 42])
    def test_empty_or_non_string(self, parser, raw):
        assert not parser.validate_html(raw)
        assert parser.get_validation_error(raw) == EMPTY_INPUT_MESSAGE

    def test_parse_error_carries_position(self, parser):
        with pytest.raises(ParseError) as excinfo:
            parser.parse("<div><h1>Unclosed Tag")
        error = excinfo.value
        assert error.stage == "parse"
        assert error.position == (1, 6)
        assert error.context.startswith("<h1>")
        assert str(error).startswith("[parse] Invalid HTML structure")

    def test_position_on_later_line(self, parser):
        with pytest.raises(ParseError) as excinfo:
            parser.parse("<p>fine</p>\n<p>still fine</p>\n  <script>alert(1)")
        assert excinfo.value.position == (3, 3)

    def test_checks_are_configurable(self):
        lenient = HTMLParser(malformation_checks=[])
        assert lenient.validate_html("<div><h1>Unclosed Tag")

        no_marquee = MalformationCheck(
            "marquee", "marquee is not allowed",
            lambda raw: raw.find("<marquee") if "<marquee" in raw else None,
        )
        strict = HTMLParser(malformation_checks=[no_marquee])
        assert not strict.validate_html("<p>x</p><marquee>hi</marquee>")
        assert "marquee is not allowed" in strict.get_validation_error("<marquee>hi</marquee>")


class TestSections:

    def test_split_by_h1(self, parser):
        content = parser.parse_html("<h1>Intro</h1><p>Hello</p><h1>Details</h1><p>World</p>")

        assert [s.title for s in content.sections] == ["Intro", "Details"]
        for section, expected in zip(content.sections, ["Hello", "World"]):
            assert len(section.elements) == 1
            assert section.elements[0].kind == "text"
            assert section.elements[0].resource.content == expected

    @pytest.mark.parametrize("n", [0, 1, 2, 5])
    def test_section_count_matches_heading_count(self, parser, n):
        if n:
            html = "".join(f"<h1>Slide {i}</h1><p>body {i}</p>" for i in range(n))
        else:
            html = "<p>no headings at all</p>"
        document = parser.parse(html)
        sections = parser.extract_sections(document, SplitStrategy.BY_H1)
        assert len(sections) == max(n, 1)

    def test_split_by_h2_keeps_leading_content_out(self, parser):
        document = parser.parse("<h1>Deck</h1><h2>A</h2><p>a</p><h2>B</h2><p>b</p>")
        sections = parser.extract_sections(document, SplitStrategy.BY_H2)
        assert [s.title for s in sections] == ["A", "B"]
        assert "<h1>" not in sections[0].source_fragment

    def test_custom_selector(self, parser):
        html = '<h3 class="s">One</h3><p>a</p><h3>not a split</h3><h3 class="s">Two</h3><p>b</p>'
        document = parser.parse(html)
        sections = parser.extract_sections(document, SplitStrategy.BY_CUSTOM_SELECTOR, "h3.s")
        assert [s.title for s in sections] == ["One", "Two"]
        assert "not a split" in sections[0].source_fragment

    def test_container_selector_keeps_its_content(self, parser):
        html = (
            "<section><h2>Intro</h2><p>Body text</p></section>"
            "<section><p>No heading here</p></section>"
        )
        sections = parser.parse_html(html, SplitStrategy.BY_CUSTOM_SELECTOR, "section").sections
        assert [s.title for s in sections] == ["Intro", "No heading here"]
        assert [e.resource.content for e in sections[0].elements] == ["Body text"]
        assert [e.resource.content for e in sections[1].elements] == ["No heading here"]

    def test_custom_selector_defaults_to_h1(self, parser):
        document = parser.parse("<h1>A</h1><p>a</p><h1>B</h1>")
        sections = parser.extract_sections(document, SplitStrategy.BY_CUSTOM_SELECTOR, None)
        assert [s.title for s in sections] == ["A", "B"]

    def test_invalid_custom_selector(self, parser):
        document = parser.parse("<h1>A</h1>")
        with pytest.raises(ConfigValidationError):
            parser.extract_sections(document, SplitStrategy.BY_CUSTOM_SELECTOR, "h1[")

    def test_empty_heading_gets_numbered_title(self, parser):
        document = parser.parse("<h1>First</h1><p>x</p><h1>  </h1><p>y</p>")
        sections = parser.extract_sections(document)
        assert [s.title for s in sections] == ["First", "Section 2"]

    def test_heading_nested_in_later_sibling(self, parser):
        content = parser.parse_html("<h1>A</h1><p>a</p><div><h1>B</h1><p>b</p></div>")
        assert [s.title for s in content.sections] == ["A", "B"]
        assert [e.resource.content for e in content.sections[0].elements] == ["a"]
        assert [e.resource.content for e in content.sections[1].elements] == ["b"]

    @pytest.mark.parametrize("html,expected", [
        ("<h1>Main</h1><h2>Sub</h2><p>x</p>", "Main"),
        ("<h2>Sub</h2><h3>Minor</h3><p>x</p>", "Sub"),
        ("<h3>Minor</h3><p>x</p>", "Minor"),
        ("<html><head><title>Doc Title</title></head><body><p>x</p></body></html>", "Doc Title"),
        ("<p>just text</p>", "Untitled"),
    ])
    def test_no_split_title_cascade(self, parser, html, expected):
        sections = parser.extract_sections(parser.parse(html), SplitStrategy.NO_SPLIT)
        assert len(sections) == 1
        assert sections[0].title == expected

    def test_zero_matches_fall_back_to_cascade(self, parser):
        sections = parser.extract_sections(parser.parse("<h2>Only H2</h2><p>x</p>"), SplitStrategy.BY_H1)
        assert len(sections) == 1
        assert sections[0].title == "Only H2"

    @pytest.mark.parametrize("html", [
        "<html><body></body></html>",
        "<html><head><title>T</title></head><body>   </body></html>",
    ])
    def test_empty_body(self, parser, html):
        sections = parser.extract_sections(parser.parse(html))
        assert len(sections) == 1
        assert sections[0].title == "Untitled"
        assert sections[0].source_fragment == ""

    def test_no_split_does_not_repeat_title_as_text(self, parser):
        content = parser.parse_html(
            "<h1>Title</h1><p>Body</p>",
            config=ConversionConfig(split_strategy=SplitStrategy.NO_SPLIT),
        )
        section = content.sections[0]
        assert section.title == "Title"
        assert [e.resource.content for e in section.elements] == ["Body"]


class TestElements:

    def test_elements_follow_document_order(self, parser):
        html = (
            "<h1>T</h1>"
            "<p>intro</p>"
            '<img src="a.png" width="120" height="80">'
            "<table><tr><th>H</th></tr><tr><td>1</td></tr></table>"
            "<ul><li>x</li><li>y</li></ul>"
            '<p>see <a href="example.com">the site</a></p>'
        )
        section = parser.parse_html(html).sections[0]
        assert [e.kind for e in section.elements] == ["text", "image", "table", "list", "text", "link"]
        assert section.elements[-1].resource.href == "https://example.com"

    def test_list_inside_text_block_is_not_repeated(self, parser):
        section = parser.parse_html("<h1>T</h1><blockquote>Said<ul><li>alpha</li></ul></blockquote>").sections[0]
        assert [e.kind for e in section.elements] == ["text", "list"]
        assert section.elements[0].resource.content == "Said"

    def test_anchor_without_href_stays_as_text(self, parser):
        section = parser.parse_html('<h1>T</h1><a name="top">Top</a><a href="">Empty</a>').sections[0]
        assert [(e.kind, e.resource.content) for e in section.elements] == [("text", "Top"), ("text", "Empty")]

    def test_image_inside_paragraph_is_found(self, parser):
        section = parser.parse_html('<h1>T</h1><p><img src="pic.png"></p>').sections[0]
        assert [e.kind for e in section.elements] == ["image"]

    def test_container_with_inline_markup_is_one_text(self, parser):
        section = parser.parse_html("<h1>T</h1><div>Hello <b>bold</b> world</div>").sections[0]
        assert len(section.elements) == 1
        text = section.elements[0].resource
        assert text.content == "Hello bold world"
        assert [r.content for r in text.runs] == ["Hello ", "bold", " world"]
        assert text.runs[1].format.bold is True

    def test_scripts_and_comments_are_ignored(self, parser):
        section = parser.parse_html(
            "<h1>T</h1><script>var x = 1;</script><!-- note --><p>kept</p>"
        ).sections[0]
        assert [e.resource.content for e in section.elements] == ["kept"]

    def test_style_overrides_are_attached(self, parser):
        config = ConversionConfig(style_overrides={"text": {"color": "FF0000"}})
        section = parser.parse_html("<h1>T</h1><p>x</p>", config=config).sections[0]
        assert section.elements[0].style == {"color": "FF0000"}

    def test_document_wide_resources(self, parser):
        html = (
            '<h1>A</h1><p>one</p><img src="a.png">'
            "<h1>B</h1><ul><li>x<ol><li>y</li></ol></li></ul>"
            '<table><tr><td>1</td></tr></table><a href="/docs">Docs</a>'
        )
        resources = parser.parse_html(html).resources
        assert [i.src for i in resources.images] == ["a.png"]
        assert len(resources.lists) == 1
        assert len(resources.tables) == 1
        assert [(l.text, l.href) for l in resources.links] == [("Docs", "/docs")]
        assert "one" in [t.content for t in resources.texts]
