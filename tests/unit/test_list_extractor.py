"""Tests for list extraction, bullet mapping and item formatting."""

import pytest
from bs4 import BeautifulSoup

from deck_converter.list_extractor import (
    DISC_GLYPH,
    apply_list_styling,
    determine_bullet_type,
    extract_list,
    extract_lists,
    format_list_items,
    process_list,
    strip_markup,
)
from deck_converter.models import BulletKind, ListResource


def _list(html):
    return BeautifulSoup(html, "html.parser").find(["ul", "ol"])


def test_ordered_list_with_letters_and_start():
    lst = extract_list(_list('<ol type="A" start="3"><li>x</li><li>y</li></ol>'))
    assert lst.ordered
    assert lst.items == ["x", "y"]

    bullet = determine_bullet_type(lst)
    assert bullet.kind is BulletKind.UPPER_LETTER
    assert bullet.start == 3


def test_unordered_defaults():
    lst = extract_list(_list("<ul><li><b>one</b></li><li>two</li></ul>"))
    assert not lst.ordered
    assert lst.items == ["<b>one</b>", "two"]
    assert lst.style["type"] == "disc"
    assert lst.style["start"] == "1"
    assert lst.style["fontFamily"] == "Arial"
    assert lst.style["fontSize"] is None
    assert lst.style["color"] is None


@pytest.mark.parametrize("ordered,list_type,expected", [
    (False, "disc", BulletKind.DISC),
    (False, "square", BulletKind.DISC),
    (False, None, BulletKind.DISC),
    (True, "1", BulletKind.DECIMAL),
    (True, "A", BulletKind.UPPER_LETTER),
    (True, "a", BulletKind.LOWER_LETTER),
    (True, "I", BulletKind.UPPER_ROMAN),
    (True, "i", BulletKind.LOWER_ROMAN),
    (True, "lower-alpha", BulletKind.LOWER_LETTER),
    (True, "weird", BulletKind.DECIMAL),
    (True, None, BulletKind.DECIMAL),
])
def test_every_list_gets_a_bullet(ordered, list_type, expected):
    lst = ListResource(items=["x"], ordered=ordered, style={"type": list_type})
    bullet = determine_bullet_type(lst)
    assert bullet.kind is expected
    if expected is BulletKind.DISC:
        assert bullet.glyph == DISC_GLYPH


@pytest.mark.parametrize("start,expected", [("1", None), (None, None), ("5", 5), ("oops", None)])
def test_start_value(start, expected):
    lst = ListResource(items=["x"], ordered=True, style={"type": "1", "start": start})
    assert determine_bullet_type(lst).start == expected


def test_nested_list_is_folded_into_its_item():
    lst = extract_list(_list("<ul><li>Main<ul><li>a</li><li>b</li></ul></li><li>Two</li></ul>"))
    assert len(lst.items) == 2

    processed = process_list(lst)
    assert processed.items == [f"Main\n    {DISC_GLYPH} a\n    {DISC_GLYPH} b", "Two"]
    assert lst.items[0].startswith("Main<ul>")


def test_extract_lists_skips_nested_lists():
    root = BeautifulSoup(
        "<div><ul><li>a<ol><li>b</li></ol></li></ul><ol><li>c</li></ol></div>", "html.parser"
    )
    lists = extract_lists(root)
    assert [l.ordered for l in lists] == [False, True]


@pytest.mark.parametrize("markup,expected", [
    ("<b>Bold</b> and <i>it</i>", "Bold and it"),
    ("a<br>b", "a\nb"),
    ("<p>one</p><p>two</p>", "one\n\ntwo"),
    ("  spaced\t out  ", "spaced out"),
])
def test_strip_markup(markup, expected):
    assert strip_markup(markup) == expected


def test_format_list_items_strips_markup():
    assert format_list_items(["<em>x</em>", "plain"]) == ["x", "plain"]


def test_styling_defaults():
    options = apply_list_styling(ListResource(items=["x"], style={"type": "disc"}))
    assert options["font_size"] == 18
    assert options["color"] == "333333"
    assert options["font_face"] == "Arial"
    assert options["align"] == "left"
    assert options["bullet"].kind is BulletKind.DISC


def test_styling_from_inline_style():
    lst = extract_list(_list(
        '<ol style="font-size: 16px; color: #ff0000; font-family: \'Georgia\', serif; text-align: center">'
        "<li>x</li></ol>"
    ))
    options = apply_list_styling(lst, {"x": 1.0})
    assert options["x"] == 1.0
    assert options["font_size"] == 12.0
    assert options["color"] == "FF0000"
    assert options["font_face"] == "Georgia"
    assert options["align"] == "center"
    assert options["bullet"].kind is BulletKind.DECIMAL
