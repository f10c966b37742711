"""Tests for hyperlink extraction and URL normalization."""

import pytest
from bs4 import BeautifulSoup

from deck_converter.link_extractor import (
    LINK_COLOR,
    apply_link_styling,
    extract_domain,
    extract_links,
    is_valid_url,
    normalize_url,
    process_link,
)
from deck_converter.models import LinkResource


@pytest.mark.parametrize("href,expected", [
    ("example.com", "https://example.com"),
    ("http://example.com/a", "https://example.com/a"),
    ("https://example.com", "https://example.com"),
    ("#top", "#top"),
    ("/docs/intro", "/docs/intro"),
    ("mailto:team@example.com", "mailto:team@example.com"),
    ("ftp://files.example.com", "ftp://files.example.com"),
    ("", "#"),
    ("   ", "#"),
    (None, "#"),
    ("  example.com  ", "https://example.com"),
])
def test_normalize_url(href, expected):
    assert normalize_url(href) == expected


@pytest.mark.parametrize("href", [
    "example.com", "HTTP://Example.com", "https://x.org", "#frag", "/root", "//cdn.example.com/lib.js",
    "mailto:a@b.c", "tel:+123", "", "www.example.com/path?q=1", "javascript:void(0)",
])
def test_normalize_url_is_idempotent(href):
    once = normalize_url(href)
    assert normalize_url(once) == once


def test_extract_links_skips_empty_targets_and_text():
    root = BeautifulSoup(
        '<p><a href="example.com">Example</a> <a href="">empty</a> <a href="/x"> </a> <a>no href</a>'
        '<a href="/docs"> The <b>docs</b> </a></p>',
        "html.parser",
    )
    links = extract_links(root)
    assert [(l.text, l.href) for l in links] == [("Example", "https://example.com"), ("The docs", "/docs")]


def test_process_link_strips_markup_and_normalizes():
    link = process_link(LinkResource(text="<b>Home</b>", href="http://example.com"))
    assert link == LinkResource(text="Home", href="https://example.com")


def test_process_link_falls_back_to_href_for_text():
    assert process_link(LinkResource(text="", href="example.com")).text == "example.com"


def test_domain_and_validity():
    assert extract_domain("example.com/a/b") == "example.com"
    assert extract_domain("#top") == ""
    assert is_valid_url("https://example.com")
    assert not is_valid_url("/relative")


def test_link_styling():
    options = apply_link_styling(LinkResource(text="Example", href="https://example.com"), {"y": 3.0})
    assert options["y"] == 3.0
    assert options["color"] == LINK_COLOR
    assert options["underline"] is True
    assert options["hyperlink"] == {"url": "https://example.com", "tooltip": "https://example.com"}
