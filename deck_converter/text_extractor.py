"""
Text and inline-format extraction.

Three views of the same markup are provided:

* :func:`parse_formatting` – one :class:`FormatDescriptor` for a block;
* :func:`extract_text` – its plain text;
* :func:`generate_complex_text_elements` – the block flattened into runs,
  each run carrying the formatting of its whole ancestor chain.

Fragments can be given as an HTML string or as a ``bs4.Tag`` that still sits
in its tree (then ancestors outside the fragment count too).
"""
import logging
import re
from typing import Dict, List, Optional, Union

from bs4 import BeautifulSoup, CData, NavigableString, Tag

from .css_utils import is_bold_weight, normalize_alignment, parse_style
from .errors import TextExtractionError
from .models import FormatDescriptor, TextResource

logger = logging.getLogger(__name__)

Fragment = Union[str, Tag]

# tag → FormatDescriptor flag
FORMATTING_TAGS = {
    "strong": "bold",
    "b": "bold",
    "em": "italic",
    "i": "italic",
    "u": "underline",
    "ins": "underline",
    "s": "strikethrough",
    "strike": "strikethrough",
    "del": "strikethrough",
    "sup": "superscript",
    "sub": "subscript",
}
NESTED_FORMATTING_TAGS = ["strong", "b", "em", "i", "u", "s", "strike", "del", "sup", "sub"]
HEADING_TAGS = {f"h{n}": n for n in range(1, 7)}
SKIP_TAGS = {"script", "style", "template", "noscript", "head", "title"}
BOOLEAN_FLAGS = ("bold", "italic", "underline", "strikethrough", "superscript", "subscript")

FORMATTED_TEXT_SELECTOR = "p, h1, h2, h3, h4, h5, h6, span, div, b, strong, i, em, u, s, strike, sup, sub"

_WS = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return _WS.sub(" ", text).strip()


def is_text_node(node) -> bool:
    # Same string types Tag.get_text() yields: no comments, doctype or script bodies
    return type(node) in (NavigableString, CData)


def _container(fragment: Fragment) -> Tag:
    if isinstance(fragment, Tag):
        return fragment
    if isinstance(fragment, str):
        return BeautifulSoup(fragment, "html.parser")
    raise TextExtractionError(f"Expected markup string or element, got {type(fragment).__name__}")


def _root_element(container: Tag) -> Optional[Tag]:
    """The single element a fragment consists of, or None for mixed content."""
    if not isinstance(container, BeautifulSoup):
        return container
    elements = [c for c in container.contents if isinstance(c, Tag)]
    loose_text = any(is_text_node(c) and c.strip() for c in container.contents)
    if len(elements) == 1 and not loose_text:
        return elements[0]
    return None


def _style_flags(tag: Tag) -> Dict[str, bool]:
    """Boolean flags a single element switches on (tag name or inline style)."""
    flags = {}
    flag = FORMATTING_TAGS.get(tag.name)
    if flag:
        flags[flag] = True

    style = parse_style(tag.get("style"))
    if is_bold_weight(style.get("font-weight")):
        flags["bold"] = True
    if style.get("font-style", "").lower() in ("italic", "oblique"):
        flags["italic"] = True
    decoration = style.get("text-decoration", "") + " " + style.get("text-decoration-line", "")
    if "underline" in decoration:
        flags["underline"] = True
    if "line-through" in decoration:
        flags["strikethrough"] = True
    valign = style.get("vertical-align", "").lower()
    if valign == "super":
        flags["superscript"] = True
    elif valign == "sub":
        flags["subscript"] = True
    return flags


def _apply_element(state: Dict, tag: Tag) -> Dict:
    """Formatting state inside *tag*, given the state of its parent."""
    new_state = dict(state)
    new_state.update(_style_flags(tag))

    if tag.name in HEADING_TAGS:
        new_state["heading_level"] = HEADING_TAGS[tag.name]

    style = parse_style(tag.get("style"))
    if style.get("color"):
        new_state["color"] = style["color"]
    if style.get("background-color"):
        new_state["background_color"] = style["background-color"]
    if style.get("font-family"):
        new_state["font_family"] = style["font-family"].strip()
    if style.get("font-size"):
        new_state["font_size"] = style["font-size"]
    alignment = normalize_alignment(style.get("text-align")) or normalize_alignment(tag.get("align"))
    if alignment:
        new_state["alignment"] = alignment
    return new_state


def _ancestor_state(tag: Tag) -> Dict:
    state: Dict = {}
    for ancestor in reversed(list(tag.parents)):
        if isinstance(ancestor, BeautifulSoup):
            continue
        state = _apply_element(state, ancestor)
    return state


def _count_nested_formatting(container: Tag) -> int:
    return len(container.find_all(NESTED_FORMATTING_TAGS))


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def parse_formatting(fragment: Fragment) -> FormatDescriptor:
    """Derive the block-level :class:`FormatDescriptor` of *fragment*.

    A flag is set when the root element is the matching formatting tag, has
    the inline-style equivalent, or sits inside an ancestor carrying that tag.
    Fields that do not apply are left unset.
    """
    try:
        container = _container(fragment)
        root = _root_element(container)
        fmt = FormatDescriptor()

        if root is not None:
            for flag, value in _style_flags(root).items():
                setattr(fmt, flag, value)
            for ancestor in root.parents:
                if isinstance(ancestor, BeautifulSoup):
                    break
                flag = FORMATTING_TAGS.get(ancestor.name)
                if flag:
                    setattr(fmt, flag, True)

            fmt.heading_level = HEADING_TAGS.get(root.name)

            style = parse_style(root.get("style"))
            fmt.alignment = normalize_alignment(style.get("text-align")) or normalize_alignment(root.get("align"))
            fmt.color = style.get("color") or None
            fmt.background_color = style.get("background-color") or None
            fmt.font_family = style.get("font-family") or None
            fmt.font_size = style.get("font-size") or None
        else:
            heading = container.find(list(HEADING_TAGS))
            if heading is not None:
                fmt.heading_level = HEADING_TAGS[heading.name]

        if _count_nested_formatting(container) > 1:
            fmt.has_nested_formatting = True
        return fmt
    except TextExtractionError:
        raise
    except (AttributeError, TypeError, ValueError) as exc:
        raise TextExtractionError(f"Failed to parse text formatting: {exc}") from exc


def extract_text(fragment: Fragment) -> str:
    """Text content of *fragment* with all markup removed."""
    try:
        return _container(fragment).get_text()
    except TextExtractionError:
        raise
    except (AttributeError, TypeError, ValueError) as exc:
        raise TextExtractionError(f"Failed to extract text: {exc}") from exc


def generate_complex_text_elements(fragment: Fragment) -> List[TextResource]:
    """Flatten nested inline markup into formatted runs.

    Every text node, or element whose only child is a text node, becomes one
    run.  Each run's format merges its whole ancestor chain: tag flags are
    OR'd and the innermost inline style wins.  All boolean flags are explicit.
    """
    try:
        container = _container(fragment)
        if isinstance(container, BeautifulSoup):
            base_state: Dict = {}
        else:
            base_state = _apply_element(_ancestor_state(container), container)
        nested = _count_nested_formatting(container) > 1

        runs: List[TextResource] = []
        stack = [(child, base_state) for child in reversed(container.contents)]
        while stack:
            node, state = stack.pop()
            if is_text_node(node):
                if str(node):
                    runs.append(_make_run(str(node), state, nested))
                continue
            if not isinstance(node, Tag) or node.name in SKIP_TAGS:
                continue

            child_state = _apply_element(state, node)
            children = node.contents
            if len(children) == 1 and is_text_node(children[0]):
                if str(children[0]):
                    runs.append(_make_run(str(children[0]), child_state, nested))
                continue
            stack.extend((child, child_state) for child in reversed(children))
        return runs
    except TextExtractionError:
        raise
    except (AttributeError, TypeError, ValueError) as exc:
        raise TextExtractionError(f"Failed to flatten text runs: {exc}") from exc


def _make_run(text: str, state: Dict, nested: bool) -> TextResource:
    fmt = FormatDescriptor(
        color=state.get("color"),
        background_color=state.get("background_color"),
        font_family=state.get("font_family"),
        font_size=state.get("font_size"),
        heading_level=state.get("heading_level"),
        alignment=state.get("alignment"),
        has_nested_formatting=nested,
    )
    for flag in BOOLEAN_FLAGS:
        setattr(fmt, flag, bool(state.get(flag, False)))
    return TextResource(content=text, format=fmt)


def generate_from_html(fragment: Fragment) -> TextResource:
    """One block of text: collapsed content, block format and, if the block
    mixes formatting, its runs ready for rendering."""
    container = _container(fragment)
    root = _root_element(container)

    if root is not None and root.name == "pre":
        content = extract_text(container).strip("\n")
    else:
        content = collapse_whitespace(extract_text(container))
    fmt = parse_formatting(container)

    runs: List[TextResource] = []
    has_inline_markup = any(
        isinstance(d, Tag) and d.name != "br" for d in container.descendants
    )
    if has_inline_markup and content:
        runs = _tidy_runs(generate_complex_text_elements(container))
        if len({_run_key(r) for r in runs}) <= 1:
            runs = []

    return TextResource(content=content, format=fmt, runs=runs)


def _run_key(run: TextResource):
    return tuple(sorted((k, v) for k, v in run.format.to_dict().items() if k != "has_nested_formatting"))


def _tidy_runs(runs: List[TextResource]) -> List[TextResource]:
    """Collapse whitespace inside runs and trim the block edges."""
    tidy = []
    for run in runs:
        text = _WS.sub(" ", run.content)
        if tidy and tidy[-1].content.endswith(" ") and text.startswith(" "):
            text = text[1:]
        if text:
            tidy.append(TextResource(content=text, format=run.format))
    if tidy:
        tidy[0].content = tidy[0].content.lstrip()
        tidy[-1].content = tidy[-1].content.rstrip()
    return [r for r in tidy if r.content]


def extract_formatted_text(root: Tag) -> List[TextResource]:
    """Document-wide text resources for every text-bearing element under *root*."""
    texts = []
    for element in root.select(FORMATTED_TEXT_SELECTOR):
        if element.name == "div" and element.find(True) is not None:
            continue
        content = collapse_whitespace(element.get_text())
        if not content:
            continue
        try:
            texts.append(TextResource(content=content, format=parse_formatting(element)))
        except TextExtractionError as exc:
            logger.warning(f"Skipping text element <{element.name}>: {exc}")
    return texts
