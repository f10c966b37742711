"""
Data models for the HTML → deck pipeline.
"""
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union

from bs4 import BeautifulSoup

UNTITLED = "Untitled"


@dataclass
class FormatDescriptor:
    """
    Inline formatting of a text run or block.  Unset fields stay ``None``.
    """
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    strikethrough: Optional[bool] = None
    superscript: Optional[bool] = None
    subscript: Optional[bool] = None
    color: Optional[str] = None  # raw CSS value, e.g. '#ff0000'
    background_color: Optional[str] = None
    font_family: Optional[str] = None
    font_size: Optional[str] = None  # raw CSS value, e.g. '14px'
    heading_level: Optional[int] = None  # 1-6
    alignment: Optional[str] = None  # left / center / right / justify
    has_nested_formatting: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        """Only the fields that are set."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass
class TextResource:
    content: str
    format: FormatDescriptor = field(default_factory=FormatDescriptor)
    runs: List["TextResource"] = field(default_factory=list)  # flattened runs, when mixed formatting


@dataclass
class ImageResource:
    src: str
    alt: str = ""
    width: int = 300
    height: int = 200
    data_uri: Optional[str] = None
    style: Dict[str, str] = field(default_factory=dict)  # border / margin / alignment

    def is_embedded(self):
        return self.data_uri is not None


@dataclass
class TableResource:
    headers: List[str]
    rows: List[List[str]]
    style: Dict[str, Any] = field(default_factory=dict)

    @property
    def column_count(self) -> int:
        return max([len(self.headers)] + [len(r) for r in self.rows])

    def is_normalized(self) -> bool:
        width = len(self.headers)
        return all(len(r) == width for r in self.rows)


@dataclass
class ListResource:
    items: List[str]
    ordered: bool = False
    style: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LinkResource:
    text: str
    href: str


class BulletKind(str, Enum):
    DISC = "disc"
    DECIMAL = "decimal"
    UPPER_LETTER = "upper-letter"
    LOWER_LETTER = "lower-letter"
    UPPER_ROMAN = "upper-roman"
    LOWER_ROMAN = "lower-roman"


@dataclass(frozen=True)
class BulletDescriptor:
    kind: BulletKind
    glyph: Optional[str] = None  # only for DISC
    start: Optional[int] = None  # only when the list does not start at 1


# ----------------------------------------------------------------------
# Slide elements: closed union over the five resource kinds
# ----------------------------------------------------------------------

@dataclass
class TextElement:
    kind: ClassVar[str] = "text"
    resource: TextResource
    style: Optional[Dict[str, Any]] = None


@dataclass
class ImageElement:
    kind: ClassVar[str] = "image"
    resource: ImageResource
    style: Optional[Dict[str, Any]] = None


@dataclass
class TableElement:
    kind: ClassVar[str] = "table"
    resource: TableResource
    style: Optional[Dict[str, Any]] = None


@dataclass
class ListElement:
    kind: ClassVar[str] = "list"
    resource: ListResource
    style: Optional[Dict[str, Any]] = None


@dataclass
class LinkElement:
    kind: ClassVar[str] = "link"
    resource: LinkResource
    style: Optional[Dict[str, Any]] = None


SlideElement = Union[TextElement, ImageElement, TableElement, ListElement, LinkElement]


@dataclass
class Section:
    """
    A titled slice of the source document destined for one slide.
    """
    title: str
    source_fragment: str = ""
    elements: List[SlideElement] = field(default_factory=list)
    title_tag: Optional[str] = None  # tag the title was read from, if any


@dataclass(frozen=True)
class Document:
    """Parsed tree plus the raw markup it was built from."""
    raw: str
    soup: BeautifulSoup

    @property
    def body(self):
        """The ``<body>`` element, or the closest thing html.parser produced."""
        return self.soup.body or self.soup.html or self.soup


@dataclass
class DocumentResources:
    """Document-wide extraction results, independent of section boundaries."""
    texts: List[TextResource] = field(default_factory=list)
    images: List[ImageResource] = field(default_factory=list)
    tables: List[TableResource] = field(default_factory=list)
    lists: List[ListResource] = field(default_factory=list)
    links: List[LinkResource] = field(default_factory=list)


@dataclass
class HTMLContent:
    raw: str
    document: Document
    sections: List[Section] = field(default_factory=list)
    resources: DocumentResources = field(default_factory=DocumentResources)


@dataclass
class PPTXOutput:
    blob: bytes
    file_name: str
    slide_count: int
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def size(self) -> int:
        return len(self.blob)
