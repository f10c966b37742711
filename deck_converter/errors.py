"""
Exception hierarchy for the HTML-to-deck pipeline.

Every error carries the pipeline *stage* it belongs to so that callers (and
the CLI) can print one clear line such as ``[parse] Invalid HTML structure``.
Extraction errors are recoverable: the slide assembler logs them and renders
the element in its default form.  Everything else is fatal.
"""
from typing import Optional, Tuple


class ConversionError(Exception):
    """Base class for all conversion failures."""

    stage = "conversion"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


class ParseError(ConversionError):
    """Markup failed structural validation or tree building."""

    stage = "parse"

    def __init__(
        self,
        message: str,
        *,
        position: Optional[Tuple[int, int]] = None,
        context: Optional[str] = None,
    ):
        super().__init__(message)
        self.position = position  # (line, column), both 1-based
        self.context = context

    @property
    def diagnostic(self) -> str:
        text = self.message
        if self.position:
            text += f" (line {self.position[0]}, column {self.position[1]})"
        if self.context:
            text += f": {self.context!r}"
        return text

    def __str__(self) -> str:
        return f"[{self.stage}] {self.diagnostic}"


class ExtractionError(ConversionError):
    """A single resource could not be extracted or processed."""

    stage = "extraction"
    kind = "resource"


class TextExtractionError(ExtractionError):
    kind = "text"


class ImageExtractionError(ExtractionError):
    kind = "image"


class TableExtractionError(ExtractionError):
    kind = "table"


class ListExtractionError(ExtractionError):
    kind = "list"


class LinkExtractionError(ExtractionError):
    kind = "link"


class ConfigValidationError(ConversionError):
    """An invalid or contradictory :class:`ConversionConfig` reached the assembler."""

    stage = "assembly"


class AssemblyError(ConversionError):
    """Unexpected failure while orchestrating slide assembly."""

    stage = "assembly"


class BackendError(ConversionError):
    """The presentation backend rejected an operation."""

    stage = "backend"


__all__ = [
    "ConversionError",
    "ParseError",
    "ExtractionError",
    "TextExtractionError",
    "ImageExtractionError",
    "TableExtractionError",
    "ListExtractionError",
    "LinkExtractionError",
    "ConfigValidationError",
    "AssemblyError",
    "BackendError",
]
