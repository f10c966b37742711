"""
Presentation backend contract.

The slide assembler only talks to this interface.  Calls arrive in document
order and are never made concurrently.  ``options`` dictionaries carry
geometry (``x``/``y``/``h`` in inches, ``w`` as a fraction of slide width
unless ``w_in`` is given) plus kind-specific styling produced by the
extractors' ``apply_*_styling`` helpers.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .config import SlideLayout
from .models import ImageResource, LinkResource, ListResource, PPTXOutput, TableResource, TextResource
from .theme_loader import ThemeDefinition

Options = Dict[str, Any]


class PresentationBackend(ABC):

    @abstractmethod
    def create_presentation(self, theme: ThemeDefinition, layout: SlideLayout = SlideLayout.STANDARD) -> Any:
        """Open a new presentation with *theme* applied; return its handle."""

    @abstractmethod
    def add_slide(self, handle: Any, title: str, layout: SlideLayout) -> Any:
        """Append a blank slide; return a slide handle."""

    @abstractmethod
    def add_text(self, slide: Any, resource: TextResource, options: Options) -> None:
        ...

    @abstractmethod
    def add_image(self, slide: Any, resource: ImageResource, options: Options) -> None:
        ...

    @abstractmethod
    def add_table(self, slide: Any, resource: TableResource, options: Options) -> None:
        ...

    @abstractmethod
    def add_list(self, slide: Any, resource: ListResource, options: Options) -> None:
        """Render *resource* as one multi-line text block using ``options['bullet']``."""

    @abstractmethod
    def add_hyperlink(self, slide: Any, resource: LinkResource, options: Options) -> None:
        ...

    @abstractmethod
    def save(self, handle: Any, file_name: Optional[str] = None) -> PPTXOutput:
        """Serialize the presentation."""
