"""Deck Converter – top-level package

Exposes the public API (`DeckGenerator`, `HTMLParser`, etc.) **and** sets up
a minimal logging configuration so that every sub-module can call

```python
import logging
logger = logging.getLogger(__name__)
```

and honour a single environment variable `DECKCONV_LOG_LEVEL`.
"""

from __future__ import annotations

import logging
import os

# ------------------------------------------------------------------
# Default logging – honour env var, otherwise INFO.
# ------------------------------------------------------------------
LOG_LEVEL = os.getenv("DECKCONV_LOG_LEVEL", "INFO").upper()
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

# Public API re-exports ------------------------------------------------
from .config import (  # noqa: E402  (import after logger)
    ConversionConfig,
    ImageProcessingOptions,
    PresentationTheme,
    SlideLayout,
    SplitStrategy,
)
from .errors import ConversionError, ParseError  # noqa: E402
from .generator import DeckGenerator  # noqa: E402
from .html_parser import HTMLParser  # noqa: E402
from .pptx_renderer import PPTXBackend  # noqa: E402
from .slide_assembler import SlideAssembler  # noqa: E402

__all__ = [
    "ConversionConfig",
    "ImageProcessingOptions",
    "PresentationTheme",
    "SlideLayout",
    "SplitStrategy",
    "ConversionError",
    "ParseError",
    "DeckGenerator",
    "HTMLParser",
    "PPTXBackend",
    "SlideAssembler",
]
