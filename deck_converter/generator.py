#!/usr/bin/env python3
"""
Main deck generator module that ties together the HTML parser, the slide
assembler and the PowerPoint backend.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from .config import ConversionConfig, ImageProcessingOptions, describe_config
from .errors import ConversionError
from .html_parser import HTMLParser
from .image_processor import ImageLoader, ImageProcessor
from .models import PPTXOutput
from .paths import resolve_output_path
from .pptx_renderer import PPTXBackend
from .slide_assembler import SlideAssembler

logger = logging.getLogger(__name__)


class DeckGenerator:
    """
    Main class for generating PowerPoint decks from HTML.
    """

    def __init__(
        self,
        *,
        output_dir,
        base_dir: str = None,
        config: Optional[ConversionConfig] = None,
        debug: bool = False,
    ):
        """Create a new :class:`DeckGenerator`.

        Parameters
        ----------
        output_dir
            Directory where the final PPTX will be written.  *Required*.
        base_dir
            Base directory for resolving relative image paths in the HTML.
            If None, defaults to current working directory.
        config
            Conversion options; defaults to :class:`ConversionConfig()`.
        debug
            Enable verbose logging.
        """
        self.debug = debug
        self.output_dir = Path(output_dir)
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.config = (config or ConversionConfig()).validate()

        self.parser = HTMLParser(debug=debug)
        self.backend = PPTXBackend(base_dir=self.base_dir, debug=debug)
        loader = ImageLoader(base_dir=self.base_dir, timeout=self.config.image_fetch_timeout)
        self.assembler = SlideAssembler(
            self.backend,
            image_processor=ImageProcessor(loader=loader, debug=debug),
            debug=debug,
        )

    async def convert(self, html_text: str, file_name: Optional[str] = None) -> PPTXOutput:
        """Convert *html_text* and return the serialized deck without touching disk."""
        content = self.parser.parse_html(html_text, config=self.config)
        if self.debug:
            logger.info(f"Parsed {len(content.sections)} sections ({describe_config(self.config)})")
        handle = await self.assembler.assemble(content, self.config)
        return self.backend.save(handle, file_name)

    async def generate(self, html_text: str, output_path=None) -> str:
        """
        Generate a PPTX from HTML text.

        Args:
            html_text: HTML content to convert
            output_path: Path where to save the PPTX (relative names land in
                ``output_dir``; default ``presentation_<timestamp>.pptx``)

        Returns:
            Path to the generated PPTX file
        """
        path = resolve_output_path(output_path, self.output_dir)
        output = await self.convert(html_text, path.name)
        path.write_bytes(output.blob)
        logger.info(f"Wrote {output.slide_count} slides ({output.size} bytes) to {path}")
        return str(path)


def main(argv=None):
    """Command-line entry point for the deck generator."""
    import argparse
    import asyncio
    import sys

    def _build_parser() -> argparse.ArgumentParser:
        p = argparse.ArgumentParser(prog="deckconv", description="Convert an HTML document to a themed PPTX presentation.")
        p.add_argument("html", type=Path, help="HTML file to convert")
        p.add_argument("--output", "-o", type=Path, default=Path("output/presentation.pptx"), help="Destination PPTX path")
        p.add_argument("--layout", "-l", default="standard", help="Slide layout (standard, wide, custom)")
        p.add_argument("--theme", "-t", default="default", help="Theme (default, professional, creative, minimal)")
        p.add_argument("--split", "-s", default="by_h1", help="Split strategy (by_h1, by_h2, by_custom_selector, no_split)")
        p.add_argument("--selector", help="CSS selector for --split by_custom_selector")
        p.add_argument("--no-images", action="store_true", help="Leave images out of the deck")
        p.add_argument("--no-links", action="store_true", help="Leave hyperlink elements out of the deck")
        p.add_argument("--max-width", type=int, default=800, help="Maximum image width in pixels")
        p.add_argument("--max-height", type=int, default=600, help="Maximum image height in pixels")
        p.add_argument("--quality", type=int, default=80, help="JPEG quality for re-encoded images (1-100)")
        p.add_argument("--no-aspect-ratio", action="store_true", help="Do not preserve image aspect ratio when resizing")
        p.add_argument("--asset-base", type=Path, help="Base directory for resolving relative image paths (default: parent of the HTML file)")
        p.add_argument("--debug", action="store_true", help="Enable verbose logging")
        return p

    async def _generate_async(args):
        """Async wrapper for deck generation."""
        html_path: Path = args.html
        if not html_path.exists():
            logger.error(f"HTML file '{html_path}' not found")
            sys.exit(1)

        config = ConversionConfig.from_dict({
            "layout": args.layout,
            "theme": args.theme,
            "split_strategy": args.split,
            "custom_selector": args.selector,
            "include_images": not args.no_images,
            "preserve_links": not args.no_links,
        })
        config = replace(config, image_options=ImageProcessingOptions(
            max_width=args.max_width,
            max_height=args.max_height,
            preserve_aspect_ratio=not args.no_aspect_ratio,
            quality=args.quality,
        ))

        generator = DeckGenerator(
            output_dir=args.output.parent,
            base_dir=args.asset_base if args.asset_base else html_path.parent,
            config=config,
            debug=args.debug,
        )
        output_path = await generator.generate(html_path.read_text(encoding="utf-8"), args.output)
        logger.info("✅ Presentation written to %s", output_path)

    # Set up logging
    logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")

    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        asyncio.run(_generate_async(args))
    except ConversionError as exc:
        logger.error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
