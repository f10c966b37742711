"""
Image acquisition and resizing.

This is the only asynchronous part of the pipeline.  Bytes are loaded from a
data URI, a local file or a remote URL (through one shared
``httpx.AsyncClient``), decoded by an injectable decoder, fitted into the
configured bounding box and re-encoded as a data URI.
"""
import asyncio
import base64
import io
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union
from urllib.parse import unquote_to_bytes

import httpx
from PIL import Image

from .config import ImageProcessingOptions
from .errors import ImageExtractionError
from .models import ImageResource
from .paths import resolve_asset, source_kind

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[^;,]*)(?P<params>(?:;[^;,]*)*),(?P<payload>.*)$", re.DOTALL)


def decode_data_uri(uri: str) -> Tuple[str, bytes]:
    """Return ``(mime_type, payload)`` of a ``data:`` URI."""
    match = _DATA_URI.match(uri.strip())
    if not match:
        raise ValueError("Malformed data URI")
    mime = match.group("mime") or "text/plain"
    payload = match.group("payload")
    if ";base64" in match.group("params").lower():
        return mime, base64.b64decode(payload, validate=False)
    return mime, unquote_to_bytes(payload)


def calculate_optimal_dimensions(
    width: int,
    height: int,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
    preserve_aspect_ratio: bool = True,
) -> Tuple[int, int]:
    """Fit ``width × height`` inside the optional bounds.

    Width is capped first, then height; with ``preserve_aspect_ratio`` the
    other side follows the original ratio.  Images are never enlarged.
    """
    new_width, new_height = width, height
    if max_width and width > max_width:
        new_width = max_width
        if preserve_aspect_ratio:
            new_height = round(max_width / width * height)
    if max_height and new_height > max_height:
        new_height = max_height
        if preserve_aspect_ratio:
            new_width = round(max_height / height * width)
    return max(new_width, 1), max(new_height, 1)


class PillowDecoder:
    """Default decoder: bytes → fully loaded ``PIL.Image``."""

    def decode(self, data: bytes) -> Image.Image:
        img = Image.open(io.BytesIO(data))
        img.load()
        return img


def encode_image(img: Image.Image, quality: int) -> str:
    """Encode *img* as a data URI: PNG if it has transparency, JPEG otherwise."""
    buffer = io.BytesIO()
    has_alpha = img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info)
    if has_alpha:
        img.save(buffer, format="PNG")
        mime = "image/png"
    else:
        img.convert("RGB").save(buffer, format="JPEG", quality=quality)
        mime = "image/jpeg"
    return f"data:{mime};base64,{base64.b64encode(buffer.getvalue()).decode('ascii')}"


class ImageLoader:
    """Loads the raw bytes behind an :class:`ImageResource`."""

    def __init__(self, *, base_dir: Optional[Union[str, Path]] = None, timeout: float = 10.0):
        self.base_dir = Path(base_dir) if base_dir else None
        self.timeout = timeout

    async def load(self, image: ImageResource, client: Optional[httpx.AsyncClient] = None) -> bytes:
        src = image.data_uri or image.src
        kind = source_kind(src)
        if kind == "data":
            return decode_data_uri(src)[1]
        if kind == "remote":
            if client is None:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as own_client:
                    return await self._fetch(own_client, src)
            return await self._fetch(client, src)
        path = Path(resolve_asset(src, base_dir=self.base_dir))
        return await asyncio.to_thread(path.read_bytes)

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> bytes:
        response = await client.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content


class ImageProcessor:
    """
    Resize and re-encode images for embedding.

    Parameters
    ----------
    loader
        Object with ``async load(image, client=None) -> bytes``.
    decoder
        Object with ``decode(bytes) -> PIL.Image.Image``.  Defaults to
        :class:`PillowDecoder`.
    debug
        Log every processed image.
    """

    def __init__(self, *, loader=None, decoder=None, debug: bool = False):
        self.loader = loader or ImageLoader()
        self.decoder = decoder or PillowDecoder()
        self.debug = debug

    async def process_image(
        self,
        image: ImageResource,
        options: ImageProcessingOptions,
        client: Optional[httpx.AsyncClient] = None,
    ) -> ImageResource:
        """Return a resized copy of *image* carrying the re-encoded bytes."""
        label = image.src if len(image.src) <= 60 else image.src[:57] + "..."
        try:
            data = await self.loader.load(image, client)
            processed = await asyncio.to_thread(self._transform, image, data, options)
        except (httpx.HTTPError, OSError, ValueError, TypeError, Image.DecompressionBombError) as exc:
            raise ImageExtractionError(f"Failed to process image {label!r}: {exc}") from exc

        if self.debug:
            logger.info(
                f"🖼️  {label}: {image.width}x{image.height} → {processed.width}x{processed.height}"
            )
        return processed

    async def process_images(
        self,
        images: List[ImageResource],
        options: ImageProcessingOptions,
        *,
        timeout: float = 10.0,
    ) -> List[Union[ImageResource, BaseException]]:
        """Process *images* concurrently; failures are returned in place, not raised."""
        if not images:
            return []
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            return await asyncio.gather(
                *(self.process_image(img, options, client) for img in images),
                return_exceptions=True,
            )

    def _transform(self, image: ImageResource, data: bytes, options: ImageProcessingOptions) -> ImageResource:
        img = self.decoder.decode(data)
        natural_width, natural_height = img.size
        width, height = calculate_optimal_dimensions(
            natural_width,
            natural_height,
            options.max_width,
            options.max_height,
            options.preserve_aspect_ratio,
        )

        if (width, height) == (natural_width, natural_height) and image.data_uri:
            data_uri = image.data_uri
        else:
            if (width, height) != (natural_width, natural_height):
                img = img.resize((width, height), Image.Resampling.LANCZOS)
            data_uri = encode_image(img, options.quality)

        return ImageResource(
            src=image.src,
            alt=image.alt,
            width=width,
            height=height,
            data_uri=data_uri,
            style=dict(image.style),
        )
