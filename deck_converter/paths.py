"""Helpers for resolving output files and image sources.

Image ``src`` values come in three flavours: embedded ``data:`` URIs, remote
``http(s)`` URLs, and local paths (absolute, relative to the HTML file, or
``file://`` URLs).  :func:`resolve_asset` turns the last kind into an absolute
path and leaves the others untouched.
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

__all__ = ["default_file_name", "resolve_asset", "resolve_output_path", "source_kind"]


def source_kind(src: str) -> str:
    """``'data'``, ``'remote'`` or ``'local'``."""
    if src.startswith("data:"):
        return "data"
    if src.startswith(("http://", "https://")):
        return "remote"
    return "local"


def resolve_asset(src: str, *, base_dir: Optional[Path] = None) -> str:
    """Return the location to load *src* from.

    Rules
    -----
    1. Remote URLs and data URIs are returned unchanged.
    2. ``file://`` URLs are stripped to an absolute path.
    3. Relative paths are resolved against *base_dir* (default: cwd).
    """
    if source_kind(src) != "local":
        return src

    if src.startswith("file://"):
        abs_path = Path(src[7:]).expanduser().resolve()
    else:
        abs_path = (Path(base_dir or Path.cwd()) / src).expanduser().resolve()
    return str(abs_path)


def default_file_name(now: Optional[datetime] = None) -> str:
    """``presentation_<timestamp>.pptx``, safe to use as a file name."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"presentation_{stamp}.pptx"


def resolve_output_path(output_path: str | Path | None, output_dir: str | Path) -> Path:
    """Absolute path for the PPTX; relative names land in *output_dir*.

    *output_dir* is created if it does not exist.
    """
    out_dir = Path(output_dir).expanduser().resolve()
    out_dir.mkdir(parents=True, exist_ok=True)

    if output_path is None:
        return out_dir / default_file_name()
    path = Path(output_path).expanduser()
    if not path.is_absolute():
        path = out_dir / path.name
    path.parent.mkdir(parents=True, exist_ok=True)
    return path
