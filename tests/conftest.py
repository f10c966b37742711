import base64
import io
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `import deck_converter` works
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from deck_converter.backend import PresentationBackend  # noqa: E402
from deck_converter.models import PPTXOutput  # noqa: E402


class RecordingBackend(PresentationBackend):
    """In-memory backend that records every call in order."""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def _record(self, name, *args):
        if name == self.fail_on:
            raise RuntimeError(f"{name} rejected")
        self.calls.append((name,) + args)

    def create_presentation(self, theme, layout=None):
        self._record("create_presentation", theme, layout)
        return {"theme": theme, "slides": []}

    def add_slide(self, handle, title, layout):
        self._record("add_slide", title, layout)
        slide = {"title": title, "elements": []}
        handle["slides"].append(slide)
        return slide

    def add_text(self, slide, resource, options):
        self._record("add_text", resource, options)
        slide["elements"].append(("text", resource, options))

    def add_image(self, slide, resource, options):
        self._record("add_image", resource, options)
        slide["elements"].append(("image", resource, options))

    def add_table(self, slide, resource, options):
        self._record("add_table", resource, options)
        slide["elements"].append(("table", resource, options))

    def add_list(self, slide, resource, options):
        self._record("add_list", resource, options)
        slide["elements"].append(("list", resource, options))

    def add_hyperlink(self, slide, resource, options):
        self._record("add_hyperlink", resource, options)
        slide["elements"].append(("link", resource, options))

    def save(self, handle, file_name=None):
        self._record("save", file_name)
        return PPTXOutput(blob=b"", file_name=file_name or "deck.pptx", slide_count=len(handle["slides"]))


@pytest.fixture
def recording_backend():
    return RecordingBackend()


def make_png(width=40, height=20, color=(200, 30, 30)) -> bytes:
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_uri(width=40, height=20) -> str:
    return "data:image/png;base64," + base64.b64encode(make_png(width, height)).decode("ascii")


@pytest.fixture
def png_uri():
    return png_data_uri


@pytest.fixture
def failing_backend():
    """Factory for a backend that raises on the named call."""
    return lambda name: RecordingBackend(fail_on=name)
