"""Shared test fixtures for pixelshift."""

import io

import pytest
from PIL import Image

from pixelshift.conversion.codec import PillowCodec
from pixelshift.conversion.handles import PreviewHandleRegistry
from pixelshift.conversion.workflow import ConversionWorkflow


def make_image_bytes(pil_format: str = "PNG", size=(40, 24), mode: str = "RGBA", color=(200, 30, 90, 255)) -> bytes:
    if mode == "RGB" and len(color) == 4:
        color = color[:3]
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, format=pil_format)
    return buf.getvalue()


class SpyCodec(PillowCodec):
    """PillowCodec that records every encode call."""

    def __init__(self):
        self.encode_calls = []

    def encode(self, bitmap, fmt, quality=None):
        self.encode_calls.append((fmt, quality))
        return super().encode(bitmap, fmt, quality)


@pytest.fixture
def png_bytes():
    return make_image_bytes("PNG")


@pytest.fixture
def registry(tmp_path):
    return PreviewHandleRegistry(tmp_path / "previews")


@pytest.fixture
def spy_codec():
    return SpyCodec()


@pytest.fixture
def workflow(registry, spy_codec):
    wf = ConversionWorkflow(codec=spy_codec, handles=registry)
    yield wf
    wf.close()


@pytest.fixture
def loaded_workflow(workflow, png_bytes):
    workflow.select_file("photo.png", "image/png", png_bytes)
    return workflow
