from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from termview.config import RenderConfig
from termview.errors import TerminalGraphicsUnavailable
from termview.process import ToolLocator


# sniff results keyed on leading bytes so tests do not depend on the libmagic database
SIGNATURES = (
    (b"\x89PNG", "image/png"),
    (b"<svg", "image/svg+xml"),
    (b"%PDF", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"ID3", "audio/mpeg"),
    (b"MZ", "application/x-dosexec"),
    (b"graph", "text/plain"),
    (b"# ", "text/markdown; charset=utf-8"),
)


def fake_from_buffer(data: bytes, mime: bool = False) -> str:
    for prefix, value in SIGNATURES:
        if data.startswith(prefix):
            return value
    return "application/octet-stream"


@pytest.fixture
def fake_magic(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("termview.detection.magic.from_buffer", fake_from_buffer)


@pytest.fixture
def config() -> RenderConfig:
    return RenderConfig(vips_concurrency=1)


@pytest.fixture
def fake_tools() -> ToolLocator:
    return ToolLocator(which=lambda name: f"/opt/bin/{name}")


@pytest.fixture
def no_tools() -> ToolLocator:
    return ToolLocator(which=lambda name: None)


def png_bytes(size: tuple[int, int] = (4, 3), color: tuple[int, ...] = (255, 0, 0, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def write_png(path: Path, size: tuple[int, int] = (4, 3)) -> Path:
    path.write_bytes(png_bytes(size))
    return path


class FakeEncoder:
    def __init__(self, available: bool = True) -> None:
        self.images: list[Image.Image] = []
        self._available = available

    def ensure_available(self) -> None:
        if not self._available:
            raise TerminalGraphicsUnavailable()

    def encode(self, image: Image.Image, out) -> None:
        self.images.append(image)
        out.write(f"<image {image.width}x{image.height}>\n")
