from __future__ import annotations

from PIL import Image

from .config import RGBA, RenderConfig
from .registry import Strategy


VECTOR_MIME = "image/svg"


def background_for(strategy: Strategy | None, config: RenderConfig) -> RGBA | None:
    if config.background_rgba is not None:
        return config.background_rgba
    if strategy is Strategy.MERMAID:
        return config.mermaid_background_rgba
    return None


def fill_background(src: Image.Image, color: RGBA) -> Image.Image:
    """Composite *src* over a solid *color* canvas of the same bounds."""

    canvas = Image.new("RGBA", src.size, color)
    return Image.alpha_composite(canvas, src.convert("RGBA"))


def add_background(
    src: Image.Image,
    mime: str,
    config: RenderConfig,
    strategy: Strategy | None = None,
) -> Image.Image:
    # svg output already carries the configured background
    bg = background_for(strategy, config)
    if bg is None or mime == VECTOR_MIME:
        return src
    return fill_background(src, bg)


def add_border(src: Image.Image, config: RenderConfig) -> Image.Image:
    """Pad *src* with a solid margin of ``config.border`` pixels on every side."""

    width = config.border
    color = config.background_rgba or (0, 0, 0, 0)
    dst = Image.new("RGBA", (src.width + 2 * width, src.height + 2 * width), color)
    layer = src.convert("RGBA")
    dst.alpha_composite(layer, dest=(width, width))
    return dst


__all__ = [
    "add_background",
    "add_border",
    "background_for",
    "fill_background",
]
