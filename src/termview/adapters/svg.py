from __future__ import annotations

from typing import BinaryIO

import cairosvg
from PIL import Image

from .base import BaseAdapter, open_image
from ..errors import DecodeError
from ..registry import Strategy
from ..utils import best_fit_scale


def _css_color(rgba: tuple[int, int, int, int]) -> str:
    r, g, b, a = rgba
    return f"rgba({r}, {g}, {b}, {a / 255:.3f})"


class SVGAdapter(BaseAdapter):
    strategy = Strategy.SVG

    def _render(self, data: bytes, name: str, **options: object) -> Image.Image:
        try:
            png = cairosvg.svg2png(bytestring=data, **options)
        except (ValueError, OSError, SyntaxError) as exc:
            raise DecodeError(f"can't rasterize {name}: {exc}") from exc
        return open_image(png, name)

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        data = self.read_all(source, name)
        options: dict[str, object] = {"dpi": self.config.dpi or 96}
        if self.config.background_rgba is not None:
            options["background_color"] = _css_color(self.config.background_rgba)
        img = self._render(data, name, **options)
        bounds = self.config.scale_bounds
        if bounds is not None:
            scale = best_fit_scale(img.width, img.height, *bounds)
            if scale != 1.0:
                self.log("svg scale: %.3f", scale)
                img = self._render(data, name, scale=scale, **options)
        return self.log_dimensions(img)


__all__ = ["SVGAdapter"]
