from __future__ import annotations

import io
from typing import BinaryIO

from PIL import Image, ImageDraw, ImageFont, features

from .base import BaseAdapter
from ..errors import DecodeError
from ..registry import Strategy


SPECIMEN_LINES = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ",
    "abcdefghijklmnopqrstuvwxyz",
    "0123456789 !?&@#$%*()[]{}",
    "The quick brown fox jumps over the lazy dog",
)

TRANSPARENT = (0, 0, 0, 0)


def apply_variant(text: str, variant: str) -> str:
    if variant == "uppercase":
        return text.upper()
    if variant == "lowercase":
        return text.lower()
    return text


def points_to_pixels(points: float, dpi: int) -> int:
    return max(1, round(points * dpi / 72))


class FontAdapter(BaseAdapter):
    """Rasterizes a specimen sheet for a font file."""

    strategy = Strategy.FONT

    def _load(self, data: bytes, name: str, size: int) -> ImageFont.FreeTypeFont:
        try:
            font = ImageFont.truetype(io.BytesIO(data), size)
        except OSError as exc:
            raise DecodeError(f"can't load font {name}: {exc}") from exc
        style = self.config.font_style
        if style:
            try:
                font.set_variation_by_name(style)
            except (OSError, ValueError) as exc:
                raise DecodeError(f"font style {style!r} unavailable in {name}: {exc}") from exc
        return font

    def _features(self) -> list[str] | None:
        if self.config.font_variant != "smallcaps":
            return None
        if features.check_feature("raqm"):
            return ["smcp"]
        return None

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        config = self.config
        data = self.read_all(source, name)
        size = points_to_pixels(config.font_size, config.font_dpi)
        margin = points_to_pixels(config.font_margin, config.font_dpi)
        font = self._load(data, name, size)
        family, style = font.getname()
        title = " ".join(part for part in (family, style) if part)
        variant = config.font_variant
        if variant == "smallcaps" and not self._features():
            # no shaping engine: fall back to capitals
            variant = "uppercase"
        lines = [title or name, *(apply_variant(line, variant) for line in SPECIMEN_LINES)]
        layout_features = self._features()

        measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
        boxes = [measure.textbbox((0, 0), line, font=font, features=layout_features) for line in lines]
        spacing = size // 4
        width = max(box[2] for box in boxes) + 2 * margin
        height = sum(box[3] for box in boxes) + spacing * (len(lines) - 1) + 2 * margin

        img = Image.new("RGBA", (width, height), config.font_background_rgba or TRANSPARENT)
        draw = ImageDraw.Draw(img)
        fill = config.font_foreground_rgba or TRANSPARENT
        y = margin
        for line, box in zip(lines, boxes):
            draw.text((margin, y), line, font=font, fill=fill, features=layout_features)
            y += box[3] + spacing
        self.log("font: %s size: %dpx", title, size)
        return self.log_dimensions(img)


__all__ = ["FontAdapter", "SPECIMEN_LINES", "apply_variant", "points_to_pixels"]
