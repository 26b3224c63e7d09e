from __future__ import annotations

from typing import BinaryIO

from PIL import Image

from .base import BaseAdapter
from ..errors import DecodeError
from ..registry import Strategy


class BuiltinAdapter(BaseAdapter):
    """Decodes the raster formats Pillow ships codecs for."""

    strategy = Strategy.BUILTIN

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        if source is None:
            raise DecodeError(f"builtin decoder needs an open stream for {name}")
        try:
            img = Image.open(source)
            img.load()
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"can't decode {name}: {exc}") from exc
        return self.log_dimensions(img)


__all__ = ["BuiltinAdapter"]
