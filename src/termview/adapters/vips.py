"""General raster engine backed by libvips.

libvips is initialized once per process. ``VipsState`` owns that
initialization; callers go through ``ensure_initialized`` which blocks
concurrent callers until the first one has finished.
"""

from __future__ import annotations

import os
import threading
import time
from types import ModuleType
from typing import Any, BinaryIO

from PIL import Image

from .base import BaseAdapter, open_image, select_page
from ..errors import DecodeError
from ..logging import RenderLogger, elapsed_ms, route_library_logging
from ..registry import Strategy
from ..utils import best_fit_scale


PDF_BOX = 2000

# loaders that accept the ``page`` and ``n`` options
MULTIPAGE_LOADERS = (
    "pdfload",
    "gifload",
    "tiffload",
    "webpload",
    "heifload",
    "jxlload",
    "magickload",
)


class VipsState:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._module: ModuleType | None = None

    def ensure_initialized(
        self, logger: RenderLogger, *, verbose: bool, concurrency: int
    ) -> ModuleType:
        with self._lock:
            if self._module is None:
                start = time.perf_counter()
                if concurrency:
                    os.environ["VIPS_CONCURRENCY"] = str(concurrency)
                route_library_logging("pyvips", logger, verbose=verbose)
                import pyvips

                self._module = pyvips
                logger("vips init: %.1fms", elapsed_ms(start))
            return self._module


VIPS_STATE = VipsState()


def _get(image: Any, field: str, default: Any) -> Any:
    if image.get_typeof(field) == 0:
        return default
    return image.get(field)


class VipsAdapter(BaseAdapter):
    strategy = Strategy.VIPS

    state = VIPS_STATE

    def _vips(self) -> ModuleType:
        return self.state.ensure_initialized(
            self._context.logger,
            verbose=self.config.verbose,
            concurrency=self.config.vips_concurrency,
        )

    def _load(self, pyvips: ModuleType, data: bytes, name: str, **options: Any) -> Any:
        try:
            return pyvips.Image.new_from_buffer(data, "", fail=True, **options)
        except pyvips.Error as exc:
            raise DecodeError(f"vips can't load {name}: {exc}") from exc

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        pyvips = self._vips()
        data = self.read_all(source, name)
        start = time.perf_counter()
        image = self._load(pyvips, data, name)
        loader = str(_get(image, "vips-loader", ""))
        if loader.startswith(MULTIPAGE_LOADERS):
            pages = int(_get(image, "n-pages", 1))
            index = select_page(self.config.page, pages)
            image = self._load(pyvips, data, name, n=1, page=index)
        self.log("vips load: %.1fms", elapsed_ms(start))
        return self._export(pyvips, image, name)

    def _export(self, pyvips: ModuleType, image: Any, name: str) -> Image.Image:
        loader = str(_get(image, "vips-loader", ""))
        width, height = image.width, image.height
        self.log(
            "vips loader: %s dimensions: %dx%d pages: %d",
            loader or "?",
            width,
            height,
            int(_get(image, "n-pages", 1)),
        )
        try:
            if loader.startswith("pdfload"):
                scale = best_fit_scale(width, height, PDF_BOX, PDF_BOX)
                if scale != 1.0:
                    image = image.resize(scale)
                    self.log("vips resize: %.3f", scale)
            start = time.perf_counter()
            png = image.write_to_buffer(".png")
        except pyvips.Error as exc:
            raise DecodeError(f"vips can't export {name}: {exc}") from exc
        self.log("vips export: %.1fms", elapsed_ms(start))
        return open_image(png, name)


__all__ = [
    "MULTIPAGE_LOADERS",
    "VIPS_STATE",
    "VipsAdapter",
    "VipsState",
]
