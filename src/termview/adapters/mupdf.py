from __future__ import annotations

import time
from typing import BinaryIO

import fitz
from PIL import Image

from .base import BaseAdapter, select_page
from ..detection import file_ext
from ..errors import DecodeError
from ..logging import elapsed_ms
from ..registry import Strategy


_FILETYPES = {
    "application/epub+zip": "epub",
    "application/x-mobipocket-ebook": "mobi",
    "text/fb2": "fb2",
    "image/vnd.adobe.photoshop": "psd",
    "image/x-portable-bitmap": "pbm",
    "image/x-portable-graymap": "pgm",
    "image/x-portable-pixmap": "ppm",
    "image/x-portable-anymap": "pnm",
    "image/x-portable-arbitrarymap": "pam",
}


def filetype_for(mime: str, ext: str) -> str:
    """MuPDF filetype hint; the extension wins where it is specific."""

    if ext in {"fb2", "xps", "epub", "mobi", "psd", "pbm", "pgm", "ppm", "pnm", "pam"}:
        return ext
    return _FILETYPES.get(mime, ext or "pdf")


class MuPDFAdapter(BaseAdapter):
    strategy = Strategy.MUPDF

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        data = self.read_all(source, name)
        ext = file_ext(name)
        filetype = filetype_for(mime, ext)
        start = time.perf_counter()
        try:
            with fitz.open(stream=data, filetype=filetype) as doc:
                count = doc.page_count
                if count == 0:
                    raise DecodeError(f"{name} has no pages")
                index = select_page(self.config.page, count)
                self.log("mupdf %s pages: %d rendering: %d", filetype, count, index + 1)
                pix = doc.load_page(index).get_pixmap(dpi=self.config.dpi or 72)
                img = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        except DecodeError:
            raise
        except (RuntimeError, ValueError) as exc:
            raise DecodeError(f"mupdf can't open {name}: {exc}") from exc
        self.log("mupdf render: %.1fms", elapsed_ms(start))
        return self.log_dimensions(img)


__all__ = ["MuPDFAdapter", "filetype_for"]
