from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

from PIL import Image

from .base import BaseAdapter
from ..errors import DecodeError
from ..process import TempWorkspace, run_tool
from ..registry import Strategy


class OfficeAdapter(BaseAdapter):
    """Converts office documents to PDF with LibreOffice, then rasterizes the PDF."""

    strategy = Strategy.OFFICE

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        soffice = self._context.tools.find("soffice")
        with TempWorkspace(logger=self._context.logger) as workspace:
            run_tool(
                soffice,
                ["--headless", "--convert-to", "pdf", "--outdir", str(workspace), name],
                cancel=self._context.cancellation,
                logger=self._context.logger,
                merge_stderr=True,
            )
            pdf = workspace / f"{Path(name).stem}.pdf"
            if not pdf.is_file():
                raise DecodeError(f"soffice produced no output for {name}")
            self._context.ensure_not_cancelled("office conversion")
            with pdf.open("rb") as handle:
                return self._decoders.decode(Strategy.VIPS, str(pdf), "application/pdf", handle)


__all__ = ["OfficeAdapter"]
