from __future__ import annotations

import io
from typing import BinaryIO

from PIL import Image

from .base import BaseAdapter
from ..process import run_tool
from ..registry import Strategy


ICON_PACK = "@iconify-json/logos"


def mmdc_arguments(path: str, extra_icons: tuple[str, ...] = ()) -> list[str]:
    return [
        "--outputFormat",
        "svg",
        "--input",
        path,
        "--output",
        "-",
        "--iconPacks",
        ICON_PACK,
        *extra_icons,
    ]


class MermaidAdapter(BaseAdapter):
    strategy = Strategy.MERMAID

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        mmdc = self._context.tools.find("mmdc")
        invocation = run_tool(
            mmdc,
            mmdc_arguments(name, self.config.mermaid_icons),
            cancel=self._context.cancellation,
            logger=self._context.logger,
        )
        for line in invocation.stderr.decode("utf-8", errors="replace").splitlines():
            if line.strip():
                self.log("mmdc: %s", line)
        return self._decoders.decode(
            Strategy.SVG, name, "image/svg", io.BytesIO(invocation.stdout)
        )


__all__ = ["ICON_PACK", "MermaidAdapter", "mmdc_arguments"]
