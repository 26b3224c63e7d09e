from __future__ import annotations

from typing import BinaryIO

from PIL import Image

from .base import BaseAdapter, open_image
from ..process import probe_timecode, run_tool
from ..registry import Strategy


def ffmpeg_arguments(path: str, timecode: str) -> list[str]:
    return ["-hide_banner", "-ss", timecode, "-i", path, "-vframes", "1", "-q:v", "1", "-f", "apng", "-"]


class VideoAdapter(BaseAdapter):
    """Grabs a single frame with ffmpeg, sampling past the opening of long videos."""

    strategy = Strategy.VIDEO

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        tools = self._context.tools
        ffmpeg = tools.find("ffmpeg")
        timecode = probe_timecode(
            name,
            explicit=self.config.timecode,
            locator=tools,
            cancel=self._context.cancellation,
            logger=self._context.logger,
        )
        self.log("snapshot at: %s", timecode)
        invocation = run_tool(
            ffmpeg,
            ffmpeg_arguments(name, timecode),
            cancel=self._context.cancellation,
            logger=self._context.logger,
        )
        return self.log_dimensions(open_image(invocation.stdout, name))


__all__ = ["VideoAdapter", "ffmpeg_arguments"]
