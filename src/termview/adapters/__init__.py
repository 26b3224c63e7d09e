from __future__ import annotations

from typing import BinaryIO, Dict, Type

from PIL import Image

from .audio import AudioAdapter
from .base import Adapter, BaseAdapter, DecodeContext
from .builtin import BuiltinAdapter
from .comic import ComicAdapter
from .font import FontAdapter
from .markdown import MarkdownAdapter
from .mermaid import MermaidAdapter
from .mupdf import MuPDFAdapter
from .office import OfficeAdapter
from .svg import SVGAdapter
from .video import VideoAdapter
from .vips import VipsAdapter
from .winpe import WinPEAdapter
from ..errors import DecodeError, RenderError
from ..registry import Strategy

_ADAPTER_CLASSES: Dict[Strategy, Type[BaseAdapter]] = {
    Strategy.SVG: SVGAdapter,
    Strategy.BUILTIN: BuiltinAdapter,
    Strategy.OFFICE: OfficeAdapter,
    Strategy.VIPS: VipsAdapter,
    Strategy.MUPDF: MuPDFAdapter,
    Strategy.MERMAID: MermaidAdapter,
    Strategy.MARKDOWN: MarkdownAdapter,
    Strategy.FONT: FontAdapter,
    Strategy.VIDEO: VideoAdapter,
    Strategy.AUDIO: AudioAdapter,
    Strategy.COMIC: ComicAdapter,
    Strategy.WINPE: WinPEAdapter,
}


class DecoderSet:
    """Adapters for one render service, built on first use.

    Adapters hold a reference back to the set so a strategy can hand its
    intermediate output (PDF, SVG) to another strategy.
    """

    def __init__(
        self,
        context: DecodeContext,
        classes: Dict[Strategy, Type[BaseAdapter]] | None = None,
    ) -> None:
        self.context = context
        self._classes = dict(classes or _ADAPTER_CLASSES)
        self._adapters: Dict[Strategy, Adapter] = {}

    def get(self, strategy: Strategy) -> Adapter:
        adapter = self._adapters.get(strategy)
        if adapter is None:
            adapter_cls = self._classes.get(strategy)
            if not adapter_cls:
                raise KeyError(f"No adapter registered for {strategy.value}")
            adapter = adapter_cls(self.context, self)
            self._adapters[strategy] = adapter
        return adapter

    def decode(
        self, strategy: Strategy, name: str, mime: str, source: BinaryIO | None
    ) -> Image.Image:
        self.context.ensure_not_cancelled(strategy.value)
        self.context.logger("decoder: %s", strategy.value)
        try:
            return self.get(strategy).decode(name, mime, source)
        except RenderError:
            raise
        except Exception as exc:
            raise DecodeError(f"{strategy.value}: {exc!r}") from exc


__all__ = [
    "Adapter",
    "BaseAdapter",
    "DecodeContext",
    "DecoderSet",
]
