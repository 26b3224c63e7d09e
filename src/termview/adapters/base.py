from __future__ import annotations

import io
import os
from dataclasses import dataclass, field
from threading import Event
from typing import TYPE_CHECKING, BinaryIO, Protocol, runtime_checkable

from PIL import Image

from ..config import RenderConfig
from ..errors import CanceledError, CapabilityError, DecodeError
from ..logging import NullLogger, RenderLogger
from ..process import DEFAULT_TOOLS, ToolLocator
from ..registry import Strategy

if TYPE_CHECKING:
    from . import DecoderSet


@dataclass(slots=True)
class DecodeContext:
    """State shared by every adapter during one run."""

    config: RenderConfig
    logger: RenderLogger = field(default_factory=NullLogger)
    tools: ToolLocator = DEFAULT_TOOLS
    cancellation: Event | None = None

    def ensure_not_cancelled(self, stage: str) -> None:
        if self.cancellation is not None and self.cancellation.is_set():
            raise CanceledError(f"render canceled during {stage}")


@runtime_checkable
class NamedSource(Protocol):
    """A handle backed by a file on disk that supports random access."""

    name: str

    def seek(self, offset: int, whence: int = 0) -> int:  # pragma: no cover - interface
        ...

    def read(self, size: int = -1) -> bytes:  # pragma: no cover - interface
        ...


def has_named_capability(source: object) -> bool:
    if not isinstance(source, NamedSource):
        return False
    name = getattr(source, "name", None)
    seekable = getattr(source, "seekable", None)
    if callable(seekable) and not seekable():
        return False
    return isinstance(name, str) and os.path.isfile(name)


def require_named_source(source: object) -> NamedSource:
    if not has_named_capability(source):
        raise CapabilityError(
            f"capability not supported for this source ({type(source).__name__}); "
            "a seekable file on disk is required"
        )
    return source  # type: ignore[return-value]


class Adapter(Protocol):
    strategy: Strategy

    def decode(
        self, name: str, mime: str, source: BinaryIO | None
    ) -> Image.Image:  # pragma: no cover - interface
        ...


def select_page(page: int, count: int) -> int:
    """Map a 1-based page option to an index; unset or out of range is the first."""

    index = page - 1
    if 0 <= index < count:
        return index
    return 0


def open_image(data: bytes, name: str = "image") -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"can't decode {name}: {exc}") from exc
    return img


def encode_png(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


class BaseAdapter:
    strategy: Strategy

    def __init__(self, context: DecodeContext, decoders: DecoderSet) -> None:
        self._context = context
        self._decoders = decoders

    @property
    def config(self) -> RenderConfig:
        return self._context.config

    def log(self, message: str, *args: object) -> None:
        self._context.logger(message, *args)

    def log_dimensions(self, img: Image.Image) -> Image.Image:
        self.log("dimensions: %dx%d", img.width, img.height)
        return img

    def read_all(self, source: BinaryIO | None, name: str) -> bytes:
        if source is None:
            raise DecodeError(f"{self.strategy.value} needs an open stream for {name}")
        try:
            return source.read()
        except OSError as exc:
            raise DecodeError(f"unable to read {name}: {exc}") from exc

    def decode(self, name: str, mime: str, source: BinaryIO | None) -> Image.Image:
        raise NotImplementedError


__all__ = [
    "Adapter",
    "BaseAdapter",
    "DecodeContext",
    "NamedSource",
    "encode_png",
    "has_named_capability",
    "open_image",
    "require_named_source",
    "select_page",
]
